"""Planning, synthesis and the investigation agent."""

from .investigator import InvestigationAgent, InvestigationMetadata, InvestigationResult, build_scheduler
from .planner import FilePlanner, LLMPlanner, Planner, StaticPlanner
from .synthesis import LLMSynthesizer, SummarySynthesizer, SynthesisResult, Synthesizer

__all__ = [
    "InvestigationAgent",
    "InvestigationMetadata",
    "InvestigationResult",
    "build_scheduler",
    "FilePlanner",
    "LLMPlanner",
    "Planner",
    "StaticPlanner",
    "LLMSynthesizer",
    "SummarySynthesizer",
    "SynthesisResult",
    "Synthesizer",
]
