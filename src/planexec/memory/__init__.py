"""Investigation memory."""

from .simple import FailurePattern, InvestigationMemory, SavedInvestigation, SuccessfulPattern

__all__ = ["FailurePattern", "InvestigationMemory", "SavedInvestigation", "SuccessfulPattern"]
