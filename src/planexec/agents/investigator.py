"""High-level plan -> execute -> synthesize pipeline built from configuration."""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, List, Optional

from ..config import ComponentSpec, ConfigError, ProjectConfig, import_string
from ..memory.simple import InvestigationMemory
from ..plan.base import Plan
from ..tasks.aggregator import DEFAULT_SCALE, AggregateReport, aggregate
from ..tasks.base import ExecutionResult
from ..tasks.executor import TaskExecutor
from ..tasks.scheduler import PlanScheduler
from ..tools.builtin import register_builtin_tools
from ..tools.registry import ToolRegistry
from .planner import LLMPlanner, Planner, StaticPlanner
from .synthesis import LLMSynthesizer, SummarySynthesizer, SynthesisResult, Synthesizer


@dataclass
class InvestigationMetadata:
    topic: str
    duration_ms: float
    tools_used: List[str] = field(default_factory=list)
    quality: float = 0.0


@dataclass
class InvestigationResult:
    plan: Plan
    execution: List[ExecutionResult]
    report: AggregateReport
    synthesis: SynthesisResult
    metadata: InvestigationMetadata


def _generate_id() -> str:
    return f"inv_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def build_scheduler(config: ProjectConfig, registry: Optional[ToolRegistry] = None) -> PlanScheduler:
    """Create a scheduler wired to a registry holding built-in and configured tools."""

    if registry is None:
        registry = ToolRegistry()
        register_builtin_tools(registry)
    registry.configure_from_specs(config.tool_specs)
    executor = TaskExecutor(
        registry,
        missing_tool_policy=config.engine.missing_tools,
        timeout=config.engine.subtask_timeout,
    )
    return PlanScheduler(
        executor,
        max_concurrency=config.engine.max_concurrency,
        failure_policy=config.engine.on_failure,
    )


def _instantiate_with_provider(spec: ComponentSpec, base: type, provider: Any) -> Any:
    target = import_string(spec.type)
    params = dict(spec.params)
    if provider is not None and isinstance(target, type) and issubclass(target, base):
        params.setdefault("provider", provider)
    return target(**params)


class InvestigationAgent:
    """Plans an investigation, executes it round by round, and synthesizes a report."""

    def __init__(
        self,
        planner: Optional[Planner],
        scheduler: PlanScheduler,
        synthesizer: Optional[Synthesizer] = None,
        memory: Optional[InvestigationMemory] = None,
        *,
        confidence_scale: float = DEFAULT_SCALE,
    ) -> None:
        self.planner = planner
        self.scheduler = scheduler
        self.synthesizer = synthesizer or SummarySynthesizer()
        self.memory = memory or InvestigationMemory()
        self.confidence_scale = confidence_scale
        self._log = logging.getLogger(__name__)

    @classmethod
    def from_config(cls, config: ProjectConfig, *, registry: Optional[ToolRegistry] = None) -> "InvestigationAgent":
        provider = config.llm_provider.instantiate() if config.llm_provider else None
        planner: Optional[Planner]
        if config.planner is not None:
            planner = _instantiate_with_provider(config.planner, LLMPlanner, provider)
        elif config.plan is not None:
            planner = StaticPlanner(config.plan)
        elif provider is not None:
            planner = LLMPlanner(provider)
        else:
            planner = None
        synthesizer: Synthesizer
        if config.synthesizer is not None:
            synthesizer = _instantiate_with_provider(config.synthesizer, LLMSynthesizer, provider)
        else:
            synthesizer = SummarySynthesizer()
        return cls(
            planner,
            build_scheduler(config, registry),
            synthesizer,
            confidence_scale=config.engine.confidence_scale,
        )

    async def investigate(self, topic: str, *, cancel_event: Optional[asyncio.Event] = None) -> InvestigationResult:
        """Plan, execute and synthesize ``topic``; the outcome is recorded in memory."""

        started = time.monotonic()
        self._log.info("investigation start topic=%r", topic)
        try:
            if self.planner is None:
                raise ConfigError("No planner configured: set 'planner', 'plan' or 'llm_provider'")
            plan = await self.planner.create_plan(topic)
            result = await self._run(topic, plan, started, cancel_event)
        except Exception as exc:
            self.memory.record_failure(topic, exc)
            self._log.warning("investigation failed topic=%r error=%s", topic, exc)
            raise
        self.memory.record_success(topic, plan, result)
        self.memory.save_investigation(_generate_id(), topic, result)
        self._log.info(
            "investigation done topic=%r quality=%.1f confidence=%.1f",
            topic,
            result.metadata.quality,
            result.report.confidence,
        )
        return result

    async def execute(
        self,
        plan: Plan,
        *,
        topic: Optional[str] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> InvestigationResult:
        """Run an existing plan through execution and synthesis, skipping the planner."""

        return await self._run(topic or plan.title, plan, time.monotonic(), cancel_event)

    async def _run(
        self,
        topic: str,
        plan: Plan,
        started: float,
        cancel_event: Optional[asyncio.Event],
    ) -> InvestigationResult:
        execution = await self.scheduler.execute_plan(plan, cancel_event=cancel_event)
        report = aggregate(execution, scale=self.confidence_scale)
        synthesis = await self.synthesizer.synthesize(plan, report)
        metadata = InvestigationMetadata(
            topic=topic,
            duration_ms=(time.monotonic() - started) * 1000,
            tools_used=report.tools_used(),
            quality=synthesis.quality,
        )
        return InvestigationResult(
            plan=plan,
            execution=execution,
            report=report,
            synthesis=synthesis,
            metadata=metadata,
        )
