"""In-process memory of past investigations."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from ..plan.base import Plan

if TYPE_CHECKING:  # pragma: no cover
    from ..agents.investigator import InvestigationResult


@dataclass
class SuccessfulPattern:
    topic: str
    subtask_kinds: Tuple[str, ...]
    dependency_count: int
    total_estimated_minutes: float
    quality: float
    duration_ms: float
    tools: Tuple[str, ...]


@dataclass
class FailurePattern:
    topic: str
    error: str
    timestamp: float = field(default_factory=time.time)


@dataclass
class SavedInvestigation:
    id: str
    topic: str
    result: "InvestigationResult"
    timestamp: float = field(default_factory=time.time)


class InvestigationMemory:
    """Stores bounded lists of successful and failed investigations."""

    def __init__(self, max_items: int = 50) -> None:
        self.max_items = max_items
        self._successes: List[SuccessfulPattern] = []
        self._failures: List[FailurePattern] = []
        self._investigations: Dict[str, SavedInvestigation] = {}

    def _bounded(self, items: list) -> list:
        if len(items) > self.max_items:
            return items[-self.max_items :]
        return items

    def record_success(self, topic: str, plan: Plan, result: "InvestigationResult") -> SuccessfulPattern:
        pattern = SuccessfulPattern(
            topic=topic,
            subtask_kinds=tuple(subtask.kind.value for subtask in plan.subtasks()),
            dependency_count=len(plan.dependencies()),
            total_estimated_minutes=sum(subtask.estimated_minutes or 0 for subtask in plan.subtasks()),
            quality=result.metadata.quality,
            duration_ms=result.metadata.duration_ms,
            tools=tuple(result.metadata.tools_used),
        )
        self._successes = self._bounded(self._successes + [pattern])
        return pattern

    def record_failure(self, topic: str, error: BaseException) -> FailurePattern:
        pattern = FailurePattern(topic=topic, error=str(error) or error.__class__.__name__)
        self._failures = self._bounded(self._failures + [pattern])
        return pattern

    def save_investigation(self, investigation_id: str, topic: str, result: "InvestigationResult") -> None:
        self._investigations[investigation_id] = SavedInvestigation(id=investigation_id, topic=topic, result=result)
        while len(self._investigations) > self.max_items:
            self._investigations.pop(next(iter(self._investigations)))

    def get(self, investigation_id: str) -> Optional[SavedInvestigation]:
        return self._investigations.get(investigation_id)

    def successes(self) -> List[SuccessfulPattern]:
        return list(self._successes)

    def failures(self) -> List[FailurePattern]:
        return list(self._failures)

    def clear(self) -> None:
        self._successes.clear()
        self._failures.clear()
        self._investigations.clear()
