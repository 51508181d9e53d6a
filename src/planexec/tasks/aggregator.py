"""Collects execution results for the synthesis step."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List

from ..plan.base import Plan
from .base import ExecutionResult

DEFAULT_SCALE = 10.0


@dataclass
class AggregateReport:
    """Ordered results plus a success-ratio confidence on ``[0, scale]``."""

    results: List[ExecutionResult]
    total: int
    succeeded: int
    failed: int
    confidence: float
    scale: float = DEFAULT_SCALE

    def failures(self) -> List[ExecutionResult]:
        return [result for result in self.results if not result.success]

    def by_id(self) -> Dict[str, ExecutionResult]:
        return {result.subtask_id: result for result in self.results}

    def tools_used(self) -> List[str]:
        """Names of tools that actually ran for successful results, first use first.

        Simulated entries for unregistered tools are left out, so a run that only
        simulated its tools reports an empty list.
        """

        seen: Dict[str, None] = {}
        for result in self.results:
            if not result.success:
                continue
            for entry in result.data:
                tool = entry.get("tool")
                if tool and not entry.get("simulated"):
                    seen.setdefault(tool, None)
        return list(seen)


def aggregate(results: Iterable[ExecutionResult], *, scale: float = DEFAULT_SCALE) -> AggregateReport:
    ordered = list(results)
    total = len(ordered)
    succeeded = sum(1 for result in ordered if result.success)
    confidence = (succeeded / total) * scale if total else 0.0
    return AggregateReport(
        results=ordered,
        total=total,
        succeeded=succeeded,
        failed=total - succeeded,
        confidence=confidence,
        scale=scale,
    )


def in_plan_order(plan: Plan, results: Iterable[ExecutionResult]) -> List[ExecutionResult]:
    """Re-sort results into the plan's declaration order."""

    position = {subtask_id: index for index, subtask_id in enumerate(plan.ids())}
    return sorted(results, key=lambda result: position.get(result.subtask_id, len(position)))
