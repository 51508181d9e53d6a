"""Round-based scheduler that drives a plan to completion."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set

from ..config import FailurePolicy
from ..errors import CircularOrUnsatisfiableDependency, PlanCancelledError
from ..plan.base import Plan, Subtask
from ..plan.resolver import eligible
from .base import ExecutionResult, ExecutionStatus
from .executor import TaskExecutor


@dataclass
class _SchedulerState:
    completed: Set[str] = field(default_factory=set)
    in_flight: Set[str] = field(default_factory=set)
    pending: Set[str] = field(default_factory=set)
    results: Dict[str, ExecutionResult] = field(default_factory=dict)

    @classmethod
    def for_plan(cls, plan: Plan) -> "_SchedulerState":
        return cls(pending=set(plan.ids()))

    def start(self, subtask_ids: Iterable[str]) -> None:
        for subtask_id in subtask_ids:
            self.pending.discard(subtask_id)
            self.in_flight.add(subtask_id)

    def finish(self, result: ExecutionResult) -> None:
        self.in_flight.discard(result.subtask_id)
        self.completed.add(result.subtask_id)
        self.results[result.subtask_id] = result


class PlanScheduler:
    """Executes every subtask of a plan exactly once, in dependency rounds.

    Each round launches all currently eligible subtasks concurrently and waits
    for all of them before eligibility is computed again. State lives inside a
    single ``execute_plan`` call, so one scheduler may run several plans at once.
    """

    def __init__(
        self,
        executor: TaskExecutor,
        *,
        max_concurrency: Optional[int] = None,
        failure_policy: FailurePolicy = FailurePolicy.CONTINUE,
    ) -> None:
        if max_concurrency is not None and max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1 or None")
        self.executor = executor
        self.max_concurrency = max_concurrency
        self.failure_policy = failure_policy
        self._log = logging.getLogger(__name__)

    async def execute_plan(
        self,
        plan: Plan,
        *,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> List[ExecutionResult]:
        """Run ``plan`` and return one result per subtask, in completion order.

        Raises ``CircularOrUnsatisfiableDependency`` when work remains but nothing
        is eligible, and ``PlanCancelledError`` when ``cancel_event`` is set before
        every subtask has a result.
        """

        state = _SchedulerState.for_plan(plan)
        ordered: List[ExecutionResult] = []
        semaphore = asyncio.Semaphore(self.max_concurrency) if self.max_concurrency else None
        round_index = 0
        while len(state.completed) < len(plan):
            if cancel_event is not None and cancel_event.is_set():
                unfinished = [subtask_id for subtask_id in plan.ids() if subtask_id not in state.completed]
                self._log.warning("plan cancelled after %d round(s); unfinished=%s", round_index, unfinished)
                raise PlanCancelledError(ordered, unfinished)
            ready = eligible(plan, state.completed, state.in_flight)
            if not ready:
                stuck = [subtask_id for subtask_id in plan.ids() if subtask_id not in state.completed]
                self._log.warning("no eligible subtasks, plan is stuck: %s", stuck)
                raise CircularOrUnsatisfiableDependency(stuck)

            round_index += 1
            batch = [subtask for subtask in plan.subtasks() if subtask.id in ready]
            state.start(ready)
            self._log.info("round %d: launching %s", round_index, [subtask.id for subtask in batch])
            round_results = await asyncio.gather(
                *(self._run_one(plan, subtask, state, round_index, semaphore, cancel_event) for subtask in batch)
            )
            for result in sorted(round_results, key=lambda item: item.finished_at):
                state.finish(result)
                ordered.append(result)

        failed = sum(1 for result in ordered if not result.success)
        self._log.info(
            "plan %r finished: %d subtask(s) in %d round(s), %d unsuccessful",
            plan.title,
            len(ordered),
            round_index,
            failed,
        )
        return ordered

    async def _run_one(
        self,
        plan: Plan,
        subtask: Subtask,
        state: _SchedulerState,
        round_index: int,
        semaphore: Optional[asyncio.Semaphore],
        cancel_event: Optional[asyncio.Event],
    ) -> ExecutionResult:
        if self.failure_policy is FailurePolicy.SKIP:
            failed = [
                edge.source
                for edge in plan.dependencies_into(subtask.id)
                if not state.results[edge.source].success
            ]
            if failed:
                return self._skipped(subtask, failed, round_index)
        if semaphore is None:
            return await self.executor.execute(subtask, round_index=round_index, cancel_event=cancel_event)
        async with semaphore:
            return await self.executor.execute(subtask, round_index=round_index, cancel_event=cancel_event)

    def _skipped(self, subtask: Subtask, failed: List[str], round_index: int) -> ExecutionResult:
        self._log.warning("skipping subtask %s: required subtask(s) failed: %s", subtask.id, failed)
        now = time.monotonic()
        return ExecutionResult(
            subtask_id=subtask.id,
            success=False,
            status=ExecutionStatus.SKIPPED,
            error=f"skipped: required subtask(s) failed: {', '.join(failed)}",
            started_at=now,
            finished_at=now,
            round_index=round_index,
        )
