"""Runs a single subtask against the tool registry."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from typing import Any, Dict, List, Optional

from ..config import MissingToolPolicy
from ..errors import MissingToolError, ToolInvocationError
from ..plan.base import Subtask
from ..tools.base import ToolContext, ToolResult
from ..tools.registry import ToolRegistry
from .base import ExecutionResult, ExecutionStatus

SIMULATED_RESULT = "Tool simulation"


class _SubtaskCancelled(Exception):
    pass


class TaskExecutor:
    """Executes a subtask by invoking each of its tools concurrently.

    Tool failures never escape: they become a failed ``ExecutionResult``.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        *,
        missing_tool_policy: MissingToolPolicy = MissingToolPolicy.SIMULATE,
        timeout: Optional[float] = None,
    ) -> None:
        self._registry = registry
        self.missing_tool_policy = missing_tool_policy
        self.timeout = timeout
        self._log = logging.getLogger(__name__)

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    async def execute(
        self,
        subtask: Subtask,
        *,
        round_index: int = 0,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ExecutionResult:
        context = ToolContext(
            subtask_id=subtask.id,
            kind=subtask.kind,
            round_index=round_index,
            metadata={"description": subtask.description},
        )
        self._log.debug("subtask start id=%s round=%d tools=%s", subtask.id, round_index, list(subtask.tool_names))
        started = time.monotonic()
        data: List[Dict[str, Any]] = []
        error: Optional[str] = None
        status = ExecutionStatus.SUCCEEDED
        try:
            calls = self._invoke_all(subtask, context, cancel_event)
            if self.timeout is not None:
                data = await asyncio.wait_for(calls, timeout=self.timeout)
            else:
                data = await calls
        except _SubtaskCancelled:
            status, error = ExecutionStatus.CANCELLED, "cancelled"
        except asyncio.TimeoutError:
            status, error = ExecutionStatus.TIMED_OUT, f"timed out after {self.timeout:g}s"
        except ToolInvocationError as exc:
            status, error = ExecutionStatus.FAILED, str(exc)
        finished = time.monotonic()

        success = status is ExecutionStatus.SUCCEEDED
        if success:
            self._log.info("subtask done id=%s duration_ms=%.1f", subtask.id, (finished - started) * 1000)
        else:
            self._log.warning("subtask %s id=%s error=%s", status.value, subtask.id, error)
        return ExecutionResult(
            subtask_id=subtask.id,
            success=success,
            status=status,
            data=data if success else [],
            error=error,
            duration_ms=(finished - started) * 1000,
            started_at=started,
            finished_at=finished,
            round_index=round_index,
        )

    async def _invoke_all(
        self,
        subtask: Subtask,
        context: ToolContext,
        cancel_event: Optional[asyncio.Event],
    ) -> List[Dict[str, Any]]:
        if not subtask.tool_names:
            return []
        # every sibling call settles before the subtask gets a result
        gathered = asyncio.gather(
            *(self._invoke(name, subtask, context) for name in subtask.tool_names),
            return_exceptions=True,
        )
        if cancel_event is None:
            outcomes = await gathered
        else:
            waiter = asyncio.ensure_future(cancel_event.wait())
            try:
                done, _ = await asyncio.wait({gathered, waiter}, return_when=asyncio.FIRST_COMPLETED)
            finally:
                waiter.cancel()
                if not gathered.done():
                    gathered.cancel()
                    with contextlib.suppress(asyncio.CancelledError):
                        await gathered
            if gathered not in done:
                raise _SubtaskCancelled()
            outcomes = gathered.result()
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome
        return list(outcomes)

    async def _invoke(self, tool_name: str, subtask: Subtask, context: ToolContext) -> Dict[str, Any]:
        if tool_name not in self._registry:
            if self.missing_tool_policy is MissingToolPolicy.ERROR:
                raise MissingToolError(tool_name, subtask.id)
            self._log.debug("tool %s not registered, simulating for subtask %s", tool_name, subtask.id)
            return ToolResult(content=SIMULATED_RESULT, simulated=True).as_entry(tool_name)
        try:
            tool = self._registry.get(tool_name)
            result = await tool.run(subtask=subtask, context=context)
        except Exception as exc:
            raise ToolInvocationError(tool_name, subtask.id, str(exc) or exc.__class__.__name__) from exc
        if not isinstance(result, ToolResult):
            result = ToolResult(content=result)
        return result.as_entry(tool_name)
