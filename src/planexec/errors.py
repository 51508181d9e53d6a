"""Exception hierarchy for plan execution."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, List, Tuple

if TYPE_CHECKING:  # pragma: no cover
    from .tasks.base import ExecutionResult


class PlanExecError(Exception):
    """Base class for every error raised by the engine."""


class PlanError(PlanExecError):
    """A plan-level failure that aborts ``execute_plan``."""


class InvalidPlanError(PlanError):
    """Raised when a plan is malformed (duplicate IDs, dangling edges, bad payload)."""


class CircularOrUnsatisfiableDependency(PlanError):
    """No subtask is eligible but some subtasks never produced a result."""

    def __init__(self, stuck: Iterable[str]) -> None:
        self.stuck: Tuple[str, ...] = tuple(stuck)
        super().__init__(
            "Circular dependency or impossible plan detected; "
            f"stuck subtasks: {', '.join(self.stuck)}"
        )


class PlanCancelledError(PlanError):
    """Execution was cancelled before every subtask produced a result."""

    def __init__(self, results: List["ExecutionResult"], unfinished: Iterable[str]) -> None:
        self.results = list(results)
        self.unfinished: Tuple[str, ...] = tuple(unfinished)
        super().__init__(
            f"Plan execution cancelled with {len(self.results)} result(s) recorded; "
            f"unfinished: {', '.join(self.unfinished) or 'none'}"
        )


class ToolInvocationError(PlanExecError):
    """A single tool call failed while executing a subtask."""

    def __init__(self, tool_name: str, subtask_id: str, message: str) -> None:
        self.tool_name = tool_name
        self.subtask_id = subtask_id
        super().__init__(f"Tool '{tool_name}' failed for subtask '{subtask_id}': {message}")


class MissingToolError(ToolInvocationError):
    """A subtask referenced a tool that is not registered."""

    def __init__(self, tool_name: str, subtask_id: str) -> None:
        super().__init__(tool_name, subtask_id, "tool is not registered")
