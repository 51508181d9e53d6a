"""Plan-execute engine: dependency-ordered, round-based concurrent subtask execution."""

from importlib import metadata

from .errors import (
    CircularOrUnsatisfiableDependency,
    InvalidPlanError,
    PlanCancelledError,
    PlanError,
    ToolInvocationError,
)
from .plan import DependencyEdge, DependencyKind, Plan, Subtask, SubtaskKind, eligible
from .tasks import ExecutionResult, ExecutionStatus, PlanScheduler, TaskExecutor, aggregate
from .tools import ToolRegistry

try:
    __version__ = metadata.version("planexec")
except metadata.PackageNotFoundError:  # pragma: no cover - fallback for dev
    __version__ = "0.0.0"

__all__ = [
    "CircularOrUnsatisfiableDependency",
    "DependencyEdge",
    "DependencyKind",
    "ExecutionResult",
    "ExecutionStatus",
    "InvalidPlanError",
    "Plan",
    "PlanCancelledError",
    "PlanError",
    "PlanScheduler",
    "Subtask",
    "SubtaskKind",
    "TaskExecutor",
    "ToolInvocationError",
    "ToolRegistry",
    "aggregate",
    "eligible",
    "__version__",
]
