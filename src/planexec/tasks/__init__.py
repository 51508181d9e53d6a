"""Task execution primitives."""

from .aggregator import AggregateReport, aggregate, in_plan_order
from .base import ExecutionResult, ExecutionStatus
from .executor import TaskExecutor
from .scheduler import PlanScheduler

__all__ = [
    "AggregateReport",
    "ExecutionResult",
    "ExecutionStatus",
    "PlanScheduler",
    "TaskExecutor",
    "aggregate",
    "in_plan_order",
]
