"""Result dataclasses produced by the executor."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ExecutionStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"
    SKIPPED = "skipped"


@dataclass
class ExecutionResult:
    """Outcome of one subtask. Exactly one is recorded per subtask and plan run.

    ``started_at`` and ``finished_at`` are ``time.monotonic()`` readings so
    results from one run can be compared for ordering.
    """

    subtask_id: str
    success: bool
    status: ExecutionStatus
    data: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[str] = None
    duration_ms: float = 0.0
    started_at: float = 0.0
    finished_at: float = 0.0
    round_index: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subtaskId": self.subtask_id,
            "success": self.success,
            "status": self.status.value,
            "data": list(self.data),
            "error": self.error,
            "durationMs": round(self.duration_ms, 3),
            "round": self.round_index,
        }
