"""Pure dependency resolution over a plan."""

from __future__ import annotations

from dataclasses import dataclass
from typing import AbstractSet, FrozenSet, List, Tuple

from .base import Plan


def eligible(plan: Plan, completed: AbstractSet[str], in_flight: AbstractSet[str]) -> FrozenSet[str]:
    """Return IDs of subtasks that may start now.

    A subtask is eligible when it has no result yet, is not running, and every
    ``requires`` edge into it starts at a completed subtask. Completion means
    "has a result", whether or not that result was a success.
    """

    return frozenset(
        subtask.id
        for subtask in plan.subtasks()
        if subtask.id not in completed
        and subtask.id not in in_flight
        and all(edge.source in completed for edge in plan.dependencies_into(subtask.id))
    )


@dataclass(frozen=True)
class RoundPreview:
    """Static layering of a plan into rounds."""

    rounds: Tuple[Tuple[str, ...], ...]
    stuck: Tuple[str, ...]

    @property
    def is_satisfiable(self) -> bool:
        return not self.stuck


def preview_rounds(plan: Plan) -> RoundPreview:
    """Dry-run the round loop assuming every launched subtask completes."""

    completed: set[str] = set()
    rounds: List[Tuple[str, ...]] = []
    while True:
        ready = eligible(plan, completed, frozenset())
        if not ready:
            break
        rounds.append(tuple(subtask_id for subtask_id in plan.ids() if subtask_id in ready))
        completed.update(ready)
    stuck = tuple(subtask_id for subtask_id in plan.ids() if subtask_id not in completed)
    return RoundPreview(rounds=tuple(rounds), stuck=stuck)
