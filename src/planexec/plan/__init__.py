"""Plan model and dependency resolution."""

from .base import DependencyEdge, DependencyKind, Plan, Subtask, SubtaskKind
from .resolver import RoundPreview, eligible, preview_rounds

__all__ = [
    "DependencyEdge",
    "DependencyKind",
    "Plan",
    "Subtask",
    "SubtaskKind",
    "RoundPreview",
    "eligible",
    "preview_rounds",
]
