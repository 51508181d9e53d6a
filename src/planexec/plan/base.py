"""Immutable plan description: subtasks and the dependency edges between them."""

from __future__ import annotations

import pathlib
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

import yaml

from ..errors import InvalidPlanError


class SubtaskKind(str, Enum):
    """Category of a subtask. Passed to tools as metadata only."""

    RESEARCH = "research"
    ANALYSIS = "analysis"
    SYNTHESIS = "synthesis"
    VALIDATION = "validation"


class DependencyKind(str, Enum):
    """Relation carried by an edge. Only ``requires`` orders execution."""

    REQUIRES = "requires"
    ENHANCES = "enhances"
    PARALLEL = "parallel"

    @property
    def is_ordering(self) -> bool:
        return self is DependencyKind.REQUIRES


def _first(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _parse_enum(enum_cls, value: Any, what: str):
    try:
        return enum_cls(str(value).lower())
    except ValueError as exc:
        allowed = ", ".join(item.value for item in enum_cls)
        raise InvalidPlanError(f"Unknown {what} '{value}' (expected one of: {allowed})") from exc


def _string_tuple(value: Any, subtask_id: Any, what: str) -> Tuple[str, ...]:
    """A single string is one item; any other scalar is rejected."""

    if isinstance(value, str):
        return (value,)
    if isinstance(value, Mapping) or not isinstance(value, Iterable):
        raise InvalidPlanError(f"Subtask '{subtask_id}' {what} must be a list, got {type(value).__name__}")
    return tuple(str(item) for item in value)


@dataclass(frozen=True)
class Subtask:
    """A single unit of work inside a plan."""

    id: str
    description: str
    kind: SubtaskKind = SubtaskKind.RESEARCH
    tool_names: Tuple[str, ...] = ()
    estimated_minutes: Optional[float] = None
    success_criteria: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        # tool names form an ordered set
        object.__setattr__(self, "tool_names", tuple(dict.fromkeys(self.tool_names)))
        object.__setattr__(self, "success_criteria", tuple(self.success_criteria))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Subtask":
        if not isinstance(data, Mapping):
            raise InvalidPlanError(f"Subtask entry must be a mapping, got {type(data).__name__}")
        subtask_id = _first(data, "id")
        if subtask_id is None or str(subtask_id) == "":
            raise InvalidPlanError("Subtask is missing an 'id'")
        estimated = _first(data, "estimatedTime", "estimated_minutes")
        try:
            estimated_minutes = float(estimated) if estimated is not None else None
        except (TypeError, ValueError) as exc:
            raise InvalidPlanError(
                f"Subtask '{subtask_id}' has a non-numeric estimated time: {estimated!r}"
            ) from exc
        return cls(
            id=str(subtask_id),
            description=str(data.get("description", "")),
            kind=_parse_enum(SubtaskKind, _first(data, "type", "kind", default="research"), "subtask type"),
            tool_names=_string_tuple(_first(data, "tools", "tool_names", default=[]), subtask_id, "tools"),
            estimated_minutes=estimated_minutes,
            success_criteria=_string_tuple(
                _first(data, "successCriteria", "success_criteria", default=[]), subtask_id, "success criteria"
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "description": self.description,
            "type": self.kind.value,
            "tools": list(self.tool_names),
        }
        if self.estimated_minutes is not None:
            payload["estimatedTime"] = self.estimated_minutes
        if self.success_criteria:
            payload["successCriteria"] = list(self.success_criteria)
        return payload


@dataclass(frozen=True)
class DependencyEdge:
    """Directed edge ``source -> target``."""

    source: str
    target: str
    kind: DependencyKind = DependencyKind.REQUIRES

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "DependencyEdge":
        if not isinstance(data, Mapping):
            raise InvalidPlanError(f"Dependency entry must be a mapping, got {type(data).__name__}")
        source = _first(data, "from", "source")
        target = _first(data, "to", "target")
        if source is None or target is None:
            raise InvalidPlanError(f"Dependency requires both 'from' and 'to': {dict(data)}")
        return cls(
            source=str(source),
            target=str(target),
            kind=_parse_enum(DependencyKind, _first(data, "type", "kind", default="requires"), "dependency type"),
        )

    def to_dict(self) -> Dict[str, str]:
        return {"from": self.source, "to": self.target, "type": self.kind.value}


class Plan:
    """Subtasks plus dependency edges. Validated on construction, read-only afterwards."""

    def __init__(
        self,
        subtasks: Iterable[Subtask],
        dependencies: Iterable[DependencyEdge] = (),
        *,
        title: str = "",
    ) -> None:
        self.title = title
        self._subtasks: Tuple[Subtask, ...] = tuple(subtasks)
        self._dependencies: Tuple[DependencyEdge, ...] = tuple(dependencies)
        index: Dict[str, Subtask] = {}
        for subtask in self._subtasks:
            if subtask.id in index:
                raise InvalidPlanError(f"Duplicate subtask id '{subtask.id}'")
            index[subtask.id] = subtask
        incoming: Dict[str, List[DependencyEdge]] = {subtask_id: [] for subtask_id in index}
        for edge in self._dependencies:
            missing = [end for end in (edge.source, edge.target) if end not in index]
            if missing:
                raise InvalidPlanError(
                    f"Dependency {edge.source} -> {edge.target} references unknown subtask(s): "
                    f"{', '.join(missing)}"
                )
            if edge.kind.is_ordering:
                incoming[edge.target].append(edge)
        self._index = index
        self._incoming = {key: tuple(value) for key, value in incoming.items()}

    def __repr__(self) -> str:
        return f"Plan(title={self.title!r}, subtasks={list(self.ids())!r}, dependencies={len(self._dependencies)})"

    def subtasks(self) -> Tuple[Subtask, ...]:
        return self._subtasks

    def dependencies(self) -> Tuple[DependencyEdge, ...]:
        return self._dependencies

    def dependencies_into(self, subtask_id: str) -> Tuple[DependencyEdge, ...]:
        """Incoming ``requires`` edges of ``subtask_id``."""

        return self._incoming.get(subtask_id, ())

    def get(self, subtask_id: str) -> Subtask:
        try:
            return self._index[subtask_id]
        except KeyError as exc:
            raise KeyError(f"Unknown subtask '{subtask_id}'") from exc

    def ids(self) -> Tuple[str, ...]:
        return tuple(subtask.id for subtask in self._subtasks)

    def __len__(self) -> int:
        return len(self._subtasks)

    def __contains__(self, subtask_id: object) -> bool:
        return subtask_id in self._index

    def __iter__(self) -> Iterator[Subtask]:
        return iter(self._subtasks)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "subtasks": [subtask.to_dict() for subtask in self._subtasks],
            "dependencies": [edge.to_dict() for edge in self._dependencies],
        }

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Plan":
        if not isinstance(data, Mapping):
            raise InvalidPlanError("Plan root must be a mapping")
        raw_subtasks = data.get("subtasks") or []
        raw_dependencies = data.get("dependencies") or []
        if not isinstance(raw_subtasks, list) or not isinstance(raw_dependencies, list):
            raise InvalidPlanError("Plan 'subtasks' and 'dependencies' must be lists")
        return cls(
            [Subtask.from_mapping(item) for item in raw_subtasks],
            [DependencyEdge.from_mapping(item) for item in raw_dependencies],
            title=str(data.get("title", "")),
        )

    @classmethod
    def from_yaml(cls, text: str) -> "Plan":
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise InvalidPlanError(f"Plan is not valid YAML/JSON: {exc}") from exc
        return cls.from_mapping(data)

    @classmethod
    def from_file(cls, path: str | pathlib.Path) -> "Plan":
        """Load a plan from a YAML or JSON file."""

        return cls.from_yaml(pathlib.Path(path).read_text())
