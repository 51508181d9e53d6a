"""Configuration helpers for the plan-execute engine."""

from __future__ import annotations

import importlib
import pathlib
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, MutableMapping, Optional

import yaml

from .errors import InvalidPlanError
from .plan.base import Plan


class ConfigError(RuntimeError):
    """Raised when configuration files are invalid."""


class MissingToolPolicy(str, Enum):
    """What the executor does with a tool name that is not registered."""

    SIMULATE = "simulate"
    ERROR = "error"


class FailurePolicy(str, Enum):
    """Whether a failed ``requires`` predecessor blocks its dependents."""

    CONTINUE = "continue"
    SKIP = "skip"


def _enum_option(enum_cls, value: Any, key: str):
    try:
        return enum_cls(str(value).lower())
    except ValueError as exc:
        allowed = ", ".join(item.value for item in enum_cls)
        raise ConfigError(f"engine.{key} must be one of: {allowed} (got '{value}')") from exc


def _optional_positive(value: Any, key: str, cast):
    if value is None:
        return None
    try:
        number = cast(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"engine.{key} must be a number (got '{value}')") from exc
    if number <= 0:
        raise ConfigError(f"engine.{key} must be positive (got {value})")
    return number


@dataclass
class EngineSpec:
    """Runtime parameters for the scheduler and executor."""

    max_concurrency: Optional[int] = None
    subtask_timeout: Optional[float] = None
    missing_tools: MissingToolPolicy = MissingToolPolicy.SIMULATE
    on_failure: FailurePolicy = FailurePolicy.CONTINUE
    confidence_scale: float = 10.0

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "EngineSpec":
        if not data:
            return cls()
        if not isinstance(data, Mapping):
            raise ConfigError("engine section must be a mapping")
        scale = _optional_positive(data.get("confidence_scale", 10.0), "confidence_scale", float)
        return cls(
            max_concurrency=_optional_positive(data.get("max_concurrency"), "max_concurrency", int),
            subtask_timeout=_optional_positive(data.get("subtask_timeout"), "subtask_timeout", float),
            missing_tools=_enum_option(MissingToolPolicy, data.get("missing_tools", "simulate"), "missing_tools"),
            on_failure=_enum_option(FailurePolicy, data.get("on_failure", "continue"), "on_failure"),
            confidence_scale=scale if scale is not None else 10.0,
        )


@dataclass
class ToolSpec:
    """Configuration for a tool instance."""

    name: str
    type: str
    args: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, name: str, data: Mapping[str, Any]) -> "ToolSpec":
        if not isinstance(data, Mapping) or "type" not in data:
            raise ConfigError(f"Tool '{name}' requires a type path")
        return cls(name=name, type=str(data["type"]), args=dict(data.get("args") or {}))


@dataclass
class ComponentSpec:
    """A class to instantiate by import path, with keyword params."""

    type: str
    params: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, key: str, data: Optional[Mapping[str, Any]]) -> Optional["ComponentSpec"]:
        if data is None:
            return None
        if isinstance(data, str):
            return cls(type=data)
        if not isinstance(data, Mapping) or "type" not in data:
            raise ConfigError(f"'{key}' requires a type path")
        return cls(type=str(data["type"]), params=dict(data.get("params") or {}))

    def instantiate(self, *args: Any, **overrides: Any) -> Any:
        params = dict(self.params)
        params.update(overrides)
        return instantiate_from_path(self.type, *args, **params)


@dataclass
class ProjectConfig:
    """Representation of the YAML configuration."""

    name: str
    description: Optional[str] = None
    engine: EngineSpec = field(default_factory=EngineSpec)
    tool_specs: Dict[str, ToolSpec] = field(default_factory=dict)
    planner: Optional[ComponentSpec] = None
    synthesizer: Optional[ComponentSpec] = None
    llm_provider: Optional[ComponentSpec] = None
    plan: Optional[Plan] = None

    @classmethod
    def from_mapping(cls, data: Any, *, default_name: str = "planexec") -> "ProjectConfig":
        if not isinstance(data, MutableMapping):
            raise ConfigError("Configuration root must be a mapping")
        tools = data.get("tools") or {}
        if not isinstance(tools, Mapping):
            raise ConfigError("tools section must be a mapping of name -> spec")
        plan = None
        if data.get("plan") is not None:
            try:
                plan = Plan.from_mapping(data["plan"])
            except InvalidPlanError as exc:
                raise ConfigError(f"Inline plan is invalid: {exc}") from exc
        return cls(
            name=str(data.get("name", default_name)),
            description=data.get("description"),
            engine=EngineSpec.from_mapping(data.get("engine")),
            tool_specs={name: ToolSpec.from_mapping(name, info) for name, info in tools.items()},
            planner=ComponentSpec.from_mapping("planner", data.get("planner")),
            synthesizer=ComponentSpec.from_mapping("synthesizer", data.get("synthesizer")),
            llm_provider=ComponentSpec.from_mapping("llm_provider", data.get("llm_provider")),
            plan=plan,
        )

    @classmethod
    def from_yaml(cls, text: str, *, default_name: str = "planexec") -> "ProjectConfig":
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Configuration is not valid YAML: {exc}") from exc
        return cls.from_mapping(data, default_name=default_name)

    @classmethod
    def from_file(cls, path: str | pathlib.Path) -> "ProjectConfig":
        path = pathlib.Path(path)
        return cls.from_yaml(path.read_text(), default_name=path.stem)


def import_string(path: str) -> Any:
    """Return attribute from module specified by path "module:qualname"."""

    if ":" not in path:
        raise ConfigError(f"Import path '{path}' must use module:qualname format")
    module_path, attr = path.split(":", 1)
    try:
        module = importlib.import_module(module_path)
    except ImportError as exc:
        raise ConfigError(f"Cannot import module '{module_path}': {exc}") from exc
    target: Any = module
    for part in attr.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as exc:
            raise ConfigError(f"Module '{module_path}' has no attribute '{attr}'") from exc
    return target


def instantiate_from_path(path: str, *args: Any, **kwargs: Any) -> Any:
    """Import and instantiate a class given its dotted path."""

    cls = import_string(path)
    return cls(*args, **kwargs)
