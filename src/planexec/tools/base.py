"""Base classes for tools."""

from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from typing import Any, Callable, Dict

from ..plan.base import Subtask, SubtaskKind


@dataclass
class ToolContext:
    """Metadata passed to tool invocations."""

    subtask_id: str
    kind: SubtaskKind
    round_index: int
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ToolResult:
    """Result returned by a tool."""

    content: Any
    metadata: Dict[str, Any] = field(default_factory=dict)
    simulated: bool = False

    def as_entry(self, tool_name: str) -> Dict[str, Any]:
        return {
            "tool": tool_name,
            "result": self.content,
            "simulated": self.simulated,
            "metadata": dict(self.metadata),
        }


class Tool:
    """Base tool class."""

    name: str
    description: str

    def __init__(self, name: str, description: str | None = None, **kwargs: object) -> None:
        self.name = name
        self.description = description or self.__class__.__doc__ or ""
        self.config = kwargs

    async def run(self, *, subtask: Subtask, context: ToolContext) -> ToolResult:  # pragma: no cover - abstract
        raise NotImplementedError


class FunctionTool(Tool):
    """Adapts a plain ``(subtask) -> value`` callable, sync or async."""

    def __init__(self, name: str, func: Callable[[Subtask], Any], description: str | None = None) -> None:
        super().__init__(name, description or func.__doc__ or "")
        self._func = func

    async def run(self, *, subtask: Subtask, context: ToolContext) -> ToolResult:
        value = self._func(subtask)
        if inspect.isawaitable(value):
            value = await value
        if isinstance(value, ToolResult):
            return value
        return ToolResult(content=value)
