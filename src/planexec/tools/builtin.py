"""Built-in simulated investigation tools."""

from __future__ import annotations

import asyncio

from ..plan.base import Subtask
from .base import Tool, ToolContext, ToolResult
from .registry import ToolRegistry


class _SimulatedTool(Tool):
    label = ""

    async def run(self, *, subtask: Subtask, context: ToolContext) -> ToolResult:
        delay = float(self.config.get("delay", 0) or 0)
        if delay:
            await asyncio.sleep(delay)
        return ToolResult(
            content=f"{self.label} for: {subtask.description}",
            metadata={"kind": context.kind.value, "round": context.round_index},
        )


class SearchTool(_SimulatedTool):
    """Simulated search that echoes the subtask description."""

    label = "Search results"


class AnalyzeTool(_SimulatedTool):
    """Simulated analysis of the material gathered for a subtask."""

    label = "Analysis"


class ValidateTool(_SimulatedTool):
    """Simulated validation pass over a subtask's findings."""

    label = "Validation"


def register_builtin_tools(registry: ToolRegistry, *, overwrite: bool = False) -> None:
    registry.register_factory("search", lambda: SearchTool("search"), overwrite=overwrite)
    registry.register_factory("analyze", lambda: AnalyzeTool("analyze"), overwrite=overwrite)
    registry.register_factory("validate", lambda: ValidateTool("validate"), overwrite=overwrite)
