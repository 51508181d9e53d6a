"""Tool abstractions and registries."""

from .base import FunctionTool, Tool, ToolContext, ToolResult
from .builtin import AnalyzeTool, SearchTool, ValidateTool, register_builtin_tools
from .registry import ToolRegistry

__all__ = [
    "FunctionTool",
    "Tool",
    "ToolContext",
    "ToolResult",
    "ToolRegistry",
    "SearchTool",
    "AnalyzeTool",
    "ValidateTool",
    "register_builtin_tools",
]
