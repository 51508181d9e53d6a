import asyncio

import pytest

from planexec.config import ToolSpec
from planexec.plan import Subtask, SubtaskKind
from planexec.tools import SearchTool, Tool, ToolContext, ToolRegistry, register_builtin_tools
from planexec.tools import registry as registry_module


def test_duplicate_registration_requires_overwrite():
    registry = ToolRegistry()
    registry.register_instance(SearchTool("search"))

    with pytest.raises(ValueError):
        registry.register_instance(SearchTool("search"))
    with pytest.raises(ValueError):
        registry.register_factory("search", lambda: SearchTool("search"))

    replacement = SearchTool("search")
    registry.register_instance(replacement, overwrite=True)
    assert registry.get("search") is replacement


def test_factories_are_instantiated_lazily_once():
    registry = ToolRegistry()
    calls = []

    def factory():
        calls.append(1)
        return SearchTool("lazy")

    registry.register_factory("lazy", factory)
    assert "lazy" in registry
    assert calls == []

    first = registry.get("lazy")
    second = registry.get("lazy")

    assert first is second
    assert calls == [1]


def test_unknown_tool_raises_key_error():
    with pytest.raises(KeyError):
        ToolRegistry().get("missing")


def test_register_from_spec_passes_args():
    registry = ToolRegistry()
    registry.register_from_spec(ToolSpec(name="web", type="planexec.tools.builtin:SearchTool", args={"delay": 0}))

    tool = registry.get("web")

    assert isinstance(tool, SearchTool)
    assert tool.name == "web"
    assert tool.config == {"delay": 0}


def test_builtin_tools_echo_the_subtask():
    registry = ToolRegistry()
    register_builtin_tools(registry)
    subtask = Subtask("s1", "TypeScript adoption", kind=SubtaskKind.VALIDATION)
    context = ToolContext(subtask_id="s1", kind=subtask.kind, round_index=2)

    result = asyncio.run(registry.get("validate").run(subtask=subtask, context=context))

    assert registry.names() == ["analyze", "search", "validate"]
    assert result.content == "Validation for: TypeScript adoption"
    assert result.metadata == {"kind": "validation", "round": 2}
    assert result.simulated is False


class _EntryPoint:
    def __init__(self, name, target=None, error=None):
        self.name = name
        self._target = target
        self._error = error

    def load(self):
        if self._error:
            raise self._error
        return self._target


class PluginTool(Tool):
    """Tool shipped by another package."""


def test_discover_entrypoints_registers_loadable_tools(monkeypatch):
    seen_groups = []

    def fake_entry_points(group):
        seen_groups.append(group)
        return [
            _EntryPoint("plugin", PluginTool),
            _EntryPoint("broken", error=ImportError("missing dependency")),
        ]

    monkeypatch.setattr(registry_module, "entry_points", fake_entry_points)
    registry = ToolRegistry()

    count = registry.discover_entrypoints()

    assert seen_groups == ["planexec.tools"]
    assert count == 1
    assert "broken" not in registry
    tool = registry.get("plugin")
    assert isinstance(tool, PluginTool)
    assert tool.name == "plugin"
