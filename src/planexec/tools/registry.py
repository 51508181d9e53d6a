"""Registry that keeps track of available tools."""

from __future__ import annotations

import logging
from importlib.metadata import entry_points
from typing import Any, Callable, Dict, List

from ..config import ToolSpec, instantiate_from_path
from ..plan.base import Subtask
from .base import FunctionTool, Tool

ToolFactory = Callable[[], Tool]

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Stores tool factories and lazily instantiates them when requested.

    A registry is created per engine and handed to the executor; there is no
    process-wide instance.
    """

    def __init__(self) -> None:
        self._factories: Dict[str, ToolFactory] = {}
        self._instances: Dict[str, Tool] = {}

    def register_instance(self, tool: Tool, *, overwrite: bool = False) -> None:
        if tool.name in self and not overwrite:
            raise ValueError(f"Tool {tool.name} already registered")
        self._factories.pop(tool.name, None)
        self._instances[tool.name] = tool

    def register_factory(self, name: str, factory: ToolFactory, *, overwrite: bool = False) -> None:
        if name in self and not overwrite:
            raise ValueError(f"Tool factory {name} already registered")
        self._instances.pop(name, None)
        self._factories[name] = factory

    def register_function(
        self,
        name: str,
        func: Callable[[Subtask], Any],
        *,
        description: str | None = None,
        overwrite: bool = False,
    ) -> None:
        self.register_instance(FunctionTool(name, func, description), overwrite=overwrite)

    def register_from_spec(self, spec: ToolSpec) -> None:
        def factory() -> Tool:
            instance = instantiate_from_path(spec.type, name=spec.name, **spec.args)
            if not isinstance(instance, Tool):
                raise TypeError(f"Tool '{spec.name}' must inherit Tool")
            return instance

        self.register_factory(spec.name, factory, overwrite=True)

    def configure_from_specs(self, specs: Dict[str, ToolSpec]) -> None:
        for spec in specs.values():
            self.register_from_spec(spec)

    def discover_entrypoints(self, group: str = "planexec.tools") -> int:
        """Register tools advertised by installed packages under ``group``.

        Each entry point must resolve to a ``Tool`` subclass (instantiated with
        ``name=<entry point name>``) or a callable returning a ``Tool``. Entry
        points that fail to load are logged and skipped. Returns the number of
        factories registered.
        """

        count = 0
        for ep in entry_points(group=group):
            try:
                target = ep.load()
            except Exception:
                logger.warning("Skipping tool entry point %s: failed to load", ep.name, exc_info=True)
                continue
            self.register_factory(ep.name, self._entrypoint_factory(target, ep.name), overwrite=True)
            count += 1
        return count

    @staticmethod
    def _entrypoint_factory(target: Any, entry_name: str) -> ToolFactory:
        def factory() -> Tool:
            if isinstance(target, type):
                instance = target(name=entry_name)
            else:
                instance = target()
            if not isinstance(instance, Tool):
                raise TypeError(f"Entry point '{entry_name}' did not produce a Tool")
            return instance

        return factory

    def get(self, name: str) -> Tool:
        if name in self._instances:
            return self._instances[name]
        if name not in self._factories:
            raise KeyError(f"Tool {name} not registered")
        instance = self._factories[name]()
        self._instances[name] = instance
        return instance

    def __contains__(self, name: object) -> bool:
        return name in self._instances or name in self._factories

    def names(self) -> List[str]:
        return sorted(set(self._instances) | set(self._factories))

    def available(self) -> Dict[str, Tool]:
        for name in list(self._factories.keys()):
            if name not in self._instances:
                self._instances[name] = self._factories[name]()
        return dict(self._instances)
