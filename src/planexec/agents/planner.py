"""Planning collaborators that turn a topic into a ``Plan``."""

from __future__ import annotations

import asyncio
import json
import pathlib
import re
import textwrap
from typing import Protocol

from ..errors import InvalidPlanError
from ..llm.provider import LLMProvider, PromptContext
from ..plan.base import DependencyKind, Plan, SubtaskKind

_FENCED_JSON = re.compile(r"```(?:json)?\s*\n(.*?)\n\s*```", re.DOTALL)


class Planner(Protocol):
    async def create_plan(self, topic: str) -> Plan:  # pragma: no cover - interface
        """Return the plan for ``topic``."""


class StaticPlanner:
    """Always returns the same plan."""

    def __init__(self, plan: Plan) -> None:
        self.plan = plan

    async def create_plan(self, topic: str) -> Plan:
        return self.plan


class FilePlanner:
    """Reads the plan from a YAML or JSON file on every call."""

    def __init__(self, path: str | pathlib.Path) -> None:
        self.path = pathlib.Path(path)

    async def create_plan(self, topic: str) -> Plan:
        text = await asyncio.to_thread(self.path.read_text)
        return Plan.from_yaml(text)


def extract_json(text: str) -> str:
    """Return the first fenced JSON block in ``text``, or ``text`` itself."""

    match = _FENCED_JSON.search(text)
    return match.group(1) if match else text.strip()


class LLMPlanner:
    """Asks a language model for an investigation plan."""

    def __init__(self, provider: LLMProvider) -> None:
        self.provider = provider

    def build_prompt(self, topic: str) -> str:
        kinds = "|".join(kind.value for kind in SubtaskKind)
        edge_kinds = "|".join(kind.value for kind in DependencyKind)
        return textwrap.dedent(
            f"""
            Create a comprehensive investigation plan for: "{topic}"

            Break down the investigation into logical subtasks with dependencies.
            For each subtask, specify:
            - Type: {kinds.replace('|', ', ')}
            - Tools needed (use generic names like "search", "analyze", "validate")
            - Estimated time in minutes
            - Success criteria

            Use "requires" only when a subtask cannot start before another finishes.

            Return JSON matching this schema:
            {{
              "title": "Investigation title",
              "subtasks": [
                {{"id": "unique_id", "description": "What to do", "type": "{kinds}",
                  "tools": ["tool1"], "estimatedTime": 30, "successCriteria": ["Criterion"]}}
              ],
              "dependencies": [
                {{"from": "subtask1", "to": "subtask2", "type": "{edge_kinds}"}}
              ]
            }}
            """
        ).strip()

    async def create_plan(self, topic: str) -> Plan:
        prompt = self.build_prompt(topic)
        response = await asyncio.to_thread(
            self.provider.generate, prompt, PromptContext(purpose="plan", topic=topic)
        )
        try:
            payload = json.loads(extract_json(response))
        except json.JSONDecodeError as exc:
            raise InvalidPlanError(f"Planner response is not valid JSON: {exc}") from exc
        return Plan.from_mapping(payload)
