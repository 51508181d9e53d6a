import asyncio
import json

import pytest

from planexec.agents.planner import FilePlanner, LLMPlanner, StaticPlanner, extract_json
from planexec.errors import InvalidPlanError
from planexec.llm import StaticResponseProvider
from planexec.plan import Plan, Subtask

PLAN_PAYLOAD = {
    "title": "TypeScript in 2024",
    "subtasks": [
        {"id": "collect", "description": "Collect surveys", "type": "research", "tools": ["search"]},
        {"id": "compare", "description": "Compare adoption", "type": "analysis", "tools": ["analyze"]},
    ],
    "dependencies": [{"from": "collect", "to": "compare", "type": "requires"}],
}


def test_extract_json_prefers_fenced_block():
    text = "Here is the plan:\n```json\n{\"a\": 1}\n```\nGood luck."

    assert extract_json(text) == '{"a": 1}'
    assert extract_json('  {"b": 2} ') == '{"b": 2}'


def test_llm_planner_parses_fenced_response():
    response = f"Sure!\n```json\n{json.dumps(PLAN_PAYLOAD, indent=2)}\n```"
    provider = StaticResponseProvider([response])

    plan = asyncio.run(LLMPlanner(provider).create_plan("TypeScript in 2024"))

    assert plan.title == "TypeScript in 2024"
    assert plan.ids() == ("collect", "compare")
    assert plan.dependencies_into("compare")[0].source == "collect"
    assert 'Create a comprehensive investigation plan for: "TypeScript in 2024"' in provider.prompts[0]


def test_llm_planner_rejects_unparseable_output():
    provider = StaticResponseProvider(["I cannot make a plan today."])

    with pytest.raises(InvalidPlanError, match="not valid JSON"):
        asyncio.run(LLMPlanner(provider).create_plan("anything"))


def test_llm_planner_rejects_plans_with_unknown_references():
    bad = dict(PLAN_PAYLOAD, dependencies=[{"from": "collect", "to": "publish", "type": "requires"}])
    provider = StaticResponseProvider([json.dumps(bad)])

    with pytest.raises(InvalidPlanError, match="publish"):
        asyncio.run(LLMPlanner(provider).create_plan("anything"))


def test_static_and_file_planners(tmp_path):
    plan = Plan([Subtask("only", "single step")])
    assert asyncio.run(StaticPlanner(plan).create_plan("topic")) is plan

    path = tmp_path / "plan.json"
    path.write_text(json.dumps(PLAN_PAYLOAD))

    loaded = asyncio.run(FilePlanner(path).create_plan("topic"))

    assert loaded.ids() == ("collect", "compare")


def test_llm_planner_rejects_malformed_subtask_fields():
    payload = {"subtasks": [{"id": "a", "description": "x", "tools": 5}]}
    provider = StaticResponseProvider([json.dumps(payload)])

    with pytest.raises(InvalidPlanError, match="tools"):
        asyncio.run(LLMPlanner(provider).create_plan("anything"))
