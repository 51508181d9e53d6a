import asyncio
import json

import pytest

from planexec.agents import InvestigationAgent, LLMPlanner, StaticPlanner, SummarySynthesizer
from planexec.agents.investigator import build_scheduler
from planexec.config import ConfigError, FailurePolicy, ProjectConfig
from planexec.errors import CircularOrUnsatisfiableDependency
from planexec.memory import InvestigationMemory
from planexec.plan import Plan

INLINE_CONFIG = """
name: inline-demo
engine:
  max_concurrency: 2
  on_failure: skip
plan:
  title: Mobile development trends
  subtasks:
    - {id: gather, description: Gather reports, type: research, tools: [search], estimatedTime: 20}
    - {id: frameworks, description: Compare frameworks, type: analysis, tools: [analyze, profiler], estimatedTime: 15}
    - {id: verify, description: Verify claims, type: validation, tools: [validate]}
  dependencies:
    - {from: gather, to: frameworks, type: requires}
    - {from: frameworks, to: verify, type: requires}
"""


def test_from_config_wires_engine_settings():
    agent = InvestigationAgent.from_config(ProjectConfig.from_yaml(INLINE_CONFIG))

    assert isinstance(agent.planner, StaticPlanner)
    assert isinstance(agent.synthesizer, SummarySynthesizer)
    assert agent.scheduler.max_concurrency == 2
    assert agent.scheduler.failure_policy is FailurePolicy.SKIP
    assert "search" in agent.scheduler.executor.registry


def test_investigate_runs_pipeline_and_records_success():
    memory = InvestigationMemory()
    config = ProjectConfig.from_yaml(INLINE_CONFIG)
    agent = InvestigationAgent(StaticPlanner(config.plan), build_scheduler(config), memory=memory)

    result = asyncio.run(agent.investigate("mobile trends"))

    assert [item.subtask_id for item in result.execution] == ["gather", "frameworks", "verify"]
    assert result.report.succeeded == 3
    assert result.report.confidence == 10.0
    assert result.metadata.topic == "mobile trends"
    assert result.metadata.tools_used == ["search", "analyze", "validate"]
    assert result.metadata.quality == 9.0
    assert "Gather reports: Search results for: Gather reports" in result.synthesis.findings

    [pattern] = memory.successes()
    assert pattern.topic == "mobile trends"
    assert pattern.subtask_kinds == ("research", "analysis", "validation")
    assert pattern.dependency_count == 2
    assert pattern.total_estimated_minutes == 35
    assert memory.failures() == []


def test_investigate_records_failure_and_reraises():
    cyclic = Plan.from_mapping(
        {
            "subtasks": [{"id": "a"}, {"id": "b"}],
            "dependencies": [{"from": "a", "to": "b"}, {"from": "b", "to": "a"}],
        }
    )
    memory = InvestigationMemory()
    agent = InvestigationAgent(StaticPlanner(cyclic), build_scheduler(ProjectConfig(name="t")), memory=memory)

    with pytest.raises(CircularOrUnsatisfiableDependency):
        asyncio.run(agent.investigate("broken"))

    [failure] = memory.failures()
    assert failure.topic == "broken"
    assert "a, b" in failure.error
    assert memory.successes() == []


def test_investigate_without_planner_is_a_config_error():
    agent = InvestigationAgent.from_config(ProjectConfig(name="empty"))

    with pytest.raises(ConfigError):
        asyncio.run(agent.investigate("anything"))

    assert len(agent.memory.failures()) == 1


def test_llm_provider_config_builds_llm_planner():
    plan_json = json.dumps(
        {
            "title": "Generated",
            "subtasks": [{"id": "one", "description": "only step", "type": "research", "tools": ["search"]}],
            "dependencies": [],
        }
    )
    config = ProjectConfig.from_mapping(
        {
            "llm_provider": {
                "type": "planexec.llm.provider:StaticResponseProvider",
                "params": {"responses": [plan_json]},
            }
        }
    )
    agent = InvestigationAgent.from_config(config)

    result = asyncio.run(agent.investigate("generated topic"))

    assert isinstance(agent.planner, LLMPlanner)
    assert result.plan.title == "Generated"
    assert result.execution[0].success


def test_execute_skips_the_planner():
    config = ProjectConfig.from_yaml(INLINE_CONFIG)
    agent = InvestigationAgent(None, build_scheduler(config))

    result = asyncio.run(agent.execute(config.plan))

    assert result.metadata.topic == "Mobile development trends"
    assert result.report.total == 3


def test_memory_is_bounded():
    memory = InvestigationMemory(max_items=2)
    for index in range(4):
        memory.record_failure(f"topic-{index}", RuntimeError("x"))

    assert [item.topic for item in memory.failures()] == ["topic-2", "topic-3"]
