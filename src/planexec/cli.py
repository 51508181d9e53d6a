"""Command line interface for the plan-execute engine."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Iterable, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .agents.investigator import InvestigationAgent, build_scheduler
from .config import ConfigError, FailurePolicy, ProjectConfig
from .errors import PlanError
from .plan.base import Plan
from .plan.resolver import preview_rounds
from .tasks.aggregator import aggregate, in_plan_order
from .tasks.base import ExecutionResult

app = typer.Typer(help="Plan-execute engine CLI")
console = Console()

_STATUS_STYLE = {
    "succeeded": "green",
    "failed": "red",
    "timed_out": "yellow",
    "cancelled": "yellow",
    "skipped": "dim",
}


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load_plan(path: Path) -> Plan:
    try:
        return Plan.from_file(path)
    except (OSError, PlanError) as exc:
        console.print(f"[bold red]Cannot load plan[/] {escape(str(path))}: {escape(str(exc))}", soft_wrap=True)
        raise typer.Exit(code=2) from exc


def _load_config(path: Optional[Path], default_name: str) -> ProjectConfig:
    if path is None:
        return ProjectConfig(name=default_name)
    try:
        return ProjectConfig.from_file(path)
    except (OSError, ConfigError) as exc:
        console.print(f"[bold red]Cannot load config[/] {escape(str(path))}: {escape(str(exc))}", soft_wrap=True)
        raise typer.Exit(code=2) from exc


def _render_results(plan: Plan, results: Iterable[ExecutionResult], title: str = "Execution results") -> None:
    table = Table(title=title, show_lines=True)
    table.add_column("Subtask")
    table.add_column("Kind")
    table.add_column("Round", justify="right")
    table.add_column("Status")
    table.add_column("Duration (ms)", justify="right")
    table.add_column("Detail")
    for result in results:
        subtask = plan.get(result.subtask_id)
        style = _STATUS_STYLE.get(result.status.value, "white")
        if result.success:
            detail = ", ".join(str(entry.get("tool")) for entry in result.data) or "-"
        else:
            detail = result.error or "-"
        table.add_row(
            subtask.id,
            subtask.kind.value,
            str(result.round_index),
            f"[{style}]{result.status.value}[/]",
            f"{result.duration_ms:.1f}",
            escape(detail),
        )
    console.print(table)


@app.command()
def run(
    plan_path: Path = typer.Argument(..., help="Path to a YAML/JSON plan"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Project configuration"),
    max_concurrency: Optional[int] = typer.Option(None, "--max-concurrency", min=1, help="Cap concurrent subtasks"),
    timeout: Optional[float] = typer.Option(None, "--timeout", min=0.001, help="Per-subtask timeout in seconds"),
    on_failure: Optional[FailurePolicy] = typer.Option(None, "--on-failure", help="continue or skip dependents"),
    plan_order: bool = typer.Option(False, "--plan-order", help="List results in plan order"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Execute every subtask of a plan file and print the results."""

    _configure_logging(verbose)
    plan = _load_plan(plan_path)
    config = _load_config(config_path, plan_path.stem)
    if max_concurrency is not None:
        config.engine.max_concurrency = max_concurrency
    if timeout is not None:
        config.engine.subtask_timeout = timeout
    if on_failure is not None:
        config.engine.on_failure = on_failure

    console.print(f"[bold green]Running plan[/] {escape(plan.title or plan_path.stem)} ({len(plan)} subtasks)")
    scheduler = build_scheduler(config)
    try:
        results = asyncio.run(scheduler.execute_plan(plan))
    except PlanError as exc:
        console.print(f"[bold red]Plan failed:[/] {escape(str(exc))}", soft_wrap=True)
        raise typer.Exit(code=1) from exc

    report = aggregate(results, scale=config.engine.confidence_scale)
    _render_results(plan, in_plan_order(plan, results) if plan_order else report.results)
    console.print(
        f"[bold]Succeeded:[/] {report.succeeded}/{report.total}  "
        f"[bold]Confidence:[/] {report.confidence:.1f}/{report.scale:g}"
    )


@app.command()
def inspect(plan_path: Path = typer.Argument(..., help="Plan to inspect")) -> None:
    """Print the subtasks, dependency edges and round layout of a plan."""

    plan = _load_plan(plan_path)
    console.print(f"[bold]Plan:[/] {escape(plan.title or plan_path.stem)}")

    subtasks = Table(title="Subtasks", show_lines=True)
    subtasks.add_column("ID")
    subtasks.add_column("Kind")
    subtasks.add_column("Tools")
    subtasks.add_column("Description")
    for subtask in plan.subtasks():
        subtasks.add_row(subtask.id, subtask.kind.value, ", ".join(subtask.tool_names), escape(subtask.description))
    console.print(subtasks)

    if plan.dependencies():
        edges = Table(title="Dependencies")
        edges.add_column("From")
        edges.add_column("To")
        edges.add_column("Type")
        for edge in plan.dependencies():
            edges.add_row(edge.source, edge.target, edge.kind.value)
        console.print(edges)

    preview = preview_rounds(plan)
    for index, ids in enumerate(preview.rounds, start=1):
        console.print(f"Round {index}: {', '.join(ids)}")
    if not preview.is_satisfiable:
        console.print(f"[bold red]Stuck (circular or unsatisfiable):[/] {', '.join(preview.stuck)}", soft_wrap=True)
        raise typer.Exit(code=1)


@app.command()
def investigate(
    topic: str = typer.Argument(..., help="Topic to investigate"),
    config_path: Path = typer.Option(..., "--config", "-c", help="Project configuration"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Plan, execute and synthesize an investigation from a project config."""

    _configure_logging(verbose)
    config = _load_config(config_path, config_path.stem)
    try:
        agent = InvestigationAgent.from_config(config)
        result = asyncio.run(agent.investigate(topic))
    except (PlanError, ConfigError) as exc:
        console.print(f"[bold red]Investigation failed:[/] {escape(str(exc))}", soft_wrap=True)
        raise typer.Exit(code=1) from exc

    console.rule(f"Plan: {escape(result.plan.title or topic)}")
    _render_results(result.plan, in_plan_order(result.plan, result.execution), title="Subtasks executed")
    console.rule("Synthesis")
    console.print(escape(result.synthesis.summary))
    for finding in result.synthesis.findings:
        console.print(f"  - {escape(finding)}")
    console.print(escape(result.synthesis.conclusions))
    console.print(
        f"[bold]Duration:[/] {result.metadata.duration_ms:.0f}ms  "
        f"[bold]Quality:[/] {result.metadata.quality:g}/10  "
        f"[bold]Confidence:[/] {result.report.confidence:.1f}/{result.report.scale:g}  "
        f"[bold]Tools:[/] {', '.join(result.metadata.tools_used) or 'none'}",
        soft_wrap=True,
    )


if __name__ == "__main__":  # pragma: no cover
    app()
