"""Synthesis collaborators that turn aggregated results into a report."""

from __future__ import annotations

import asyncio
import json
import re
import textwrap
from collections import Counter
from dataclasses import dataclass, field
from typing import List, Protocol

from ..llm.provider import LLMProvider, PromptContext
from ..plan.base import Plan
from ..tasks.aggregator import AggregateReport, in_plan_order

COMPLETE_QUALITY = 9.0
PARTIAL_QUALITY = 6.0


@dataclass
class SynthesisResult:
    summary: str
    findings: List[str] = field(default_factory=list)
    analysis: str = ""
    conclusions: str = ""
    recommendations: str = ""
    quality: float = 0.0
    confidence: float = 0.0


class Synthesizer(Protocol):
    async def synthesize(self, plan: Plan, report: AggregateReport) -> SynthesisResult:  # pragma: no cover
        """Build the final report for ``plan``."""


class SummarySynthesizer:
    """Deterministic synthesizer that needs no model."""

    async def synthesize(self, plan: Plan, report: AggregateReport) -> SynthesisResult:
        ordered = in_plan_order(plan, report.results)
        findings = [
            f"{plan.get(result.subtask_id).description}: {entry['result']}"
            for result in ordered
            if result.success
            for entry in result.data
            if not entry.get("simulated")
        ]
        by_kind = Counter(subtask.kind.value for subtask in plan.subtasks())
        ok_by_kind = Counter(plan.get(result.subtask_id).kind.value for result in ordered if result.success)
        analysis = "\n".join(
            f"{kind}: {ok_by_kind.get(kind, 0)}/{count} succeeded" for kind, count in sorted(by_kind.items())
        )
        failures = [result for result in ordered if not result.success]
        if failures:
            conclusions = "Incomplete investigation. Unsuccessful subtasks:\n" + "\n".join(
                f"- {result.subtask_id} ({result.status.value}): {result.error}" for result in failures
            )
            recommendations = "Re-run or revise: " + ", ".join(result.subtask_id for result in failures)
        else:
            conclusions = "All subtasks completed successfully."
            recommendations = "No follow-up required."
        title = plan.title or "Plan"
        return SynthesisResult(
            summary=f"{title}: {report.succeeded}/{report.total} subtasks succeeded.",
            findings=findings,
            analysis=analysis,
            conclusions=conclusions,
            recommendations=recommendations,
            quality=COMPLETE_QUALITY if report.total and not failures else PARTIAL_QUALITY,
            confidence=report.confidence,
        )


def extract_section(text: str, name: str) -> str:
    """Body of the section titled ``name``, up to the next capitalised paragraph."""

    pattern = re.compile(rf"(?i:{re.escape(name)})[:\n]([\s\S]*?)(?=\n\n[A-Z#]|\Z)")
    match = pattern.search(text)
    return match.group(1).strip() if match else ""


def extract_findings(text: str) -> List[str]:
    section = extract_section(text, "Key Findings")
    return [
        re.sub(r"^[-•]\s*", "", line.strip())
        for line in section.splitlines()
        if line.strip().startswith(("-", "•"))
    ]


class LLMSynthesizer:
    """Asks a language model to write the investigation report."""

    required_sections = ("Executive Summary", "Key Findings", "Conclusions")

    def __init__(self, provider: LLMProvider) -> None:
        self.provider = provider

    def build_prompt(self, plan: Plan, report: AggregateReport) -> str:
        blocks = []
        for result in in_plan_order(plan, report.results):
            if not result.success:
                continue
            subtask = plan.get(result.subtask_id)
            blocks.append(
                f"SUBTASK: {subtask.description}\nTYPE: {subtask.kind.value}\n"
                f"DURATION: {result.duration_ms:.0f}ms\n\nRESULTS:\n{json.dumps(result.data, indent=2, default=str)}"
            )
        context = "\n---\n".join(blocks) or "(no successful subtasks)"
        header = textwrap.dedent(
            f"""
            Synthesize a comprehensive investigation report based on the following:

            INVESTIGATION TOPIC: {plan.title}

            EXECUTION SUMMARY:
            - Total subtasks: {report.total}
            - Successful: {report.succeeded}
            - Failed: {report.failed}
            """
        ).strip()
        requirements = textwrap.dedent(
            """
            SYNTHESIS REQUIREMENTS:
            1. Executive Summary (2-3 paragraphs)
            2. Key Findings (bullet points)
            3. Detailed Analysis (sections by subtask type)
            4. Conclusions
            5. Recommendations
            6. Confidence Assessment
            """
        ).strip()
        return f"{header}\n\nDETAILED RESULTS:\n{context}\n\n{requirements}"

    async def synthesize(self, plan: Plan, report: AggregateReport) -> SynthesisResult:
        prompt = self.build_prompt(plan, report)
        text = await asyncio.to_thread(
            self.provider.generate, prompt, PromptContext(purpose="synthesis", topic=plan.title)
        )
        complete = all(section in text for section in self.required_sections)
        return SynthesisResult(
            summary=extract_section(text, "Executive Summary") or "No summary available",
            findings=extract_findings(text),
            analysis=extract_section(text, "Detailed Analysis") or "No analysis available",
            conclusions=extract_section(text, "Conclusions") or "No conclusions available",
            recommendations=extract_section(text, "Recommendations") or "No recommendations available",
            quality=COMPLETE_QUALITY if complete else PARTIAL_QUALITY,
            confidence=report.confidence,
        )
