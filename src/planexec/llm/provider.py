"""Provider abstractions used by the LLM-backed planner and synthesizer."""

from __future__ import annotations

import json
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Protocol


@dataclass
class PromptContext:
    """Metadata about the prompt being generated."""

    purpose: str
    topic: str


class LLMProvider(Protocol):
    """Interface for language model providers."""

    def generate(self, prompt: str, context: PromptContext) -> str:  # pragma: no cover - interface
        """Return a response for the given prompt."""


class StaticResponseProvider:
    """Provider that replays a finite list of responses (useful for tests)."""

    def __init__(self, responses: Iterable[str]):
        self._responses = iter(responses)
        self.prompts: List[str] = []

    def generate(self, prompt: str, context: PromptContext) -> str:
        self.prompts.append(prompt)
        try:
            return next(self._responses)
        except StopIteration as exc:
            raise RuntimeError("StaticResponseProvider exhausted") from exc


class OllamaProvider:
    """Non-streaming client for the ``/api/generate`` endpoint of an Ollama server.

    ``system_prompt`` may reference ``{purpose}`` and ``{topic}``; it is filled
    from the ``PromptContext`` of each call.
    """

    endpoint = "/api/generate"

    def __init__(
        self,
        model: str,
        *,
        host: str = "http://localhost:11434",
        options: Dict[str, Any] | None = None,
        system_prompt: str | None = None,
        json_format: bool = False,
        timeout: float = 120.0,
    ) -> None:
        self.model = model
        self.url = host.rstrip("/") + self.endpoint
        self.options = dict(options or {})
        self.system_prompt = system_prompt
        self.json_format = json_format
        self.timeout = timeout

    def build_payload(self, prompt: str, context: PromptContext) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"model": self.model, "prompt": prompt, "stream": False}
        if self.options:
            payload["options"] = self.options
        if self.system_prompt:
            payload["system"] = self.system_prompt.format(purpose=context.purpose, topic=context.topic)
        # planning prompts ask for a JSON document
        if self.json_format and context.purpose == "plan":
            payload["format"] = "json"
        return payload

    def generate(self, prompt: str, context: PromptContext) -> str:
        data = self._post(self.build_payload(prompt, context))
        if data.get("error"):
            raise RuntimeError(f"Ollama model {self.model!r} returned an error: {data['error']}")
        text = data.get("response")
        if not isinstance(text, str):
            raise RuntimeError(f"Ollama response has no 'response' text: {sorted(data)}")
        return text.strip()

    def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        request = urllib.request.Request(
            self.url,
            data=json.dumps(payload).encode("utf-8"),
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        try:
            with urllib.request.urlopen(request, timeout=self.timeout) as response:
                body = response.read().decode("utf-8")
        except urllib.error.HTTPError as exc:
            raise RuntimeError(f"Ollama at {self.url} answered HTTP {exc.code}") from exc
        except urllib.error.URLError as exc:
            raise RuntimeError(f"Cannot reach Ollama at {self.url}: {exc.reason}") from exc
        try:
            data = json.loads(body)
        except json.JSONDecodeError as exc:
            raise RuntimeError(f"Ollama at {self.url} returned a non-JSON body") from exc
        if not isinstance(data, dict):
            raise RuntimeError(f"Ollama at {self.url} returned {type(data).__name__}, expected an object")
        return data
