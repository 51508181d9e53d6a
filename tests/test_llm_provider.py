import io
import json
import urllib.error
import urllib.request

import pytest

from planexec.llm import OllamaProvider, PromptContext, StaticResponseProvider

CONTEXT = PromptContext(purpose="plan", topic="edge computing")


class FakeResponse(io.BytesIO):
    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()


def _serve(monkeypatch, body):
    calls = []

    def fake_urlopen(request, timeout):
        calls.append((request, timeout))
        return FakeResponse(body.encode("utf-8"))

    monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)
    return calls


def test_ollama_posts_generate_payload(monkeypatch):
    calls = _serve(monkeypatch, json.dumps({"response": "  a plan \n", "done": True}))
    provider = OllamaProvider(
        "llama3",
        host="http://ollama:11434/",
        options={"temperature": 0.2},
        system_prompt="You {purpose} investigations about {topic}.",
        json_format=True,
        timeout=5,
    )

    text = provider.generate("make a plan", CONTEXT)

    assert text == "a plan"
    [(request, timeout)] = calls
    assert request.full_url == "http://ollama:11434/api/generate"
    assert request.get_method() == "POST"
    assert timeout == 5
    assert json.loads(request.data) == {
        "model": "llama3",
        "prompt": "make a plan",
        "stream": False,
        "options": {"temperature": 0.2},
        "system": "You plan investigations about edge computing.",
        "format": "json",
    }


def test_ollama_payload_omits_optional_fields():
    payload = OllamaProvider("llama3", json_format=True).build_payload(
        "summarize", PromptContext(purpose="synthesis", topic="x")
    )

    assert payload == {"model": "llama3", "prompt": "summarize", "stream": False}


def test_ollama_error_field_raises(monkeypatch):
    _serve(monkeypatch, json.dumps({"error": "model 'llama3' not found"}))

    with pytest.raises(RuntimeError, match="not found"):
        OllamaProvider("llama3").generate("x", CONTEXT)


@pytest.mark.parametrize("body", ["not json", json.dumps(["list"]), json.dumps({"done": True})])
def test_ollama_unexpected_bodies_raise(monkeypatch, body):
    _serve(monkeypatch, body)

    with pytest.raises(RuntimeError, match="Ollama"):
        OllamaProvider("llama3").generate("x", CONTEXT)


def test_ollama_unreachable_host_raises(monkeypatch):
    def refuse(request, timeout):
        raise urllib.error.URLError("connection refused")

    monkeypatch.setattr(urllib.request, "urlopen", refuse)

    with pytest.raises(RuntimeError, match="Cannot reach Ollama at http://localhost:11434/api/generate"):
        OllamaProvider("llama3").generate("x", CONTEXT)


def test_ollama_http_error_reports_status(monkeypatch):
    def unavailable(request, timeout):
        raise urllib.error.HTTPError(request.full_url, 503, "Service Unavailable", None, None)

    monkeypatch.setattr(urllib.request, "urlopen", unavailable)

    with pytest.raises(RuntimeError, match="HTTP 503"):
        OllamaProvider("llama3").generate("x", CONTEXT)


def test_static_provider_replays_then_exhausts():
    provider = StaticResponseProvider(["first"])

    assert provider.generate("p1", CONTEXT) == "first"
    with pytest.raises(RuntimeError, match="exhausted"):
        provider.generate("p2", CONTEXT)
    assert provider.prompts == ["p1", "p2"]
