import io
from urllib import error

import pytest

from iris_worker.config import Settings
from iris_worker.services import llm
from iris_worker.services.llm import ModelUnavailableError, OllamaClient, build_prompt


def test_prompt_ends_with_literal_transcript():
    prompt = build_prompt("We start mid-March.", reference_year=2031)
    assert prompt.endswith('"""\nWe start mid-March.\n"""\n\nJSON:')
    assert '"2031-01-15"' in prompt
    assert "{year}" not in prompt


def test_client_from_settings():
    settings = Settings(ollama_host="http://model:11434/", ollama_model="mistral", model_timeout_s=7)
    client = OllamaClient.from_settings(settings)
    assert client.host == "http://model:11434"
    assert client.model == "mistral"
    assert client.timeout_s == 7
    assert llm.describe(client) == "mistral@http://model:11434"
    assert llm.describe(None) == "none"


def test_generate_posts_options_and_returns_response(monkeypatch):
    calls = {}

    def fake_post(url, headers, data, timeout=30.0):
        calls.update(url=url, data=data, timeout=timeout)
        return {"response": '{"title": "Helios"}', "done": True}

    monkeypatch.setattr(llm, "_http_post", fake_post)
    client = OllamaClient(host="http://h:1", model="m", timeout_s=3, temperature=0.1, top_p=0.8, max_tokens=512)

    assert client.generate("prompt") == '{"title": "Helios"}'
    assert calls["url"] == "http://h:1/api/generate"
    assert calls["timeout"] == 3
    assert calls["data"] == {
        "model": "m",
        "prompt": "prompt",
        "stream": False,
        "options": {"temperature": 0.1, "top_p": 0.8, "num_predict": 512},
    }


def test_generate_without_response_field_is_unavailable(monkeypatch):
    monkeypatch.setattr(llm, "_http_post", lambda *a, **k: {"error": "model not found"})
    with pytest.raises(ModelUnavailableError):
        OllamaClient().generate("prompt")


def test_transport_errors_become_unavailable(monkeypatch):
    def refuse(*args, **kwargs):
        raise error.URLError("connection refused")

    monkeypatch.setattr(llm.request, "urlopen", refuse)
    with pytest.raises(ModelUnavailableError, match="unreachable"):
        OllamaClient().generate("prompt")


def test_http_status_becomes_unavailable(monkeypatch):
    def fail(req, **kwargs):
        raise error.HTTPError(req.full_url, 503, "busy", {}, io.BytesIO(b"overloaded"))

    monkeypatch.setattr(llm.request, "urlopen", fail)
    with pytest.raises(ModelUnavailableError, match="HTTP 503: overloaded"):
        OllamaClient().generate("prompt")


def test_timeout_becomes_unavailable(monkeypatch):
    def slow(*args, **kwargs):
        raise TimeoutError("timed out")

    monkeypatch.setattr(llm.request, "urlopen", slow)
    with pytest.raises(ModelUnavailableError):
        OllamaClient(timeout_s=0.01).generate("prompt")


def test_status_reports_installed_model(monkeypatch):
    monkeypatch.setattr(llm, "_http_get", lambda url, timeout=5.0: {"models": [{"name": "llama3.2:latest"}]})
    assert OllamaClient(model="llama3.2").status() == {"available": True, "model_loaded": True, "error": None}
    assert OllamaClient(model="mistral").status()["model_loaded"] is False


def test_status_when_server_is_down(monkeypatch):
    def down(url, timeout=5.0):
        raise ModelUnavailableError("model service unreachable: refused")

    monkeypatch.setattr(llm, "_http_get", down)
    status = OllamaClient().status()
    assert status["available"] is False
    assert "unreachable" in status["error"]


def test_describe_accepts_any_client():
    class Stub:
        def generate(self, prompt):
            return "{}"

    assert llm.describe(Stub()) == "Stub"
