from __future__ import annotations

import json
import logging
import os
import http.client
import ssl
from typing import Any, Dict
from urllib import request, error

from ..config import Settings

log = logging.getLogger("app.extraction")


class ModelUnavailableError(RuntimeError):
    """The model service could not produce a response (network, timeout, status)."""


def _ssl_context() -> ssl.SSLContext:
    # Be tolerant of environments with custom SSL; allow opt-out verify
    if os.getenv("IRIS_SSL_NO_VERIFY"):
        return ssl._create_unverified_context()  # type: ignore[attr-defined]
    return ssl.create_default_context()


def _read_json(req: request.Request, timeout: float) -> Dict[str, Any]:
    try:
        with request.urlopen(req, context=_ssl_context(), timeout=timeout) as resp:
            raw = resp.read()
    except error.HTTPError as e:
        try:
            payload = e.read().decode("utf-8")
        except Exception:
            payload = str(e)
        raise ModelUnavailableError(f"HTTP {e.code}: {payload}") from e
    except (error.URLError, http.client.HTTPException, OSError) as e:
        raise ModelUnavailableError(f"model service unreachable: {e}") from e
    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise ModelUnavailableError(f"undecodable response body: {e}") from e
    if not isinstance(data, dict):
        raise ModelUnavailableError("response body is not a JSON object")
    return data


def _http_post(url: str, headers: Dict[str, str], data: Dict[str, Any], timeout: float = 30.0) -> Dict[str, Any]:
    body = json.dumps(data).encode("utf-8")
    # Ensure we send a UA
    hdrs = {"User-Agent": "iris-worker/0.1 python-urllib", **headers}
    req = request.Request(url, data=body, headers=hdrs, method="POST")
    return _read_json(req, timeout)


def _http_get(url: str, timeout: float = 5.0) -> Dict[str, Any]:
    req = request.Request(url, headers={"User-Agent": "iris-worker/0.1 python-urllib"}, method="GET")
    return _read_json(req, timeout)


EXTRACTION_INSTRUCTIONS = """You are an expert at extracting project information from informal conversations.

GOAL: analyse a transcript and extract EXACTLY these 4 fields:

## 1. title (string) - the PROPER NAME of the project
It is the NAME of the project, NOT a description of it.
- Look for phrasings such as:
  - "it's called X", "called X", "named X"
  - "the name is X", "the working name is X"
  - "Project X", "a project named X"
  - "we're launching X"
- A title is usually ONE to THREE words, often CamelCase or capitalised.
- Good titles: "EcoRoute", "CleverClass", "RoomFlow", "Helios", "Iris School App"
- Bad titles (descriptions): "that manages room bookings", "a course platform"

## 2. start_date (string YYYY-MM-DD) - when the project STARTS
Convert EVERY expression to YYYY-MM-DD:
- "early March 2025" -> "2025-03-01"
- "mid January 2025" -> "2025-01-15"
- "around mid January" -> "{year}-01-15"
- "the 15th" (in the context of a month) -> the 15th of that month
- "1st February 2025" -> "2025-02-01"
- "2024-11-10" -> "2024-11-10"

## 3. end_date (string YYYY-MM-DD) - when the project ENDS
Same rules as start_date:
- "end of June 2025" -> "2025-06-30"
- "late June" (no year) -> "{year}-06-30"
- "finish before summer" -> "{year}-06-30"

## 4. budget (integer) - budget in euros
- "78k" or "78K" -> 78000
- "12,500 EUR" -> 12500
- "5 000 euros" -> 5000
- "about 2000" -> 2000

## STRICT RULES
1. Answer ONLY with valid JSON, NO markdown, NO backticks, NO explanation.
2. If a field is not mentioned -> null.
3. NEVER guess - only use what is explicitly said.
4. For dates without a year, use {year}.
5. The title must be the NAME of the project (1-3 words), NOT a description of what it does.

## EXAMPLES

Input: "The project is called EcoRoute. We start early March 2025 and finish late June. The budget is 15,000 euros."
Output: {{"title":"EcoRoute","start_date":"2025-03-01","end_date":"2025-06-30","budget":15000}}

Input: "So the project... we called it CleverClass. It should start around mid January 2025, the 15th I think. We have to finish before summer, so end of June 2025. The budget is 12,500 EUR normally."
Output: {{"title":"CleverClass","start_date":"2025-01-15","end_date":"2025-06-30","budget":12500}}

Input: "Well we want to build a platform that manages room bookings. The working name is RoomFlow. We talked about starting early April 2025. No idea about the end yet. Budget: I think we have 5,000 euros for the first version"
Output: {{"title":"RoomFlow","start_date":"2025-04-01","end_date":null,"budget":5000}}

Input: "We're launching a project named Iris School App. Start planned on 1st February 2025, no end date yet. Budget about 2000 euros."
Output: {{"title":"Iris School App","start_date":"2025-02-01","end_date":null,"budget":2000}}

Input: "Project Helios. Start 2024-11-10, end planned 2025-04-20. Budget: 78k"
Output: {{"title":"Helios","start_date":"2024-11-10","end_date":"2025-04-20","budget":78000}}"""


def build_prompt(transcript: str, reference_year: int = 2025) -> str:
    """Instructions and few-shot examples followed by the literal transcript."""
    instructions = EXTRACTION_INSTRUCTIONS.format(year=reference_year)
    return (
        f"{instructions}\n\n"
        "NOW analyse this transcript and return ONLY the JSON (no text before or after):\n\n"
        f'"""\n{transcript}\n"""\n\n'
        "JSON:"
    )


class OllamaClient:
    """Thin client for an Ollama-compatible /api/generate endpoint."""

    def __init__(
        self,
        host: str = "http://localhost:11434",
        model: str = "llama3.2",
        timeout_s: float = 30.0,
        temperature: float = 0.1,
        top_p: float = 0.8,
        max_tokens: int = 512,
    ) -> None:
        self.host = host.rstrip("/")
        self.model = model
        self.timeout_s = timeout_s
        self.temperature = temperature
        self.top_p = top_p
        self.max_tokens = max_tokens

    @classmethod
    def from_settings(cls, settings: Settings) -> "OllamaClient":
        return cls(
            host=settings.ollama_host,
            model=settings.ollama_model,
            timeout_s=settings.model_timeout_s,
            temperature=settings.model_temperature,
            top_p=settings.model_top_p,
            max_tokens=settings.model_max_tokens,
        )

    def request_payload(self, prompt: str) -> Dict[str, Any]:
        return {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
            "options": {
                "temperature": self.temperature,
                "top_p": self.top_p,
                "num_predict": self.max_tokens,
            },
        }

    def generate(self, prompt: str) -> str:
        """Return the raw model text. Raises ModelUnavailableError on any transport failure."""
        res = _http_post(
            f"{self.host}/api/generate",
            headers={"Content-Type": "application/json"},
            data=self.request_payload(prompt),
            timeout=self.timeout_s,
        )
        text = res.get("response")
        if not isinstance(text, str):
            raise ModelUnavailableError("response field missing from model reply")
        log.debug(f"model reply from {self.model}: {text[:500]}")
        return text

    def status(self) -> Dict[str, Any]:
        """Probe the server and report whether the configured model is installed."""
        try:
            tags = _http_get(f"{self.host}/api/tags", timeout=min(self.timeout_s, 5.0))
        except ModelUnavailableError as e:
            return {"available": False, "model_loaded": False, "error": str(e)}
        models = tags.get("models") or []
        base = self.model.split(":")[0]
        loaded = any(base in str(m.get("name", "")) for m in models if isinstance(m, dict))
        return {"available": True, "model_loaded": loaded, "error": None}

    def close(self) -> None:  # pragma: no cover - nothing pooled with urllib
        return None


def describe(client: Any) -> str:
    """Short label for logs; any object with generate() may stand in for OllamaClient."""
    if client is None:
        return "none"
    model = getattr(client, "model", None)
    host = getattr(client, "host", None)
    if model and host:
        return f"{model}@{host}"
    return type(client).__name__
