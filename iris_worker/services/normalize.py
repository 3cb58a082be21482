from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError

from ..models.summary import ProjectSummary

_FENCE_OPEN = re.compile(r"^```(?:json|JSON)?\s*")
_FENCE_CLOSE = re.compile(r"\s*```$")
_GROUPED_DIGITS = re.compile(r"^\d+$")


@dataclass(frozen=True)
class Accepted:
    summary: ProjectSummary


@dataclass(frozen=True)
class Rejected:
    reason: str
    detail: Optional[str] = None

    def __str__(self) -> str:
        return f"{self.reason}: {self.detail}" if self.detail else self.reason


NormalizeResult = Union[Accepted, Rejected]


def strip_code_fences(text: str) -> str:
    text = text.strip()
    text = _FENCE_OPEN.sub("", text, count=1)
    text = _FENCE_CLOSE.sub("", text, count=1)
    return text.strip()


def first_json_object(text: str) -> Optional[str]:
    """Return the first balanced {...} span, ignoring braces inside strings."""
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for idx in range(start, len(text)):
            ch = text[idx]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return text[start : idx + 1]
        # unbalanced from here; try a later opening brace
        start = text.find("{", start + 1)
    return None


def _load_object(text: str) -> Union[Dict[str, Any], Rejected]:
    if text.startswith("{") and text.endswith("}"):
        try:
            obj = json.loads(text)
            if isinstance(obj, dict):
                return obj
        except ValueError:
            pass
    candidate = first_json_object(text)
    if candidate is None:
        return Rejected("no_payload", "no JSON object found in model output")
    try:
        obj = json.loads(candidate)
    except ValueError as e:
        return Rejected("invalid_json", str(e))
    if not isinstance(obj, dict):
        return Rejected("not_an_object", type(obj).__name__)
    return obj


def _coerce_budget(payload: Dict[str, Any]) -> None:
    # "12 500" / "12,500" from the model; anything else is left for validation
    budget = payload.get("budget")
    if isinstance(budget, str):
        compact = re.sub(r"[\s,]", "", budget)
        if _GROUPED_DIGITS.match(compact):
            payload["budget"] = int(compact)


def validate_payload(payload: Dict[str, Any]) -> NormalizeResult:
    _coerce_budget(payload)
    try:
        summary = ProjectSummary.model_validate(payload)
    except ValidationError as e:
        fields = ",".join(str(err["loc"][0]) for err in e.errors() if err.get("loc"))
        return Rejected("schema_violation", fields or str(e))
    return Accepted(summary)


def normalize_response(raw: Optional[str]) -> NormalizeResult:
    """Turn raw model text into a validated summary, or a reason it is unusable.

    No partial acceptance: one bad field rejects the whole payload.
    """
    if raw is None or not raw.strip():
        return Rejected("empty_response")
    text = strip_code_fences(raw)
    loaded = _load_object(text)
    if isinstance(loaded, Rejected):
        return loaded
    return validate_payload(loaded)
