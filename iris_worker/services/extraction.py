"""Extraction orchestrator.

FETCH_TRANSCRIPT -> MODEL_EXTRACT -> NORMALIZE -> {SUCCESS | FALLBACK_EXTRACT}
-> GENERATE_MESSAGE -> DONE

The model step produces an explicit Accepted/Rejected outcome. A rejection of
any kind (network, timeout, status, malformed or invalid payload) sends the
turn to the deterministic extractor, which cannot fail.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from ..models.summary import ProjectSummary, empty_summary
from ..state import State
from .acknowledge import NO_INFORMATION_MESSAGE, acknowledge
from .heuristics import DEFAULT_REFERENCE_YEAR, extract_summary
from .llm import ModelUnavailableError, build_prompt
from .merge import describe_changes, diff_summaries, merge_summaries
from .normalize import Accepted, NormalizeResult, Rejected, normalize_response

log = logging.getLogger("app.extraction")

SOURCE_MODEL = "model"
SOURCE_FALLBACK = "fallback"
SOURCE_EMPTY = "empty"


@dataclass(frozen=True)
class ExtractionResult:
    summary: ProjectSummary
    message: str
    source: str
    failure: Optional[Rejected] = None

    @property
    def degraded(self) -> bool:
        return self.source == SOURCE_FALLBACK


@dataclass(frozen=True)
class TurnResult:
    message: str
    summary: ProjectSummary
    source: str


def extract_with_model(transcript: str, client: Any, reference_year: int = DEFAULT_REFERENCE_YEAR) -> NormalizeResult:
    if client is None:
        return Rejected("model_disabled")
    prompt = build_prompt(transcript, reference_year)
    try:
        raw = client.generate(prompt)
    except ModelUnavailableError as e:
        return Rejected("model_unavailable", str(e))
    return normalize_response(raw)


def analyze_transcript(
    transcript: str, client: Any, reference_year: int = DEFAULT_REFERENCE_YEAR
) -> ExtractionResult:
    if not transcript or not transcript.strip():
        return ExtractionResult(summary=empty_summary(), message=NO_INFORMATION_MESSAGE, source=SOURCE_EMPTY)

    outcome = extract_with_model(transcript, client, reference_year)
    if isinstance(outcome, Accepted):
        summary = outcome.summary
        return ExtractionResult(summary=summary, message=acknowledge(summary), source=SOURCE_MODEL)

    log.warning(
        f"model extraction failed ({outcome}); using deterministic extractor",
        extra={"source": SOURCE_FALLBACK, "reason": outcome.reason},
    )
    summary = extract_summary(transcript, reference_year)
    return ExtractionResult(
        summary=summary,
        message=acknowledge(summary),
        source=SOURCE_FALLBACK,
        failure=outcome,
    )


def process_turn(state: State, conversation_id: str, text: str) -> TurnResult:
    """Run one inbound turn; the conversation is locked for its whole duration."""
    settings = state.settings
    with state.locks.hold(conversation_id):
        state.transcripts.append(conversation_id, "user", text)
        transcript = state.transcripts.user_text(conversation_id, limit=settings.history_limit)

        result = analyze_transcript(transcript, state.model_client, settings.reference_year)

        existing = state.summaries.get(conversation_id)
        merged = merge_summaries(existing, result.summary)
        changes = diff_summaries(existing, result.summary)
        if changes:
            log.info(
                f"conversation {conversation_id} changes recorded",
                extra={"conversation_id": conversation_id, "changes": describe_changes(changes)},
            )

        state.summaries.set(conversation_id, merged)
        state.transcripts.append(conversation_id, "assistant", result.message)

    log.info(
        f"conversation {conversation_id} turn done",
        extra={
            "conversation_id": conversation_id,
            "source": result.source,
            "reason": result.failure.reason if result.failure else None,
        },
    )
    return TurnResult(message=result.message, summary=merged, source=result.source)


def clear_conversation(state: State, conversation_id: str) -> bool:
    """Drop the transcript and the stored summary. Returns whether a summary existed."""
    with state.locks.hold(conversation_id):
        state.transcripts.clear(conversation_id)
        return state.summaries.delete(conversation_id)


def current_summary(state: State, conversation_id: str) -> Optional[ProjectSummary]:
    return state.summaries.get(conversation_id)
