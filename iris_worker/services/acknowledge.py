from __future__ import annotations

from datetime import date
from typing import List

from ..models.summary import ProjectSummary
from .heuristics import MONTH_NAMES

NO_INFORMATION_MESSAGE = "I haven't received any information about your project yet. Tell me more!"
LISTENING_MESSAGE = "I'm listening, keep telling me about your project."


def format_long_date(value: str) -> str:
    """'2025-01-15' -> '15 January 2025'."""
    try:
        d = date.fromisoformat(value)
    except ValueError:
        return value
    return f"{d.day} {MONTH_NAMES[d.month]} {d.year}"


def format_budget(value: int) -> str:
    return f"€{value:,}"


def acknowledge(summary: ProjectSummary) -> str:
    """Acknowledge the fields of a freshly extracted (not merged) summary."""
    parts: List[str] = []
    if summary.title is not None:
        parts.append(f'I noted the project name: "{summary.title}"')
    if summary.start_date is not None:
        parts.append(f"Start date: {format_long_date(summary.start_date)}")
    if summary.end_date is not None:
        parts.append(f"End date: {format_long_date(summary.end_date)}")
    if summary.budget is not None:
        parts.append(f"Budget: {format_budget(summary.budget)}")
    if not parts:
        return LISTENING_MESSAGE
    return f"Got it! {'. '.join(parts)}."
