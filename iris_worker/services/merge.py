from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional

from ..models.summary import SUMMARY_FIELDS, ProjectSummary

_LABELS = {
    "title": "Title",
    "start_date": "Start date",
    "end_date": "End date",
    "budget": "Budget",
}


@dataclass(frozen=True)
class FieldChange:
    field: str
    kind: str  # "set" | "updated"
    old: Any
    new: Any


def merge_summaries(existing: Optional[ProjectSummary], fresh: ProjectSummary) -> ProjectSummary:
    """Per-field 'last non-null wins'.

    A null in `fresh` never clears a stored value; once learned, a field can
    only be replaced by another value or dropped with the whole summary.
    """
    if existing is None:
        return fresh.model_copy()
    merged = {}
    for name in SUMMARY_FIELDS:
        value = getattr(fresh, name)
        merged[name] = value if value is not None else getattr(existing, name)
    return ProjectSummary(**merged)


def diff_summaries(old: Optional[ProjectSummary], new: ProjectSummary) -> List[FieldChange]:
    """Fields of `new` that are non-null and differ from `old`."""
    changes: List[FieldChange] = []
    for name in SUMMARY_FIELDS:
        value = getattr(new, name)
        if value is None:
            continue
        previous = getattr(old, name) if old is not None else None
        if value == previous:
            continue
        kind = "updated" if previous is not None else "set"
        changes.append(FieldChange(field=name, kind=kind, old=previous, new=value))
    return changes


def describe_changes(changes: List[FieldChange]) -> List[str]:
    out: List[str] = []
    for c in changes:
        shown = f'"{c.new}"' if c.field == "title" else str(c.new)
        out.append(f"{_LABELS[c.field]} {c.kind}: {shown}")
    return out
