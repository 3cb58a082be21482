from __future__ import annotations

import re
from datetime import date
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

SUMMARY_FIELDS = ("title", "start_date", "end_date", "budget")

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def is_valid_date_format(value: str) -> bool:
    """True for a real calendar date written as YYYY-MM-DD."""
    if not isinstance(value, str) or not _DATE_RE.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


class ProjectSummary(BaseModel):
    """Project facts learned from a conversation.

    Every field is either a valid value or None. An all-None summary is the
    canonical empty value.
    """

    title: Optional[str] = Field(None, description="Proper name of the project")
    start_date: Optional[str] = Field(None, description="YYYY-MM-DD")
    end_date: Optional[str] = Field(None, description="YYYY-MM-DD")
    budget: Optional[int] = Field(None, ge=0, description="Whole euros")

    @field_validator("title", mode="before")
    @classmethod
    def _title_not_blank(cls, v: Any) -> Any:
        if v is None:
            return v
        if not isinstance(v, str):
            raise ValueError("title must be a string")
        v = v.strip()
        if not v:
            raise ValueError("title must not be empty")
        return v

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _iso_date(cls, v: Any) -> Any:
        if v is None:
            return v
        if not is_valid_date_format(v):
            raise ValueError("date must be a calendar date in YYYY-MM-DD form")
        return v

    @field_validator("budget", mode="before")
    @classmethod
    def _budget_number(cls, v: Any) -> Any:
        # bool is an int subclass; NaN/inf fail the int conversion below
        if isinstance(v, bool):
            raise ValueError("budget must be a number")
        if isinstance(v, float) and not v.is_integer():
            raise ValueError("budget must be a whole number")
        return v


def empty_summary() -> ProjectSummary:
    return ProjectSummary()


def has_content(summary: ProjectSummary) -> bool:
    return any(getattr(summary, f) is not None for f in SUMMARY_FIELDS)


def count_filled_fields(summary: ProjectSummary) -> int:
    return sum(1 for f in SUMMARY_FIELDS if getattr(summary, f) is not None)
