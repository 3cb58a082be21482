"""Deterministic project-summary extractor.

Used when the model path fails. Every field comes from a ranked list of
independent matchers; the first matcher that yields a value wins. A matcher
never raises: text it cannot make sense of yields None.
"""

from __future__ import annotations

import calendar
import re
from datetime import date
from functools import lru_cache
from typing import Any, Iterable, List, Optional, Pattern, Sequence

from ..models.summary import ProjectSummary

DEFAULT_REFERENCE_YEAR = 2025

MONTHS = {
    "january": 1, "jan": 1,
    "february": 2, "feb": 2,
    "march": 3, "mar": 3,
    "april": 4, "apr": 4,
    "may": 5,
    "june": 6, "jun": 6,
    "july": 7, "jul": 7,
    "august": 8, "aug": 8,
    "september": 9, "sept": 9, "sep": 9,
    "october": 10, "oct": 10,
    "november": 11, "nov": 11,
    "december": 12, "dec": 12,
}

MONTH_NAMES = [
    "", "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


def _words(*phrases: str) -> str:
    return "|".join(p.replace(" ", r"\s+") for p in phrases)


# "may" doubles as a modal verb ("may be delayed")
_MONTH = r"\b(%s)\b\.?" % "|".join(
    (m + r"(?!\s+(?:be|have|not|need|want)\b)") if m == "may" else m
    for m in sorted(MONTHS, key=len, reverse=True)
)
_DAY = r"\b(\d{1,2})(?:st|nd|rd|th)?\b"
_YEAR = r"(?:,?\s+(\d{4})\b)?"
_POSITION = r"(?:\b(early|beginning\s+of|start\s+of|mid(?:dle\s+of)?|late|end\s+of)[\s-]*)?"

_DATE_GLUE = r"(?:\s*(?::|\b(?:%s)\b))*\s*" % _words(
    "date", "is", "will be", "planned for", "scheduled for", "planned", "scheduled",
    "set for", "sometime in", "on", "in", "by", "at", "around", "about", "roughly",
    "from", "for", "the",
)

_START = (
    r"\b(?:start(?:s|ed|ing)?\b(?!\s+of\b)|begin(?:s|ning)?\b(?!\s+of\b)"
    r"|kick(?:s|ing)?\s+off\b|kickoff\b|commenc(?:e|es|ing)\b)"
)
_END = (
    r"\b(?:end(?:s|ed|ing)?\b(?!\s+of\b)|finish(?:es|ed|ing)?\b|wrap(?:s|ped|ping)?\s+up\b"
    r"|complet(?:e|es|ed|ing|ion)\b|deadline\b|due\b|done\b)"
)
_DELIVERY = r"\b(?:deliver(?:y|ed|s)?|ship(?:s|ped|ping)?|go(?:es)?\s+live|launch\s+date)\b"

_POSITION_KIND = {
    "early": "early", "beginning": "early", "start": "early",
    "mid": "mid", "middle": "mid",
    "late": "late", "end": "late",
}


def _compile(pattern: str, flags: int = re.IGNORECASE | re.MULTILINE) -> Pattern[str]:
    return re.compile(pattern, flags)


def _resolve_year(raw: Optional[str], reference_year: int) -> int:
    if not raw:
        return reference_year
    if len(raw) == 2:
        return 2000 + int(raw)
    return int(raw)


def _build_date(year: int, month: int, day: Optional[int] = None, position: str = "early") -> Optional[str]:
    """Return YYYY-MM-DD, or None when the parts do not form a real date."""
    try:
        if day is None:
            if position == "mid":
                day = 15
            elif position == "late":
                day = calendar.monthrange(year, month)[1]
            else:
                day = 1
        return date(year, month, day).isoformat()
    except ValueError:
        return None


class Matcher:
    """One ranked extraction rule: attempt(text) returns a value or None."""

    name = "matcher"

    def attempt(self, text: str) -> Optional[Any]:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class RegexMatcher(Matcher):
    """Runs one pattern over the text and converts the first usable match."""

    def __init__(self, name: str, pattern: Pattern[str]) -> None:
        self.name = name
        self.pattern = pattern

    def convert(self, match: "re.Match[str]") -> Optional[Any]:
        return match.group(1)

    def attempt(self, text: str) -> Optional[Any]:
        for match in self.pattern.finditer(text):
            value = self.convert(match)
            if value is not None:
                return value
        return None


def first_match(matchers: Iterable[Matcher], text: str) -> Optional[Any]:
    for matcher in matchers:
        value = matcher.attempt(text)
        if value is not None:
            return value
    return None


# ------------------------------- Title ------------------------------------
_NAME = r"([a-zà-ÿ][a-zà-ÿ0-9\- ]{0,30}?)"
_NAME_END = (
    r"(?=\s*(?:[.,;:!?)\"]|$)|\s+(?:%s)\b)"
    % _words("and", "but", "so", "we", "it", "which", "that", "the", "for", "with", "to",
             "from", "on", "in", "by", "because", "budget", "starts?", "starting",
             "ends?", "ending", "start", "end")
)

_TRAILING_FILLER = re.compile(
    r"\s+(?:the|a|an|and|or|but|so|we|it|on|of|for|to|that|which|who)$", re.IGNORECASE
)
_FILLER_WORDS = {
    "the", "a", "an", "and", "or", "but", "so", "we", "it", "this", "that", "which",
    "who", "for", "to", "of", "on", "is", "something", "thing", "one", "project",
}
_DESCRIPTION_LEAD = re.compile(
    r"^(?:a|an|to|which|that|who|what|is|was|will|some|something|"
    r"build|building|create|creating|make|making|develop|developing|"
    r"do|doing|manage|managing|help|helping)\b",
    re.IGNORECASE,
)


def _capitalize(word: str) -> str:
    # brand-style words ("iPhone", "eBay") keep their casing
    if len(word) > 1 and word[0].islower() and word[1].isupper():
        return word
    return word[:1].upper() + word[1:]


def clean_title(raw: str) -> Optional[str]:
    """Trim a captured name, drop trailing filler and reject descriptions."""
    title = " ".join(raw.split())
    while True:
        stripped = _TRAILING_FILLER.sub("", title).strip()
        if stripped == title:
            break
        title = stripped
    if len(title) <= 1:
        return None
    if all(w.lower() in _FILLER_WORDS for w in title.split()):
        return None
    if _DESCRIPTION_LEAD.match(title):
        return None
    return " ".join(_capitalize(w) for w in title.split())


class TitleMatcher(RegexMatcher):
    def convert(self, match: "re.Match[str]") -> Optional[str]:
        return clean_title(match.group(1))


TITLE_MATCHERS: Sequence[Matcher] = (
    TitleMatcher(
        "name-is",
        _compile(r"\bname(?:\s+(?:is|will\s+be|for\s+now\s+is)|\s*:)\s+" + _NAME + _NAME_END),
    ),
    TitleMatcher(
        "called-it",
        _compile(r"\b(?:named|called|dubbed)\s+it\s+" + _NAME + _NAME_END),
    ),
    TitleMatcher(
        "is-called",
        _compile(r"(?:\b(?:is|was|be)|'s)\s+(?:called|named|dubbed)\s+" + _NAME + _NAME_END),
    ),
    TitleMatcher(
        "project-named",
        _compile(r"\bproject\s+(?:named|called|titled|dubbed)\s+" + _NAME + _NAME_END),
    ),
    # Case-sensitive capture: "Project Helios." but not "project management"
    TitleMatcher(
        "project-x",
        _compile(
            r"^\s*(?:[Tt]he\s+)?[Pp]roject\s+([A-ZÀ-Þ][\w\-]*(?:\s+[A-Z0-9][\w\-]*){0,3}?)"
            + "(?i:" + _NAME_END + ")",
            re.MULTILINE,
        ),
    ),
    TitleMatcher(
        "launching",
        _compile(
            r"\bwe(?:'re|\s+are)\s+launching\s+(?:a\s+(?:new\s+)?project\s+(?:named\s+|called\s+)?)?"
            + _NAME + _NAME_END
        ),
    ),
)


# ------------------------------- Dates ------------------------------------
class IsoDateMatcher(RegexMatcher):
    def convert(self, match: "re.Match[str]") -> Optional[str]:
        y, m, d = (int(p) for p in match.group(1).split("-"))
        return _build_date(y, m, d)


class NumericDateMatcher(RegexMatcher):
    """D/M/Y, with '/', '-' or '.' separators."""

    def __init__(self, name: str, pattern: Pattern[str], reference_year: int) -> None:
        super().__init__(name, pattern)
        self.reference_year = reference_year

    def convert(self, match: "re.Match[str]") -> Optional[str]:
        year = _resolve_year(match.group(3), self.reference_year)
        return _build_date(year, int(match.group(2)), int(match.group(1)))


class DayMonthMatcher(RegexMatcher):
    """'15 March [2025]' or, with month_first, 'March 15[, 2025]'."""

    def __init__(self, name: str, pattern: Pattern[str], reference_year: int, month_first: bool = False) -> None:
        super().__init__(name, pattern)
        self.reference_year = reference_year
        self.month_first = month_first

    def convert(self, match: "re.Match[str]") -> Optional[str]:
        if self.month_first:
            month_raw, day_raw = match.group(1), match.group(2)
        else:
            day_raw, month_raw = match.group(1), match.group(2)
        year = _resolve_year(match.group(3), self.reference_year)
        return _build_date(year, MONTHS[month_raw.lower()], int(day_raw))


class FuzzyMonthMatcher(RegexMatcher):
    """'[early|mid|late] March [2025]'; no position means default_position."""

    def __init__(self, name: str, pattern: Pattern[str], reference_year: int, default_position: str) -> None:
        super().__init__(name, pattern)
        self.reference_year = reference_year
        self.default_position = default_position

    def convert(self, match: "re.Match[str]") -> Optional[str]:
        raw_position = match.group(1)
        if raw_position:
            position = _POSITION_KIND[raw_position.split()[0].lower()]
        else:
            position = self.default_position
        year = _resolve_year(match.group(3), self.reference_year)
        return _build_date(year, MONTHS[match.group(2).lower()], position=position)


class OptionalDayMonthMatcher(RegexMatcher):
    """'[15] March [2025]' after a lead-in phrase; a bare month means default_position."""

    def __init__(self, name: str, pattern: Pattern[str], reference_year: int, default_position: str) -> None:
        super().__init__(name, pattern)
        self.reference_year = reference_year
        self.default_position = default_position

    def convert(self, match: "re.Match[str]") -> Optional[str]:
        year = _resolve_year(match.group(3), self.reference_year)
        month = MONTHS[match.group(2).lower()]
        if match.group(1):
            return _build_date(year, month, int(match.group(1)))
        return _build_date(year, month, position=self.default_position)


class FixedDateMatcher(RegexMatcher):
    """An idiom that always means the same month/day of the reference year."""

    def __init__(self, name: str, pattern: Pattern[str], reference_year: int, month: int, day: int) -> None:
        super().__init__(name, pattern)
        self.value = _build_date(reference_year, month, day)

    def convert(self, match: "re.Match[str]") -> Optional[str]:
        return self.value


def _date_family(lead: str, tag: str, reference_year: int, default_position: str) -> List[Matcher]:
    prefix = lead + _DATE_GLUE
    return [
        IsoDateMatcher(f"{tag}-iso", _compile(prefix + r"(\d{4}-\d{2}-\d{2})\b")),
        NumericDateMatcher(
            f"{tag}-numeric",
            _compile(prefix + r"\b(\d{1,2})[/.\-](\d{1,2})[/.\-](\d{4}|\d{2})\b"),
            reference_year,
        ),
        DayMonthMatcher(
            f"{tag}-day-month",
            _compile(prefix + _DAY + r"\s+(?:of\s+)?" + _MONTH + _YEAR),
            reference_year,
        ),
        DayMonthMatcher(
            f"{tag}-month-day",
            _compile(prefix + _MONTH + r"\s+" + _DAY + _YEAR),
            reference_year,
            month_first=True,
        ),
        FuzzyMonthMatcher(
            f"{tag}-fuzzy",
            _compile(prefix + _POSITION + _MONTH + _YEAR),
            reference_year,
            default_position,
        ),
    ]


@lru_cache(maxsize=16)
def start_date_matchers(reference_year: int = DEFAULT_REFERENCE_YEAR) -> Sequence[Matcher]:
    matchers = _date_family(_START, "start", reference_year, "early")
    matchers.append(
        OptionalDayMonthMatcher(
            "start-from",
            _compile(r"\b(?:from|as\s+of)\s+(?:the\s+)?(?:" + _DAY + r"\s+(?:of\s+)?)?" + _MONTH + _YEAR),
            reference_year,
            "early",
        )
    )
    return tuple(matchers)


@lru_cache(maxsize=16)
def end_date_matchers(reference_year: int = DEFAULT_REFERENCE_YEAR) -> Sequence[Matcher]:
    matchers = _date_family(_END, "end", reference_year, "late")
    matchers.append(
        FixedDateMatcher(
            "end-before-summer",
            _compile(
                r"\b(?:finish|complete|end|wrap\s+up|be\s+done|deliver)\w*"
                r"(?:\s+\w+){0,3}?\s+before\s+(?:the\s+)?summer\b"
            ),
            reference_year,
            6,
            30,
        )
    )
    matchers.append(
        OptionalDayMonthMatcher(
            "end-delivery",
            _compile(_DELIVERY + _DATE_GLUE + r"(?:" + _DAY + r"\s+(?:of\s+)?)?" + _MONTH + _YEAR),
            reference_year,
            "late",
        )
    )
    return tuple(matchers)


# ------------------------------- Budget -----------------------------------
_AMOUNT = r"\b(\d{1,3}(?:[ ,\u00a0\u202f]\d{3})+|\d+)"
_K_AMOUNT = r"\b(\d+(?:\.\d+)?)\s*k\b"
_CURRENCY = r"(?:€|\beuros?\b|\beur\b)"
_SEPARATORS = re.compile(r"[\s,\u00a0\u202f]")

_BUDGET_GLUE = r"(?:\s*(?::|\b(?:%s)\b))*\s*" % _words(
    "is", "of", "will be", "around", "about", "roughly", "approximately", "approx",
    "maybe", "only", "just", "in total", "total", "overall", "i think", "i believe",
    "we have", "we've got", "we got", "set at", "capped at", "up to", "max", "at",
)
_BUDGET = r"\bbudget\b" + _BUDGET_GLUE


class AmountMatcher(RegexMatcher):
    """Parses group 1 as an amount; rejects anything that is not > 0."""

    def __init__(self, name: str, pattern: Pattern[str], multiplier: int = 1) -> None:
        super().__init__(name, pattern)
        self.multiplier = multiplier

    def convert(self, match: "re.Match[str]") -> Optional[int]:
        raw = _SEPARATORS.sub("", match.group(1))
        try:
            if self.multiplier != 1:
                value = int(round(float(raw) * self.multiplier))
            else:
                value = int(raw)
        except ValueError:
            return None
        if value <= 0:
            return None
        return value


BUDGET_MATCHERS: Sequence[Matcher] = (
    AmountMatcher("budget-k", _compile(_BUDGET + _K_AMOUNT), multiplier=1000),
    AmountMatcher(
        "we-have-currency",
        _compile(
            r"\bwe(?:'ve)?\s+(?:have|got)\s+(?:(?:about|around|roughly|approximately)\s+)?"
            + _AMOUNT + r"\s*" + _CURRENCY
        ),
    ),
    AmountMatcher("k-shorthand", _compile(_K_AMOUNT), multiplier=1000),
    AmountMatcher("budget-currency", _compile(_BUDGET + _AMOUNT + r"\s*" + _CURRENCY)),
    AmountMatcher("amount-currency", _compile(_AMOUNT + r"\s*" + _CURRENCY)),
    AmountMatcher("currency-amount", _compile(r"€\s*" + _AMOUNT)),
    AmountMatcher("budget-bare", _compile(_BUDGET + _AMOUNT + r"(?![\d/\-])")),
)


# ------------------------------- Entry ------------------------------------
def extract_title(text: str) -> Optional[str]:
    return first_match(TITLE_MATCHERS, text)


def extract_start_date(text: str, reference_year: int = DEFAULT_REFERENCE_YEAR) -> Optional[str]:
    return first_match(start_date_matchers(reference_year), text)


def extract_end_date(text: str, reference_year: int = DEFAULT_REFERENCE_YEAR) -> Optional[str]:
    return first_match(end_date_matchers(reference_year), text)


def extract_budget(text: str) -> Optional[int]:
    return first_match(BUDGET_MATCHERS, text)


def extract_summary(text: str, reference_year: int = DEFAULT_REFERENCE_YEAR) -> ProjectSummary:
    if not text or not text.strip():
        return ProjectSummary()
    return ProjectSummary(
        title=extract_title(text),
        start_date=extract_start_date(text, reference_year),
        end_date=extract_end_date(text, reference_year),
        budget=extract_budget(text),
    )
