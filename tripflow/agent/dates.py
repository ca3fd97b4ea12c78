"""
Date Phrase Parser.

Turns phrases like "March 15-22", "10 days", "November 2025" or "early December"
into a concrete inclusive (start_date, end_date) pair or a clarification question.

Patterns are tried in a fixed order and the first one that resolves wins.
A handler may return None to let the next pattern try (e.g. "February 30-31").
"""
from __future__ import annotations

import calendar
import logging
import re
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable, Optional

from tripflow.agent.slot_extractor import NUMBER_PATTERN, parse_count
from tripflow.models.domain import DateRange

logger = logging.getLogger(__name__)


MONTHS: dict[str, int] = {
    "january": 1, "jan": 1, "february": 2, "feb": 2, "march": 3, "mar": 3,
    "april": 4, "apr": 4, "may": 5, "june": 6, "jun": 6, "july": 7, "jul": 7,
    "august": 8, "aug": 8, "september": 9, "sept": 9, "sep": 9,
    "october": 10, "oct": 10, "november": 11, "nov": 11, "december": 12, "dec": 12,
}
_MONTH = r"(?P<month>" + "|".join(sorted(MONTHS, key=len, reverse=True)) + r")\b\.?"
# Month mentioned outright; "may" only when it reads as a month ("in May", "May 3")
_MONTH_MENTION = re.compile(
    r"\b(?:january|february|march|april|june|july|august|september|october|november|december)\b"
    r"|\bin\s+may\b|\b(?:early|mid|late|end of)[\s-]+may\b|\bmay\s+\d"
)

DEFAULT_LEAD_DAYS = 7


# ==================== RESULT ====================

@dataclass
class DateParseResult:
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    success: bool = False
    interpretation: str = ""
    needs_clarification: bool = False
    clarification_question: Optional[str] = None
    pattern: Optional[str] = None

    @property
    def date_range(self) -> Optional[DateRange]:
        if not self.success:
            return None
        return DateRange(start_date=self.start_date, end_date=self.end_date)

    @classmethod
    def resolved(cls, start: date, end: date, pattern: str) -> "DateParseResult":
        return cls(
            start_date=start,
            end_date=end,
            success=True,
            interpretation=format_range(start, end),
            pattern=pattern,
        )

    @classmethod
    def clarify(cls, question: str, pattern: str) -> "DateParseResult":
        return cls(needs_clarification=True, clarification_question=question, pattern=pattern)


# ==================== HELPERS ====================

def month_name(month: int) -> str:
    return calendar.month_name[month]


def add_months(day: date, months: int) -> date:
    index = day.month - 1 + months
    year = day.year + index // 12
    month = index % 12 + 1
    return date(year, month, min(day.day, calendar.monthrange(year, month)[1]))


def format_range(start: date, end: date) -> str:
    """Display form, e.g. "March 15–22, 2025 (8 days)"."""
    days = (end - start).days + 1
    suffix = f"({days} day{'s' if days != 1 else ''})"
    if start == end:
        return f"{month_name(start.month)} {start.day}, {start.year} {suffix}"
    if start.year != end.year:
        return (
            f"{month_name(start.month)} {start.day}, {start.year}–"
            f"{month_name(end.month)} {end.day}, {end.year} {suffix}"
        )
    if start.month != end.month:
        return (
            f"{month_name(start.month)} {start.day}–"
            f"{month_name(end.month)} {end.day}, {start.year} {suffix}"
        )
    return f"{month_name(start.month)} {start.day}–{end.day}, {start.year} {suffix}"


def _normalize(raw: str) -> str:
    text = " ".join(raw.lower().split())
    text = re.sub(r"(\d+)(?:st|nd|rd|th)\b", r"\1", text)
    text = re.sub(r"(\d)\s*(?:–|—|-|\bto\b|\bthrough\b|\bthru\b|\btill\b|\buntil\b)\s*(\d)", r"\1-\2", text)
    return text


def _duration_days(count: int, unit: str) -> int:
    if unit == "week":
        return count * 7
    if unit == "night":
        return count + 1
    return count


@dataclass
class ParseContext:
    text: str
    today: date
    lead_days: int


def _upcoming(ctx: ParseContext, month: int, day: int) -> date:
    """Date in the current year, rolled to next year when already past."""
    start = date(ctx.today.year, month, day)
    if start < ctx.today:
        start = date(ctx.today.year + 1, month, day)
    return start


# ==================== HANDLERS ====================

def _month_year_only(m: re.Match, ctx: ParseContext) -> Optional[DateParseResult]:
    rest = ctx.text[:m.start()] + " " + ctx.text[m.end():]
    if re.search(r"\b\d{1,2}\b", rest):
        return None     # has day numbers: a range pattern will handle it
    month = month_name(MONTHS[m.group("month")])
    year = m.group("year")
    return DateParseResult.clarify(
        f"Great! You want to travel in {month} {year}. Which dates in {month}? "
        f"For example, \"{month} 10-20\" or \"10 days starting {month} 10\".",
        "month-year",
    )


def _explicit_range(m: re.Match, ctx: ParseContext) -> Optional[DateParseResult]:
    month = MONTHS[m.group("month")]
    first, last = int(m.group("start")), int(m.group("end"))
    if not 1 <= first <= last <= 31:
        return None
    try:
        if m.groupdict().get("year"):
            year = int(m.group("year"))
            start, end = date(year, month, first), date(year, month, last)
        else:
            start = _upcoming(ctx, month, first)
            end = date(start.year, month, last)
    except ValueError:
        return None
    return DateParseResult.resolved(start, end, "range-year" if m.groupdict().get("year") else "range")


def _duration_from_day(m: re.Match, ctx: ParseContext) -> Optional[DateParseResult]:
    count = parse_count(m.group("count"))
    if not count or count < 1:
        return None
    month = MONTHS[m.group("month")]
    try:
        if m.group("year"):
            start = date(int(m.group("year")), month, int(m.group("day")))
        else:
            start = _upcoming(ctx, month, int(m.group("day")))
    except ValueError:
        return None
    end = start + timedelta(days=_duration_days(count, m.group("unit")) - 1)
    return DateParseResult.resolved(start, end, "duration-from-day")


def _duration_in_month(m: re.Match, ctx: ParseContext) -> Optional[DateParseResult]:
    count = parse_count(m.group("count"))
    if not count:
        return None
    unit = m.group("unit")
    month = month_name(MONTHS[m.group("month")])
    plural = "s" if count != 1 else ""
    return DateParseResult.clarify(
        f"Perfect! {count} {unit}{plural} in {month}. Which day would you like to start? "
        f"For example, \"{count} {unit}{plural} starting {month} 10\".",
        "duration-in-month",
    )


def _bare_duration(m: re.Match, ctx: ParseContext) -> Optional[DateParseResult]:
    if _MONTH_MENTION.search(ctx.text):
        return None     # a month without days: ask instead of ignoring it
    count = parse_count(m.group("count"))
    if not count or count < 1:
        return None
    unit = m.group("unit")
    start = ctx.today + timedelta(days=ctx.lead_days)
    if unit == "month":
        end = add_months(start, count) - timedelta(days=1)
    else:
        end = start + timedelta(days=_duration_days(count, unit) - 1)
    return DateParseResult.resolved(start, end, "duration")


_POSITION_DAY = {
    "early": 5, "beginning": 3, "first": 3,
    "mid": 15, "middle": 15,
    "late": 22, "end": 24, "last": 24,
}


def _relative_month(m: re.Match, ctx: ParseContext) -> Optional[DateParseResult]:
    position = m.group("position")
    month = month_name(MONTHS[m.group("month")])
    return DateParseResult.clarify(
        f"Great! {position.capitalize()} {month}. How many days would you like to travel, "
        f"and from which day? For example, \"7 days starting {month} {_POSITION_DAY[position]}\".",
        "relative-month",
    )


@dataclass(frozen=True)
class DatePattern:
    name: str
    regex: re.Pattern
    handler: Callable[[re.Match, ParseContext], Optional[DateParseResult]]


_COUNT = rf"(?P<count>\d+|{NUMBER_PATTERN})"
_UNIT = r"(?P<unit>day|week|month|night)s?\b"
_RANGE = r"(?P<start>\d{1,2})-(?P<end>\d{1,2})\b"
_YEAR = r"\s*,?\s*(?P<year>\d{4})\b"

# Fixed order: first match wins
DATE_PATTERNS: list[DatePattern] = [
    DatePattern("month-year", re.compile(rf"\b{_MONTH}{_YEAR}"), _month_year_only),
    DatePattern("range-year", re.compile(rf"\b{_MONTH}\s*{_RANGE}{_YEAR}"), _explicit_range),
    DatePattern("range-year", re.compile(rf"\b{_RANGE}\s*(?:of\s+)?{_MONTH}{_YEAR}"), _explicit_range),
    DatePattern("range", re.compile(rf"\b{_MONTH}\s*{_RANGE}(?!\s*,?\s*\d{{4}})"), _explicit_range),
    DatePattern("range", re.compile(rf"\b{_RANGE}\s*(?:of\s+)?{_MONTH}(?!\s*,?\s*\d{{4}})"), _explicit_range),
    DatePattern(
        "duration-from-day",
        re.compile(
            rf"\b{_COUNT}\s*(?P<unit>day|week|night)s?\s+(?:starting|from|beginning)\s+(?:on\s+)?"
            rf"{_MONTH}\s*(?P<day>\d{{1,2}})\b(?:{_YEAR})?"
        ),
        _duration_from_day,
    ),
    DatePattern(
        "duration-from-day",
        re.compile(
            rf"\b{_COUNT}\s*(?P<unit>day|week|night)s?\s+(?:starting|from|beginning)\s+(?:on\s+)?"
            rf"(?:the\s+)?(?P<day>\d{{1,2}})\s+(?:of\s+)?{_MONTH}(?:{_YEAR})?"
        ),
        _duration_from_day,
    ),
    DatePattern(
        "duration-in-month",
        re.compile(rf"\b{_COUNT}\s*(?P<unit>day|week|night)s?\s+in\s+(?:early\s+|mid-?\s*|late\s+)?{_MONTH}"),
        _duration_in_month,
    ),
    DatePattern("duration", re.compile(rf"\b{_COUNT}\s*{_UNIT}"), _bare_duration),
    DatePattern(
        "relative-month",
        re.compile(
            rf"\b(?P<position>early|mid|middle|late|first|last|beginning|end)"
            rf"(?:\s+week)?(?:\s+of)?[\s-]+(?:the\s+)?{_MONTH}"
        ),
        _relative_month,
    ),
]

FALLBACK_PATTERN = "fallback"
FALLBACK_QUESTION = (
    "I'd like to understand your travel dates better. Could you try something like:\n"
    "• \"March 15-22\" (specific date range)\n"
    "• \"10 days starting April 3\" (duration and start day)\n"
    "• \"2 weeks\" (we'll start a week from today)\n"
    "What works best for you?"
)


def parse(raw: str, today: Optional[date] = None, lead_days: int = DEFAULT_LEAD_DAYS) -> DateParseResult:
    """
    Parse a date phrase.

    Args:
        raw: What the user said
        today: Reference day (injectable for tests)
        lead_days: Start offset of a bare duration ("10 days")

    Returns:
        DateParseResult, resolved or asking for clarification
    """
    ctx = ParseContext(text=_normalize(raw), today=today or date.today(), lead_days=lead_days)

    for pattern in DATE_PATTERNS:
        match = pattern.regex.search(ctx.text)
        if match is None:
            continue
        result = pattern.handler(match, ctx)
        if result is not None:
            logger.debug(f"Date phrase {raw!r} matched {pattern.name}: {result.interpretation or 'clarification'}")
            return result

    logger.debug(f"Date phrase {raw!r} matched no pattern")
    return DateParseResult.clarify(FALLBACK_QUESTION, FALLBACK_PATTERN)
