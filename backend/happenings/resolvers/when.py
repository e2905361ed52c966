"""Free text -> time window. All arithmetic is on calendar dates relative to an injectable ``now``."""

from __future__ import annotations

import calendar
import re
from collections.abc import Callable
from datetime import date, datetime, timedelta

from ..schemas import TimeFilter, WhenResult

KEYWORD_CONFIDENCE = 0.95
DATE_CONFIDENCE = 0.9

MONTHS = {
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "may": 5,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}
_MONTH = (
    r"(jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?|aug(?:ust)?"
    r"|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)"
)
_DAY = r"(\d{1,2})(?:st|nd|rd|th)?"
_YEAR = r"(?:\s*,?\s*(\d{4}))?"

MONTH_DAY_RE = re.compile(rf"\b{_MONTH}\s+{_DAY}\b{_YEAR}", re.IGNORECASE)
DAY_MONTH_RE = re.compile(rf"\b{_DAY}\s+(?:of\s+)?{_MONTH}\b{_YEAR}", re.IGNORECASE)
NUMERIC_RE = re.compile(r"\b(\d{1,2})[/-](\d{1,2})[/-](\d{4})\b")

TODAY_RE = re.compile(r"\b(?:today|tonight|this\s+evening)\b", re.IGNORECASE)
TOMORROW_RE = re.compile(r"\btomorrow\b", re.IGNORECASE)
NEXT_WEEK_RE = re.compile(r"\bnext\s+week(?:end)?\b", re.IGNORECASE)
WEEKEND_RE = re.compile(
    r"\b(?:this\s+)?weekend\b|\bsat(?:urday)?\s*(?:and|&|or)\s*sun(?:day)?\b", re.IGNORECASE
)
THIS_WEEK_RE = re.compile(r"\bthis\s+week\b", re.IGNORECASE)
THIS_MONTH_RE = re.compile(r"\bthis\s+month\b", re.IGNORECASE)

SATURDAY = 5
SUNDAY = 6


def format_date(value: date) -> str:
    return value.strftime("%d/%m/%Y")


def _display(value: date) -> str:
    return f"{value.strftime('%A')}, {value.day} {value.strftime('%B %Y')}"


def _single(mode: str, value: str, day: date, label: str | None = None) -> TimeFilter:
    return TimeFilter(
        mode=mode,  # type: ignore[arg-type]
        value=value,
        start=day,
        end=day,
        display_text=label or _display(day),
    )


def _span(mode: str, value: str, start: date, end: date, label: str) -> TimeFilter:
    return TimeFilter(
        mode=mode,  # type: ignore[arg-type]
        value=value,
        start=start,
        end=end,
        display_text=f"{label} ({_display(start)} to {_display(end)})",
    )


def upcoming_weekend(today: date) -> tuple[date, date]:
    """Saturday and Sunday of the coming weekend; on Sunday that means next Saturday."""
    offset = (SATURDAY - today.weekday()) % 7
    saturday = today + timedelta(days=offset)
    return saturday, saturday + timedelta(days=1)


def following_week(today: date) -> tuple[date, date]:
    monday = today + timedelta(days=7 - today.weekday())
    return monday, monday + timedelta(days=6)


def _today(text: str, today: date) -> TimeFilter | None:
    if not TODAY_RE.search(text):
        return None
    return _single("keyword", "today", today, f"Today ({_display(today)})")


def _tomorrow(text: str, today: date) -> TimeFilter | None:
    if not TOMORROW_RE.search(text):
        return None
    day = today + timedelta(days=1)
    return _single("keyword", "tomorrow", day, f"Tomorrow ({_display(day)})")


def _next_week(text: str, today: date) -> TimeFilter | None:
    match = NEXT_WEEK_RE.search(text)
    if not match:
        return None
    start, end = following_week(today)
    return _span("range", f"{format_date(start)} - {format_date(end)}", start, end, "Next week")


def _weekend(text: str, today: date) -> TimeFilter | None:
    if not WEEKEND_RE.search(text):
        return None
    saturday, sunday = upcoming_weekend(today)
    return _span("keyword", "weekend", saturday, sunday, "This weekend")


def _this_week(text: str, today: date) -> TimeFilter | None:
    if not THIS_WEEK_RE.search(text):
        return None
    end = today + timedelta(days=SUNDAY - today.weekday())
    return _span("range", f"{format_date(today)} - {format_date(end)}", today, end, "This week")


def _this_month(text: str, today: date) -> TimeFilter | None:
    if not THIS_MONTH_RE.search(text):
        return None
    last_day = calendar.monthrange(today.year, today.month)[1]
    end = today.replace(day=last_day)
    return _span("range", f"{format_date(today)} - {format_date(end)}", today, end, "This month")


def _month_number(token: str) -> int:
    return MONTHS[token[:3].lower()]


def _build_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_absolute_date(text: str, today: date) -> date | None:
    """First valid calendar date written as "Mar 5", "5th March, 2026" or "05/03/2026"."""
    for match in MONTH_DAY_RE.finditer(text):
        year = int(match.group(3)) if match.group(3) else today.year
        parsed = _build_date(year, _month_number(match.group(1)), int(match.group(2)))
        if parsed:
            return parsed
    for match in DAY_MONTH_RE.finditer(text):
        year = int(match.group(3)) if match.group(3) else today.year
        parsed = _build_date(year, _month_number(match.group(2)), int(match.group(1)))
        if parsed:
            return parsed
    for match in NUMERIC_RE.finditer(text):
        parsed = _build_date(int(match.group(3)), int(match.group(2)), int(match.group(1)))
        if parsed:
            return parsed
    return None


def _absolute(text: str, today: date) -> TimeFilter | None:
    parsed = parse_absolute_date(text, today)
    if parsed is None:
        return None
    return _single("date", format_date(parsed), parsed)


# "next weekend" must be tried before "weekend"
KEYWORD_RULES: tuple[Callable[[str, date], TimeFilter | None], ...] = (
    _today,
    _tomorrow,
    _next_week,
    _weekend,
    _this_week,
    _this_month,
)


def resolve_when(text: str, now: datetime | date | None = None) -> WhenResult:
    if now is None:
        now = datetime.now()
    today = now.date() if isinstance(now, datetime) else now

    for rule in KEYWORD_RULES:
        time_filter = rule(text, today)
        if time_filter is not None:
            return WhenResult(
                detected=True,
                confidence=KEYWORD_CONFIDENCE,
                time_filter=time_filter,
                reasoning=f"Time keyword resolved to {time_filter.display_text}",
            )

    time_filter = _absolute(text, today)
    if time_filter is not None:
        return WhenResult(
            detected=True,
            confidence=DATE_CONFIDENCE,
            time_filter=time_filter,
            reasoning=f"Explicit date {time_filter.value}",
        )
    return WhenResult(reasoning="No time constraint mentioned")


__all__ = [
    "format_date",
    "following_week",
    "parse_absolute_date",
    "resolve_when",
    "upcoming_weekend",
]
