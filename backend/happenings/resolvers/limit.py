from __future__ import annotations

import re

from ..schemas import LimitResult
from ..settings import settings

NUMBER_WORDS = {
    "one": 1,
    "two": 2,
    "three": 3,
    "four": 4,
    "five": 5,
    "six": 6,
    "seven": 7,
    "eight": 8,
    "nine": 9,
    "ten": 10,
    "eleven": 11,
    "twelve": 12,
    "fifteen": 15,
    "twenty": 20,
}
_NUMBER = rf"(\d+|{'|'.join(NUMBER_WORDS)})"

EXPLICIT_PATTERNS = (
    re.compile(rf"\btop\s*{_NUMBER}\b", re.IGNORECASE),
    re.compile(rf"\bbest\s+{_NUMBER}\b", re.IGNORECASE),
    re.compile(
        rf"\b{_NUMBER}\s+(?:best|events?|options?|suggestions?|picks?|recommendations?|things|shows|gigs)\b",
        re.IGNORECASE,
    ),
    re.compile(rf"\bgive\s+(?:me\s+)?{_NUMBER}\b", re.IGNORECASE),
    re.compile(rf"\bshow\s+(?:me\s+)?{_NUMBER}\b", re.IGNORECASE),
)

_MONTH_BEFORE_RE = re.compile(
    r"\b(?:jan|feb|mar|apr|may|jun|jul|aug|sep|sept|oct|nov|dec)[a-z]*\s*$", re.IGNORECASE
)

# (pattern, count) in priority order
QUALITATIVE_PHRASES: tuple[tuple[re.Pattern[str], int], ...] = (
    (re.compile(r"\bjust\s+one\b|\bthe\s+best\b|\bsingle\b|\bone\s+event\b", re.IGNORECASE), 1),
    (re.compile(r"\ba\s+few\b|\bsome\b|\bcouple\b", re.IGNORECASE), 3),
    (re.compile(r"\bmany\b|\blots?\s+of\b|\bseveral\b|\ball\b(?!\s+over)", re.IGNORECASE), 10),
)


def _to_int(token: str) -> int:
    if token.isdigit():
        return int(token)
    return NUMBER_WORDS[token.lower()]


def _explicit_count(text: str) -> int | None:
    for pattern in EXPLICIT_PATTERNS:
        for match in pattern.finditer(text):
            # "march 20 events" names a date, not a count
            if _MONTH_BEFORE_RE.search(text[: match.start(1)]):
                continue
            return _to_int(match.group(1))
    return None


def resolve_limit(text: str, default_limit: int | None = None) -> LimitResult:
    explicit = _explicit_count(text)
    if explicit is not None:
        limit = settings.clamp_limit(explicit)
        reasoning = f"Asked for {explicit} results"
        if limit != explicit:
            reasoning += f", clamped to {limit}"
        return LimitResult(detected=True, confidence=0.95, limit=limit, reasoning=reasoning)

    for pattern, count in QUALITATIVE_PHRASES:
        match = pattern.search(text)
        if match:
            return LimitResult(
                detected=True,
                confidence=0.8,
                limit=settings.clamp_limit(count),
                reasoning=f'"{match.group(0)}" suggests {count} results',
            )

    fallback = default_limit if default_limit is not None else settings.DEFAULT_LIMIT
    return LimitResult(
        confidence=0.5,
        limit=settings.clamp_limit(fallback),
        reasoning="No count requested; using the default",
    )


__all__ = ["resolve_limit"]
