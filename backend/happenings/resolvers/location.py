from __future__ import annotations

import asyncio
import logging
import re
from typing import Literal

from .. import geocoding
from ..geocoding import GeocodingUnavailable
from ..schemas import LocationResult
from ..settings import settings
from .places import (
    display_name,
    is_known_place,
    is_neighborhood_name,
    quick_coordinates,
    scan_known_place,
)

logger = logging.getLogger(__name__)

STATIC_CONFIDENCE = 0.95
MAX_PLACE_WORDS = 4

_PLACE = r"([a-zA-Z][a-zA-Z\s]*?)"
_STOP = (
    r"(?=\s+(?:for|this|next|today|tonight|tomorrow|on|at|with|under|below|within|and|or)\b"
    r"|\s*[,.!?;:]|\s*$)"
)

# (pattern, capture must be a known place)
LOCATION_PATTERNS: tuple[tuple[re.Pattern[str], bool], ...] = (
    (re.compile(rf"\bin\s+{_PLACE}{_STOP}", re.IGNORECASE), False),
    (re.compile(rf"\bnear\s+{_PLACE}{_STOP}", re.IGNORECASE), False),
    (re.compile(rf"\baround\s+{_PLACE}{_STOP}", re.IGNORECASE), False),
    (
        re.compile(r"^\s*([a-zA-Z][a-zA-Z\s]*?)\s+(?:events?|concerts?|shows?|gigs?)\b", re.IGNORECASE),
        True,
    ),
)

_LEADING_FILLERS = {"the", "a", "an", "my", "our", "your"}

_GENERIC_WORDS = {
    "me",
    "us",
    "here",
    "there",
    "area",
    "town",
    "city",
    "neighborhood",
    "neighbourhood",
    "vicinity",
    "general",
    "particular",
    "person",
    "mood",
    "time",
    "morning",
    "afternoon",
    "evening",
    "night",
    "weekend",
    "week",
    "month",
    "year",
    "january",
    "february",
    "march",
    "april",
    "may",
    "june",
    "july",
    "august",
    "september",
    "october",
    "november",
    "december",
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
    "advance",
    "budget",
    "groups",
    "group",
}


def _clean_candidate(raw: str) -> str | None:
    words = raw.split()
    while words and words[0].lower() in _LEADING_FILLERS:
        words.pop(0)
    if not words or len(words) > MAX_PLACE_WORDS:
        return None
    if all(word.lower() in _GENERIC_WORDS for word in words):
        return None
    return " ".join(words)


def extract_location_phrase(text: str) -> tuple[str, Literal["pattern", "scan"]] | None:
    """Pull a place phrase out of ``text`` without resolving it."""
    for pattern, known_only in LOCATION_PATTERNS:
        for match in pattern.finditer(text):
            candidate = _clean_candidate(match.group(1))
            if not candidate:
                continue
            if is_known_place(candidate):
                return candidate, "pattern"
            if known_only:
                continue
            # "the heart of koramangala" -> "koramangala"
            return scan_known_place(candidate) or candidate, "pattern"
    scanned = scan_known_place(text)
    if scanned:
        return scanned, "scan"
    return None


async def _resolve_candidate(
    candidate: str, source: Literal["pattern", "scan", "default"]
) -> LocationResult:
    name = display_name(candidate)
    neighborhood = is_neighborhood_name(candidate)

    coordinates = quick_coordinates(candidate)
    if coordinates is not None:
        return LocationResult(
            detected=True,
            confidence=STATIC_CONFIDENCE,
            coordinates=coordinates,
            location=name,
            is_neighborhood=neighborhood,
            source=source,
            provider="static",
            reasoning=f'Matched "{name}" in the static place table',
        )

    try:
        match = await geocoding.geocode(candidate)
    except GeocodingUnavailable as exc:
        logger.warning("Geocoding unavailable for %r: %s", candidate, exc)
        return LocationResult(
            location=name,
            is_neighborhood=neighborhood,
            source=source,
            reasoning="Geocoding provider unavailable",
            error=str(exc),
        )
    if match is None:
        return LocationResult(
            location=name,
            is_neighborhood=neighborhood,
            source=source,
            reasoning="Geocoder returned no match",
            error=f'Could not find coordinates for "{name}"',
        )
    return LocationResult(
        detected=True,
        confidence=match.confidence,
        coordinates=match.coordinates,
        location=name,
        formatted_address=match.formatted_address,
        is_neighborhood=neighborhood,
        source=source,
        provider=match.provider,  # type: ignore[arg-type]
        reasoning=f'Geocoded "{name}" via {match.provider} ({match.accuracy})',
    )


async def resolve_location_async(text: str, default_city: str | None = None) -> LocationResult:
    found = extract_location_phrase(text)
    if found is not None:
        candidate, source = found
        return await _resolve_candidate(candidate, source)

    fallback = default_city or settings.DEFAULT_CITY
    if fallback:
        return await _resolve_candidate(fallback, "default")
    return LocationResult(reasoning="No location mentioned")


def resolve_location(text: str, default_city: str | None = None) -> LocationResult:
    return asyncio.run(resolve_location_async(text, default_city))


__all__ = ["extract_location_phrase", "resolve_location", "resolve_location_async"]
