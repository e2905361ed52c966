from __future__ import annotations

import re

from ..schemas import LocationType, RadiusResult
from .places import is_neighborhood_name

NEIGHBORHOOD_RADIUS_KM = 5.0
CITY_RADIUS_KM = 20.0
REGION_RADIUS_KM = 25.0

EXPLICIT_PATTERNS = (
    re.compile(r"\bwithin\s*(\d+(?:\.\d+)?)\s*(?:km|kms|kilomet(?:er|re)s?)\b", re.IGNORECASE),
    re.compile(r"\b(\d+(?:\.\d+)?)\s*(?:km|kms)\s*(?:radius|around|near|from)\b", re.IGNORECASE),
)

# (pattern, radius, location type)
PROXIMITY_PHRASES: tuple[tuple[re.Pattern[str], float, LocationType], ...] = (
    (
        re.compile(r"\bnearby\b|\bnear\s+(?:me|here)\b|\bclose\s+by\b|\bwalking\s+distance\b", re.IGNORECASE),
        3.0,
        "neighborhood",
    ),
    (re.compile(r"\bin\s+the\s+area\b|\baround\s+here\b", re.IGNORECASE), 5.0, "neighborhood"),
    (
        re.compile(r"\banywhere\s+in\b|\ball\s+over\b|\bthroughout\b", re.IGNORECASE),
        REGION_RADIUS_KM,
        "region",
    ),
)


def _explicit_km(text: str) -> float | None:
    for pattern in EXPLICIT_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        value = float(match.group(1))
        if value > 0:
            return value
    return None


def _type_for(radius_km: float) -> LocationType:
    if radius_km <= NEIGHBORHOOD_RADIUS_KM:
        return "neighborhood"
    if radius_km <= REGION_RADIUS_KM:
        return "city"
    return "region"


def resolve_radius(
    text: str, location: str | None = None, is_neighborhood: bool = False
) -> RadiusResult:
    explicit = _explicit_km(text)
    if explicit is not None:
        return RadiusResult(
            detected=True,
            confidence=1.0,
            radius_km=explicit,
            location_type=_type_for(explicit),
            explicit=True,
            reasoning=f"Explicit distance of {explicit:g} km requested",
        )

    if is_neighborhood or is_neighborhood_name(location):
        return RadiusResult(
            detected=True,
            confidence=0.9,
            radius_km=NEIGHBORHOOD_RADIUS_KM,
            location_type="neighborhood",
            reasoning=f"{location or 'Location'} is a neighborhood; keeping the search tight",
        )

    for pattern, radius_km, location_type in PROXIMITY_PHRASES:
        match = pattern.search(text)
        if match:
            return RadiusResult(
                detected=True,
                confidence=0.8,
                radius_km=radius_km,
                location_type=location_type,
                reasoning=f'Proximity phrase "{match.group(0)}" suggests {radius_km:g} km',
            )

    if location:
        return RadiusResult(
            confidence=0.6,
            radius_km=CITY_RADIUS_KM,
            location_type="city",
            reasoning=f"City-wide default for {location}",
        )
    return RadiusResult(
        confidence=0.4,
        radius_km=CITY_RADIUS_KM,
        location_type="city",
        reasoning="No location given; using the city default",
    )


__all__ = ["resolve_radius"]
