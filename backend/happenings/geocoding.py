from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any

import httpx

from .metrics import geocode_requests_total
from .schemas import Coordinates
from .settings import settings

logger = logging.getLogger(__name__)

GOOGLE_ACCURACY_CONFIDENCE = {
    "ROOFTOP": 0.95,
    "RANGE_INTERPOLATED": 0.85,
    "GEOMETRIC_CENTER": 0.8,
    "APPROXIMATE": 0.7,
}
DEFAULT_ACCURACY_CONFIDENCE = 0.7

NOMINATIM_TYPE_CONFIDENCE = {
    "city": 0.9,
    "administrative": 0.9,
    "town": 0.85,
    "suburb": 0.85,
    "neighbourhood": 0.85,
    "quarter": 0.85,
}
NOMINATIM_DEFAULT_CONFIDENCE = 0.5


class GeocodingUnavailable(RuntimeError):
    """Raised when no geocoding provider could answer."""


@dataclass(slots=True)
class GeocodeMatch:
    coordinates: Coordinates
    formatted_address: str
    accuracy: str
    confidence: float
    provider: str
    city: str | None = None
    state: str | None = None
    country: str | None = None


async def _get_json(
    url: str, params: dict[str, Any], headers: dict[str, str] | None = None
) -> Any:
    try:
        async with httpx.AsyncClient(timeout=settings.GEOCODE_TIMEOUT_SECONDS) as client:
            resp = await client.get(url, params=params, headers=headers)
            resp.raise_for_status()
    except httpx.HTTPError as exc:
        raise GeocodingUnavailable(f"Request failed: {exc}") from exc
    try:
        return resp.json()
    except ValueError as exc:
        raise GeocodingUnavailable("Invalid JSON from geocoder") from exc


def _google_component(components: list[dict[str, Any]], kind: str) -> str | None:
    for component in components:
        if kind in (component.get("types") or []):
            return component.get("long_name")
    return None


async def geocode_google(address: str) -> GeocodeMatch | None:
    params = {
        "address": f"{address}, {settings.GEOCODE_COUNTRY}",
        "key": settings.GOOGLE_MAPS_API_KEY,
    }
    data = await _get_json(settings.GOOGLE_GEOCODE_URL, params)
    if not isinstance(data, dict):
        raise GeocodingUnavailable("Unexpected payload from Google geocoder")
    status = data.get("status")
    if status == "ZERO_RESULTS":
        return None
    if status != "OK":
        raise GeocodingUnavailable(
            f"Google geocoder status {status}: {data.get('error_message') or 'no detail'}"
        )
    results = data.get("results") or []
    if not results:
        return None
    try:
        best = results[0]
        geometry = best.get("geometry") or {}
        location = geometry.get("location") or {}
        accuracy = str(geometry.get("location_type") or "APPROXIMATE")
        components = best.get("address_components") or []
        return GeocodeMatch(
            coordinates=Coordinates(lat=float(location["lat"]), lng=float(location["lng"])),
            formatted_address=best.get("formatted_address") or address,
            accuracy=accuracy,
            confidence=GOOGLE_ACCURACY_CONFIDENCE.get(accuracy, DEFAULT_ACCURACY_CONFIDENCE),
            provider="google",
            city=_google_component(components, "locality"),
            state=_google_component(components, "administrative_area_level_1"),
            country=_google_component(components, "country"),
        )
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise GeocodingUnavailable(f"Malformed Google geocoder result: {exc!r}") from exc


async def geocode_nominatim(address: str) -> GeocodeMatch | None:
    params = {
        "q": f"{address}, {settings.GEOCODE_COUNTRY}",
        "format": "json",
        "addressdetails": 1,
        "limit": 1,
    }
    headers = {"User-Agent": settings.HTTP_USER_AGENT}
    data = await _get_json(settings.NOMINATIM_URL, params, headers=headers)
    if not isinstance(data, list) or not data:
        return None
    try:
        best = data[0]
        place_type = str(best.get("addresstype") or best.get("type") or "")
        details = best.get("address") or {}
        return GeocodeMatch(
            coordinates=Coordinates(lat=float(best["lat"]), lng=float(best["lon"])),
            formatted_address=best.get("display_name") or address,
            accuracy=place_type or "unknown",
            confidence=NOMINATIM_TYPE_CONFIDENCE.get(place_type, NOMINATIM_DEFAULT_CONFIDENCE),
            provider="nominatim",
            city=details.get("city") or details.get("town") or details.get("village"),
            state=details.get("state"),
            country=details.get("country"),
        )
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise GeocodingUnavailable(f"Malformed Nominatim result: {exc!r}") from exc


async def geocode(address: str) -> GeocodeMatch | None:
    """
    Resolve a free-form place name to coordinates.

    Google is tried first when an API key is configured; a transport failure there
    falls back to Nominatim. Returns ``None`` when the providers answer but find
    nothing, raises ``GeocodingUnavailable`` when none of them could be reached.
    """
    address = address.strip()
    if not address:
        return None

    started = time.perf_counter()
    if settings.GOOGLE_MAPS_API_KEY:
        try:
            match = await geocode_google(address)
        except GeocodingUnavailable as exc:
            geocode_requests_total.labels(provider="google", outcome="error").inc()
            if not settings.NOMINATIM_ENABLED:
                raise
            logger.warning("Google geocode failed for %r, trying Nominatim: %s", address, exc)
        else:
            geocode_requests_total.labels(
                provider="google", outcome="hit" if match else "miss"
            ).inc()
            _log_latency("google", address, match, started)
            return match

    if not settings.NOMINATIM_ENABLED:
        raise GeocodingUnavailable("No geocoding provider configured")
    try:
        match = await geocode_nominatim(address)
    except GeocodingUnavailable:
        geocode_requests_total.labels(provider="nominatim", outcome="error").inc()
        raise
    geocode_requests_total.labels(provider="nominatim", outcome="hit" if match else "miss").inc()
    _log_latency("nominatim", address, match, started)
    return match


def _log_latency(provider: str, address: str, match: GeocodeMatch | None, started: float) -> None:
    elapsed = (time.perf_counter() - started) * 1000
    if match is None:
        logger.info("Geocode %s miss address=%r latency=%.1fms", provider, address, elapsed)
        return
    logger.info(
        "Geocode %s address=%r -> (%.4f,%.4f) accuracy=%s latency=%.1fms",
        provider,
        address,
        match.coordinates.lat,
        match.coordinates.lng,
        match.accuracy,
        elapsed,
    )


__all__ = ["GeocodeMatch", "GeocodingUnavailable", "geocode", "geocode_google", "geocode_nominatim"]
