from __future__ import annotations

import json
import logging
import time
from typing import Any

import httpx

from .metrics import catalog_request_seconds, catalog_requests_total
from .schemas import Coordinates, SortMode
from .settings import settings

logger = logging.getLogger(__name__)


class CatalogUnavailable(RuntimeError):
    """Raised when the event catalog cannot be queried."""


def _headers() -> dict[str, str]:
    return {"Accept": "application/json", "User-Agent": settings.HTTP_USER_AGENT}


def _records(payload: Any) -> list[dict[str, Any]]:
    if isinstance(payload, list):
        rows = payload
    elif isinstance(payload, dict):
        rows = payload.get("events") or payload.get("data") or []
    else:
        rows = []
    return [row for row in rows if isinstance(row, dict)]


async def fetch_events(
    coordinates: Coordinates,
    radius_km: float,
    *,
    sort_by: SortMode = "distance",
    limit: int = 50,
    offset: int = 0,
    when: str | None = None,
) -> list[dict[str, Any]]:
    params: dict[str, Any] = {
        "location": json.dumps({"lat": coordinates.lat, "lng": coordinates.lng}),
        "radius": radius_km,
        "sortBy": sort_by,
        "limit": limit,
        "offset": offset,
    }
    if when:
        params["when"] = when

    base_url = settings.CATALOG_API_BASE.rstrip("/")
    started = time.perf_counter()
    try:
        async with httpx.AsyncClient(
            base_url=base_url, timeout=settings.CATALOG_TIMEOUT_SECONDS
        ) as client:
            response = await client.get(
                settings.CATALOG_EVENTS_PATH, params=params, headers=_headers()
            )
    except httpx.HTTPError as exc:
        catalog_requests_total.labels(outcome="error").inc()
        raise CatalogUnavailable(f"Request failed: {exc}") from exc
    finally:
        catalog_request_seconds.observe(time.perf_counter() - started)

    if response.status_code >= 400:
        catalog_requests_total.labels(outcome="error").inc()
        raise CatalogUnavailable(
            f"Catalog error {response.status_code}: {response.text[:200]}"
        )
    try:
        payload = response.json()
    except ValueError as exc:
        catalog_requests_total.labels(outcome="error").inc()
        raise CatalogUnavailable("Invalid JSON from catalog") from exc

    records = _records(payload)
    catalog_requests_total.labels(outcome="ok").inc()
    logger.info(
        "Catalog fetch center=(%.4f,%.4f) radius=%skm limit=%s sort=%s -> %s records latency=%.1fms",
        coordinates.lat,
        coordinates.lng,
        radius_km,
        limit,
        sort_by,
        len(records),
        (time.perf_counter() - started) * 1000,
    )
    return records


__all__ = ["CatalogUnavailable", "fetch_events"]
