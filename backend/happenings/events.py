from __future__ import annotations

import asyncio
import logging
import math
import re
from collections.abc import Iterable, Sequence
from typing import Any

from . import catalog, links
from .catalog import CatalogUnavailable
from .resolvers.places import CITY_COORDINATES, quick_coordinates
from .schemas import (
    CatalogEvent,
    Coordinates,
    EventSearchResult,
    RankedEvent,
    SearchParams,
    SearchSpec,
    SortMode,
)
from .settings import settings

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0
DEFAULT_FALLBACK_CITY = "bangalore"
NAME_WEIGHT = 3
TAG_WEIGHT = 2
DESCRIPTION_WEIGHT = 1
MIN_TOKEN_LENGTH = 3
# shorter event labels only match requested tags in the forward direction
MIN_REVERSE_TAG_LENGTH = 4


# ---------------------------------------------------------------------------
# Record mapping
# ---------------------------------------------------------------------------


def _first(record: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = record.get(key)
        if value not in (None, "", [], {}):
            return value
    return None


def _label(value: Any) -> str | None:
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, dict):
        name = value.get("name")
        return name.strip() if isinstance(name, str) and name.strip() else None
    return None


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _tags(record: dict[str, Any]) -> list[str]:
    raw = record.get("tags")
    if not isinstance(raw, list):
        return []
    return [label for label in (_label(item) for item in raw) if label]


def _coordinates(record: dict[str, Any]) -> Coordinates | None:
    location = record.get("location")
    if not isinstance(location, dict):
        address = record.get("address")
        location = address if isinstance(address, dict) else {}
    try:
        pair = location.get("coordinates")
        if isinstance(pair, (list, tuple)) and len(pair) == 2:
            # GeoJSON order
            return Coordinates(lat=float(pair[1]), lng=float(pair[0]))
        if location.get("lat") is not None and location.get("lng") is not None:
            return Coordinates(lat=float(location["lat"]), lng=float(location["lng"]))
    except (TypeError, ValueError):
        return None
    return None


def _price(record: dict[str, Any]) -> tuple[float | None, str | None]:
    raw = record.get("price")
    currency = record.get("currency")
    if isinstance(raw, dict):
        currency = raw.get("currency") or currency
        raw = raw.get("amount", raw.get("min"))
    if raw is None:
        return (0.0 if record.get("isFree") is True else None), currency
    try:
        return float(raw), currency
    except (TypeError, ValueError):
        return None, currency


def to_catalog_event(record: dict[str, Any], fallback_city: str | None = None) -> CatalogEvent | None:
    """Map one raw catalog record onto ``CatalogEvent``; records without an id are skipped."""
    event_id = _first(record, "_id", "id")
    if event_id is None:
        logger.debug("Skipping catalog record without id: %s", sorted(record))
        return None
    address = record.get("address")
    address_info = address if isinstance(address, dict) else {}
    tags = _tags(record)
    price, currency = _price(record)
    return CatalogEvent(
        id=str(event_id),
        name=_text(_first(record, "title", "eventName", "name")) or "Unnamed Event",
        description=_text(record.get("description")) or "",
        start_at=_text(_first(record, "startAt", "startDate", "date")),
        end_at=_text(_first(record, "endAt", "endDate")),
        venue=_label(address_info.get("name")) or _label(record.get("venue")) or "Venue TBA",
        address=_text(address_info.get("formattedAddress")) or (_text(address) if isinstance(address, str) else None),
        city=_text(address_info.get("city")) or _text(record.get("city")) or fallback_city or "Unknown",
        coordinates=_coordinates(record),
        category=_label(_first(record, "primaryCategory", "category")) or (tags[0] if tags else "General"),
        tags=tags,
        price=price,
        currency=_text(currency),
        source_url=_text(_first(record, "url", "eventUrl", "sourceUrl")),
        image_url=_text(_first(record, "coverImage", "imageUrl")),
    )


def _group_indian(amount: int) -> str:
    digits = str(amount)
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups: list[str] = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join([*groups, tail])


def format_price(price: float | None, currency: str | None = None) -> str:
    if price is None:
        return "Price TBA"
    if price <= 0:
        return "Free"
    amount = int(round(price))
    if (currency or "").upper() == "USD":
        return f"${amount:,}"
    return f"₹{_group_indian(amount)}"


def haversine_km(origin: Coordinates, target: Coordinates) -> float:
    lat1, lat2 = math.radians(origin.lat), math.radians(target.lat)
    d_lat = lat2 - lat1
    d_lng = math.radians(target.lng - origin.lng)
    a = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lng / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))


def _distance(record: dict[str, Any], event: CatalogEvent, center: Coordinates) -> float | None:
    reported = _first(record, "distanceKm", "distance")
    if reported is not None:
        try:
            return round(float(reported), 2)
        except (TypeError, ValueError):
            pass
    if event.coordinates is None:
        return None
    return round(haversine_km(center, event.coordinates), 2)


def to_ranked_event(
    record: dict[str, Any],
    event: CatalogEvent,
    center: Coordinates,
    *,
    source: str | None = None,
    campaign: str | None = None,
    post_id: str | None = None,
) -> RankedEvent:
    return RankedEvent(
        **event.model_dump(),
        distance_km=_distance(record, event, center),
        tracked_url=links.event_url(
            event.id, source=source, campaign=campaign, content=event.category, post_id=post_id
        ),
        price_display=format_price(event.price, event.currency),
    )


# ---------------------------------------------------------------------------
# Filtering and ranking
# ---------------------------------------------------------------------------


def matches_tags(event: CatalogEvent, tags: Iterable[str]) -> bool:
    wanted = [tag.strip().lower() for tag in tags if tag.strip()]
    if not wanted:
        return True
    labels = [label.strip().lower() for label in [*event.tags, event.category] if label.strip()]
    for want in wanted:
        for label in labels:
            if want in label:
                return True
            if len(label) >= MIN_REVERSE_TAG_LENGTH and label in want:
                return True
    return False


def within_budget(event: CatalogEvent, max_price: int | None) -> bool:
    if max_price is None or event.price is None:
        return True
    return event.price <= max_price


def query_tokens(query: str) -> list[str]:
    return [token for token in re.findall(r"\w+", query.lower()) if len(token) >= MIN_TOKEN_LENGTH]


def score_name(event: CatalogEvent, token: str) -> int:
    return NAME_WEIGHT if token in event.name.lower() else 0


def score_tags(event: CatalogEvent, token: str) -> int:
    return TAG_WEIGHT if any(token in tag.lower() for tag in event.tags) else 0


def score_description(event: CatalogEvent, token: str) -> int:
    return DESCRIPTION_WEIGHT if token in event.description.lower() else 0


def relevance_score(event: CatalogEvent, tokens: Iterable[str]) -> int:
    total = 0
    for token in tokens:
        total += score_name(event, token)
        total += score_tags(event, token)
        total += score_description(event, token)
    return total


def rank_by_relevance(events: Sequence[RankedEvent], query: str) -> list[RankedEvent]:
    """Highest relevance first; events with equal scores keep their catalog order."""
    tokens = query_tokens(query)
    if not tokens:
        return list(events)
    scored = [event.model_copy(update={"relevance": relevance_score(event, tokens)}) for event in events]
    return sorted(scored, key=lambda event: event.relevance, reverse=True)


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


def resolve_center(
    spec: SearchSpec, explicit: Coordinates | None = None
) -> tuple[Coordinates, str | None]:
    """Search center plus the fallback city name when one had to be used."""
    if explicit is not None:
        return explicit, None
    if spec.coordinates is not None:
        return spec.coordinates, None
    known = quick_coordinates(spec.location)
    if known is not None:
        return known, None
    fallback = settings.FALLBACK_CITY
    center = quick_coordinates(fallback)
    if center is None:
        logger.warning(
            "Fallback city %r is not in the place table; using %s", fallback, DEFAULT_FALLBACK_CITY
        )
        fallback = DEFAULT_FALLBACK_CITY
        center = Coordinates(lat=CITY_COORDINATES[fallback][0], lng=CITY_COORDINATES[fallback][1])
    logger.warning("No coordinates for location %r; falling back to %s", spec.location, fallback)
    return center, fallback


async def search_events_async(
    spec: SearchSpec,
    *,
    coordinates: Coordinates | None = None,
    sort_by: SortMode = "distance",
    offset: int = 0,
    source: str | None = None,
    campaign: str | None = None,
    post_id: str | None = None,
) -> EventSearchResult:
    center, fallback_city = resolve_center(spec, coordinates)
    tags = [tag for tag in spec.tags if tag.strip()]
    price_ceiling = spec.budget.max_price
    fetch_limit = settings.candidate_limit(spec.limit, bool(tags) or price_ceiling is not None)
    params = SearchParams(
        coordinates=center,
        radius_km=spec.radius_km,
        tags_used=tags,
        fetch_limit=fetch_limit,
        sort_by=sort_by,
        fallback_city=fallback_city,
    )

    try:
        records = await catalog.fetch_events(
            center,
            spec.radius_km,
            sort_by=sort_by,
            limit=fetch_limit,
            offset=offset,
            when=spec.time_filter.value if spec.time_filter else None,
        )
    except CatalogUnavailable as exc:
        logger.warning("Event search failed: %s", exc)
        return EventSearchResult(success=False, search_params=params, error=str(exc))

    city = spec.location or fallback_city
    candidates: list[RankedEvent] = []
    for record in records:
        event = to_catalog_event(record, city)
        if event is None:
            continue
        if tags and not matches_tags(event, tags):
            continue
        if not within_budget(event, price_ceiling):
            continue
        candidates.append(
            to_ranked_event(
                record, event, center, source=source, campaign=campaign, post_id=post_id
            )
        )

    if spec.query:
        candidates = rank_by_relevance(candidates, spec.query)
    logger.info(
        "Event search fetched=%s kept=%s returned=%s tags=%s",
        len(records),
        len(candidates),
        min(len(candidates), spec.limit),
        tags,
    )
    return EventSearchResult(
        success=True,
        events=candidates[: spec.limit],
        total_found=len(candidates),
        search_params=params,
    )


def search_events(spec: SearchSpec, **kwargs: Any) -> EventSearchResult:
    return asyncio.run(search_events_async(spec, **kwargs))


__all__ = [
    "format_price",
    "haversine_km",
    "matches_tags",
    "rank_by_relevance",
    "relevance_score",
    "resolve_center",
    "search_events",
    "search_events_async",
    "to_catalog_event",
    "within_budget",
]
