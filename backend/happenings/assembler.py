from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from datetime import date, datetime
from typing import Any, TypeVar

from .metrics import query_parse_seconds
from .resolvers import (
    resolve_budget,
    resolve_limit,
    resolve_location_async,
    resolve_radius,
    resolve_tags_async,
    resolve_when,
)
from .resolvers.tags import default_tags
from .schemas import (
    BudgetResult,
    LimitResult,
    LocationResult,
    ParsedQuery,
    RadiusResult,
    SearchSpec,
    TagResult,
    WhenResult,
)
from .settings import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


def assemble_spec(
    location: LocationResult,
    tags: TagResult,
    radius: RadiusResult,
    when: WhenResult,
    budget: BudgetResult,
    limit: LimitResult,
    query: str | None = None,
) -> SearchSpec:
    return SearchSpec(
        coordinates=location.coordinates,
        location=location.location,
        tags=tuple(tags.all_tags),
        radius_km=radius.radius_km,
        time_filter=when.time_filter,
        budget=budget.as_filter(),
        limit=limit.limit,
        query=query.strip() if query else None,
    )


def _or_default(name: str, value: T | BaseException, default: T) -> T:
    if isinstance(value, BaseException):
        logger.error("%s resolver failed; using its default", name, exc_info=value)
        return default
    return value


def _safely(name: str, fn: Callable[..., T], default: T, *args: Any, **kwargs: Any) -> T:
    try:
        return fn(*args, **kwargs)
    except Exception as exc:  # noqa: BLE001
        logger.error("%s resolver failed; using its default", name, exc_info=exc)
        return default


async def parse_query_async(
    text: str,
    *,
    default_city: str | None = None,
    default_limit: int | None = None,
    context: str | None = None,
    now: datetime | date | None = None,
    use_model: bool = True,
) -> ParsedQuery:
    started = time.perf_counter()
    location_raw, tags_raw = await asyncio.gather(
        resolve_location_async(text, default_city),
        resolve_tags_async(text, context, use_model=use_model),
        return_exceptions=True,
    )
    location = _or_default("location", location_raw, LocationResult(reasoning="Location unavailable"))
    tags = _or_default("tags", tags_raw, default_tags())

    radius = _safely(
        "radius",
        resolve_radius,
        RadiusResult(reasoning="Radius unavailable; using the city default"),
        text,
        location.location,
        location.is_neighborhood,
    )
    when = _safely("when", resolve_when, WhenResult(reasoning="Time unavailable"), text, now)
    budget = _safely("budget", resolve_budget, BudgetResult(reasoning="Budget unavailable"), text)
    limit = _safely(
        "limit",
        resolve_limit,
        LimitResult(limit=settings.clamp_limit(default_limit or settings.DEFAULT_LIMIT)),
        text,
        default_limit,
    )

    spec = assemble_spec(location, tags, radius, when, budget, limit, query=text)
    elapsed = time.perf_counter() - started
    query_parse_seconds.observe(elapsed)
    logger.info(
        "Parsed query location=%s tags=%s radius=%skm when=%s budget=%s limit=%s latency=%.1fms",
        spec.location,
        list(spec.tags),
        spec.radius_km,
        spec.time_filter.value if spec.time_filter else None,
        spec.budget.tier,
        spec.limit,
        elapsed * 1000,
    )
    return ParsedQuery(
        spec=spec,
        location=location,
        tags=tags,
        radius=radius,
        when=when,
        budget=budget,
        limit=limit,
    )


def parse_query(
    text: str,
    *,
    default_city: str | None = None,
    default_limit: int | None = None,
    context: str | None = None,
    now: datetime | date | None = None,
    use_model: bool = True,
) -> ParsedQuery:
    return asyncio.run(
        parse_query_async(
            text,
            default_city=default_city,
            default_limit=default_limit,
            context=context,
            now=now,
            use_model=use_model,
        )
    )


__all__ = ["assemble_spec", "parse_query", "parse_query_async"]
