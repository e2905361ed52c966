"""
Prometheus metrics for the query pipeline.

Tracks:
- HTTP request counts and latency for the API surface
- Which tag-cascade stage answered each query
- Geocoding and catalog call outcomes
"""

from __future__ import annotations

import re
import time
from collections.abc import Callable
from functools import lru_cache

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Histogram,
    Info,
    generate_latest,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from .logging_config import SERVICE_NAME, SERVICE_VERSION

app_info = Info("happenings", "Happenings query service information")
app_info.info({"version": SERVICE_VERSION, "service": SERVICE_NAME})

# ==============================================================================
# HTTP METRICS
# ==============================================================================

http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# ==============================================================================
# PIPELINE METRICS
# ==============================================================================

tag_stage_total = Counter(
    "happenings_tag_stage_total",
    "Tag resolutions by the cascade stage that produced the answer",
    ["stage"],
)

geocode_requests_total = Counter(
    "happenings_geocode_requests_total",
    "Geocoding provider calls",
    ["provider", "outcome"],
)

catalog_requests_total = Counter(
    "happenings_catalog_requests_total",
    "Event catalog fetches",
    ["outcome"],
)

catalog_request_seconds = Histogram(
    "happenings_catalog_request_seconds",
    "Event catalog fetch latency in seconds",
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

query_parse_seconds = Histogram(
    "happenings_query_parse_seconds",
    "Time spent turning free text into a search spec",
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0),
)


@lru_cache(maxsize=512)
def normalize_endpoint(path: str) -> str:
    """Collapse ids in paths so label cardinality stays bounded."""
    path = re.sub(r"/\d+", "/{id}", path)
    return re.sub(r"/[a-zA-Z0-9_-]{20,}", "/{id}", path)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware to track HTTP request metrics."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path == "/metrics":
            return await call_next(request)

        method = request.method
        endpoint = normalize_endpoint(request.url.path)
        start_time = time.perf_counter()
        status = "500"
        try:
            response = await call_next(request)
            status = str(response.status_code)
            return response
        finally:
            http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(
                time.perf_counter() - start_time
            )
            http_requests_total.labels(method=method, endpoint=endpoint, status=status).inc()


def get_metrics() -> Response:
    """Generate Prometheus metrics response."""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "PrometheusMiddleware",
    "catalog_request_seconds",
    "catalog_requests_total",
    "geocode_requests_total",
    "get_metrics",
    "normalize_endpoint",
    "query_parse_seconds",
    "tag_stage_total",
]
