"""Single-attribute extractors over free text."""

from .budget import resolve_budget, wants_free_events
from .limit import resolve_limit
from .location import resolve_location, resolve_location_async
from .radius import resolve_radius
from .tags import resolve_tags, resolve_tags_async
from .when import resolve_when

__all__ = [
    "resolve_budget",
    "resolve_limit",
    "resolve_location",
    "resolve_location_async",
    "resolve_radius",
    "resolve_tags",
    "resolve_tags_async",
    "resolve_when",
    "wants_free_events",
]
