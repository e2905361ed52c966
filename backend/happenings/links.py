"""
Tracked outbound links.

Every link carries a compact UTM payload: a JSON object, url-safe base64 encoded
without padding, in the ``u`` query parameter. Links are deterministic and built
without any network call.
"""

from __future__ import annotations

import base64
import json
import re
from typing import Any
from urllib.parse import parse_qs, quote, unquote, urlsplit

from .settings import settings

PLATFORM_MEDIUMS = {
    "reddit": "social",
    "twitter": "social",
    "instagram": "social",
    "linkedin": "social",
    "facebook": "social",
    "telegram": "messaging",
    "whatsapp": "messaging",
    "email": "email",
}
DEFAULT_MEDIUM = "referral"

_EVENT_ID_RE = re.compile(r"/event/([^/]+)$")


def _b64(value: str) -> str:
    return base64.urlsafe_b64encode(value.encode("utf-8")).decode("ascii").rstrip("=")


def _unb64(value: str) -> str:
    padded = value + "=" * (-len(value) % 4)
    return base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8")


def _base_url() -> str:
    return settings.LINK_BASE_URL.rstrip("/")


def slugify(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.strip().lower()).strip("-")


def build_utm(
    source: str | None = None,
    campaign: str | None = None,
    content: str | None = None,
    post_id: str | None = None,
) -> dict[str, str]:
    platform = (source or settings.UTM_DEFAULT_SOURCE).strip().lower()
    utm = {
        "utm_source": platform,
        "utm_medium": PLATFORM_MEDIUMS.get(platform, DEFAULT_MEDIUM),
        "utm_campaign": campaign or settings.UTM_DEFAULT_CAMPAIGN,
    }
    if content:
        utm["utm_content"] = content
    if post_id:
        utm["ref"] = _b64(post_id)
    return utm


def encode_tracking(utm: dict[str, str]) -> str:
    return _b64(json.dumps(utm, separators=(",", ":")))


def decode_tracking(url: str) -> dict[str, Any] | None:
    """Recover the UTM payload from a tracked link, or ``None`` if it carries none."""
    values = parse_qs(urlsplit(url).query).get("u")
    if not values:
        return None
    try:
        payload = json.loads(_unb64(values[0]))
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    ref = payload.get("ref")
    if isinstance(ref, str):
        try:
            payload["ref"] = _unb64(ref)
        except ValueError:
            pass
    return payload


def event_page_url(event_id: str) -> str:
    return f"{_base_url()}/event/{quote(event_id, safe='')}"


def city_page_url(city: str) -> str:
    return f"{_base_url()}/city/{slugify(city)}"


def event_url(
    event_id: str,
    *,
    source: str | None = None,
    campaign: str | None = None,
    content: str | None = None,
    post_id: str | None = None,
) -> str:
    utm = build_utm(source, campaign, content, post_id)
    return f"{event_page_url(event_id)}?u={encode_tracking(utm)}"


def city_url(
    city: str,
    *,
    source: str | None = None,
    campaign: str | None = None,
    post_id: str | None = None,
) -> str:
    utm = build_utm(source, campaign, None, post_id)
    return f"{city_page_url(city)}?u={encode_tracking(utm)}"


def is_tracked_url(url: str) -> bool:
    return url.startswith(_base_url() + "/")


def extract_event_id(url: str) -> str | None:
    if not is_tracked_url(url):
        return None
    match = _EVENT_ID_RE.search(urlsplit(url).path)
    return unquote(match.group(1)) if match else None


__all__ = [
    "PLATFORM_MEDIUMS",
    "build_utm",
    "city_page_url",
    "city_url",
    "decode_tracking",
    "encode_tracking",
    "event_page_url",
    "event_url",
    "extract_event_id",
    "is_tracked_url",
    "slugify",
]
