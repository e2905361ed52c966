from __future__ import annotations

from typing import Any

import httpx

from .settings import settings


class OpenAIUnavailable(RuntimeError):
    pass


def _headers() -> dict[str, str]:
    if not settings.OPENAI_API_KEY:
        raise OpenAIUnavailable("OPENAI_API_KEY not configured")
    return {
        "Authorization": f"Bearer {settings.OPENAI_API_KEY}",
        "Content-Type": "application/json",
    }


def _timeout(timeout: float | None) -> httpx.Timeout:
    return httpx.Timeout(
        timeout or settings.OPENAI_TIMEOUT_SECONDS,
        connect=settings.OPENAI_CONNECT_TIMEOUT_SECONDS,
    )


async def post_json(
    path: str, payload: dict[str, Any], *, timeout: float | None = None
) -> dict[str, Any]:
    # one client per call: the sync wrappers run each query on a fresh event loop
    headers = _headers()
    base_url = settings.OPENAI_API_BASE.rstrip("/") or "https://api.openai.com/v1"
    try:
        async with httpx.AsyncClient(base_url=base_url, timeout=_timeout(timeout)) as client:
            response = await client.post(path, json=payload, headers=headers)
    except httpx.HTTPError as exc:
        raise OpenAIUnavailable(f"Request failed: {exc}") from exc
    if response.status_code >= 400:
        raise OpenAIUnavailable(f"OpenAI error {response.status_code}: {response.text[:200]}")
    try:
        return response.json()
    except ValueError as exc:
        raise OpenAIUnavailable("Invalid JSON from OpenAI") from exc
