from __future__ import annotations

import json
import logging
import re
import time
from hashlib import sha256
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from . import taxonomy
from .openai_async import OpenAIUnavailable, post_json
from .settings import settings

logger = logging.getLogger(__name__)

MAX_FAILURES = 3
COOLDOWN_SECONDS = 300.0  # 5 minutes

MAX_PRIMARY = 3
MAX_SECONDARY = 4
MAX_INTERESTS = 5

_failure_count = 0
_disabled_until = 0.0

_CODE_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)


class TagsUnavailable(RuntimeError):
    """Raised when the model-based tag fallback cannot be used."""


class TagSuggestion(BaseModel):
    primary: list[str] = Field(default_factory=list)
    secondary: list[str] = Field(default_factory=list)
    interests: list[str] = Field(default_factory=list)
    reasoning: str = ""

    def is_empty(self) -> bool:
        return not (self.primary or self.secondary or self.interests)


def _now() -> float:
    return time.monotonic()


def _query_fingerprint(query: str) -> str:
    return sha256(query.encode("utf-8")).hexdigest()[:10]


def _circuit_open() -> bool:
    return _failure_count >= MAX_FAILURES and _disabled_until > _now()


def _register_failure(exc: Exception | None = None) -> None:
    global _failure_count, _disabled_until
    _failure_count += 1
    if _failure_count >= MAX_FAILURES:
        _disabled_until = _now() + COOLDOWN_SECONDS
    if exc:
        logger.warning("LLM tag failure (%s/%s)", _failure_count, MAX_FAILURES, exc_info=exc)


def _register_success() -> None:
    global _failure_count, _disabled_until
    _failure_count = 0
    _disabled_until = 0.0


SYSTEM_PROMPT = (
    "You classify event search queries for an event discovery service in India. "
    "Return structured JSON only. No prose. Use names from the taxonomy verbatim."
)


def _taxonomy_guide() -> str:
    return (
        "Taxonomy (primary category, its secondary categories and interests):\n"
        f"{taxonomy.describe()}\n\n"
        f"Pick at most {MAX_PRIMARY} primary, {MAX_SECONDARY} secondary and "
        f"{MAX_INTERESTS} interest names that fit the query. "
        'Respond as {"primary": [], "secondary": [], "interests": [], "reasoning": ""}.'
    )


_NEW_STYLE_MODEL_PREFIXES = (
    "gpt-4o",
    "gpt-4.1",
    "gpt-5",
    "o1",
    "o3",
    "o4",
    "o-",
)


def _token_param(model: str | None) -> str:
    name = (model or "").lower()
    for prefix in _NEW_STYLE_MODEL_PREFIXES:
        if name.startswith(prefix):
            return "max_completion_tokens"
    return "max_tokens"


def _json_object(raw: str) -> dict[str, Any]:
    """Pull the first JSON object out of model output that may carry prose or code fences."""
    text = raw.strip()
    fence_match = _CODE_FENCE_RE.search(text)
    if fence_match:
        text = fence_match.group(1).strip()
    decoder = json.JSONDecoder()
    for index, char in enumerate(text):
        if char != "{":
            continue
        try:
            obj, _ = decoder.raw_decode(text[index:])
        except json.JSONDecodeError:
            continue
        if isinstance(obj, dict):
            return obj
    raise ValueError("No JSON object found in model output")


def _message_content(response: Any) -> str | None:
    if not isinstance(response, dict):
        return None
    choices = response.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return None
    message = choices[0].get("message")
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    return content if isinstance(content, str) else None


def _keep_known(names: list[str], level: str, limit: int) -> list[str]:
    kept: list[str] = []
    for raw in names:
        match = taxonomy.lookup(str(raw))
        if match is None or match.level != level:
            logger.debug("Dropping out-of-vocabulary %s tag %r", level, raw)
            continue
        if match.name not in kept:
            kept.append(match.name)
        if len(kept) >= limit:
            break
    return kept


def restrict_to_taxonomy(suggestion: TagSuggestion) -> TagSuggestion:
    """Keep only names present in the vocabulary at the level they were offered for."""
    return suggestion.model_copy(
        update={
            "primary": _keep_known(suggestion.primary, "primary", MAX_PRIMARY),
            "secondary": _keep_known(suggestion.secondary, "secondary", MAX_SECONDARY),
            "interests": _keep_known(suggestion.interests, "interest", MAX_INTERESTS),
        }
    )


async def suggest_tags_async(query: str, context: str | None = None) -> TagSuggestion | None:
    """
    Ask the configured chat model to classify ``query`` against the taxonomy.

    Returns ``None`` when every suggested name falls outside the vocabulary and
    raises ``TagsUnavailable`` when the model cannot be reached or answers garbage.
    """
    normalized = query.strip()
    if not normalized:
        raise TagsUnavailable("Empty query")
    if not settings.tags_llm_available:
        raise TagsUnavailable("Tag model not configured")
    if _circuit_open():
        raise TagsUnavailable("Tag model cooling down")

    digest = _query_fingerprint(normalized)
    user_payload: dict[str, Any] = {"query": normalized}
    if context:
        user_payload["context"] = context.strip()
    payload: dict[str, Any] = {
        "model": settings.TAGS_LLM_MODEL,
        "temperature": 0,
        "response_format": {"type": "json_object"},
        "messages": [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": _taxonomy_guide()},
            {"role": "user", "content": json.dumps(user_payload, ensure_ascii=False)},
        ],
    }
    payload[_token_param(settings.TAGS_LLM_MODEL)] = 300

    try:
        response = await post_json(
            "/chat/completions",
            payload,
            timeout=settings.OPENAI_TIMEOUT_SECONDS,
        )
    except OpenAIUnavailable as exc:
        _register_failure(exc)
        raise TagsUnavailable("LLM call failed") from exc

    content = _message_content(response)
    if not content:
        _register_failure()
        raise TagsUnavailable("Empty LLM response")

    try:
        suggestion = TagSuggestion.model_validate(_json_object(content))
    except (ValueError, ValidationError) as exc:
        logger.warning("Tag suggestion invalid (%s): %s", digest, content)
        _register_failure(exc)
        raise TagsUnavailable("Invalid tag suggestion") from exc

    _register_success()
    filtered = restrict_to_taxonomy(suggestion)
    if filtered.is_empty():
        logger.info("Tag suggestion (%s) had no vocabulary names", digest)
        return None
    logger.debug("Tags suggested %s -> %s", digest, filtered.model_dump())
    return filtered


__all__ = ["TagSuggestion", "TagsUnavailable", "restrict_to_taxonomy", "suggest_tags_async"]
