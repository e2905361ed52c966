import asyncio
import json

import pytest
from backend.happenings import llm_tags
from backend.happenings.openai_async import OpenAIUnavailable
from backend.happenings.resolvers.tags import resolve_tags
from backend.happenings.settings import settings


def _chat_response(content: dict) -> dict:
    return {"choices": [{"message": {"content": json.dumps(content)}}]}


@pytest.fixture
def model_enabled(monkeypatch):
    monkeypatch.setattr(settings, "OPENAI_API_KEY", "test-key")
    monkeypatch.setattr(settings, "TAGS_LLM_ENABLED", True)


def test_high_priority_pattern_wins():
    result = resolve_tags("any edm party tonight?")
    assert result.stage == "high_priority"
    assert result.confidence >= 0.9
    assert result.primary == ["Music"]
    assert "Electronic/EDM" in result.interests
    # the general "party" pattern never runs once a high-priority match is confident
    assert "Nightlife & Parties" not in result.primary


def test_general_patterns_are_unioned():
    result = resolve_tags("jazz and comedy in bandra")
    assert result.stage == "pattern"
    assert result.confidence == pytest.approx(0.9)
    assert result.primary == ["Music", "Entertainment"]
    assert {"Jazz/Blues", "Stand-up Comedy"} <= set(result.interests)
    assert result.all_tags[0] == "Music"


def test_keyword_stage_matches_vocabulary_names():
    result = resolve_tags("magic acts downtown")
    assert result.stage == "keyword"
    assert result.confidence == pytest.approx(0.7)
    assert "Magic Shows" in result.interests
    assert "Entertainment" in result.primary


def test_no_signal_returns_empty_default():
    result = resolve_tags("anything going on tonight?")
    assert result.stage == "default"
    assert result.detected is False
    assert result.all_tags == []
    assert 0.3 <= result.confidence <= 0.5


def test_weak_pattern_does_not_reach_model(monkeypatch, model_enabled):
    async def fake_post_json(path, request_payload, timeout=None):  # noqa: ARG001
        raise AssertionError("model should not be called")

    monkeypatch.setattr(llm_tags, "post_json", fake_post_json)

    result = resolve_tags("chill with friends")
    assert result.stage == "pattern"
    assert result.confidence == pytest.approx(0.6)
    assert result.primary == ["Social & Networking"]


def test_model_fallback_filters_out_of_vocabulary(monkeypatch, model_enabled):
    calls = []

    async def fake_post_json(path, request_payload, timeout=None):  # noqa: ARG001
        calls.append(request_payload)
        return _chat_response(
            {
                "primary": ["Underwater Basket Weaving"],
                "secondary": ["museums"],
                "interests": ["Museum Visits", "Made Up Interest"],
                "reasoning": "cultural outing",
            }
        )

    monkeypatch.setattr(llm_tags, "post_json", fake_post_json)

    result = resolve_tags("something unusual for my cousin")
    assert len(calls) == 1
    assert calls[0]["response_format"] == {"type": "json_object"}
    assert calls[0]["temperature"] == 0
    assert "max_completion_tokens" in calls[0]
    assert result.stage == "model"
    assert result.confidence == pytest.approx(0.75)
    assert result.secondary == ["Museums"]
    assert result.interests == ["Museum Visits"]
    # parent filled in from the vocabulary, invented primary dropped
    assert result.primary == ["Arts & Culture"]


def test_model_answer_with_no_known_names_falls_back_to_default(monkeypatch, model_enabled):
    async def fake_post_json(path, request_payload, timeout=None):  # noqa: ARG001
        return _chat_response({"primary": ["Nonsense"], "secondary": [], "interests": []})

    monkeypatch.setattr(llm_tags, "post_json", fake_post_json)

    result = resolve_tags("something unusual for my cousin")
    assert result.stage == "default"
    assert result.all_tags == []


@pytest.mark.parametrize(
    "response",
    [
        {"choices": [{"finish_reason": "length"}]},
        {"choices": [{"message": None}]},
        {"choices": ["oops"]},
        ["not", "a", "dict"],
    ],
)
def test_malformed_model_response_falls_back_to_default(monkeypatch, model_enabled, response):
    async def fake_post_json(path, request_payload, timeout=None):  # noqa: ARG001
        return response

    monkeypatch.setattr(llm_tags, "post_json", fake_post_json)

    result = resolve_tags("something unusual for my cousin")
    assert result.stage == "default"
    assert result.all_tags == []
    assert llm_tags._failure_count == 1


def test_model_disabled_per_call(monkeypatch, model_enabled):
    async def fake_post_json(path, request_payload, timeout=None):  # noqa: ARG001
        raise AssertionError("model should not be called")

    monkeypatch.setattr(llm_tags, "post_json", fake_post_json)

    result = resolve_tags("something unusual for my cousin", use_model=False)
    assert result.stage == "default"


def test_model_output_in_code_fence_is_parsed(monkeypatch, model_enabled):
    async def fake_post_json(path, request_payload, timeout=None):  # noqa: ARG001
        content = 'Sure!\n```json\n{"primary": ["Tech & Innovation"], "secondary": ["Hackathons"]}\n```'
        return {"choices": [{"message": {"content": content}}]}

    monkeypatch.setattr(llm_tags, "post_json", fake_post_json)

    suggestion = asyncio.run(llm_tags.suggest_tags_async("weekend build sprint"))
    assert suggestion is not None
    assert suggestion.primary == ["Tech & Innovation"]
    assert suggestion.secondary == ["Hackathons"]


class TestModelCircuit:
    def test_failures_open_the_circuit(self, monkeypatch, model_enabled):
        calls = []

        async def failing_post_json(path, request_payload, timeout=None):  # noqa: ARG001
            calls.append(path)
            raise OpenAIUnavailable("boom")

        monkeypatch.setattr(llm_tags, "post_json", failing_post_json)

        for _ in range(llm_tags.MAX_FAILURES):
            result = resolve_tags("something unusual for my cousin")
            assert result.stage == "default"
        assert len(calls) == llm_tags.MAX_FAILURES

        with pytest.raises(llm_tags.TagsUnavailable, match="cooling down"):
            asyncio.run(llm_tags.suggest_tags_async("something unusual"))
        assert len(calls) == llm_tags.MAX_FAILURES

    def test_success_resets_failure_count(self, monkeypatch, model_enabled):
        async def ok_post_json(path, request_payload, timeout=None):  # noqa: ARG001
            return _chat_response({"primary": ["Music"]})

        monkeypatch.setattr(llm_tags, "post_json", ok_post_json)
        llm_tags._register_failure()
        llm_tags._register_failure()

        asyncio.run(llm_tags.suggest_tags_async("something unusual"))
        assert llm_tags._failure_count == 0

    def test_unconfigured_model_raises(self):
        with pytest.raises(llm_tags.TagsUnavailable):
            asyncio.run(llm_tags.suggest_tags_async("anything"))
