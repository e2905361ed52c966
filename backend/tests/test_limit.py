import pytest
from backend.happenings.resolvers.limit import resolve_limit
from backend.happenings.settings import settings


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("top 5 jazz gigs", 5),
        ("best 2 brunches", 2),
        ("give me two options", 2),
        ("show me 4 comedy nights", 4),
        ("7 events in pune", 7),
        ("top ten picks", 10),
    ],
)
def test_explicit_counts(text, expected):
    result = resolve_limit(text)
    assert result.limit == expected
    assert result.detected is True


def test_explicit_count_is_clamped():
    result = resolve_limit("50 events this weekend")
    assert result.limit == settings.MAX_LIMIT
    assert "clamped" in result.reasoning


def test_dates_are_not_counts():
    assert resolve_limit("march 20 events").limit == 3


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("just one good gig", 1),
        ("a few comedy shows", 3),
        ("lots of stuff to do", 10),
        ("all the gigs tonight", 10),
    ],
)
def test_qualitative_counts(text, expected):
    assert resolve_limit(text).limit == expected


def test_all_over_is_a_place_phrase_not_a_count():
    assert resolve_limit("jazz all over mumbai").limit == 3


def test_explicit_number_beats_qualitative_phrase():
    assert resolve_limit("just one? no, give me 4").limit == 4


def test_default_limit():
    assert resolve_limit("jazz in bandra").limit == 3
    assert resolve_limit("jazz in bandra", default_limit=6).limit == 6
    assert resolve_limit("jazz in bandra", default_limit=99).limit == settings.MAX_LIMIT
