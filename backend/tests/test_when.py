from datetime import date, datetime

import pytest
from backend.happenings.resolvers.when import (
    following_week,
    parse_absolute_date,
    resolve_when,
    upcoming_weekend,
)

WEDNESDAY = date(2025, 1, 15)
SUNDAY = date(2025, 1, 19)
SATURDAY = date(2025, 1, 18)


def test_weekend_from_midweek():
    result = resolve_when("anything fun this weekend?", WEDNESDAY)
    assert result.detected is True
    assert result.time_filter.mode == "keyword"
    assert result.time_filter.value == "weekend"
    assert result.time_filter.start == date(2025, 1, 18)
    assert result.time_filter.end == date(2025, 1, 19)


def test_weekend_asked_on_sunday_means_next_saturday():
    saturday, sunday = upcoming_weekend(SUNDAY)
    assert saturday == date(2025, 1, 25)
    assert sunday == date(2025, 1, 26)


def test_weekend_asked_on_saturday_is_today():
    assert upcoming_weekend(SATURDAY) == (SATURDAY, SUNDAY)


def test_next_week_runs_monday_to_sunday():
    result = resolve_when("hackathons next week", WEDNESDAY)
    assert result.time_filter.mode == "range"
    assert result.time_filter.start == date(2025, 1, 20)
    assert result.time_filter.end == date(2025, 1, 26)
    assert result.time_filter.value == "20/01/2025 - 26/01/2025"
    assert following_week(SUNDAY) == (date(2025, 1, 20), date(2025, 1, 26))


def test_next_weekend_is_not_this_weekend():
    result = resolve_when("next weekend", WEDNESDAY)
    assert result.time_filter.mode == "range"
    assert result.time_filter.start == date(2025, 1, 20)


def test_today_and_tomorrow():
    today = resolve_when("comedy tonight", WEDNESDAY)
    assert today.time_filter.value == "today"
    assert today.time_filter.start == today.time_filter.end == WEDNESDAY

    tomorrow = resolve_when("comedy tomorrow", datetime(2025, 1, 31, 23, 30))
    assert tomorrow.time_filter.value == "tomorrow"
    assert tomorrow.time_filter.start == date(2025, 2, 1)


def test_this_week_ends_on_sunday():
    result = resolve_when("gigs this week", WEDNESDAY)
    assert result.time_filter.end == SUNDAY
    on_sunday = resolve_when("gigs this week", SUNDAY)
    assert on_sunday.time_filter.start == on_sunday.time_filter.end == SUNDAY


def test_this_month_ends_on_last_day():
    result = resolve_when("workshops this month", date(2024, 2, 10))
    assert result.time_filter.end == date(2024, 2, 29)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("concerts on March 5", date(2025, 3, 5)),
        ("concerts on 5th March, 2026", date(2026, 3, 5)),
        ("concerts on 05/03/2026", date(2026, 3, 5)),
        ("dec 31st party", date(2025, 12, 31)),
    ],
)
def test_absolute_dates(text, expected):
    assert parse_absolute_date(text, WEDNESDAY) == expected
    result = resolve_when(text, WEDNESDAY)
    assert result.time_filter.mode == "date"
    assert result.time_filter.start == expected


def test_impossible_date_is_ignored():
    assert parse_absolute_date("feb 30 gig", WEDNESDAY) is None
    assert resolve_when("feb 30 gig", WEDNESDAY).detected is False


def test_no_time_mentioned():
    result = resolve_when("jazz in bandra", WEDNESDAY)
    assert result.detected is False
    assert result.time_filter is None


def test_resolution_is_idempotent():
    first = resolve_when("this weekend", WEDNESDAY)
    second = resolve_when("this weekend", WEDNESDAY)
    assert first == second
