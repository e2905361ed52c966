from backend.happenings import links
from backend.happenings.settings import settings


def test_event_url_is_deterministic():
    first = links.event_url("abc", source="reddit", campaign="weekly", content="Music")
    second = links.event_url("abc", source="reddit", campaign="weekly", content="Music")
    assert first == second
    assert first.startswith(f"{settings.LINK_BASE_URL.rstrip('/')}/event/abc?u=")
    assert "=" not in first.split("?u=", 1)[1]


def test_tracking_payload_defaults():
    payload = links.decode_tracking(links.event_url("abc"))
    assert payload == {
        "utm_source": settings.UTM_DEFAULT_SOURCE,
        "utm_medium": links.PLATFORM_MEDIUMS.get(settings.UTM_DEFAULT_SOURCE, links.DEFAULT_MEDIUM),
        "utm_campaign": settings.UTM_DEFAULT_CAMPAIGN,
    }


def test_unknown_platform_is_a_referral():
    utm = links.build_utm("Newsletter-X")
    assert utm["utm_source"] == "newsletter-x"
    assert utm["utm_medium"] == "referral"


def test_post_id_round_trips_through_ref():
    url = links.city_url("New Delhi", source="telegram", post_id="t3_xyz")
    assert "/city/new-delhi?u=" in url
    payload = links.decode_tracking(url)
    assert payload["utm_medium"] == "messaging"
    assert payload["ref"] == "t3_xyz"


def test_decode_tracking_rejects_garbage():
    assert links.decode_tracking("https://example.com/event/1") is None
    assert links.decode_tracking("https://example.com/event/1?u=%%%") is None


def test_extract_event_id_only_from_own_links():
    url = links.event_url("evt_42")
    assert links.is_tracked_url(url)
    assert links.extract_event_id(url) == "evt_42"
    assert links.extract_event_id("https://elsewhere.com/event/evt_42") is None
    assert links.extract_event_id(links.city_url("Pune")) is None


def test_slugify():
    assert links.slugify("  HSR Layout / Sector 2 ") == "hsr-layout-sector-2"


def test_event_ids_are_escaped_in_the_path():
    url = links.event_url("rock/pop night?2", source="reddit")
    path_part, query = url.split("?u=", 1)
    assert path_part == f"{settings.LINK_BASE_URL.rstrip('/')}/event/rock%2Fpop%20night%3F2"
    assert links.decode_tracking(url)["utm_source"] == "reddit"
    assert links.extract_event_id(url) == "rock/pop night?2"
    assert "?" not in query
