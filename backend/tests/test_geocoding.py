import asyncio

import pytest
from backend.happenings import geocoding
from backend.happenings.geocoding import GeocodingUnavailable
from backend.happenings.settings import settings

GOOGLE_OK = {
    "status": "OK",
    "results": [
        {
            "formatted_address": "Mysuru, Karnataka, India",
            "geometry": {"location": {"lat": 12.2958, "lng": 76.6394}, "location_type": "APPROXIMATE"},
            "address_components": [
                {"long_name": "Mysuru", "types": ["locality", "political"]},
                {"long_name": "Karnataka", "types": ["administrative_area_level_1"]},
                {"long_name": "India", "types": ["country"]},
            ],
        }
    ],
}

NOMINATIM_OK = [
    {
        "lat": "12.3051",
        "lon": "76.6551",
        "display_name": "Mysuru, Karnataka, India",
        "addresstype": "city",
        "address": {"city": "Mysuru", "state": "Karnataka", "country": "India"},
    }
]


def _fake_get_json(responses: dict):
    calls = []

    async def fake(url, params, headers=None):  # noqa: ARG001
        calls.append((url, params))
        answer = responses[url]
        if isinstance(answer, Exception):
            raise answer
        return answer

    return fake, calls


def test_google_used_when_key_configured(monkeypatch):
    monkeypatch.setattr(settings, "GOOGLE_MAPS_API_KEY", "key")
    fake, calls = _fake_get_json({settings.GOOGLE_GEOCODE_URL: GOOGLE_OK})
    monkeypatch.setattr(geocoding, "_get_json", fake)

    match = asyncio.run(geocoding.geocode("Mysore"))
    assert match.provider == "google"
    assert match.city == "Mysuru"
    assert match.confidence == pytest.approx(0.7)
    assert calls[0][1]["address"] == f"Mysore, {settings.GEOCODE_COUNTRY}"


def test_google_failure_falls_back_to_nominatim(monkeypatch):
    monkeypatch.setattr(settings, "GOOGLE_MAPS_API_KEY", "key")
    fake, calls = _fake_get_json(
        {
            settings.GOOGLE_GEOCODE_URL: {"status": "REQUEST_DENIED", "error_message": "bad key"},
            settings.NOMINATIM_URL: NOMINATIM_OK,
        }
    )
    monkeypatch.setattr(geocoding, "_get_json", fake)

    match = asyncio.run(geocoding.geocode("Mysore"))
    assert match.provider == "nominatim"
    assert match.confidence == pytest.approx(0.9)
    assert [url for url, _ in calls] == [settings.GOOGLE_GEOCODE_URL, settings.NOMINATIM_URL]


def test_google_zero_results_is_a_miss(monkeypatch):
    monkeypatch.setattr(settings, "GOOGLE_MAPS_API_KEY", "key")
    fake, _ = _fake_get_json({settings.GOOGLE_GEOCODE_URL: {"status": "ZERO_RESULTS", "results": []}})
    monkeypatch.setattr(geocoding, "_get_json", fake)

    assert asyncio.run(geocoding.geocode("Atlantis")) is None


def test_nominatim_only_without_key(monkeypatch):
    fake, calls = _fake_get_json({settings.NOMINATIM_URL: []})
    monkeypatch.setattr(geocoding, "_get_json", fake)

    assert asyncio.run(geocoding.geocode("Atlantis")) is None
    assert len(calls) == 1


def test_no_provider_available(monkeypatch):
    monkeypatch.setattr(settings, "NOMINATIM_ENABLED", False)
    with pytest.raises(GeocodingUnavailable):
        asyncio.run(geocoding.geocode("Mysore"))


def test_transport_error_propagates(monkeypatch):
    fake, _ = _fake_get_json({settings.NOMINATIM_URL: GeocodingUnavailable("Request failed: boom")})
    monkeypatch.setattr(geocoding, "_get_json", fake)

    with pytest.raises(GeocodingUnavailable, match="boom"):
        asyncio.run(geocoding.geocode("Mysore"))


def test_blank_address_is_a_miss():
    assert asyncio.run(geocoding.geocode("   ")) is None


@pytest.mark.parametrize(
    "payload",
    [
        {"status": "OK", "results": [{"geometry": {}}]},
        {"status": "OK", "results": [{"geometry": {"location": {"lat": "north", "lng": 1}}}]},
        ["not", "a", "dict"],
    ],
)
def test_malformed_google_result_is_unavailable(monkeypatch, payload):
    monkeypatch.setattr(settings, "GOOGLE_MAPS_API_KEY", "key")
    monkeypatch.setattr(settings, "NOMINATIM_ENABLED", False)
    fake, _ = _fake_get_json({settings.GOOGLE_GEOCODE_URL: payload})
    monkeypatch.setattr(geocoding, "_get_json", fake)

    with pytest.raises(GeocodingUnavailable, match="Google"):
        asyncio.run(geocoding.geocode("Mysore"))


def test_malformed_nominatim_result_is_unavailable(monkeypatch):
    fake, _ = _fake_get_json({settings.NOMINATIM_URL: [{"display_name": "Mysuru"}]})
    monkeypatch.setattr(geocoding, "_get_json", fake)

    with pytest.raises(GeocodingUnavailable, match="Nominatim"):
        asyncio.run(geocoding.geocode("Mysore"))
