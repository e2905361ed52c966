import pytest
from backend.happenings import geocoding
from backend.happenings.geocoding import GeocodeMatch, GeocodingUnavailable
from backend.happenings.resolvers.location import extract_location_phrase, resolve_location
from backend.happenings.schemas import Coordinates
from backend.happenings.settings import settings


def _mysore_match() -> GeocodeMatch:
    return GeocodeMatch(
        coordinates=Coordinates(lat=12.2958, lng=76.6394),
        formatted_address="Mysuru, Karnataka, India",
        accuracy="city",
        confidence=0.9,
        provider="nominatim",
    )


def test_known_city_resolves_from_static_table(no_geocoder):
    result = resolve_location("jazz in Mumbai tonight")
    assert result.detected is True
    assert result.confidence >= 0.9
    assert result.location == "Mumbai"
    assert result.provider == "static"
    assert result.source == "pattern"
    assert result.coordinates == Coordinates(lat=19.0760, lng=72.8777)
    assert result.is_neighborhood is False


def test_neighborhood_is_narrowed_out_of_longer_phrase(no_geocoder):
    result = resolve_location("events near the heart of koramangala")
    assert result.location == "Koramangala"
    assert result.is_neighborhood is True
    assert result.detected is True


def test_known_place_found_by_scan(no_geocoder):
    result = resolve_location("bandra comedy this friday")
    assert result.location == "Bandra"
    assert result.source in {"pattern", "scan"}


def test_generic_phrases_are_not_places(no_geocoder):
    assert extract_location_phrase("something in the evening") is None
    assert extract_location_phrase("weekend events please") is None
    assert extract_location_phrase("anything near me") is None


def test_unknown_place_is_geocoded(monkeypatch):
    async def fake_geocode(address):
        assert address == "Mysore"
        return _mysore_match()

    monkeypatch.setattr(geocoding, "geocode", fake_geocode)

    result = resolve_location("comedy in Mysore")
    assert result.detected is True
    assert result.provider == "nominatim"
    assert result.formatted_address == "Mysuru, Karnataka, India"
    assert result.coordinates.lat == pytest.approx(12.2958)


def test_geocoder_miss_keeps_the_name(monkeypatch):
    async def fake_geocode(address):  # noqa: ARG001
        return None

    monkeypatch.setattr(geocoding, "geocode", fake_geocode)

    result = resolve_location("comedy in Mysore")
    assert result.detected is False
    assert result.coordinates is None
    assert result.location == "Mysore"
    assert "Mysore" in result.error


def test_geocoder_outage_is_reported_not_raised(monkeypatch):
    async def fake_geocode(address):  # noqa: ARG001
        raise GeocodingUnavailable("Request failed: timeout")

    monkeypatch.setattr(geocoding, "geocode", fake_geocode)

    result = resolve_location("comedy in Mysore")
    assert result.detected is False
    assert result.error == "Request failed: timeout"


def test_malformed_geocoder_payload_is_reported_not_raised(monkeypatch):
    async def fake_get_json(url, params, headers=None):  # noqa: ARG001
        return {"status": "OK", "results": [{"geometry": {}}]}

    monkeypatch.setattr(settings, "GOOGLE_MAPS_API_KEY", "key")
    monkeypatch.setattr(settings, "NOMINATIM_ENABLED", False)
    monkeypatch.setattr(geocoding, "_get_json", fake_get_json)

    result = resolve_location("comedy in Mysore")
    assert result.detected is False
    assert result.coordinates is None
    assert "Malformed" in result.error


def test_default_city_used_when_query_names_none(no_geocoder):
    result = resolve_location("jazz tonight", default_city="Pune")
    assert result.location == "Pune"
    assert result.source == "default"
    assert result.detected is True


def test_no_location_at_all(no_geocoder):
    result = resolve_location("jazz tonight")
    assert result.detected is False
    assert result.location is None
    assert result.coordinates is None
