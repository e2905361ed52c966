from backend.happenings import catalog
from backend.happenings.catalog import CatalogUnavailable


def _records():
    return [
        {
            "_id": "evt1",
            "title": "Jazz at the Blue Room",
            "category": "Music",
            "tags": [{"name": "Jazz"}],
            "price": 0,
            "location": {"coordinates": [77.6245, 12.9352]},
        },
        {"_id": "evt2", "title": "Pottery Basics", "category": "Arts & Culture", "price": 900},
    ]


def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json()["status"] == "ok"


def test_parse_endpoint_returns_spec_and_reasoning(client, no_geocoder):
    res = client.post("/v1/query/parse", json={"query": "top 2 comedy shows in indiranagar"})
    assert res.status_code == 200
    body = res.json()
    assert body["spec"]["location"] == "Indiranagar"
    assert body["spec"]["limit"] == 2
    assert body["spec"]["radius_km"] == 5.0
    assert "Entertainment" in body["spec"]["tags"]
    assert body["radius"]["location_type"] == "neighborhood"
    assert body["tags"]["reasoning"]


def test_parse_endpoint_validates_input(client):
    res = client.post("/v1/query/parse", json={"query": ""})
    assert res.status_code == 422


def test_search_endpoint(monkeypatch, client, no_geocoder):
    async def fake_fetch_events(coordinates, radius_km, **kwargs):  # noqa: ARG001
        return _records()

    monkeypatch.setattr(catalog, "fetch_events", fake_fetch_events)

    res = client.post(
        "/v1/events/search",
        json={"query": "free jazz in koramangala", "campaign": "weekly", "post_id": "p1"},
    )
    assert res.status_code == 200
    body = res.json()
    assert body["spec"]["budget"]["tier"] == "free"
    events = body["result"]["events"]
    assert [event["id"] for event in events] == ["evt1"]
    assert events[0]["price_display"] == "Free"
    assert "/event/evt1?u=" in events[0]["tracked_url"]


def test_search_endpoint_maps_catalog_outage_to_502(monkeypatch, client, no_geocoder):
    async def failing_fetch(coordinates, radius_km, **kwargs):  # noqa: ARG001
        raise CatalogUnavailable("Request failed: timeout")

    monkeypatch.setattr(catalog, "fetch_events", failing_fetch)

    res = client.post("/v1/events/search", json={"query": "jazz in pune"})
    assert res.status_code == 502
    assert "timeout" in res.json()["detail"]


def test_metrics_endpoint_exposes_pipeline_counters(client, no_geocoder):
    client.post("/v1/query/parse", json={"query": "jazz in pune"})
    res = client.get("/metrics")
    assert res.status_code == 200
    assert "tag_stage_total" in res.text
    assert "http_requests_total" in res.text
