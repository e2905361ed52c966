import json

from backend.happenings import catalog, search_cli


def test_parse_only_prints_spec(capsys, no_geocoder):
    code = search_cli.main(["comedy in bandra tomorrow", "--parse-only", "--no-model"])
    assert code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["spec"]["location"] == "Bandra"
    assert payload["when"]["time_filter"]["value"] == "tomorrow"


def test_text_output_lists_events(monkeypatch, capsys, no_geocoder):
    async def fake_fetch_events(coordinates, radius_km, **kwargs):  # noqa: ARG001
        return [{"_id": "e1", "title": "Laugh Riot", "category": "Comedy", "price": 499}]

    monkeypatch.setattr(catalog, "fetch_events", fake_fetch_events)

    code = search_cli.main(["comedy in bandra", "--no-model"])
    out = capsys.readouterr().out
    assert code == 0
    assert "1 matching events" in out
    assert "Laugh Riot" in out
    assert "₹499" in out


def test_catalog_failure_exit_code(monkeypatch, capsys, no_geocoder):
    async def failing_fetch(coordinates, radius_km, **kwargs):  # noqa: ARG001
        raise catalog.CatalogUnavailable("down")

    monkeypatch.setattr(catalog, "fetch_events", failing_fetch)

    assert search_cli.main(["comedy in bandra", "--no-model"]) == 1
    assert "down" in capsys.readouterr().err
