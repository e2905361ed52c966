import os
import sys
from pathlib import Path

import pytest
import sentry_sdk
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Disable outbound Sentry calls during tests
sentry_sdk.init = lambda *args, **kwargs: None  # type: ignore[assignment]
os.environ["SENTRY_DSN"] = ""

from backend.happenings import llm_tags  # noqa: E402
from backend.happenings.main import app  # noqa: E402
from backend.happenings.settings import settings  # noqa: E402


@pytest.fixture(scope="session")
def client() -> TestClient:
    return TestClient(app, base_url="http://api.testserver")


@pytest.fixture(autouse=True)
def offline_settings(monkeypatch):
    monkeypatch.setattr(settings, "OPENAI_API_KEY", None)
    monkeypatch.setattr(settings, "GOOGLE_MAPS_API_KEY", None)
    monkeypatch.setattr(settings, "NOMINATIM_ENABLED", True)
    monkeypatch.setattr(settings, "DEFAULT_CITY", None)
    monkeypatch.setattr(settings, "DEFAULT_LIMIT", 3)
    monkeypatch.setattr(settings, "MAX_LIMIT", 20)
    monkeypatch.setattr(settings, "FALLBACK_CITY", "bangalore")
    monkeypatch.setattr(settings, "SENTRY_DSN", None)
    os.environ.pop("OPENAI_API_KEY", None)
    llm_tags._register_success()
    yield
    llm_tags._register_success()


@pytest.fixture
def no_geocoder(monkeypatch):
    """Fail the test if anything reaches the network geocoder."""
    from backend.happenings import geocoding

    async def unexpected(address):
        raise AssertionError(f"geocoder called for {address!r}")

    monkeypatch.setattr(geocoding, "geocode", unexpected)
