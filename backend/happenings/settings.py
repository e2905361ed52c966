from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

REPO_ROOT = Path(__file__).resolve().parents[2]
ENV_FILE = REPO_ROOT / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE), env_file_encoding="utf-8", extra="ignore"
    )

    # console logs instead of JSON
    DEBUG: bool = False

    # Query defaults
    DEFAULT_CITY: str | None = None
    DEFAULT_LIMIT: int = 3
    MAX_LIMIT: int = 20

    # Retrieval
    FALLBACK_CITY: str = "bangalore"
    OVERFETCH_FACTOR: int = 5
    OVERFETCH_MINIMUM: int = 50
    CATALOG_API_BASE: str = "https://catalog.happenings.local"
    CATALOG_EVENTS_PATH: str = "/event/all-events"
    CATALOG_TIMEOUT_SECONDS: float = 10.0
    HTTP_USER_AGENT: str = "HappeningsBot/1.0"

    # Geocoding (Google first when a key is present, Nominatim otherwise)
    GEOCODE_COUNTRY: str = "India"
    GOOGLE_MAPS_API_KEY: str | None = None
    GOOGLE_GEOCODE_URL: str = "https://maps.googleapis.com/maps/api/geocode/json"
    NOMINATIM_ENABLED: bool = True
    NOMINATIM_URL: str = "https://nominatim.openstreetmap.org/search"
    GEOCODE_TIMEOUT_SECONDS: float = 6.0

    # Outbound links
    LINK_BASE_URL: str = "https://happenings.local"
    UTM_DEFAULT_SOURCE: str = "reddit"
    UTM_DEFAULT_CAMPAIGN: str = "happenings_bot"

    # Model-based tag fallback
    OPENAI_API_KEY: str | None = None
    OPENAI_API_BASE: str = "https://api.openai.com/v1"
    OPENAI_TIMEOUT_SECONDS: float = 15.0
    OPENAI_CONNECT_TIMEOUT_SECONDS: float = 5.0
    TAGS_LLM_MODEL: str = "gpt-4o-mini"
    TAGS_LLM_ENABLED: bool = True

    # Observability
    SENTRY_DSN: str | None = None
    SENTRY_ENVIRONMENT: str = "development"
    SENTRY_RELEASE: str | None = None
    SENTRY_TRACES_SAMPLE_RATE: float = 0.2

    @property
    def tags_llm_available(self) -> bool:
        return bool(self.TAGS_LLM_ENABLED and self.OPENAI_API_KEY)

    def clamp_limit(self, value: int) -> int:
        return max(1, min(self.MAX_LIMIT, int(value)))

    def candidate_limit(self, limit: int, filtering: bool) -> int:
        if not filtering:
            return limit
        return max(limit * self.OVERFETCH_FACTOR, self.OVERFETCH_MINIMUM)


settings = Settings()
