from __future__ import annotations

from datetime import date
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

BudgetTier = Literal["free", "budget", "premium", "any"]
LocationType = Literal["neighborhood", "city", "region"]
TagStage = Literal["high_priority", "pattern", "keyword", "model", "default"]
SortMode = Literal["distance", "date"]


class Coordinates(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


# ---------------------------------------------------------------------------
# Resolver results
# ---------------------------------------------------------------------------


class LocationResult(BaseModel):
    detected: bool = False
    confidence: float = Field(default=0.0, ge=0, le=1)
    coordinates: Coordinates | None = None
    location: str | None = None
    formatted_address: str | None = None
    is_neighborhood: bool = False
    source: Literal["pattern", "scan", "default"] | None = None
    provider: Literal["static", "google", "nominatim"] | None = None
    reasoning: str = ""
    error: str | None = None


class TagResult(BaseModel):
    detected: bool = False
    confidence: float = Field(default=0.4, ge=0, le=1)
    primary: list[str] = Field(default_factory=list)
    secondary: list[str] = Field(default_factory=list)
    interests: list[str] = Field(default_factory=list)
    stage: TagStage = "default"
    reasoning: str = ""

    @property
    def all_tags(self) -> list[str]:
        return list(dict.fromkeys([*self.primary, *self.secondary, *self.interests]))


class RadiusResult(BaseModel):
    detected: bool = False
    confidence: float = Field(default=0.4, ge=0, le=1)
    radius_km: float = Field(default=20.0, gt=0)
    location_type: LocationType = "city"
    explicit: bool = False
    reasoning: str = ""


class TimeFilter(BaseModel):
    model_config = ConfigDict(frozen=True)

    mode: Literal["keyword", "date", "range"]
    value: str
    start: date
    end: date
    display_text: str


class WhenResult(BaseModel):
    detected: bool = False
    confidence: float = Field(default=0.0, ge=0, le=1)
    time_filter: TimeFilter | None = None
    reasoning: str = ""


class BudgetFilter(BaseModel):
    model_config = ConfigDict(frozen=True)

    tier: BudgetTier = "any"
    max_price: int | None = Field(default=None, ge=0)


class BudgetResult(BaseModel):
    detected: bool = False
    confidence: float = Field(default=0.5, ge=0, le=1)
    tier: BudgetTier = "any"
    max_price: int | None = Field(default=None, ge=0)
    free_only: bool = False
    reasoning: str = ""

    def as_filter(self) -> BudgetFilter:
        return BudgetFilter(tier=self.tier, max_price=self.max_price)


class LimitResult(BaseModel):
    detected: bool = False
    confidence: float = Field(default=0.5, ge=0, le=1)
    limit: int = Field(default=3, ge=1, le=20)
    reasoning: str = ""


# ---------------------------------------------------------------------------
# Assembled search request
# ---------------------------------------------------------------------------


class SearchSpec(BaseModel):
    """Immutable search request produced by the assembler."""

    model_config = ConfigDict(frozen=True)

    coordinates: Coordinates | None = None
    location: str | None = None
    tags: tuple[str, ...] = ()
    radius_km: float = Field(default=20.0, gt=0)
    time_filter: TimeFilter | None = None
    budget: BudgetFilter = Field(default_factory=BudgetFilter)
    limit: int = Field(default=3, ge=1, le=20)
    query: str | None = None


class ParsedQuery(BaseModel):
    spec: SearchSpec
    location: LocationResult
    tags: TagResult
    radius: RadiusResult
    when: WhenResult
    budget: BudgetResult
    limit: LimitResult


# ---------------------------------------------------------------------------
# Catalog events
# ---------------------------------------------------------------------------


class CatalogEvent(BaseModel):
    id: str
    name: str
    description: str = ""
    start_at: str | None = None
    end_at: str | None = None
    venue: str = "Venue TBA"
    address: str | None = None
    city: str = "Unknown"
    coordinates: Coordinates | None = None
    category: str = "General"
    tags: list[str] = Field(default_factory=list)
    price: float | None = None
    currency: str | None = None
    source_url: str | None = None
    image_url: str | None = None


class RankedEvent(CatalogEvent):
    distance_km: float | None = None
    tracked_url: str
    price_display: str = "Price TBA"
    relevance: int = 0


class SearchParams(BaseModel):
    coordinates: Coordinates
    radius_km: float
    tags_used: list[str] = Field(default_factory=list)
    fetch_limit: int
    sort_by: SortMode = "distance"
    fallback_city: str | None = None


class EventSearchResult(BaseModel):
    success: bool
    events: list[RankedEvent] = Field(default_factory=list)
    total_found: int = 0
    search_params: SearchParams | None = None
    error: str | None = None


# ---------------------------------------------------------------------------
# API payloads
# ---------------------------------------------------------------------------


class ParseRequest(BaseModel):
    query: str = Field(min_length=1, max_length=600)
    default_city: str | None = Field(default=None, max_length=80)
    default_limit: int | None = Field(default=None, ge=1, le=20)
    context: str | None = Field(default=None, max_length=600)


class SearchRequest(ParseRequest):
    sort_by: SortMode = "distance"
    campaign: str | None = Field(default=None, max_length=80)
    post_id: str | None = Field(default=None, max_length=80)


class SearchResponse(BaseModel):
    spec: SearchSpec
    result: EventSearchResult
