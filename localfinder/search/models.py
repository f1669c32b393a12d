from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .config import DEFAULT_SEARCH_CONFIG, SearchConfig
from .errors import SearchValidationError


class SearchRequest(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    query: str = Field(..., min_length=1, description="Free-text search query")
    latitude: float | None = Field(default=None, ge=-90.0, le=90.0)
    longitude: float | None = Field(default=None, ge=-180.0, le=180.0)
    match_threshold: float = Field(default=0.3, ge=0.0, le=1.0, alias="matchThreshold")
    match_count: int = Field(default=10, ge=1, alias="matchCount")

    @field_validator("query", mode="before")
    @classmethod
    def _strip_query(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip()
        return value

    @property
    def has_origin(self) -> bool:
        return self.latitude is not None and self.longitude is not None


def parse_search_request(
    payload: Any,
    config: SearchConfig = DEFAULT_SEARCH_CONFIG,
) -> SearchRequest:
    """
    Build a ``SearchRequest`` from a raw request body.

    Accepts both the camelCase names of the public API and the snake_case
    field names. ``matchCount`` above the configured maximum is capped rather
    than rejected. Raises ``SearchValidationError`` for anything else.
    """
    if not isinstance(payload, dict):
        raise SearchValidationError("Request body must be a JSON object")

    query = payload.get("query")
    if not isinstance(query, str) or not query.strip():
        raise SearchValidationError("Please provide a valid search query")

    try:
        request = SearchRequest.model_validate(payload)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise SearchValidationError(problems) from exc

    if request.match_count > config.max_match_count:
        request = request.model_copy(update={"match_count": config.max_match_count})
    return request


class SourceKind(str, Enum):
    catalog = "catalog"
    discovered = "discovered"


class BusinessDetails(BaseModel):
    image_url: str | None = None
    gallery_urls: list[str] = Field(default_factory=list)
    hours: str | None = None
    days_closed: str | None = None
    phone_number: str | None = None
    website_url: str | None = None
    short_description: str | None = None
    business_description: str | None = None
    is_verified: bool = False
    thumbs_up: int = 0
    thumbs_down: int = 0
    sentiment_score: float = 0.0
    price_cents: int | None = None
    currency: str = "USD"


class Candidate(BaseModel):
    id: str
    source_kind: SourceKind
    business_key: str
    title: str
    business_name: str = ""
    description: str = ""
    category: str | None = None
    tags: list[str] = Field(default_factory=list)
    address: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    similarity: float = Field(default=0.0, ge=0.0, le=1.0)
    is_open: bool = False
    # None means "not known"; never default these to zero.
    distance_miles: float | None = None
    duration_minutes: float | None = None
    composite_score: float | None = None
    details: BusinessDetails = Field(default_factory=BusinessDetails)
    place_id: str | None = None
    origin_phrase: str | None = None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None


class SearchResult(BaseModel):
    candidates: list[Candidate]
    query: str
    match_threshold: float
    platform_count: int = 0
    discovered_count: int = 0
    message: str | None = None

    @classmethod
    def from_candidates(
        cls,
        candidates: list[Candidate],
        request: SearchRequest,
        message: str | None = None,
    ) -> SearchResult:
        return cls(
            candidates=candidates,
            query=request.query,
            match_threshold=request.match_threshold,
            platform_count=sum(1 for c in candidates if c.source_kind is SourceKind.catalog),
            discovered_count=sum(1 for c in candidates if c.source_kind is SourceKind.discovered),
            message=message,
        )


# ── Response bodies ──────────────────────────────────────────────────────


class SearchSources(BaseModel):
    platform: int
    discovered: int


class SearchResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    results: list[dict[str, Any]]
    query: str
    match_count: int = Field(alias="matchCount")
    search_sources: SearchSources = Field(alias="searchSources")
    match_threshold: float = Field(alias="matchThreshold")
    timestamp: str
    message: str | None = None


class ErrorResponse(BaseModel):
    error: str
    message: str
    timestamp: str
