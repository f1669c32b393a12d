"""
Boundary mapping from pipeline results to the JSON the web client expects.

The client predates the unified pipeline and reads several aliases for the
same value (``name`` / ``business_name`` / ``businessName``), the legacy
``source`` labels, and ``999999`` as "distance unknown". Those aliases are
produced here and nowhere else.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from ..catalog.config import DEFAULT_CATALOG_CONFIG
from .models import Candidate, SearchResponse, SearchResult, SearchSources, SourceKind

UNKNOWN_DISTANCE = 999999
PLACEHOLDER_IMAGE = DEFAULT_CATALOG_CONFIG.placeholder_image

_LEGACY_SOURCE = {
    SourceKind.catalog: "offering",
    SourceKind.discovered: "ai_generated",
}


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def candidate_to_view(candidate: Candidate) -> dict[str, Any]:
    details = candidate.details
    is_catalog = candidate.source_kind is SourceKind.catalog
    image = details.image_url or PLACEHOLDER_IMAGE

    return {
        # Canonical fields
        "id": candidate.id,
        "sourceKind": candidate.source_kind.value,
        "businessKey": candidate.business_key,
        "title": candidate.title,
        "description": candidate.description,
        "category": candidate.category,
        "tags": candidate.tags,
        "address": candidate.address,
        "latitude": candidate.latitude,
        "longitude": candidate.longitude,
        "similarity": round(candidate.similarity, 4),
        "isOpen": candidate.is_open,
        "distanceMiles": candidate.distance_miles,
        "durationMinutes": candidate.duration_minutes,
        "compositeScore": candidate.composite_score,
        "hours": details.hours,
        "days_closed": details.days_closed,
        "phone_number": details.phone_number,
        "website_url": details.website_url,
        "gallery_urls": details.gallery_urls,
        "is_verified": details.is_verified,
        "price_cents": details.price_cents or 0,
        "currency": details.currency,
        "placeId": candidate.place_id,
        # UI compatibility aliases
        "business_id": candidate.business_key,
        "name": candidate.business_name,
        "business_name": candidate.business_name,
        "businessName": candidate.business_name,
        "business_category": candidate.category,
        "short_description": details.short_description,
        "shortDescription": details.short_description or details.business_description,
        "business_description": details.business_description,
        "image": image,
        "image_url": image,
        "rating": {
            "thumbsUp": details.thumbs_up,
            "thumbsDown": details.thumbs_down,
            "sentimentScore": details.sentiment_score,
        },
        "reviews": [],
        "source": _LEGACY_SOURCE[candidate.source_kind],
        "isPlatformBusiness": is_catalog,
        "isAIGenerated": not is_catalog,
        "isGoogleVerified": not is_catalog,
        "distance": candidate.distance_miles if candidate.distance_miles is not None else UNKNOWN_DISTANCE,
        "duration": candidate.duration_minutes if candidate.duration_minutes is not None else UNKNOWN_DISTANCE,
    }


def build_search_response(result: SearchResult) -> SearchResponse:
    results = [candidate_to_view(c) for c in result.candidates]
    return SearchResponse(
        success=True,
        results=results,
        query=result.query,
        match_count=len(results),
        search_sources=SearchSources(
            platform=result.platform_count,
            discovered=result.discovered_count,
        ),
        match_threshold=result.match_threshold,
        timestamp=utc_timestamp(),
        message=result.message,
    )
