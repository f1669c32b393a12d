from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable

from ..places.geo import GeoDistanceService
from .hours import is_business_open
from .models import BusinessDetails, Candidate, SourceKind

logger = logging.getLogger(__name__)


def _as_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def _as_float(value: Any) -> float:
    try:
        return float(value or 0.0)
    except (TypeError, ValueError):
        return 0.0


def _coalesce(value: Any, fallback: Any) -> Any:
    return fallback if value is None else value


def details_from_record(record: dict[str, Any]) -> BusinessDetails:
    price = record.get("price_cents")
    return BusinessDetails(
        image_url=record.get("image_url"),
        gallery_urls=list(record.get("gallery_urls") or []),
        hours=record.get("hours"),
        days_closed=record.get("days_closed"),
        phone_number=record.get("phone_number"),
        website_url=record.get("website_url"),
        short_description=record.get("short_description"),
        business_description=record.get("business_description"),
        is_verified=bool(record.get("is_verified") or False),
        thumbs_up=_as_int(record.get("thumbs_up")),
        thumbs_down=_as_int(record.get("thumbs_down")),
        sentiment_score=_as_float(record.get("sentiment_score")),
        price_cents=_as_int(price) if price is not None else None,
        currency=record.get("currency") or "USD",
    )


class Enricher:
    """Attaches catalog details and travel distances to merged candidates."""

    def __init__(
        self,
        catalog,
        distance_service: GeoDistanceService | None,
        now: Callable[[], datetime] = datetime.now,
    ):
        self.catalog = catalog
        self.distance_service = distance_service
        self.now = now

    def enrich(
        self,
        candidates: list[Candidate],
        latitude: float | None = None,
        longitude: float | None = None,
        timeout: float | None = None,
    ) -> list[Candidate]:
        candidates = self.attach_catalog_details(candidates)
        if latitude is not None and longitude is not None:
            candidates = self.attach_distances(candidates, (latitude, longitude), timeout)
        return candidates

    def attach_catalog_details(self, candidates: list[Candidate]) -> list[Candidate]:
        """
        Join catalog candidates against their full offering records.

        A candidate whose record cannot be found keeps its partial data and
        is marked closed, since nothing shows that it is open.
        """
        ids = [c.id for c in candidates if c.source_kind is SourceKind.catalog]
        if not ids:
            return candidates

        try:
            records = self.catalog.fetch_offerings(ids)
        except Exception:
            logger.warning("Catalog enrichment failed for %d offerings", len(ids), exc_info=True)
            records = {}

        now = self.now()
        enriched: list[Candidate] = []
        for candidate in candidates:
            if candidate.source_kind is not SourceKind.catalog:
                enriched.append(candidate)
                continue

            record = records.get(candidate.id)
            if record is None:
                logger.warning("Full details not found for offering %s", candidate.id)
                enriched.append(candidate.model_copy(update={"is_open": False}))
                continue

            details = details_from_record(record)
            enriched.append(candidate.model_copy(update={
                "title": record.get("title") or candidate.title,
                "business_name": record.get("business_name") or candidate.business_name,
                "description": record.get("description") or candidate.description,
                "category": record.get("category") or candidate.category,
                "tags": list(record.get("tags") or candidate.tags),
                "address": record.get("address") or candidate.address,
                "latitude": _coalesce(record.get("latitude"), candidate.latitude),
                "longitude": _coalesce(record.get("longitude"), candidate.longitude),
                "is_open": is_business_open(details.hours, details.days_closed, now),
                "details": details,
            }))
        return enriched

    def attach_distances(
        self,
        candidates: list[Candidate],
        origin: tuple[float, float],
        timeout: float | None = None,
    ) -> list[Candidate]:
        """
        One batched geo-distance call for every candidate with coordinates.

        With no ``timeout`` budget left the call is skipped and distances stay
        unknown.
        """
        destinations = {
            c.business_key: (c.latitude, c.longitude) for c in candidates if c.has_coordinates
        }
        if not destinations or self.distance_service is None:
            return candidates
        if timeout is not None and timeout <= 0:
            logger.warning("Request budget spent, skipping distances for %d businesses", len(destinations))
            return candidates

        try:
            distances = self.distance_service.distances(origin, destinations, timeout=timeout)
        except Exception:
            logger.warning("Distance calculation failed for %d businesses", len(destinations), exc_info=True)
            return candidates

        logger.info("Distances resolved for %d/%d businesses", len(distances), len(destinations))
        updated: list[Candidate] = []
        for candidate in candidates:
            found = distances.get(candidate.business_key)
            if found is None:
                updated.append(candidate)
                continue
            miles, minutes = found
            updated.append(candidate.model_copy(update={
                "distance_miles": miles,
                "duration_minutes": minutes,
            }))
        return updated
