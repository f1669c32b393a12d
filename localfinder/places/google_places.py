"""Client utilities for the Google Places API."""

from __future__ import annotations

import logging
from typing import Any

import requests

from ..search.errors import DiscoveryBranchFailed
from .config import DEFAULT_PLACES_CONFIG, PlacesConfig

logger = logging.getLogger(__name__)
_SESSION = requests.Session()
_BASE_URL = "https://maps.googleapis.com/maps/api/place"


class GooglePlacesError(DiscoveryBranchFailed):
    """Raised when the Places API returns a non-successful response."""


def _check_status(payload: dict[str, Any], operation: str) -> None:
    status = payload.get("status")
    if status not in {"OK", "ZERO_RESULTS"}:
        logger.error("%s failed: status=%s, error_message=%s", operation, status, payload.get("error_message"))
        raise GooglePlacesError(payload.get("error_message") or status or "unknown status")


class GooglePlacesClient:
    """Place discovery service: free text + location -> place records."""

    def __init__(self, config: PlacesConfig = DEFAULT_PLACES_CONFIG):
        self.config = config

    def text_search(
        self,
        query: str,
        latitude: float,
        longitude: float,
    ) -> list[dict[str, Any]]:
        params = {
            "query": query,
            "location": f"{latitude},{longitude}",
            "radius": self.config.search_radius_meters,
            "type": self.config.place_type,
            "key": self.config.api_key,
        }
        try:
            response = _SESSION.get(
                f"{_BASE_URL}/textsearch/json", params=params, timeout=self.config.search_timeout
            )
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as exc:
            raise GooglePlacesError(f"text search for {query!r} failed: {exc}") from exc
        _check_status(payload, "text_search")
        return payload.get("results", [])

    def phone_number(self, place_id: str) -> str | None:
        """Formatted phone number of a place, ``None`` when unavailable or on error."""
        params = {
            "place_id": place_id,
            "fields": "formatted_phone_number,international_phone_number",
            "key": self.config.api_key,
        }
        try:
            response = _SESSION.get(
                f"{_BASE_URL}/details/json", params=params, timeout=self.config.details_timeout
            )
            response.raise_for_status()
            payload = response.json()
            _check_status(payload, "place_details")
        except (requests.RequestException, GooglePlacesError):
            logger.warning("Could not fetch phone number for place %s", place_id, exc_info=True)
            return None
        result = payload.get("result") or {}
        return result.get("formatted_phone_number") or result.get("international_phone_number")
