"""Client for the Google Distance Matrix API."""

from __future__ import annotations

import logging

import requests

from ..search.errors import GeoDistanceFailed
from .config import DEFAULT_PLACES_CONFIG, PlacesConfig

logger = logging.getLogger(__name__)
_SESSION = requests.Session()
_URL = "https://maps.googleapis.com/maps/api/distancematrix/json"

_METERS_PER_MILE = 1609.344


def _request_timeout(configured: float, budget: float | None) -> float:
    if budget is None:
        return configured
    return max(0.1, min(configured, budget))


class DistanceMatrixError(GeoDistanceFailed):
    """Raised when the Distance Matrix API call fails as a whole."""


class DistanceMatrixClient:
    """Geo-distance service returning driving miles and minutes per destination."""

    def __init__(self, config: PlacesConfig = DEFAULT_PLACES_CONFIG):
        self.config = config

    def distances(
        self,
        origin: tuple[float, float],
        destinations: dict[str, tuple[float, float]],
        timeout: float | None = None,
    ) -> dict[str, tuple[float, float | None]]:
        """
        One batched call for all ``destinations`` (keyed by business key),
        bounded by ``timeout`` when it is shorter than the configured one.

        Destinations whose element is not ``OK`` are left out of the result
        so that callers keep their distance unknown.
        """
        if not destinations:
            return {}

        keys = list(destinations)
        params = {
            "origins": f"{origin[0]},{origin[1]}",
            "destinations": "|".join(f"{lat},{lng}" for lat, lng in destinations.values()),
            "units": "imperial",
            "mode": "driving",
            "key": self.config.distance_api_key,
        }
        try:
            response = _SESSION.get(_URL, params=params, timeout=_request_timeout(self.config.distance_timeout, timeout))
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as exc:
            raise DistanceMatrixError(f"Distance Matrix request failed: {exc}") from exc

        if payload.get("status") != "OK":
            raise DistanceMatrixError(f"Distance Matrix API error: {payload.get('status')}")

        rows = payload.get("rows") or [{}]
        elements = rows[0].get("elements") or []

        results: dict[str, tuple[float, float | None]] = {}
        for key, element in zip(keys, elements):
            if not element or element.get("status") != "OK":
                logger.warning("Distance calculation failed for business %s", key)
                continue
            meters = (element.get("distance") or {}).get("value")
            seconds = (element.get("duration") or {}).get("value")
            if meters is None:
                continue
            miles = round(meters / _METERS_PER_MILE, 2)
            minutes = round(seconds / 60.0, 1) if seconds is not None else None
            results[key] = (miles, minutes)
        return results
