from __future__ import annotations

from typing import Protocol

import numpy as np

EARTH_RADIUS_MILES = 3958.8


def haversine_miles(lat1, lon1, lat2, lon2):
    """Great-circle distance in miles. Works on scalars and numpy arrays; NaN propagates."""
    phi1 = np.radians(lat1)
    phi2 = np.radians(lat2)
    dphi = np.radians(np.subtract(lat2, lat1))
    dlambda = np.radians(np.subtract(lon2, lon1))

    a = np.sin(dphi / 2) ** 2 + np.cos(phi1) * np.cos(phi2) * np.sin(dlambda / 2) ** 2
    return EARTH_RADIUS_MILES * 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))


class GeoDistanceService(Protocol):
    """Batch origin-to-destinations distances keyed like ``destinations``.

    Values are ``(miles, minutes)``; minutes may be ``None``. Destinations
    that could not be resolved are left out. ``timeout`` bounds any network
    call the service makes.
    """

    def distances(
        self,
        origin: tuple[float, float],
        destinations: dict[str, tuple[float, float]],
        timeout: float | None = None,
    ) -> dict[str, tuple[float, float | None]]: ...


class StraightLineDistanceService:
    """Geo-distance fallback when no routing provider is configured.

    Returns straight-line miles and no travel duration.
    """

    def distances(
        self,
        origin: tuple[float, float],
        destinations: dict[str, tuple[float, float]],
        timeout: float | None = None,
    ) -> dict[str, tuple[float, float | None]]:
        results: dict[str, tuple[float, float | None]] = {}
        for key, (lat, lng) in destinations.items():
            miles = float(haversine_miles(origin[0], origin[1], lat, lng))
            results[key] = (round(miles, 2), None)
        return results
