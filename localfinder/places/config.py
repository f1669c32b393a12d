from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class PlacesConfig:
    api_key: str = os.getenv("GOOGLE_PLACES_API_KEY", "")
    distance_api_key: str = os.getenv("GOOGLE_DISTANCE_MATRIX_API_KEY", "")
    search_timeout: float = 5.0
    details_timeout: float = 3.0
    distance_timeout: float = 15.0
    # Used when the caller supplies no origin (San Francisco)
    default_latitude: float = 37.7749
    default_longitude: float = -122.4194
    search_radius_meters: int = 16093
    place_type: str = "establishment"
    fetch_phone_numbers: bool = True

    @property
    def discovery_enabled(self) -> bool:
        return bool(self.api_key)


DEFAULT_PLACES_CONFIG = PlacesConfig()
