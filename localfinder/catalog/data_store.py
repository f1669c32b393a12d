from __future__ import annotations

import logging
from typing import Any

import numpy as np
import pandas as pd
from sklearn.metrics.pairwise import cosine_similarity

from ..places.geo import haversine_miles
from ..search.errors import CatalogRetrievalFailed, EnrichmentFailed
from .config import DEFAULT_CATALOG_CONFIG, CatalogConfig

logger = logging.getLogger(__name__)

# Multi-valued columns are stored pipe-separated in the CSV.
_LIST_COLUMNS = ("tags", "gallery_urls")

_REQUIRED_COLUMNS = ("id", "business_id", "title", "business_name", "status")


def _split(value: Any) -> list[str]:
    if isinstance(value, list):
        return value
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return []
    return [part.strip() for part in str(value).split("|") if part.strip()]


def _clean(value: Any) -> Any:
    """Map pandas missing values to ``None`` and numpy scalars to Python ones."""
    if isinstance(value, (list, tuple)):
        return value
    if pd.isna(value):
        return None
    if isinstance(value, np.generic):
        return value.item()
    return value


def prepare_offerings(df: pd.DataFrame) -> pd.DataFrame:
    """Normalise a raw offerings frame into the shape the store queries."""
    missing = [c for c in _REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Offerings data is missing columns: {', '.join(missing)}")

    df = df.copy().reset_index(drop=True)
    df["id"] = df["id"].astype(str)
    df["business_id"] = df["business_id"].astype(str)
    df["status"] = df["status"].fillna("").str.lower()
    for column in _LIST_COLUMNS:
        if column not in df.columns:
            df[column] = None
        df[column] = df[column].apply(_split)
    for column in ("latitude", "longitude"):
        if column not in df.columns:
            df[column] = np.nan
        df[column] = pd.to_numeric(df[column], errors="coerce")
    return df


class CatalogStore:
    """Catalog of platform offerings backed by a DataFrame and an embeddings matrix.

    Row ``i`` of the embeddings matrix belongs to row ``i`` of the offerings
    frame. Both are loaded on first use unless passed in directly.
    """

    def __init__(
        self,
        config: CatalogConfig = DEFAULT_CATALOG_CONFIG,
        offerings: pd.DataFrame | None = None,
        embeddings: np.ndarray | None = None,
    ):
        self.config = config
        self._df = prepare_offerings(offerings) if offerings is not None else None
        self._embeddings = embeddings

    def is_available(self) -> bool:
        """Both the offerings and their row-aligned embeddings must be loadable."""
        for loaded, path in (
            (self._df, self.config.offerings_path),
            (self._embeddings, self.config.embeddings_path),
        ):
            if loaded is None and not path.exists():
                logger.warning("Catalog data missing: %s", path)
                return False
        return True

    @property
    def dataframe(self) -> pd.DataFrame:
        if self._df is None:
            logger.info("Loading catalog offerings from %s", self.config.offerings_path)
            self._df = prepare_offerings(pd.read_csv(self.config.offerings_path))
        return self._df

    @property
    def embeddings(self) -> np.ndarray:
        if self._embeddings is None:
            path = self.config.embeddings_path
            if not path.exists():
                raise CatalogRetrievalFailed(f"Offering embeddings not found at {path}")
            self._embeddings = np.load(path)
        return self._embeddings

    # ── Similarity search ────────────────────────────────────────────────

    def similarity_search(
        self,
        vector: np.ndarray,
        threshold: float,
        limit: int,
        latitude: float | None = None,
        longitude: float | None = None,
        max_distance_miles: float | None = None,
    ) -> list[dict[str, Any]]:
        """
        Return active offerings whose cosine similarity to ``vector`` is at
        least ``threshold``, most similar first, at most ``limit`` rows.

        With an origin, each row carries a straight-line ``distance_miles``
        and rows with known coordinates beyond ``max_distance_miles`` are
        dropped. Rows without coordinates are kept.
        """
        try:
            df = self.dataframe
            matrix = self.embeddings
        except CatalogRetrievalFailed:
            raise
        except Exception as exc:
            raise CatalogRetrievalFailed(f"Catalog could not be loaded: {exc}") from exc

        if len(df) != matrix.shape[0]:
            raise CatalogRetrievalFailed(
                f"Catalog out of sync: {len(df)} offerings vs {matrix.shape[0]} embeddings"
            )
        if df.empty:
            return []

        query_vec = np.asarray(vector, dtype=float).reshape(1, -1)
        if query_vec.shape[1] != matrix.shape[1]:
            raise CatalogRetrievalFailed(
                f"Query dimension {query_vec.shape[1]} does not match catalog dimension {matrix.shape[1]}"
            )

        result = df.assign(similarity=cosine_similarity(query_vec, matrix).flatten())
        result = result.loc[(result["status"] == "active") & (result["similarity"] >= threshold)]

        if latitude is not None and longitude is not None:
            result = result.assign(
                distance_miles=haversine_miles(
                    latitude, longitude, result["latitude"].to_numpy(), result["longitude"].to_numpy()
                )
            )
            if max_distance_miles is not None:
                within = result["distance_miles"].isna() | (result["distance_miles"] <= max_distance_miles)
                result = result.loc[within]
        else:
            result = result.assign(distance_miles=np.nan)

        result = result.sort_values("similarity", ascending=False, kind="stable").head(limit)
        return [self._search_row(row) for _, row in result.iterrows()]

    @staticmethod
    def _search_row(row: pd.Series) -> dict[str, Any]:
        return {
            "id": row["id"],
            "business_id": row["business_id"],
            "title": _clean(row.get("title")) or "",
            "description": _clean(row.get("description")) or "",
            "tags": list(row.get("tags") or []),
            "business_name": _clean(row.get("business_name")) or "",
            "category": _clean(row.get("category")),
            "address": _clean(row.get("address")),
            "latitude": _clean(row.get("latitude")),
            "longitude": _clean(row.get("longitude")),
            "similarity": float(row["similarity"]),
            "distance_miles": _clean(row.get("distance_miles")),
        }

    # ── Lookup by id ─────────────────────────────────────────────────────

    def fetch_offerings(self, ids: list[str]) -> dict[str, dict[str, Any]]:
        """Full records of the active offerings among ``ids``, keyed by offering id."""
        try:
            df = self.dataframe
        except Exception as exc:
            raise EnrichmentFailed(f"Catalog could not be loaded: {exc}") from exc

        wanted = {str(i) for i in ids}
        rows = df.loc[df["id"].isin(wanted) & (df["status"] == "active")]
        records: dict[str, dict[str, Any]] = {}
        for _, row in rows.iterrows():
            record = {key: _clean(value) for key, value in row.items()}
            record["image_url"] = self._pick_image(row)
            records[record["id"]] = record
        return records

    def _pick_image(self, row: pd.Series) -> str:
        for column in ("image_url", "business_image_url"):
            value = _clean(row.get(column))
            if value:
                return value
        gallery = row.get("gallery_urls") or []
        if gallery:
            return gallery[0]
        return self.config.placeholder_image
