from __future__ import annotations

import logging
from typing import Any

import numpy as np

from .config import DEFAULT_SEARCH_CONFIG, SearchConfig
from .models import Candidate, SearchRequest, SourceKind

logger = logging.getLogger(__name__)


def _clamp(value: float) -> float:
    return min(1.0, max(0.0, float(value)))


def catalog_row_to_candidate(row: dict[str, Any]) -> Candidate:
    return Candidate(
        id=str(row["id"]),
        source_kind=SourceKind.catalog,
        business_key=str(row["business_id"]),
        title=row.get("title") or "",
        business_name=row.get("business_name") or "",
        description=row.get("description") or "",
        category=row.get("category"),
        tags=list(row.get("tags") or []),
        address=row.get("address"),
        latitude=row.get("latitude"),
        longitude=row.get("longitude"),
        similarity=_clamp(row.get("similarity", 0.0)),
    )


def retrieve_catalog(
    catalog,
    query_vector: np.ndarray,
    request: SearchRequest,
    config: SearchConfig = DEFAULT_SEARCH_CONFIG,
) -> list[Candidate]:
    """
    Broad similarity search against the catalog with the loose retrieval threshold.

    Failures are logged and yield an empty list; discovery can still fill the
    results.
    """
    try:
        rows = catalog.similarity_search(
            query_vector,
            threshold=config.retrieval_threshold,
            limit=config.retrieval_limit,
            latitude=request.latitude if request.has_origin else None,
            longitude=request.longitude if request.has_origin else None,
            max_distance_miles=config.max_distance_miles,
        )
    except Exception:
        logger.warning("Catalog retrieval failed, continuing without catalog results", exc_info=True)
        return []

    candidates: list[Candidate] = []
    for row in rows:
        if not row.get("business_id"):
            logger.debug("Skipping catalog row %s without business id", row.get("id"))
            continue
        candidates.append(catalog_row_to_candidate(row))

    logger.info("Catalog retrieval returned %d candidates", len(candidates))
    return candidates
