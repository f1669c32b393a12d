from __future__ import annotations

import math

from .config import DEFAULT_SEARCH_CONFIG, SearchConfig
from .models import Candidate, SourceKind


def _source_bonus(candidate: Candidate, config: SearchConfig) -> float:
    if (
        candidate.source_kind is SourceKind.catalog
        and candidate.similarity >= config.ranking_boost_threshold
    ):
        return 1.0
    return config.source_baseline


def _proximity_bonus(candidate: Candidate, config: SearchConfig) -> float:
    distance = candidate.distance_miles
    if distance is None or not math.isfinite(distance):
        return 0.0
    cap = config.proximity_normalization_miles
    return 1.0 - min(max(distance, 0.0) / cap, 1.0)


def composite_score(candidate: Candidate, config: SearchConfig = DEFAULT_SEARCH_CONFIG) -> float:
    """Weighted blend of similarity, source priority, open status and proximity."""
    return (
        config.similarity_weight * candidate.similarity
        + config.source_weight * _source_bonus(candidate, config)
        + config.open_weight * (1.0 if candidate.is_open else 0.0)
        + config.proximity_weight * _proximity_bonus(candidate, config)
    )


def rank_candidates(
    candidates: list[Candidate],
    count: int,
    config: SearchConfig = DEFAULT_SEARCH_CONFIG,
) -> list[Candidate]:
    """Score, sort descending (stable on ties) and return the top ``count``."""
    scored = [
        c.model_copy(update={"composite_score": round(composite_score(c, config), 6)})
        for c in candidates
    ]
    scored.sort(key=lambda c: c.composite_score, reverse=True)
    return scored[: max(0, count)]
