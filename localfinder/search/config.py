from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SearchConfig:
    """Tunables for every pipeline stage. Defaults are empirical, not contracts."""

    # Catalog retriever
    retrieval_threshold: float = 0.1
    retrieval_limit: int = 50
    max_distance_miles: float = 10.0

    # Relevance selector
    platform_slots: int = 8

    # Discovery generator
    max_discovery_queries: int = 5
    places_per_query: int = 10
    discovery_min_similarity: float = 0.3
    branch_timeout_seconds: float = 5.0
    request_timeout_seconds: float = 20.0
    name_discovered_offerings: bool = True

    # Composite ranker
    similarity_weight: float = 0.45
    source_weight: float = 0.25
    open_weight: float = 0.20
    proximity_weight: float = 0.10
    ranking_boost_threshold: float = 0.5
    source_baseline: float = 0.1
    proximity_normalization_miles: float = 30.0

    # Request limits
    max_match_count: int = 50


DEFAULT_SEARCH_CONFIG = SearchConfig()
