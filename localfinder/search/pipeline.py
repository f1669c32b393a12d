from __future__ import annotations

import logging
import time

from ..catalog.config import DEFAULT_CATALOG_CONFIG, CatalogConfig
from ..catalog.data_store import CatalogStore
from ..embeddings.config import DEFAULT_EMBEDDING_CONFIG, EmbeddingConfig
from ..embeddings.encoder import SentenceEncoder
from ..llm.config import DEFAULT_LLM_CONFIG, LLMConfig
from ..places.config import DEFAULT_PLACES_CONFIG, PlacesConfig
from ..places.distance_matrix import DistanceMatrixClient
from ..places.geo import StraightLineDistanceService
from ..places.google_places import GooglePlacesClient
from .config import DEFAULT_SEARCH_CONFIG, SearchConfig
from .discovery import DiscoveryGenerator
from .enrichment import Enricher
from .errors import ConfigurationError, EmbeddingUnavailable
from .models import SearchRequest, SearchResult
from .ranking import rank_candidates
from .retrieval import retrieve_catalog
from .selection import filter_by_radius, merge_candidates, select_relevant

logger = logging.getLogger(__name__)

DEGRADED_MESSAGE = "Search could not be completed right now; no results are available."


class SearchPipeline:
    """
    Query embedding -> catalog retrieval -> relevance selection ->
    (discovery) -> merge -> enrichment -> radius filter -> ranking.
    """

    def __init__(
        self,
        encoder,
        catalog,
        enricher: Enricher,
        discovery: DiscoveryGenerator | None = None,
        config: SearchConfig = DEFAULT_SEARCH_CONFIG,
    ):
        self.encoder = encoder
        self.catalog = catalog
        self.enricher = enricher
        self.discovery = discovery
        self.config = config

    def check_configuration(self) -> None:
        missing: list[str] = []
        if self.encoder is None:
            missing.append("EMBEDDING_MODEL")
        if self.catalog is None or not self.catalog.is_available():
            missing.append("CATALOG_DATA_DIR")
        if missing:
            raise ConfigurationError(missing)

    def embed_query(self, query: str):
        try:
            return self.encoder.encode(query)
        except EmbeddingUnavailable:
            logger.error("Embedding service unavailable for query %r", query, exc_info=True)
            raise
        except Exception as exc:
            logger.error("Embedding service unavailable for query %r", query, exc_info=True)
            raise EmbeddingUnavailable(f"Could not embed query: {exc}") from exc

    def search(self, request: SearchRequest) -> SearchResult:
        """
        Run the whole pipeline for one validated request.

        Raises ``ConfigurationError`` and ``EmbeddingUnavailable``; any other
        failure is logged and returned as an empty, degraded result.
        """
        self.check_configuration()
        started = time.monotonic()
        query_vector = self.embed_query(request.query)

        try:
            return self._run(request, query_vector, started)
        except Exception:
            logger.exception("Unified search failed for %r", request.query)
            return SearchResult.from_candidates([], request, message=DEGRADED_MESSAGE)

    def _remaining(self, started: float) -> float:
        """Seconds left of the request budget, never negative."""
        return max(0.0, self.config.request_timeout_seconds - (time.monotonic() - started))

    def _run(self, request: SearchRequest, query_vector, started: float) -> SearchResult:
        config = self.config
        latitude = request.latitude if request.has_origin else None
        longitude = request.longitude if request.has_origin else None

        retrieved = retrieve_catalog(self.catalog, query_vector, request, config)
        selected = select_relevant(retrieved, request.match_threshold, config.platform_slots)
        slots_needed = max(0, request.match_count - len(selected))
        logger.info(
            "Selected %d/%d catalog candidates at threshold %.2f, %d slots left",
            len(selected), len(retrieved), request.match_threshold, slots_needed,
        )

        discovered = []
        if self.discovery is not None and slots_needed > 0:
            discovered = self.discovery.discover(
                request.query,
                query_vector,
                slots_needed,
                latitude=latitude,
                longitude=longitude,
                timeout=self._remaining(started),
            )

        merged = merge_candidates(selected, discovered)
        enriched = self.enricher.enrich(merged, latitude, longitude, timeout=self._remaining(started))
        nearby = filter_by_radius(enriched, config.max_distance_miles)
        ranked = rank_candidates(nearby, request.match_count, config)

        result = SearchResult.from_candidates(ranked, request)
        logger.info(
            "Search %r returned %d results (%d platform, %d discovered) in %.0f ms",
            request.query, len(ranked), result.platform_count, result.discovered_count,
            (time.monotonic() - started) * 1000,
        )
        return result


def build_pipeline(
    search_config: SearchConfig = DEFAULT_SEARCH_CONFIG,
    embedding_config: EmbeddingConfig = DEFAULT_EMBEDDING_CONFIG,
    catalog_config: CatalogConfig = DEFAULT_CATALOG_CONFIG,
    places_config: PlacesConfig = DEFAULT_PLACES_CONFIG,
    llm_config: LLMConfig = DEFAULT_LLM_CONFIG,
) -> SearchPipeline:
    """Wire the pipeline to the configured collaborators."""
    encoder = SentenceEncoder(embedding_config) if embedding_config.model_name else None
    catalog = CatalogStore(catalog_config)

    if places_config.distance_api_key:
        distance_service = DistanceMatrixClient(places_config)
    else:
        logger.info("GOOGLE_DISTANCE_MATRIX_API_KEY not set; using straight-line distances")
        distance_service = StraightLineDistanceService()

    discovery = None
    if places_config.discovery_enabled:
        discovery = DiscoveryGenerator(
            GooglePlacesClient(places_config),
            encoder,
            config=search_config,
            places_config=places_config,
            llm_config=llm_config,
        )
    else:
        logger.info("GOOGLE_PLACES_API_KEY not set; discovery disabled")

    return SearchPipeline(
        encoder,
        catalog,
        Enricher(catalog, distance_service),
        discovery=discovery,
        config=search_config,
    )
