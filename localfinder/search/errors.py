from __future__ import annotations


class SearchError(Exception):
    """Base class for every error raised by the search pipeline."""


class SearchValidationError(SearchError):
    """The request is malformed; nothing external has been called."""


class ConfigurationError(SearchError):
    """A required setting is missing."""

    def __init__(self, missing: list[str]):
        self.missing = list(missing)
        super().__init__(f"Missing required configuration: {', '.join(self.missing)}")


class EmbeddingUnavailable(SearchError):
    """The query could not be embedded. Fatal for the whole request."""


class CatalogRetrievalFailed(SearchError):
    pass


class DiscoveryBranchFailed(SearchError):
    pass


class EnrichmentFailed(SearchError):
    pass


class GeoDistanceFailed(SearchError):
    pass


class RateLimitExceeded(SearchError):
    def __init__(self, result):
        self.result = result
        super().__init__(
            f"Rate limit exceeded. Try again in {result.retry_after} seconds."
        )
