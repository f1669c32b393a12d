from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any

from fastapi import Body, Depends, FastAPI, Request, Response
from fastapi.responses import JSONResponse

from .analytics.aggregator import compute_analytics
from .analytics.store import get_events, record_event
from .auth.dependencies import require_admin, resolve_identifier
from .auth.tokens import TokenRegistry
from .ratelimit.config import RATE_LIMIT_DB_PATH, SEARCH_RATE_LIMIT
from .ratelimit.headers import rate_limit_headers
from .ratelimit.limiter import RateLimiter, RateLimitResult
from .ratelimit.store import InMemoryRateLimitStore, SqliteRateLimitStore
from .search.errors import (
    ConfigurationError,
    EmbeddingUnavailable,
    RateLimitExceeded,
    SearchValidationError,
)
from .search.models import ErrorResponse, SearchResponse, parse_search_request
from .search.pipeline import SearchPipeline, build_pipeline
from .search.views import build_search_response, utc_timestamp

logger = logging.getLogger(__name__)

app = FastAPI(title="Local Discovery Search API", version="1.0.0")


# ── Collaborators ────────────────────────────────────────────────────────


@lru_cache(maxsize=1)
def get_pipeline() -> SearchPipeline:
    return build_pipeline()


@lru_cache(maxsize=1)
def get_token_registry() -> TokenRegistry:
    return TokenRegistry.from_env()


@lru_cache(maxsize=1)
def get_rate_limiter() -> RateLimiter:
    if RATE_LIMIT_DB_PATH:
        store = SqliteRateLimitStore(RATE_LIMIT_DB_PATH)
    else:
        store = InMemoryRateLimitStore()
    return RateLimiter(store, SEARCH_RATE_LIMIT)


def enforce_search_rate_limit(
    request: Request,
    response: Response,
    limiter: RateLimiter = Depends(get_rate_limiter),
    tokens: TokenRegistry = Depends(get_token_registry),
) -> RateLimitResult:
    identifier = resolve_identifier(request, tokens)
    result = limiter.check(
        identifier,
        user_agent=request.headers.get("user-agent"),
        metadata={"path": request.url.path},
    )
    if not result.allowed:
        raise RateLimitExceeded(result)
    response.headers.update(rate_limit_headers(result))
    return result


def admin_user(
    request: Request,
    tokens: TokenRegistry = Depends(get_token_registry),
) -> dict:
    return require_admin(request, tokens)


# ── Error responses ──────────────────────────────────────────────────────


def _error(status_code: int, error: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, message=message, timestamp=utc_timestamp()).model_dump(),
    )


@app.exception_handler(SearchValidationError)
def _validation_error(request: Request, exc: SearchValidationError) -> JSONResponse:
    return _error(400, "Query is required", str(exc))


@app.exception_handler(ConfigurationError)
def _configuration_error(request: Request, exc: ConfigurationError) -> JSONResponse:
    logger.error("Search misconfigured: %s", exc)
    return _error(500, "Missing required configuration", str(exc))


@app.exception_handler(EmbeddingUnavailable)
def _embedding_unavailable(request: Request, exc: EmbeddingUnavailable) -> JSONResponse:
    return _error(503, "Embedding service unavailable", str(exc))


@app.exception_handler(RateLimitExceeded)
def _rate_limited(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    result = exc.result
    return JSONResponse(
        status_code=429,
        content={
            "error": "Too Many Requests",
            "message": str(exc),
            "retryAfter": result.retry_after,
            "resetTime": datetime.fromtimestamp(result.reset_at, timezone.utc).isoformat(),
        },
        headers=rate_limit_headers(result),
    )


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/search", response_model=SearchResponse)
def search(
    payload: Any = Body(None),
    pipeline: SearchPipeline = Depends(get_pipeline),
    rate_limit: RateLimitResult = Depends(enforce_search_rate_limit),
) -> SearchResponse:
    start_time = time.time()

    search_request = parse_search_request(payload, pipeline.config)
    result = pipeline.search(search_request)
    response = build_search_response(result)

    elapsed_ms = round((time.time() - start_time) * 1000, 1)
    record_event("search", {
        "query": search_request.query,
        "has_origin": search_request.has_origin,
        "match_threshold": search_request.match_threshold,
        "match_count": search_request.match_count,
        "platform_results": result.platform_count,
        "discovered_results": result.discovered_count,
        "results_returned": len(result.candidates),
        "response_time_ms": elapsed_ms,
        "degraded": result.message is not None,
    })

    return response


# ── Admin endpoints ──────────────────────────────────────────────────────


@app.get("/analytics")
def analytics(user: dict = Depends(admin_user)) -> dict:
    return compute_analytics(get_events())
