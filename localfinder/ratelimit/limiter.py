from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

from .config import SEARCH_RATE_LIMIT, RateLimitConfig
from .store import RateLimitKey, RateLimitRecord, RateLimitStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identifier:
    value: str
    type: str  # "user" or "ip"


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    retry_after: int | None = None


class RateLimiter:
    """Sliding-window limiter over a ``RateLimitStore``.

    Admission counts stored attempts in the trailing window; only admitted
    attempts are recorded. Store errors admit the request.
    """

    def __init__(
        self,
        store: RateLimitStore,
        config: RateLimitConfig = SEARCH_RATE_LIMIT,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.config = config
        self._clock = clock

    def check(
        self,
        identifier: Identifier,
        user_agent: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> RateLimitResult:
        config = self.config
        now = self._clock()
        reset_at = now + config.window_seconds

        if not config.enabled:
            return RateLimitResult(True, config.max_requests, config.max_requests, reset_at)

        key = RateLimitKey(identifier.value, identifier.type, config.function_name)
        try:
            count = self.store.count(key, now - config.window_seconds)
        except Exception:
            logger.error("Rate limit check failed for %s, allowing request", config.function_name, exc_info=True)
            return RateLimitResult(True, config.max_requests, config.max_requests - 1, reset_at)

        logger.debug(
            "Rate limit check for %s %s on %s: %d/%d in %ds",
            identifier.type, identifier.value, config.function_name,
            count, config.max_requests, config.window_seconds,
        )

        if count >= config.max_requests:
            logger.warning(
                "Rate limit exceeded for %s %s on %s", identifier.type, identifier.value, config.function_name
            )
            return RateLimitResult(
                False, config.max_requests, 0, reset_at, retry_after=config.window_seconds
            )

        try:
            self.store.record(RateLimitRecord(key, now, user_agent, metadata or {}))
        except Exception:
            logger.error("Failed to record rate limit entry for %s", config.function_name, exc_info=True)

        return RateLimitResult(True, config.max_requests, config.max_requests - count - 1, reset_at)
