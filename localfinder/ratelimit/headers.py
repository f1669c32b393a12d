from __future__ import annotations

from .limiter import RateLimitResult


def rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    headers = {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(max(result.remaining, 0)),
        "X-RateLimit-Reset": str(int(result.reset_at)),
    }
    if result.retry_after:
        headers["Retry-After"] = str(int(result.retry_after))
    return headers
