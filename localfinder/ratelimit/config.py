from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class RateLimitConfig:
    function_name: str
    max_requests: int
    window_seconds: int
    enabled: bool = True


SEARCH_RATE_LIMIT = RateLimitConfig(
    function_name="unified-search",
    max_requests=int(os.getenv("SEARCH_RATE_LIMIT_MAX", "20")),
    window_seconds=int(os.getenv("SEARCH_RATE_LIMIT_WINDOW_SECONDS", "60")),
    enabled=os.getenv("RATE_LIMIT_ENABLED", "true").lower() in {"1", "true", "yes"},
)

# Empty means the in-process store; a path selects the shared SQLite table.
RATE_LIMIT_DB_PATH = os.getenv("RATE_LIMIT_DB_PATH", "")
