from __future__ import annotations

import json
import logging
import sqlite3
import threading
import time
from contextlib import closing
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitKey:
    identifier: str
    identifier_type: str
    function_name: str


@dataclass(frozen=True)
class RateLimitRecord:
    key: RateLimitKey
    timestamp: float
    user_agent: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class RateLimitStore(Protocol):
    """Append-only log of admitted attempts.

    ``count`` followed by ``record`` is not atomic: two concurrent requests
    from one identifier can both see the pre-increment count. Limits are
    therefore approximate under concurrency.
    """

    def count(self, key: RateLimitKey, window_start: float) -> int: ...

    def record(self, record: RateLimitRecord) -> None: ...


class InMemoryRateLimitStore:
    """Single-process store.

    Rows older than ``retention_seconds`` are evicted when their key is
    counted, and every key is swept once per retention period so that
    identifiers which never come back do not accumulate.
    """

    def __init__(self, retention_seconds: float = 3600.0, clock: Callable[[], float] = time.time):
        self.retention_seconds = retention_seconds
        self._clock = clock
        self._records: dict[RateLimitKey, list[RateLimitRecord]] = {}
        self._lock = threading.Lock()
        self._last_sweep = clock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def _sweep(self, now: float) -> None:
        # Caller holds the lock.
        if now - self._last_sweep < self.retention_seconds:
            return
        cutoff = now - self.retention_seconds
        for key in list(self._records):
            rows = [r for r in self._records[key] if r.timestamp >= cutoff]
            if rows:
                self._records[key] = rows
            else:
                del self._records[key]
        self._last_sweep = now

    def count(self, key: RateLimitKey, window_start: float) -> int:
        with self._lock:
            now = self._clock()
            self._sweep(now)
            rows = self._records.get(key)
            if not rows:
                return 0
            cutoff = now - self.retention_seconds
            rows = [r for r in rows if r.timestamp >= cutoff]
            if rows:
                self._records[key] = rows
            else:
                del self._records[key]
            return sum(1 for r in rows if r.timestamp >= window_start)

    def record(self, record: RateLimitRecord) -> None:
        with self._lock:
            self._sweep(self._clock())
            self._records.setdefault(record.key, []).append(record)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()


_SCHEMA = """
CREATE TABLE IF NOT EXISTS rate_limits (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    identifier TEXT NOT NULL,
    type TEXT NOT NULL,
    function_name TEXT NOT NULL,
    request_at REAL NOT NULL,
    user_agent TEXT,
    metadata TEXT NOT NULL DEFAULT '{}'
);
CREATE INDEX IF NOT EXISTS idx_rate_limits_lookup
    ON rate_limits (identifier, type, function_name, request_at);
"""


class SqliteRateLimitStore:
    """Store shared by every process that opens the same database file.

    Each instance deletes rows older than ``retention_seconds`` at most once
    per retention period, piggybacking on ``record``.
    """

    def __init__(
        self,
        path: str | Path,
        retention_seconds: float = 3600.0,
        clock: Callable[[], float] = time.time,
    ):
        self.path = str(path)
        self.retention_seconds = retention_seconds
        self._clock = clock
        self._last_purge = clock()
        with closing(self._connect()) as conn, conn:
            conn.executescript(_SCHEMA)

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.path, timeout=5.0)

    def count(self, key: RateLimitKey, window_start: float) -> int:
        with closing(self._connect()) as conn:
            row = conn.execute(
                "SELECT COUNT(*) FROM rate_limits"
                " WHERE identifier = ? AND type = ? AND function_name = ? AND request_at >= ?",
                (key.identifier, key.identifier_type, key.function_name, window_start),
            ).fetchone()
        return int(row[0])

    def record(self, record: RateLimitRecord) -> None:
        with closing(self._connect()) as conn, conn:
            conn.execute(
                "INSERT INTO rate_limits"
                " (identifier, type, function_name, request_at, user_agent, metadata)"
                " VALUES (?, ?, ?, ?, ?, ?)",
                (
                    record.key.identifier,
                    record.key.identifier_type,
                    record.key.function_name,
                    record.timestamp,
                    record.user_agent,
                    json.dumps(record.metadata, default=str),
                ),
            )

        now = self._clock()
        if now - self._last_purge >= self.retention_seconds:
            self._last_purge = now
            removed = self.purge(now - self.retention_seconds)
            logger.debug("Purged %d expired rate limit rows", removed)

    def purge(self, older_than: float) -> int:
        """Delete rows older than ``older_than`` and return how many went."""
        with closing(self._connect()) as conn, conn:
            cursor = conn.execute("DELETE FROM rate_limits WHERE request_at < ?", (older_than,))
            return cursor.rowcount
