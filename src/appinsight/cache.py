"""In-memory response cache with a read-time TTL check.

Entries live for the lifetime of the process. Nothing is evicted: a stale
entry is simply reported as a miss and stays in memory until the next
successful fetch for the same key overwrites it. The key space is bounded by
the identifiers callers ask about, so no size limit is applied.

The clock is injectable so that expiry can be exercised without waiting on
wall-clock time.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

import structlog

from appinsight.models.cache import CacheEntry, CacheKey

if TYPE_CHECKING:
    from collections.abc import Callable

log = structlog.get_logger()

CACHE_TTL = timedelta(days=30)


def utc_now() -> datetime:
    return datetime.now(UTC)


def compose_key(cache_key_base: str, region: str | None = None) -> CacheKey:
    """Build the cache key for an endpoint and optional region.

    An empty region is treated the same as no region.
    """
    return CacheKey(endpoint=cache_key_base, region=region or None)


class ResponseCache:
    """Process-wide memo of upstream payloads implementing CacheProtocol."""

    def __init__(
        self,
        ttl: timedelta = CACHE_TTL,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._ttl = ttl
        self._clock = clock
        self._entries: dict[CacheKey, CacheEntry] = {}

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def get(self, key: CacheKey) -> CacheEntry | None:
        """Return the entry for ``key``, or ``None`` on miss or expiry."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.stored_at >= self._ttl:
            log.debug("cache_entry_stale", key=key.endpoint, region=key.region)
            return None
        return entry

    def put(self, key: CacheKey, data: Any) -> None:
        """Store ``data`` under ``key``, replacing any previous entry."""
        self._entries[key] = CacheEntry(data=data, stored_at=self._clock())

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
