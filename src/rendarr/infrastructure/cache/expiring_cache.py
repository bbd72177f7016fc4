"""In-memory expiring cache - per-entry absolute expiry, lazy eviction."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Optional

import structlog

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class _CacheEntry:
    value: Any
    expires_at: float


class ExpiringCache:
    """Process-local key/value store with per-entry TTL.

    - Expired entries are removed lazily on ``get``/``exists`` (no sweeper).
    - ``set`` always replaces the entry wholesale.
    - No size bound and no LRU: the working set is a few thousand records.
    - Safe for single-threaded asyncio; not for concurrent threads.

    Args:
        name: Namespace label used in log events.
        ttl_seconds: Default TTL for ``set()`` without explicit value.
        clock: Monotonic time source (seconds), injectable for tests.
    """

    def __init__(
        self,
        name: str = "default",
        ttl_seconds: float = 3600,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.name = name
        self.default_ttl = ttl_seconds
        self._clock = clock
        self._data: dict[str, _CacheEntry] = {}

    # --- Context Manager ---
    async def __aenter__(self) -> ExpiringCache:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        self._data.clear()

    # --- CachePort implementation ---
    async def get(self, key: str) -> Optional[Any]:
        entry = self._data.get(key)
        if entry is None:
            log.debug("cache_get", cache=self.name, key=key, hit=False)
            return None
        if self._clock() > entry.expires_at:
            del self._data[key]
            log.debug("cache_expired", cache=self.name, key=key)
            return None
        log.debug("cache_get", cache=self.name, key=key, hit=True)
        return entry.value

    async def set(self, key: str, value: Any, *, ttl: float | None = None) -> None:
        expire_time = ttl if ttl is not None else self.default_ttl
        self._data[key] = _CacheEntry(value=value, expires_at=self._clock() + expire_time)
        log.debug("cache_set", cache=self.name, key=key, ttl=expire_time)

    async def delete(self, key: str) -> bool:
        deleted = self._data.pop(key, None) is not None
        log.debug("cache_delete", cache=self.name, key=key, deleted=deleted)
        return deleted

    async def exists(self, key: str) -> bool:
        return await self.get(key) is not None

    async def clear(self) -> None:
        self._data.clear()
        log.info("cache_cleared", cache=self.name)

    def __len__(self) -> int:
        """Number of stored entries, including not-yet-evicted expired ones."""
        return len(self._data)
