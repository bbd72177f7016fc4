"""Result cache layer: three independent expiring namespaces.

- catalog: namespace snapshots + identity index (``entry:<identity>``)
- meta:    ``MetaRecord`` by identity
- streams: ``ResolvedItem`` by normalized detail URL
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

import structlog

from rendarr.domain.entities.catalog import CatalogEntry, CatalogSnapshot, QueryNamespace
from rendarr.domain.entities.media import MetaRecord, ResolvedItem
from rendarr.domain.ports.cache import CachePort
from rendarr.infrastructure.cache.expiring_cache import ExpiringCache

log = structlog.get_logger(__name__)


@dataclass
class ResultCaches:
    """The three cache namespaces, each with its own TTL."""

    catalog: CachePort
    meta: CachePort
    streams: CachePort

    @classmethod
    def in_memory(
        cls,
        *,
        catalog_ttl_seconds: float = 3 * 60 * 60,
        meta_ttl_seconds: float = 6 * 60 * 60,
        stream_ttl_seconds: float = 1 * 60 * 60,
        clock: Callable[[], float] | None = None,
    ) -> ResultCaches:
        kwargs = {"clock": clock} if clock is not None else {}
        return cls(
            catalog=ExpiringCache("catalog", catalog_ttl_seconds, **kwargs),
            meta=ExpiringCache("meta", meta_ttl_seconds, **kwargs),
            streams=ExpiringCache("streams", stream_ttl_seconds, **kwargs),
        )

    async def clear(self) -> None:
        await self.catalog.clear()
        await self.meta.clear()
        await self.streams.clear()

    async def aclose(self) -> None:
        await self.catalog.aclose()
        await self.meta.aclose()
        await self.streams.aclose()


class CatalogRepository:
    """Namespace snapshots and the identity index in the catalog cache."""

    def __init__(self, cache: CachePort) -> None:
        self.cache = cache

    async def load(self, namespace: QueryNamespace) -> CatalogSnapshot:
        snapshot = await self.cache.get(namespace.cache_key)
        return snapshot if snapshot is not None else CatalogSnapshot()

    async def append(
        self,
        namespace: QueryNamespace,
        entries: list[CatalogEntry],
        *,
        pages: int,
        after: int | None = None,
    ) -> tuple[CatalogSnapshot, list[CatalogEntry]]:
        """Append *entries* (identity duplicates suppressed) and persist.

        Reloads the snapshot first so appends never resurrect an expired
        namespace with stale data.  When *after* is given it is the page
        count the caller crawled on top of; if the stored snapshot no
        longer has that many pages (it expired mid-crawl) nothing is
        appended and the stored snapshot is returned unchanged, so the
        caller restarts from its page count.
        """
        current = await self.load(namespace)
        if after is not None and current.pages_crawled != after:
            log.warning(
                "catalog_append_stale",
                namespace=namespace.cache_key,
                expected_pages=after,
                stored_pages=current.pages_crawled,
            )
            return current, []
        snapshot, added = current.extend(entries, pages=pages)
        await self.cache.set(namespace.cache_key, snapshot)
        for entry in added:
            await self.cache.set(_entry_key(entry.identity), entry)
        log.debug(
            "catalog_appended",
            namespace=namespace.cache_key,
            added=len(added),
            suppressed=len(entries) - len(added),
            total=len(snapshot),
            pages_crawled=snapshot.pages_crawled,
        )
        return snapshot, added

    async def mark_exhausted(
        self, namespace: QueryNamespace, *, pages_crawled: int
    ) -> CatalogSnapshot:
        """Flag the namespace as fully crawled.

        Skipped when the stored snapshot moved on from *pages_crawled*
        (expired or rebuilt meanwhile).
        """
        current = await self.load(namespace)
        if current.pages_crawled != pages_crawled:
            return current
        snapshot = current.mark_exhausted()
        await self.cache.set(namespace.cache_key, snapshot)
        log.debug(
            "catalog_marked_exhausted",
            namespace=namespace.cache_key,
            total=len(snapshot),
            pages_crawled=pages_crawled,
        )
        return snapshot

    async def find_entry(self, identity: str) -> CatalogEntry | None:
        return await self.cache.get(_entry_key(identity))


class MetaRepository:
    """``MetaRecord`` by identity."""

    def __init__(self, cache: CachePort) -> None:
        self.cache = cache

    async def get(self, identity: str) -> MetaRecord | None:
        return await self.cache.get(f"meta:{identity}")

    async def save(self, record: MetaRecord) -> None:
        await self.cache.set(f"meta:{record.identity}", record)


class ResolvedItemRepository:
    """``ResolvedItem`` by normalized detail URL."""

    def __init__(self, cache: CachePort) -> None:
        self.cache = cache

    async def get(self, detail_url: str) -> ResolvedItem | None:
        return await self.cache.get(f"details:{detail_url}")

    async def save(self, detail_url: str, item: ResolvedItem) -> None:
        await self.cache.set(f"details:{detail_url}", item)


def _entry_key(identity: str) -> str:
    return f"entry:{identity}"
