"""Catalog builder use case: lazily crawl a namespace until a window is filled."""

from __future__ import annotations

import asyncio
from collections import defaultdict

import structlog

from rendarr.domain.entities.catalog import (
    CatalogEntry,
    CatalogSnapshot,
    QueryNamespace,
    SortOrder,
)
from rendarr.domain.ports.rendering import RenderingSession, RenderingSessionProvider
from rendarr.infrastructure.persistence.result_cache import CatalogRepository
from rendarr.infrastructure.scraping.page_fetcher import PageFetcher, PageRequest

log = structlog.get_logger(__name__)


class NamespaceLocks:
    """One ``asyncio.Lock`` per namespace cache key.

    Concurrent requests for the same namespace share one crawl instead of
    issuing duplicate rendering sessions.
    """

    def __init__(self) -> None:
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def __call__(self, namespace: QueryNamespace) -> asyncio.Lock:
        return self._locks[namespace.cache_key]


class CatalogBuilder:
    """Serves ``[offset, offset + page_size)`` windows of a namespace.

    Missing pages are fetched in batches of ``concurrent_pages`` inside one
    rendering session per batch. The crawl stops when the window is
    filled, the ceiling is reached, a batch yields nothing new, or a batch
    fails. Whatever has accumulated is always returned. A batch that
    yields nothing new also marks the namespace exhausted, so later calls
    are served from the snapshot until it expires.
    """

    def __init__(
        self,
        provider: RenderingSessionProvider,
        fetcher: PageFetcher,
        repository: CatalogRepository,
        *,
        page_size: int = 500,
        max_pages: int = 20,
        concurrent_pages: int = 5,
        locks: NamespaceLocks | None = None,
    ) -> None:
        self._provider = provider
        self._fetcher = fetcher
        self._repository = repository
        self.page_size = page_size
        self.max_pages = max_pages
        self.concurrent_pages = concurrent_pages
        self.locks = locks or NamespaceLocks()

    @property
    def ceiling(self) -> int:
        return self.max_pages * self.page_size

    async def fetch_catalog_slice(
        self,
        offset: int = 0,
        search_term: str = "",
        sort_order: SortOrder = SortOrder.POPULAR,
    ) -> list[CatalogEntry]:
        """Return the requested window, crawling missing pages first."""
        offset = max(offset, 0)
        namespace = QueryNamespace(search_term=search_term.strip(), sort_order=sort_order)
        wanted = offset + self.page_size

        snapshot = await self._repository.load(namespace)
        if not self._needs_more(snapshot, wanted):
            return self._window(snapshot, offset)

        async with self.locks(namespace):
            snapshot = await self._crawl(namespace, wanted)
        return self._window(snapshot, offset)

    def _needs_more(self, snapshot: CatalogSnapshot, wanted: int) -> bool:
        return (
            not snapshot.exhausted
            and len(snapshot) < wanted
            and len(snapshot) < self.ceiling
            and snapshot.pages_crawled < self.max_pages
        )

    def _window(self, snapshot: CatalogSnapshot, offset: int) -> list[CatalogEntry]:
        return list(snapshot.entries[offset : offset + self.page_size])

    async def _crawl(self, namespace: QueryNamespace, wanted: int) -> CatalogSnapshot:
        # Reload under the lock: a concurrent crawl may have filled it.
        snapshot = await self._repository.load(namespace)
        while self._needs_more(snapshot, wanted):
            first = snapshot.pages_crawled + 1
            width = min(self.concurrent_pages, self.max_pages - snapshot.pages_crawled)
            pages = list(range(first, first + width))
            try:
                entries, fetched, failure = await self._fetch_batch(namespace, pages)
            except Exception:
                log.error(
                    "catalog_batch_failed",
                    namespace=namespace.cache_key,
                    pages=pages,
                    exc_info=True,
                )
                break

            if failure is not None and fetched == 0:
                log.warning(
                    "catalog_batch_failed",
                    namespace=namespace.cache_key,
                    pages=pages,
                    error=str(failure),
                )
                break
            if not entries:
                log.info(
                    "catalog_exhausted",
                    namespace=namespace.cache_key,
                    pages=pages,
                    total=len(snapshot),
                )
                snapshot = await self._repository.mark_exhausted(
                    namespace, pages_crawled=snapshot.pages_crawled
                )
                break

            before = snapshot.pages_crawled
            snapshot, added = await self._repository.append(
                namespace, entries, pages=fetched, after=before
            )
            if snapshot.pages_crawled != before + fetched:
                # Namespace expired mid-crawl; start over from the stored count.
                log.warning(
                    "catalog_crawl_restarted",
                    namespace=namespace.cache_key,
                    pages_crawled=snapshot.pages_crawled,
                )
                continue
            if failure is not None:
                log.warning(
                    "catalog_batch_partial",
                    namespace=namespace.cache_key,
                    kept_pages=fetched,
                    error=str(failure),
                )
                break
            if not added:
                log.info(
                    "catalog_no_new_entries",
                    namespace=namespace.cache_key,
                    pages=pages,
                )
                snapshot = await self._repository.mark_exhausted(
                    namespace, pages_crawled=snapshot.pages_crawled
                )
                break
        return snapshot

    async def _fetch_batch(
        self, namespace: QueryNamespace, pages: list[int]
    ) -> tuple[list[CatalogEntry], int, BaseException | None]:
        """Fetch *pages* concurrently in one session.

        Returns the flattened entries of the contiguous run of successful
        pages from the start of the batch, how many pages that run spans,
        and the first failure (if any).
        """
        log.info(
            "catalog_batch_started",
            namespace=namespace.cache_key,
            first_page=pages[0],
            last_page=pages[-1],
        )
        async with self._provider.session() as session:
            results = await asyncio.gather(
                *(self._fetch_page(session, namespace, page) for page in pages),
                return_exceptions=True,
            )

        entries: list[CatalogEntry] = []
        fetched = 0
        for result in results:
            if isinstance(result, BaseException):
                return entries, fetched, result
            entries.extend(result)
            fetched += 1
        return entries, fetched, None

    async def _fetch_page(
        self, session: RenderingSession, namespace: QueryNamespace, page: int
    ) -> list[CatalogEntry]:
        request = PageRequest(
            page=page,
            search_term=namespace.search_term,
            sort_order=namespace.sort_order,
        )
        return await self._fetcher.fetch(session, request)
