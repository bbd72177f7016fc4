"""Lookup-by-identity fallback.

Items can be requested by identity before the catalog window holding
them was ever crawled (or after the namespace expired). The lookup
checks the identity index and otherwise walks the default namespace one
page at a time, stopping as soon as the identity turns up.
"""

from __future__ import annotations

import structlog

from rendarr.domain.entities.catalog import CatalogEntry, QueryNamespace, SortOrder
from rendarr.domain.exceptions import NavigationError
from rendarr.domain.ports.rendering import RenderingSessionProvider
from rendarr.infrastructure.persistence.result_cache import CatalogRepository
from rendarr.infrastructure.scraping.page_fetcher import PageFetcher, PageRequest

from .catalog_builder import NamespaceLocks

log = structlog.get_logger(__name__)

DEFAULT_NAMESPACE = QueryNamespace(search_term="", sort_order=SortOrder.POPULAR)


class IdentityLookup:
    """Finds a ``CatalogEntry`` by identity, crawling sequentially on a miss."""

    def __init__(
        self,
        provider: RenderingSessionProvider,
        fetcher: PageFetcher,
        repository: CatalogRepository,
        *,
        max_pages: int = 20,
        locks: NamespaceLocks | None = None,
        namespace: QueryNamespace = DEFAULT_NAMESPACE,
    ) -> None:
        self._provider = provider
        self._fetcher = fetcher
        self._repository = repository
        self._max_pages = max_pages
        self._locks = locks or NamespaceLocks()
        self._namespace = namespace

    async def find(self, identity: str) -> CatalogEntry | None:
        """Return the entry for *identity*, or ``None`` when the crawl ends without it."""
        entry = await self._repository.find_entry(identity)
        if entry is not None:
            return entry

        async with self._locks(self._namespace):
            # A crawl that held the lock may have indexed it meanwhile.
            entry = await self._repository.find_entry(identity)
            if entry is not None:
                return entry
            try:
                return await self._crawl_for(identity)
            except Exception:
                log.error("identity_lookup_failed", identity=identity, exc_info=True)
                return None

    async def _crawl_for(self, identity: str) -> CatalogEntry | None:
        namespace = self._namespace
        snapshot = await self._repository.load(namespace)
        entry = snapshot.find(identity)
        if entry is not None:
            return entry
        if snapshot.exhausted or snapshot.pages_crawled >= self._max_pages:
            log.info(
                "identity_lookup_nothing_left",
                identity=identity,
                exhausted=snapshot.exhausted,
                pages_crawled=snapshot.pages_crawled,
            )
            return None
        async with self._provider.session() as session:
            while snapshot.pages_crawled < self._max_pages:
                page = snapshot.pages_crawled + 1
                request = PageRequest(
                    page=page,
                    search_term=namespace.search_term,
                    sort_order=namespace.sort_order,
                )
                try:
                    entries = await self._fetcher.fetch(session, request)
                except NavigationError as exc:
                    log.warning(
                        "identity_lookup_navigation_failed",
                        identity=identity,
                        page=page,
                        status=exc.status,
                    )
                    return None

                if not entries:
                    log.info("identity_lookup_exhausted", identity=identity, page=page)
                    await self._repository.mark_exhausted(
                        namespace, pages_crawled=snapshot.pages_crawled
                    )
                    return None

                before = snapshot.pages_crawled
                snapshot, added = await self._repository.append(
                    namespace, entries, pages=1, after=before
                )
                for entry in entries:
                    if entry.identity == identity:
                        log.info("identity_lookup_found", identity=identity, page=page)
                        return entry
                if snapshot.pages_crawled != before + 1:
                    log.warning(
                        "identity_lookup_restarted",
                        identity=identity,
                        pages_crawled=snapshot.pages_crawled,
                    )
                    continue
                if not added:
                    log.info("identity_lookup_no_new_entries", identity=identity, page=page)
                    await self._repository.mark_exhausted(
                        namespace, pages_crawled=snapshot.pages_crawled
                    )
                    return None

        log.info(
            "identity_lookup_ceiling_reached",
            identity=identity,
            pages_crawled=snapshot.pages_crawled,
        )
        return None
