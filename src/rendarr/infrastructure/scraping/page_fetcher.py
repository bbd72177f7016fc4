"""Page fetcher: one listing page -> normalized catalog entries."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

import structlog

from rendarr.domain.entities.catalog import CatalogEntry, SortOrder
from rendarr.domain.exceptions import ExtractionError, NavigationError, NavigationTimeoutError
from rendarr.domain.ports.rendering import RenderedPage, RenderingSession
from rendarr.infrastructure.browser.constants import (
    DEFAULT_USER_AGENT,
    LISTING_BLOCKED_RESOURCE_TYPES,
)
from rendarr.infrastructure.common.retry import RetryPolicy

from .listing_extractors import (
    LISTING_READY_SELECTOR,
    LISTING_SCRIPT,
    entry_from_raw,
    listing_script_arg,
)
from .urls import listing_url

log = structlog.get_logger(__name__)

_SCROLL_SCRIPT = "() => window.scrollTo(0, document.body.scrollHeight)"


@dataclass(frozen=True)
class PageRequest:
    """Descriptor of one listing page."""

    page: int
    search_term: str = ""
    sort_order: SortOrder = SortOrder.POPULAR


class PageFetcher:
    """Fetches a single listing page inside a caller-owned rendering session.

    Navigation failures propagate (after the retry policy is exhausted);
    everything after navigation is best-effort.
    """

    def __init__(
        self,
        *,
        origin: str,
        detail_marker: str,
        id_prefix: str,
        retry_policy: RetryPolicy | None = None,
        navigation_timeout_ms: int = 30_000,
        selector_timeout_ms: int = 15_000,
        scroll_settle_seconds: float = 1.0,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self._origin = origin
        self._detail_marker = detail_marker
        self._id_prefix = id_prefix
        self._retry = retry_policy or RetryPolicy()
        self._navigation_timeout_ms = navigation_timeout_ms
        self._selector_timeout_ms = selector_timeout_ms
        self._scroll_settle_seconds = scroll_settle_seconds
        self._user_agent = user_agent

    def url_for(self, request: PageRequest) -> str:
        return listing_url(
            self._origin, request.page, request.search_term, request.sort_order
        )

    async def fetch(
        self, session: RenderingSession, request: PageRequest
    ) -> list[CatalogEntry]:
        """Fetch *request* and return its entries in DOM order (maybe empty).

        Raises:
            NavigationError: navigation failed on every attempt.
        """
        url = self.url_for(request)
        async with session.page() as page:
            await page.set_user_agent(self._user_agent)
            await page.block_resource_types(LISTING_BLOCKED_RESOURCE_TYPES)

            await self._retry.run(
                lambda: self._navigate(page, url),
                context=f"listing_page_{request.page}",
            )
            try:
                await self._wait_for_listing(page, url)
                raw_records = await page.evaluate(LISTING_SCRIPT, listing_script_arg())
            except Exception as exc:  # noqa: BLE001
                log.warning(
                    "listing_extraction_failed",
                    url=url,
                    page=request.page,
                    error=str(exc),
                )
                raw_records = []

        entries = self._normalize(raw_records or [], url)
        log.info(
            "listing_page_fetched",
            page=request.page,
            search=request.search_term,
            sort=request.sort_order.value,
            raw=len(raw_records or []),
            entries=len(entries),
        )
        return entries

    async def _navigate(self, page: RenderedPage, url: str) -> None:
        log.debug("listing_navigate", url=url)
        status = await page.goto(
            url, wait_until="networkidle", timeout_ms=self._navigation_timeout_ms
        )
        if status != 200:
            raise NavigationError(url, status=status)

    async def _wait_for_listing(self, page: RenderedPage, url: str) -> None:
        try:
            await page.wait_for_selector(
                LISTING_READY_SELECTOR, timeout_ms=self._selector_timeout_ms
            )
        except NavigationTimeoutError:
            # Best-effort: extract from whatever DOM is present.
            log.warning("listing_container_timeout", url=url)
            return
        await page.evaluate(_SCROLL_SCRIPT)
        if self._scroll_settle_seconds > 0:
            await asyncio.sleep(self._scroll_settle_seconds)

    def _normalize(self, raw_records: list, url: str) -> list[CatalogEntry]:
        entries: list[CatalogEntry] = []
        for index, raw in enumerate(raw_records):
            try:
                entry = entry_from_raw(
                    raw,
                    origin=self._origin,
                    detail_marker=self._detail_marker,
                    id_prefix=self._id_prefix,
                )
            except (ExtractionError, AttributeError, TypeError, ValueError) as exc:
                log.warning("listing_record_dropped", url=url, index=index, error=str(exc))
                continue
            if entry is not None:
                entries.append(entry)
        return entries
