"""Shared test fixtures for the Rendarr test suite."""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any

import pytest

from rendarr.domain.entities.catalog import CatalogEntry
from rendarr.domain.exceptions import NavigationError, NavigationTimeoutError
from rendarr.infrastructure.persistence.result_cache import ResultCaches
from rendarr.infrastructure.scraping.page_fetcher import PageRequest

ORIGIN = "https://hstream.moe"
PREFIX = "hstream:"


def make_entry(slug: str, seq: str | None = "1") -> CatalogEntry:
    """CatalogEntry as the listing extractor would build it."""
    path = f"{slug}-{seq}" if seq else slug
    identity = f"{PREFIX}{slug}-{seq}" if seq else f"{PREFIX}{slug}"
    name = slug.replace("-", " ").title()
    return CatalogEntry(
        identity=identity,
        display_name=f"{name} - {seq}" if seq else name,
        poster_url=f"{ORIGIN}/images/{slug}.webp",
        detail_url=f"{ORIGIN}/hentai/{path}",
        sequence_number=seq,
    )


def make_page(page: int, size: int) -> list[CatalogEntry]:
    """*size* distinct entries for listing page *page*."""
    return [make_entry(f"title-p{page}-{i}") for i in range(size)]


# ---------------------------------------------------------------------------
# Fake rendering port
# ---------------------------------------------------------------------------


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakePage:
    """Scriptable ``RenderedPage``.

    - ``statuses``: HTTP statuses returned by successive ``goto`` calls
      (the last one repeats); an Exception instance is raised instead.
    - ``media_requests``: URLs pushed through the request filter on goto.
    - ``evaluate_result``: returned for scripts taking an argument.
    - ``missing_selectors``: selectors whose wait raises a timeout.
    """

    def __init__(
        self,
        *,
        statuses: list[Any] | None = None,
        media_requests: list[str] | None = None,
        evaluate_result: Any = None,
        missing_selectors: set[str] | None = None,
    ) -> None:
        self.statuses = list(statuses or [200])
        self.media_requests = list(media_requests or [])
        self.evaluate_result = evaluate_result
        self.missing_selectors = set(missing_selectors or ())
        self.user_agent: str | None = None
        self.blocked: set[str] = set()
        self.request_filter: Callable[[str, str], Any] | None = None
        self.aborted: list[str] = []
        self.continued: list[str] = []
        self.goto_calls: list[str] = []
        self.evaluations: list[str] = []
        self.closed = False

    async def set_user_agent(self, user_agent: str) -> None:
        self.user_agent = user_agent

    async def block_resource_types(self, resource_types) -> None:
        self.blocked = set(resource_types)

    async def intercept_requests(self, request_filter) -> None:
        self.request_filter = request_filter

    async def goto(self, url: str, *, wait_until: str, timeout_ms: int) -> int:
        self.goto_calls.append(url)
        outcome = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        if isinstance(outcome, Exception):
            raise outcome
        for media_url in self.media_requests:
            if self.request_filter is not None and self.request_filter(media_url, "media"):
                self.aborted.append(media_url)
            else:
                self.continued.append(media_url)
        return outcome

    async def wait_for_selector(self, selector: str, *, timeout_ms: int) -> None:
        if selector in self.missing_selectors:
            raise NavigationTimeoutError(selector, timeout_ms=timeout_ms)

    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        self.evaluations.append(expression)
        if arg is None:
            return None
        if isinstance(self.evaluate_result, Exception):
            raise self.evaluate_result
        return self.evaluate_result


class FakeSession:
    def __init__(self, page_factory: Callable[[], FakePage]) -> None:
        self._page_factory = page_factory
        self.pages: list[FakePage] = []
        self.closed = False

    @asynccontextmanager
    async def page(self) -> AsyncIterator[FakePage]:
        page = self._page_factory()
        self.pages.append(page)
        try:
            yield page
        finally:
            page.closed = True

    async def close(self) -> None:
        self.closed = True


class FakeProvider:
    """``RenderingSessionProvider`` that hands out ``FakeSession`` objects."""

    def __init__(self, page_factory: Callable[[], FakePage] | None = None) -> None:
        self.page_factory = page_factory or FakePage
        self.sessions: list[FakeSession] = []
        self.launch_error: Exception | None = None

    @asynccontextmanager
    async def session(self) -> AsyncIterator[FakeSession]:
        if self.launch_error is not None:
            raise self.launch_error
        session = FakeSession(self.page_factory)
        self.sessions.append(session)
        try:
            yield session
        finally:
            await session.close()


class FakeFetcher:
    """Stand-in for ``PageFetcher`` serving canned pages per sort/search."""

    def __init__(
        self,
        pages: dict[int, list[CatalogEntry]] | None = None,
        *,
        failing: set[int] | None = None,
    ) -> None:
        self.pages = pages or {}
        self.failing = set(failing or ())
        self.requests: list[PageRequest] = []

    async def fetch(self, session, request: PageRequest) -> list[CatalogEntry]:
        self.requests.append(request)
        if request.page in self.failing:
            raise NavigationError(f"{ORIGIN}/search?page={request.page}", status=503)
        return list(self.pages.get(request.page, []))

    @property
    def fetched_pages(self) -> list[int]:
        return [r.page for r in self.requests]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def caches(clock: FakeClock) -> ResultCaches:
    return ResultCaches.in_memory(clock=clock)


@pytest.fixture()
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture()
def entry_factory() -> Callable[..., CatalogEntry]:
    return make_entry


@pytest.fixture()
def listing_page() -> Callable[[int, int], list[CatalogEntry]]:
    return make_page


@pytest.fixture()
def fetcher_factory() -> type[FakeFetcher]:
    return FakeFetcher


@pytest.fixture()
def provider_factory() -> Callable[..., FakeProvider]:
    """``provider_factory(statuses=[...], evaluate_result=...)`` -> FakeProvider."""

    def _build(**page_kwargs: Any) -> FakeProvider:
        return FakeProvider(lambda: FakePage(**page_kwargs))

    return _build


@pytest.fixture()
def session_factory() -> Callable[..., FakeSession]:
    """``session_factory(statuses=[...], evaluate_result=...)`` -> FakeSession."""

    def _build(**page_kwargs: Any) -> FakeSession:
        return FakeSession(lambda: FakePage(**page_kwargs))

    return _build
