"""Tests for CatalogBuilder (lazy, batched, cached catalog windows)."""

from __future__ import annotations

import asyncio

import pytest

from rendarr.application.use_cases.catalog_builder import CatalogBuilder
from rendarr.domain.entities.catalog import QueryNamespace, SortOrder
from rendarr.domain.exceptions import BrowserLaunchError
from rendarr.infrastructure.persistence.result_cache import CatalogRepository


@pytest.fixture()
def repository(caches) -> CatalogRepository:
    return CatalogRepository(caches.catalog)


def _builder(provider, fetcher, repository, **kwargs) -> CatalogBuilder:
    return CatalogBuilder(provider, fetcher, repository, **kwargs)


class TestWindows:
    async def test_first_window_from_one_batch(
        self, provider, fetcher_factory, repository, listing_page
    ) -> None:
        fetcher = fetcher_factory({p: listing_page(p, 200) for p in range(1, 11)})
        builder = _builder(provider, fetcher, repository)

        window = await builder.fetch_catalog_slice(0)

        assert len(window) == 500
        assert fetcher.fetched_pages == [1, 2, 3, 4, 5]
        assert len(provider.sessions) == 1
        assert provider.sessions[0].closed
        # page order, then DOM order within a page
        assert window[0] == listing_page(1, 200)[0]
        assert window[200] == listing_page(2, 200)[0]

    async def test_second_call_is_served_from_cache(
        self, provider, fetcher_factory, repository, listing_page
    ) -> None:
        fetcher = fetcher_factory({p: listing_page(p, 500) for p in range(1, 6)})
        builder = _builder(provider, fetcher, repository)

        first = await builder.fetch_catalog_slice(0, "", SortOrder.POPULAR)
        fetched = len(fetcher.requests)
        second = await builder.fetch_catalog_slice(0, "", SortOrder.POPULAR)

        assert first == second
        assert len(fetcher.requests) == fetched
        assert len(provider.sessions) == 1

    async def test_seeded_namespace_scenario(
        self, provider, fetcher_factory, repository, listing_page
    ) -> None:
        seeded = listing_page(1, 500) + listing_page(2, 500) + listing_page(3, 500)
        await repository.append(QueryNamespace(), seeded, pages=3)
        fetcher = fetcher_factory({})  # the site has nothing beyond page 3
        builder = _builder(provider, fetcher, repository)

        window = await builder.fetch_catalog_slice(1400, "", SortOrder.POPULAR)
        assert window == seeded[1400:1500]
        assert len(provider.sessions) == 1
        assert fetcher.fetched_pages == [4, 5, 6, 7, 8]

        tail = await builder.fetch_catalog_slice(1500, "", SortOrder.POPULAR)
        assert tail == []
        assert len(provider.sessions) == 1
        assert fetcher.fetched_pages == [4, 5, 6, 7, 8]

    async def test_offset_beyond_end_is_empty(
        self, provider, fetcher_factory, repository, listing_page
    ) -> None:
        fetcher = fetcher_factory({1: listing_page(1, 30)})
        builder = _builder(provider, fetcher, repository)
        assert await builder.fetch_catalog_slice(5000) == []

    async def test_negative_offset_treated_as_zero(
        self, provider, fetcher_factory, repository, listing_page
    ) -> None:
        fetcher = fetcher_factory({1: listing_page(1, 3)})
        builder = _builder(provider, fetcher, repository)
        assert len(await builder.fetch_catalog_slice(-10)) == 3


class TestTermination:
    async def test_empty_batch_stops(
        self, provider, fetcher_factory, repository, listing_page
    ) -> None:
        fetcher = fetcher_factory({1: listing_page(1, 40), 2: listing_page(2, 40)})
        builder = _builder(provider, fetcher, repository)

        window = await builder.fetch_catalog_slice(0)

        assert len(window) == 80
        assert fetcher.fetched_pages == [1, 2, 3, 4, 5, 6, 7, 8, 9, 10]
        assert len(provider.sessions) == 2

    async def test_short_search_is_not_recrawled(
        self, provider, fetcher_factory, repository, listing_page
    ) -> None:
        fetcher = fetcher_factory({1: listing_page(1, 40)})
        builder = _builder(provider, fetcher, repository)

        first = await builder.fetch_catalog_slice(0, "maid")
        fetched = len(fetcher.requests)
        second = await builder.fetch_catalog_slice(0, "maid")

        assert first == second
        assert len(first) == 40
        assert fetched == 10
        assert len(fetcher.requests) == fetched
        assert len(provider.sessions) == 2
        assert (await repository.load(QueryNamespace("maid"))).exhausted

    async def test_no_new_identities_marks_exhausted(
        self, provider, fetcher_factory, repository, listing_page
    ) -> None:
        same = listing_page(1, 10)
        fetcher = fetcher_factory({p: same for p in range(1, 21)})
        builder = _builder(provider, fetcher, repository)

        await builder.fetch_catalog_slice(0)
        await builder.fetch_catalog_slice(0)

        assert fetcher.fetched_pages == list(range(1, 11))

    async def test_batch_without_new_identities_stops(
        self, provider, fetcher_factory, repository, listing_page
    ) -> None:
        same = listing_page(1, 10)
        fetcher = fetcher_factory({p: same for p in range(1, 21)})
        builder = _builder(provider, fetcher, repository)

        window = await builder.fetch_catalog_slice(0)

        assert window == same
        assert fetcher.fetched_pages == list(range(1, 11))

    async def test_ceiling(self, provider, fetcher_factory, repository, listing_page) -> None:
        fetcher = fetcher_factory({p: listing_page(p, 100) for p in range(1, 21)})
        builder = _builder(provider, fetcher, repository, max_pages=3)

        window = await builder.fetch_catalog_slice(0)

        assert len(window) == 300
        assert fetcher.fetched_pages == [1, 2, 3]
        assert builder.ceiling == 1500

    async def test_ceiling_reached_no_further_sessions(
        self, provider, fetcher_factory, repository, listing_page
    ) -> None:
        fetcher = fetcher_factory({p: listing_page(p, 100) for p in range(1, 21)})
        builder = _builder(provider, fetcher, repository, max_pages=2)
        await builder.fetch_catalog_slice(0)
        await builder.fetch_catalog_slice(100)
        assert len(provider.sessions) == 1


class TestDedup:
    async def test_repeated_identity_kept_once(
        self, provider, fetcher_factory, repository, entry_factory
    ) -> None:
        dup = entry_factory("repeat", "3")
        fetcher = fetcher_factory(
            {
                1: [entry_factory("a"), dup],
                2: [dup, entry_factory("b")],
                3: [dup],
            }
        )
        builder = _builder(provider, fetcher, repository)

        window = await builder.fetch_catalog_slice(0)

        identities = [e.identity for e in window]
        assert identities.count(dup.identity) == 1
        assert identities == ["hstream:a-1", dup.identity, "hstream:b-1"]


class TestFailures:
    async def test_failed_page_keeps_successful_prefix(
        self, provider, fetcher_factory, repository, listing_page
    ) -> None:
        fetcher = fetcher_factory(
            {p: listing_page(p, 50) for p in range(1, 6)}, failing={3}
        )
        builder = _builder(provider, fetcher, repository)

        window = await builder.fetch_catalog_slice(0)

        assert window == listing_page(1, 50) + listing_page(2, 50)
        snapshot = await repository.load(QueryNamespace())
        assert snapshot.pages_crawled == 2
        assert len(provider.sessions) == 1

    async def test_failed_first_page_returns_cached(
        self, provider, fetcher_factory, repository, listing_page
    ) -> None:
        await repository.append(QueryNamespace(), listing_page(1, 10), pages=1)
        fetcher = fetcher_factory({}, failing={2, 3, 4, 5, 6})
        builder = _builder(provider, fetcher, repository)

        window = await builder.fetch_catalog_slice(0)

        assert window == listing_page(1, 10)

    async def test_launch_failure_returns_accumulated(
        self, provider, fetcher_factory, repository, listing_page
    ) -> None:
        await repository.append(QueryNamespace(), listing_page(1, 10), pages=1)
        provider.launch_error = BrowserLaunchError("no chromium")
        builder = _builder(provider, fetcher_factory({}), repository)

        assert await builder.fetch_catalog_slice(0) == listing_page(1, 10)


class TestNamespaces:
    async def test_search_and_sort_forwarded(
        self, provider, fetcher_factory, repository, listing_page
    ) -> None:
        fetcher = fetcher_factory({1: listing_page(1, 5)})
        builder = _builder(provider, fetcher, repository)

        await builder.fetch_catalog_slice(0, " maid ", SortOrder.RECENT)

        request = fetcher.requests[0]
        assert request.search_term == "maid"
        assert request.sort_order is SortOrder.RECENT
        stored = await repository.load(QueryNamespace("maid", SortOrder.RECENT))
        assert len(stored) == 5
        assert len(await repository.load(QueryNamespace())) == 0

    async def test_concurrent_requests_share_one_crawl(
        self, provider, fetcher_factory, repository, listing_page
    ) -> None:
        fetcher = fetcher_factory({p: listing_page(p, 100) for p in range(1, 11)})
        builder = _builder(provider, fetcher, repository)

        a, b = await asyncio.gather(
            builder.fetch_catalog_slice(0), builder.fetch_catalog_slice(0)
        )

        assert a == b
        assert len(a) == 500
        assert fetcher.fetched_pages == [1, 2, 3, 4, 5]
        assert len(provider.sessions) == 1


class TestExpiryMidCrawl:
    async def test_restarts_from_page_one(
        self, provider, fetcher_factory, repository, listing_page
    ) -> None:
        fetcher = fetcher_factory({p: listing_page(p, 100) for p in range(1, 7)})
        fetch = fetcher.fetch
        expired = False

        async def fetch_expiring_on_page_3(session, request):
            nonlocal expired
            if request.page == 3 and not expired:
                expired = True
                await repository.cache.clear()
            return await fetch(session, request)

        fetcher.fetch = fetch_expiring_on_page_3
        builder = _builder(provider, fetcher, repository, concurrent_pages=2)

        window = await builder.fetch_catalog_slice(0)

        assert fetcher.fetched_pages == [1, 2, 3, 4, 1, 2, 3, 4, 5, 6]
        snapshot = await repository.load(QueryNamespace())
        assert snapshot.pages_crawled == 6
        expected = [e for p in range(1, 7) for e in listing_page(p, 100)]
        assert list(snapshot.entries) == expected
        assert window == expected[:500]
