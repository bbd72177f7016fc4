"""Tests for catalog value objects."""

from __future__ import annotations

from rendarr.domain.entities.catalog import (
    CatalogEntry,
    CatalogSnapshot,
    QueryNamespace,
    SortOrder,
)
from rendarr.domain.entities.media import UNKNOWN_TITLE, ResolvedItem, StreamPayload


def _entry(identity: str) -> CatalogEntry:
    return CatalogEntry(
        identity=identity,
        display_name=identity.upper(),
        poster_url="https://hstream.moe/p.webp",
        detail_url=f"https://hstream.moe/hentai/{identity}",
    )


class TestQueryNamespace:
    def test_default_namespace_key(self) -> None:
        assert QueryNamespace().cache_key == "catalog:all:popular"

    def test_search_key_is_case_insensitive(self) -> None:
        a = QueryNamespace(search_term="  Maid ", sort_order=SortOrder.RECENT)
        b = QueryNamespace(search_term="maid", sort_order=SortOrder.RECENT)
        assert a.cache_key == b.cache_key == "catalog:search:maid:recent"

    def test_sort_orders_partition(self) -> None:
        popular = QueryNamespace(sort_order=SortOrder.POPULAR)
        recent = QueryNamespace(sort_order=SortOrder.RECENT)
        assert popular.cache_key != recent.cache_key


class TestCatalogSnapshot:
    def test_extend_appends_in_order(self) -> None:
        snapshot, added = CatalogSnapshot().extend([_entry("a"), _entry("b")], pages=1)
        assert [e.identity for e in snapshot.entries] == ["a", "b"]
        assert added == [_entry("a"), _entry("b")]
        assert snapshot.pages_crawled == 1

    def test_extend_suppresses_existing_identities(self) -> None:
        first, _ = CatalogSnapshot().extend([_entry("a")], pages=1)
        second, added = first.extend([_entry("a"), _entry("b")], pages=1)
        assert [e.identity for e in second.entries] == ["a", "b"]
        assert [e.identity for e in added] == ["b"]
        assert second.pages_crawled == 2

    def test_extend_suppresses_duplicates_within_batch(self) -> None:
        snapshot, added = CatalogSnapshot().extend(
            [_entry("a"), _entry("a"), _entry("a")], pages=1
        )
        assert len(snapshot) == 1
        assert len(added) == 1

    def test_extend_returns_new_snapshot(self) -> None:
        original = CatalogSnapshot()
        original.extend([_entry("a")], pages=1)
        assert len(original) == 0

    def test_new_snapshot_not_exhausted(self) -> None:
        assert not CatalogSnapshot().exhausted

    def test_mark_exhausted_survives_extend(self) -> None:
        snapshot, _ = CatalogSnapshot().extend([_entry("a")], pages=1)
        marked = snapshot.mark_exhausted()
        assert marked.exhausted
        assert not snapshot.exhausted
        assert marked.entries == snapshot.entries
        extended, _ = marked.extend([_entry("b")], pages=1)
        assert extended.exhausted

    def test_find(self) -> None:
        snapshot, _ = CatalogSnapshot().extend([_entry("a"), _entry("b")], pages=1)
        assert snapshot.find("b") == _entry("b")
        assert snapshot.find("zzz") is None


class TestResolvedItem:
    def test_degraded(self) -> None:
        assert ResolvedItem(title=UNKNOWN_TITLE).is_degraded

    def test_not_degraded_with_streams(self) -> None:
        item = ResolvedItem(
            title=UNKNOWN_TITLE,
            streams=(StreamPayload(label="720p", display_title="HD", url="https://x/a.mp4"),),
        )
        assert not item.is_degraded

    def test_not_degraded_with_title(self) -> None:
        assert not ResolvedItem(title="Real Title").is_degraded
