"""Tests for the target site's URL scheme helpers."""

from __future__ import annotations

import pytest

from rendarr.domain.entities.catalog import SortOrder
from rendarr.infrastructure.scraping.urls import (
    absolutize,
    listing_url,
    normalize_detail_url,
)

ORIGIN = "https://hstream.moe"


class TestListingUrl:
    def test_popular(self) -> None:
        assert listing_url(ORIGIN, 1) == (
            "https://hstream.moe/search?view=poster&order=view-count&page=1"
        )

    def test_recent(self) -> None:
        assert listing_url(ORIGIN, 3, sort_order=SortOrder.RECENT) == (
            "https://hstream.moe/search?view=poster&order=recently-released&page=3"
        )

    def test_search_is_url_encoded(self) -> None:
        assert listing_url(ORIGIN, 2, "maid & butler") == (
            "https://hstream.moe/search?q=maid+%26+butler&page=2&view=poster"
        )

    def test_blank_search_is_unfiltered(self) -> None:
        assert "order=view-count" in listing_url(ORIGIN, 1, "   ")

    def test_page_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            listing_url(ORIGIN, 0)


class TestNormalizeDetailUrl:
    def test_repairs_double_origin(self) -> None:
        broken = "https://hstream.moehttps://hstream.moe/hentai/title-1"
        assert normalize_detail_url(broken, ORIGIN) == "https://hstream.moe/hentai/title-1"

    def test_repairs_bare_host_prefix(self) -> None:
        broken = "hstream.moehttps://hstream.moe/hentai/title-1"
        assert normalize_detail_url(broken, ORIGIN) == "https://hstream.moe/hentai/title-1"

    def test_clean_url_unchanged(self) -> None:
        url = "https://hstream.moe/hentai/title-1"
        assert normalize_detail_url(url, ORIGIN) == url


class TestAbsolutize:
    def test_relative_path(self) -> None:
        assert absolutize("/images/a.webp", ORIGIN) == "https://hstream.moe/images/a.webp"

    def test_protocol_relative(self) -> None:
        assert absolutize("//cdn.x/a.webp", ORIGIN) == "https://cdn.x/a.webp"

    def test_absolute_unchanged(self) -> None:
        assert absolutize("https://cdn.x/a.webp", ORIGIN) == "https://cdn.x/a.webp"

    def test_empty(self) -> None:
        assert absolutize("", ORIGIN) == ""
