"""Tests for detail-page metadata parsing."""

from __future__ import annotations

from rendarr.infrastructure.resolver.detail_extractors import (
    clean_title,
    parse_metadata,
    release_date_of,
    sequence_number_of_title,
)


class TestCleanTitle:
    def test_heading_preferred(self) -> None:
        assert clean_title("Heading", "Doc - HStream", "HStream") == "Heading"

    def test_document_title_fallback(self) -> None:
        title = clean_title(None, "Some Show - 2 in 4k for free - HStream", "HStream")
        assert title == "Some Show - 2"

    def test_site_suffix_removed(self) -> None:
        assert clean_title(None, "Some Show - HStream", "HStream") == "Some Show"


class TestParsers:
    def test_release_date(self) -> None:
        assert release_date_of("Released 2023-04-05 (JP)") == "2023-04-05"

    def test_release_date_missing(self) -> None:
        assert release_date_of("Released soon") is None
        assert release_date_of(None) is None

    def test_sequence_from_title(self) -> None:
        assert sequence_number_of_title("Some Show - 12") == "12"
        assert sequence_number_of_title("Some Show") is None


class TestParseMetadata:
    def test_full(self) -> None:
        meta = parse_metadata(
            {
                "heading": "Some Show - 2",
                "documentTitle": "ignored",
                "originalTitle": "Japanese Title",
                "description": "",
                "ogDescription": "OG text",
                "visibleDescription": "visible",
                "released": "2022-01-02",
                "studio": "Studio X",
                "genres": ["Comedy", "", None, "Drama"],
                "viewCount": "12,345",
            },
            site_name="HStream",
        )
        assert meta == {
            "title": "Some Show - 2",
            "original_title": "Japanese Title",
            "description": "OG text",
            "release_date": "2022-01-02",
            "studio": "Studio X",
            "genres": ("Comedy", "Drama"),
            "view_count": "12,345",
            "sequence_number": "2",
        }

    def test_meta_description_preferred(self) -> None:
        meta = parse_metadata(
            {"description": "Meta", "ogDescription": "OG", "visibleDescription": "Vis"},
            site_name="HStream",
        )
        assert meta["description"] == "Meta"

    def test_empty(self) -> None:
        meta = parse_metadata({}, site_name="HStream")
        assert meta["title"] == ""
        assert meta["genres"] == ()
        assert meta["description"] == ""
