"""Domain entities for the scraped listing catalog.

Pure value objects with no framework dependencies and no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum


class SortOrder(str, Enum):
    """Listing sort order understood by the source site."""

    POPULAR = "popular"
    RECENT = "recent"


@dataclass(frozen=True)
class CatalogEntry:
    """One listing record scraped from a catalog page."""

    identity: str
    display_name: str
    poster_url: str
    detail_url: str
    sequence_number: str | None = None


@dataclass(frozen=True)
class QueryNamespace:
    """Partition of cached listing data, keyed by search term and sort order."""

    search_term: str = ""
    sort_order: SortOrder = SortOrder.POPULAR

    @property
    def cache_key(self) -> str:
        term = self.search_term.strip().lower()
        if term:
            return f"catalog:search:{term}:{self.sort_order.value}"
        return f"catalog:all:{self.sort_order.value}"


@dataclass(frozen=True)
class CatalogSnapshot:
    """Accumulated, append-only entries of one namespace.

    Replaced wholesale on every append; never mutated in place.
    ``exhausted`` is set once the site ran out of records for the
    namespace; no further pages are crawled until the snapshot expires.
    """

    entries: tuple[CatalogEntry, ...] = ()
    pages_crawled: int = 0
    exhausted: bool = False

    def __len__(self) -> int:
        return len(self.entries)

    def find(self, identity: str) -> CatalogEntry | None:
        for entry in self.entries:
            if entry.identity == identity:
                return entry
        return None

    def extend(
        self, new_entries: list[CatalogEntry], *, pages: int
    ) -> tuple[CatalogSnapshot, list[CatalogEntry]]:
        """Return a new snapshot with *new_entries* appended.

        Entries whose identity is already present (or repeated within
        *new_entries*) are suppressed.  Returns the snapshot and the
        entries that were actually added.
        """
        seen = {e.identity for e in self.entries}
        added: list[CatalogEntry] = []
        for entry in new_entries:
            if entry.identity in seen:
                continue
            seen.add(entry.identity)
            added.append(entry)
        snapshot = CatalogSnapshot(
            entries=self.entries + tuple(added),
            pages_crawled=self.pages_crawled + pages,
            exhausted=self.exhausted,
        )
        return snapshot, added

    def mark_exhausted(self) -> CatalogSnapshot:
        return replace(self, exhausted=True)
