"""Addon service: the public catalog/meta/stream operations.

Every operation returns a well-shaped value and never raises; failures
are logged and degrade to empty results.
"""

from __future__ import annotations

import structlog

from rendarr.domain.entities.catalog import CatalogEntry, SortOrder
from rendarr.domain.entities.media import (
    UNKNOWN_TITLE,
    MetaRecord,
    ResolvedItem,
    StreamPayload,
)
from rendarr.infrastructure.persistence.result_cache import MetaRepository
from rendarr.infrastructure.resolver.stream_resolver import StreamResolver

from .catalog_builder import CatalogBuilder
from .identity_lookup import IdentityLookup

log = structlog.get_logger(__name__)

EXTERNAL_LABEL = "Open in Browser"


def external_stream(detail_url: str) -> StreamPayload:
    """The synthetic entry offered when nothing playable resolved."""
    return StreamPayload(
        label=EXTERNAL_LABEL,
        display_title=EXTERNAL_LABEL,
        url=None,
        external_url=detail_url,
    )


def meta_record(entry: CatalogEntry, item: ResolvedItem) -> MetaRecord:
    name = item.title if item.title and item.title != UNKNOWN_TITLE else entry.display_name
    return MetaRecord(
        identity=entry.identity,
        name=name,
        poster_url=entry.poster_url,
        background_url=entry.poster_url,
        description=item.description,
        original_title=item.original_title,
        release_date=item.release_date,
        studio=item.studio,
        genres=list(item.genres),
        view_count=item.view_count,
        sequence_number=item.sequence_number or entry.sequence_number,
        subtitles=list(item.subtitles),
    )


class AddonService:
    def __init__(
        self,
        catalog: CatalogBuilder,
        lookup: IdentityLookup,
        resolver: StreamResolver,
        meta: MetaRepository,
    ) -> None:
        self._catalog = catalog
        self._lookup = lookup
        self._resolver = resolver
        self._meta = meta

    async def get_catalog_slice(
        self,
        offset: int = 0,
        search: str = "",
        sort: SortOrder = SortOrder.POPULAR,
    ) -> list[CatalogEntry]:
        try:
            return await self._catalog.fetch_catalog_slice(offset, search, sort)
        except Exception:
            log.error(
                "catalog_slice_error",
                offset=offset,
                search=search,
                sort=sort.value,
                exc_info=True,
            )
            return []

    async def get_item_meta(self, identity: str) -> MetaRecord | None:
        """Metadata for *identity*, or ``None`` when the item cannot be found."""
        try:
            cached = await self._meta.get(identity)
            if cached is not None:
                return cached

            entry = await self._lookup.find(identity)
            if entry is None:
                log.info("meta_identity_not_found", identity=identity)
                return None

            item = await self._resolver.resolve(entry.detail_url)
            record = meta_record(entry, item)
            if not item.is_degraded:
                await self._meta.save(record)
            return record
        except Exception:
            log.error("meta_error", identity=identity, exc_info=True)
            return None

    async def get_item_streams(self, identity: str) -> list[StreamPayload]:
        """Ranked streams; one external entry when none resolve; ``[]`` if unknown."""
        try:
            entry = await self._lookup.find(identity)
            if entry is None:
                log.info("streams_identity_not_found", identity=identity)
                return []

            item = await self._resolver.resolve(entry.detail_url)
            if not item.streams:
                log.info("streams_fallback_external", identity=identity)
                return [external_stream(entry.detail_url)]
            return list(item.streams)
        except Exception:
            log.error("streams_error", identity=identity, exc_info=True)
            return []
