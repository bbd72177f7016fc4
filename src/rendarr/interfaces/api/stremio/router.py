"""Stremio addon API endpoints (manifest, catalog, meta, stream)."""

from __future__ import annotations

from typing import Any, cast
from urllib.parse import parse_qs

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from rendarr import __version__
from rendarr.domain.entities.catalog import CatalogEntry, SortOrder
from rendarr.domain.entities.media import MetaRecord, ResolvedSubtitle, StreamPayload
from rendarr.infrastructure.config import AppConfig
from rendarr.infrastructure.config.schema import SiteConfig
from rendarr.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/stremio", tags=["stremio"])

CONTENT_TYPE = "movie"

_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "*",
}

_CATALOG_NAMES = {
    SortOrder.POPULAR: "Most Viewed",
    SortOrder.RECENT: "Recently Released",
}


def _slug(config: AppConfig) -> str:
    return config.site.name.strip().lower().replace(" ", "-") or "rendarr"


def catalog_id(config: AppConfig, sort_order: SortOrder) -> str:
    return f"{_slug(config)}-{sort_order.value}"


def _sort_for_catalog(config: AppConfig, raw_id: str) -> SortOrder | None:
    for order in SortOrder:
        if raw_id == catalog_id(config, order):
            return order
    return None


def build_manifest(config: AppConfig) -> dict[str, Any]:
    """Build the Stremio addon manifest."""
    return {
        "id": f"community.rendarr.{_slug(config)}",
        "version": __version__,
        "name": config.site.name,
        "description": f"Watch videos from {config.site.origin} with quality selection",
        "resources": ["catalog", "meta", "stream"],
        "types": [CONTENT_TYPE],
        "idPrefixes": [config.site.id_prefix],
        "catalogs": [
            {
                "type": CONTENT_TYPE,
                "id": catalog_id(config, order),
                "name": _CATALOG_NAMES[order],
                "extra": [
                    {"name": "skip", "isRequired": False},
                    {"name": "search", "isRequired": False},
                ],
                "pageSize": config.crawl.page_size,
            }
            for order in SortOrder
        ],
        "behaviorHints": {"adult": True, "configurable": False},
    }


def parse_extra(extra: str) -> tuple[int, str]:
    """Parse ``skip=500&search=foo`` into ``(skip, search)``.

    Malformed skip values fall back to 0.
    """
    params = parse_qs(extra, keep_blank_values=True)
    raw_skip = (params.get("skip") or ["0"])[0]
    try:
        skip = max(int(raw_skip), 0)
    except ValueError:
        skip = 0
    search = (params.get("search") or [""])[0].strip()
    return skip, search


def _format_preview(entry: CatalogEntry) -> dict[str, Any]:
    return {
        "id": entry.identity,
        "type": CONTENT_TYPE,
        "name": entry.display_name,
        "poster": entry.poster_url,
        "posterShape": "poster",
    }


def _format_subtitle(subtitle: ResolvedSubtitle) -> dict[str, Any]:
    out: dict[str, Any] = {
        "id": subtitle.id,
        "url": subtitle.url,
        "lang": subtitle.language_code,
    }
    if subtitle.format:
        out["format"] = subtitle.format
    return out


def _format_meta(record: MetaRecord, site: SiteConfig) -> dict[str, Any]:
    meta: dict[str, Any] = {
        "id": record.identity,
        "type": CONTENT_TYPE,
        "name": record.name,
        "poster": record.poster_url,
        "background": record.background_url,
        "posterShape": "poster",
        "description": record.description,
        "genres": record.genres,
        "language": site.language,
        "country": site.country,
        "imdbRating": site.content_rating,
    }
    optional = {
        "releaseInfo": record.release_date,
        "originalTitle": record.original_title,
        "director": record.studio,
        "runtime": f"Episode {record.sequence_number}" if record.sequence_number else None,
        "awards": f"{record.view_count} views" if record.view_count else None,
    }
    meta.update({k: v for k, v in optional.items() if v is not None})
    return meta


def _format_stream(payload: StreamPayload, site_name: str) -> dict[str, Any]:
    if payload.url is None:
        return {
            "name": site_name,
            "title": payload.display_title,
            "externalUrl": payload.external_url,
        }
    out: dict[str, Any] = {
        "name": f"{site_name} {payload.label}",
        "title": payload.display_title,
        "url": payload.url,
    }
    if payload.subtitles:
        out["subtitles"] = [_format_subtitle(s) for s in payload.subtitles]
    return out


async def _catalog_response(
    request: Request, content_type: str, raw_catalog_id: str, extra: str
) -> JSONResponse:
    state = cast(AppState, request.app.state)
    order = _sort_for_catalog(state.config, raw_catalog_id)
    if content_type != CONTENT_TYPE or order is None:
        return JSONResponse(content={"metas": []}, headers=_CORS_HEADERS)

    skip, search = parse_extra(extra)
    log.info("stremio_catalog_request", catalog=raw_catalog_id, skip=skip, search=search)
    entries = await state.addon_service.get_catalog_slice(skip, search, order)
    return JSONResponse(
        content={"metas": [_format_preview(e) for e in entries]},
        headers=_CORS_HEADERS,
    )


@router.get("/manifest.json")
async def stremio_manifest(request: Request) -> JSONResponse:
    """Serve the Stremio addon manifest."""
    state = cast(AppState, request.app.state)
    return JSONResponse(content=build_manifest(state.config), headers=_CORS_HEADERS)


@router.get("/catalog/{content_type}/{catalog}.json")
async def stremio_catalog(request: Request, content_type: str, catalog: str) -> JSONResponse:
    """First window of a catalog, no search."""
    return await _catalog_response(request, content_type, catalog, "")


@router.get("/catalog/{content_type}/{catalog}/{extra}.json")
async def stremio_catalog_extra(
    request: Request, content_type: str, catalog: str, extra: str
) -> JSONResponse:
    """Catalog window with ``skip``/``search`` extras."""
    return await _catalog_response(request, content_type, catalog, extra)


@router.get("/meta/{content_type}/{item_id}.json")
async def stremio_meta(request: Request, content_type: str, item_id: str) -> JSONResponse:
    state = cast(AppState, request.app.state)
    if content_type != CONTENT_TYPE or not item_id.startswith(state.config.site.id_prefix):
        return JSONResponse(content={"meta": None}, headers=_CORS_HEADERS)

    record = await state.addon_service.get_item_meta(item_id)
    meta = _format_meta(record, state.config.site) if record is not None else None
    return JSONResponse(content={"meta": meta}, headers=_CORS_HEADERS)


@router.get("/stream/{content_type}/{item_id}.json")
async def stremio_stream(request: Request, content_type: str, item_id: str) -> JSONResponse:
    """Resolve streams for one item.

    Falls back to a single "Open in Browser" entry when the detail page
    exposes nothing playable.
    """
    state = cast(AppState, request.app.state)
    if content_type != CONTENT_TYPE or not item_id.startswith(state.config.site.id_prefix):
        return JSONResponse(content={"streams": []}, headers=_CORS_HEADERS)

    log.info("stremio_stream_request", item_id=item_id)
    payloads = await state.addon_service.get_item_streams(item_id)
    site_name = state.config.site.name
    return JSONResponse(
        content={"streams": [_format_stream(p, site_name) for p in payloads]},
        headers=_CORS_HEADERS,
    )
