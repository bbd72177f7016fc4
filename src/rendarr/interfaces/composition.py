"""Composition root: dependency injection via FastAPI lifespan."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, cast

import structlog
from fastapi import FastAPI

from rendarr.application.use_cases import (
    AddonService,
    CatalogBuilder,
    IdentityLookup,
    NamespaceLocks,
)
from rendarr.domain.ports.rendering import RenderingSessionProvider
from rendarr.infrastructure.browser import PlaywrightSessionProvider
from rendarr.infrastructure.common.retry import RetryPolicy
from rendarr.infrastructure.config.schema import AppConfig
from rendarr.infrastructure.persistence.result_cache import (
    CatalogRepository,
    MetaRepository,
    ResolvedItemRepository,
    ResultCaches,
)
from rendarr.infrastructure.resolver.stream_resolver import StreamResolver
from rendarr.infrastructure.scraping.page_fetcher import PageFetcher
from rendarr.interfaces.app_state import AppState

log = structlog.get_logger(__name__)


def build_session_provider(config: AppConfig) -> PlaywrightSessionProvider:
    return PlaywrightSessionProvider(
        headless=config.playwright_headless,
        launch_args=config.playwright_launch_args,
        user_agent=config.crawl.user_agent,
        stealth=config.playwright_stealth,
    )


def wire_services(
    state: AppState,
    config: AppConfig,
    provider: RenderingSessionProvider,
    caches: ResultCaches,
) -> None:
    """Build repositories and use cases on *state* around *provider*."""
    state.caches = caches
    state.session_provider = provider

    retry = RetryPolicy(
        max_attempts=config.crawl.retry_attempts,
        delay_seconds=config.crawl.retry_delay_seconds,
    )
    fetcher = PageFetcher(
        origin=config.site.origin,
        detail_marker=config.site.detail_marker,
        id_prefix=config.site.id_prefix,
        retry_policy=retry,
        navigation_timeout_ms=config.crawl.navigation_timeout_ms,
        selector_timeout_ms=config.crawl.selector_timeout_ms,
        scroll_settle_seconds=config.crawl.scroll_settle_seconds,
        user_agent=config.crawl.user_agent,
    )
    catalog_repo = CatalogRepository(caches.catalog)
    locks = NamespaceLocks()

    state.catalog_builder = CatalogBuilder(
        provider,
        fetcher,
        catalog_repo,
        page_size=config.crawl.page_size,
        max_pages=config.crawl.max_pages,
        concurrent_pages=config.crawl.concurrent_pages,
        locks=locks,
    )
    state.identity_lookup = IdentityLookup(
        provider,
        fetcher,
        catalog_repo,
        max_pages=config.crawl.max_pages,
        locks=locks,
    )
    state.stream_resolver = StreamResolver(
        provider,
        ResolvedItemRepository(caches.streams),
        origin=config.site.origin,
        site_name=config.site.name,
        retry_policy=retry,
        navigation_timeout_ms=config.resolver.navigation_timeout_ms,
        player_timeout_ms=config.resolver.player_timeout_ms,
        user_agent=config.crawl.user_agent,
    )
    state.addon_service = AddonService(
        state.catalog_builder,
        state.identity_lookup,
        state.stream_resolver,
        MetaRepository(caches.meta),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create all resources on startup and release them on shutdown.

    Browsers are launched lazily per crawl batch / resolver call, so
    startup only builds the object graph.
    """
    state = cast(AppState, app.state)
    config = state.config

    caches = ResultCaches.in_memory(
        catalog_ttl_seconds=config.cache.catalog_ttl_seconds,
        meta_ttl_seconds=config.cache.meta_ttl_seconds,
        stream_ttl_seconds=config.cache.stream_ttl_seconds,
    )
    wire_services(state, config, build_session_provider(config), caches)

    log.info(
        "app_startup_complete",
        site=config.site.origin,
        headless=config.playwright_headless,
        stealth=config.playwright_stealth,
    )

    try:
        yield
    finally:
        await caches.aclose()
        log.info("caches_closed")
        log.info("app_shutdown_complete")
