"""Application state container for FastAPI dependency injection."""

from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.datastructures import State

from rendarr.infrastructure.config import AppConfig

if TYPE_CHECKING:
    from rendarr.application.use_cases import (
        AddonService,
        CatalogBuilder,
        IdentityLookup,
    )
    from rendarr.domain.ports.rendering import RenderingSessionProvider
    from rendarr.infrastructure.persistence.result_cache import ResultCaches
    from rendarr.infrastructure.resolver.stream_resolver import StreamResolver


class AppState(State):
    """FastAPI application state with all DI resources.

    Lifecycle managed by composition.py::lifespan().
    """

    config: AppConfig

    # Infrastructure
    caches: ResultCaches
    session_provider: RenderingSessionProvider

    # Use cases
    catalog_builder: CatalogBuilder
    identity_lookup: IdentityLookup
    stream_resolver: StreamResolver
    addon_service: AddonService
