"""Rendering Port - Interface for headless-browser sessions.

The crawl and resolve use cases only talk to these protocols; the
Playwright adapter lives in ``infrastructure/browser``.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable
from contextlib import AbstractAsyncContextManager
from typing import Any, Protocol

# Decides the fate of one outgoing request: True = abort, False = continue.
RequestFilter = Callable[[str, str], Awaitable[bool] | bool]


class RenderedPage(Protocol):
    """One page-scoped browsing context."""

    async def set_user_agent(self, user_agent: str) -> None:
        """Override the User-Agent request header (not ``navigator.userAgent``)."""
        ...

    async def block_resource_types(self, resource_types: Iterable[str]) -> None:
        """Abort sub-resource loads of the given Playwright resource types."""
        ...

    async def intercept_requests(self, request_filter: RequestFilter) -> None:
        """Route every request through *request_filter* (url, resource_type)."""
        ...

    async def goto(self, url: str, *, wait_until: str, timeout_ms: int) -> int:
        """Navigate and return the HTTP status.

        Raises:
            NavigationTimeoutError: navigation exceeded *timeout_ms*.
            NavigationError: transport-level failure.
        """
        ...

    async def wait_for_selector(self, selector: str, *, timeout_ms: int) -> None:
        """Raises NavigationTimeoutError when *selector* does not appear."""
        ...

    async def evaluate(self, expression: str, arg: Any = None) -> Any: ...


class RenderingSession(Protocol):
    """One live headless-browser process."""

    def page(self) -> AbstractAsyncContextManager[RenderedPage]:
        """Open a page-scoped context, released on exit."""
        ...

    async def close(self) -> None: ...


class RenderingSessionProvider(Protocol):
    """Launches rendering sessions."""

    def session(self) -> AbstractAsyncContextManager[RenderingSession]:
        """Launch a session, closed on exit.

        Raises:
            BrowserLaunchError: the browser could not be started.
        """
        ...
