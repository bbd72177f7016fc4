"""Playwright implementation of the rendering-session port.

One ``PlaywrightSession`` owns one Chromium process.  Every
``session.page()`` opens a fresh ``BrowserContext`` + ``Page`` pair so
concurrent page fetches never share cookies, routes or user agents,
and the pair is closed on exit no matter how the block ends.
"""

from __future__ import annotations

import inspect
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from typing import Any

import structlog
from playwright.async_api import (
    Browser,
    BrowserContext,
    Error as PlaywrightError,
    Page,
    Playwright,
    Route,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from rendarr.domain.exceptions import (
    BrowserLaunchError,
    NavigationError,
    NavigationTimeoutError,
)
from rendarr.domain.ports.rendering import RequestFilter

from .constants import DEFAULT_USER_AGENT, DEFAULT_VIEWPORT

log = structlog.get_logger(__name__)


class PlaywrightPage:
    """Adapter exposing a Playwright page through the ``RenderedPage`` port."""

    def __init__(self, context: BrowserContext, page: Page) -> None:
        self._context = context
        self._page = page
        self._blocked: frozenset[str] = frozenset()
        self._filter: RequestFilter | None = None
        self._routed = False

    @property
    def raw(self) -> Page:
        return self._page

    async def set_user_agent(self, user_agent: str) -> None:
        """Send *user_agent* as the request header of this page.

        ``navigator.userAgent`` stays the one the context was created with;
        sessions create contexts with the configured UA, so both agree.
        """
        await self._page.set_extra_http_headers({"User-Agent": user_agent})

    async def block_resource_types(self, resource_types: Iterable[str]) -> None:
        self._blocked = frozenset(resource_types)
        await self._ensure_route()

    async def intercept_requests(self, request_filter: RequestFilter) -> None:
        self._filter = request_filter
        await self._ensure_route()

    async def _ensure_route(self) -> None:
        if not self._routed:
            await self._page.route("**/*", self._handle_route)
            self._routed = True

    async def _handle_route(self, route: Route) -> None:
        request = route.request
        if request.resource_type in self._blocked:
            await route.abort()
            return
        if self._filter is not None:
            verdict = self._filter(request.url, request.resource_type)
            if inspect.isawaitable(verdict):
                verdict = await verdict
            if verdict:
                await route.abort()
                return
        await route.continue_()

    async def goto(self, url: str, *, wait_until: str, timeout_ms: int) -> int:
        try:
            resp = await self._page.goto(url, wait_until=wait_until, timeout=timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise NavigationTimeoutError(url, timeout_ms=timeout_ms) from exc
        except PlaywrightError as exc:
            raise NavigationError(url, reason=exc.message) from exc
        # ``None`` means same-document navigation (e.g. hash change).
        return resp.status if resp is not None else 200

    async def wait_for_selector(self, selector: str, *, timeout_ms: int) -> None:
        try:
            await self._page.wait_for_selector(selector, timeout=timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise NavigationTimeoutError(selector, timeout_ms=timeout_ms) from exc

    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        if arg is None:
            return await self._page.evaluate(expression)
        return await self._page.evaluate(expression, arg)

    async def close(self) -> None:
        """Close page and context. Idempotent, never raises."""
        try:
            if not self._page.is_closed():
                await self._page.close()
            await self._context.close()
        except Exception:  # noqa: BLE001
            log.debug("page_close_error", exc_info=True)


class PlaywrightSession:
    """One Chromium process, the unit of acquisition/release."""

    def __init__(
        self,
        pw: Playwright,
        browser: Browser,
        *,
        user_agent: str = DEFAULT_USER_AGENT,
        stealth: bool = False,
    ) -> None:
        self._pw = pw
        self._browser = browser
        self._user_agent = user_agent
        self._stealth = stealth

    @property
    def is_connected(self) -> bool:
        return self._browser.is_connected()

    async def _new_context(self) -> BrowserContext:
        context = await self._browser.new_context(
            user_agent=self._user_agent,
            viewport=DEFAULT_VIEWPORT,
            java_script_enabled=True,
        )
        if self._stealth:
            from playwright_stealth import Stealth

            await Stealth().apply_stealth_async(context)
        return context

    @asynccontextmanager
    async def page(self) -> AsyncIterator[PlaywrightPage]:
        context = await self._new_context()
        try:
            raw_page = await context.new_page()
        except Exception:
            await context.close()
            raise
        page = PlaywrightPage(context, raw_page)
        try:
            yield page
        finally:
            await page.close()

    async def close(self) -> None:
        """Close the browser and Playwright. Idempotent."""
        try:
            await self._browser.close()
        except Exception:  # noqa: BLE001
            log.warning("browser_close_error", exc_info=True)
        try:
            await self._pw.stop()
        except Exception:  # noqa: BLE001
            log.warning("playwright_stop_error", exc_info=True)
        log.debug("browser_session_closed")


class PlaywrightSessionProvider:
    """Launches one Chromium process per ``session()`` block.

    Usage::

        provider = PlaywrightSessionProvider(headless=True)

        async with provider.session() as session:
            async with session.page() as page:
                status = await page.goto(url, wait_until="networkidle", timeout_ms=30_000)
    """

    def __init__(
        self,
        *,
        headless: bool = True,
        launch_args: list[str] | None = None,
        user_agent: str = DEFAULT_USER_AGENT,
        stealth: bool = False,
    ) -> None:
        self._headless = headless
        self._launch_args = list(launch_args or [])
        self._user_agent = user_agent
        self._stealth = stealth

    async def launch(self) -> PlaywrightSession:
        pw = await async_playwright().start()
        try:
            browser = await pw.chromium.launch(
                headless=self._headless,
                args=self._launch_args,
            )
        except PlaywrightError as exc:
            await pw.stop()
            raise BrowserLaunchError(str(exc)) from exc
        log.info("browser_launched", headless=self._headless)
        return PlaywrightSession(
            pw,
            browser,
            user_agent=self._user_agent,
            stealth=self._stealth,
        )

    @asynccontextmanager
    async def session(self) -> AsyncIterator[PlaywrightSession]:
        session = await self.launch()
        try:
            yield session
        finally:
            await session.close()
