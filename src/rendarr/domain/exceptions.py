"""Domain exceptions for crawling and resolution."""

from __future__ import annotations


class RendarrError(Exception):
    """Base class for all Rendarr errors."""


class BrowserLaunchError(RendarrError):
    """Raised when a rendering session cannot be started (e.g. missing executable)."""


class NavigationError(RendarrError):
    """Raised when a navigation fails with a non-200 status or transport error."""

    def __init__(self, url: str, *, status: int | None = None, reason: str = "") -> None:
        self.url = url
        self.status = status
        self.reason = reason
        detail = f"status {status}" if status is not None else (reason or "transport error")
        super().__init__(f"Navigation to {url} failed: {detail}")


class NavigationTimeoutError(NavigationError):
    """Raised when a navigation exceeds its timeout."""

    def __init__(self, url: str, *, timeout_ms: int) -> None:
        self.timeout_ms = timeout_ms
        super().__init__(url, reason=f"timeout after {timeout_ms}ms")


class ExtractionError(RendarrError):
    """Raised when a single scraped record cannot be normalized."""
