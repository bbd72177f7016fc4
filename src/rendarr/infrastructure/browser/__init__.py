"""Playwright-backed rendering sessions."""

from .playwright_session import PlaywrightPage, PlaywrightSession, PlaywrightSessionProvider

__all__ = ["PlaywrightPage", "PlaywrightSession", "PlaywrightSessionProvider"]
