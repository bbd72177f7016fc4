"""Shared constants for browser sessions."""

from __future__ import annotations

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/131.0.0.0 Safari/537.36"
)

DEFAULT_VIEWPORT = {"width": 1920, "height": 1080}

# Sub-resources that never matter for listing extraction.
LISTING_BLOCKED_RESOURCE_TYPES = frozenset({"image", "stylesheet", "font"})
