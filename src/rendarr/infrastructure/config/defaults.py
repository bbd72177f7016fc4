"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "rendarr",
    "environment": "dev",
    "site": {
        "origin": "https://hstream.moe",
        "name": "HStream",
        "detail_marker": "/hentai/",
        "id_prefix": "hstream:",
        "language": "jpn",
        "country": "ja",
        "content_rating": "18+",
    },
    "playwright": {
        "headless": True,
        "stealth": True,
        "launch_args": [
            "--no-sandbox",
            "--disable-setuid-sandbox",
            "--disable-dev-shm-usage",
            "--disable-accelerated-2d-canvas",
            "--disable-gpu",
        ],
    },
    "crawl": {
        "page_size": 500,
        "max_pages": 20,
        "concurrent_pages": 5,
        "navigation_timeout_ms": 30_000,
        "selector_timeout_ms": 15_000,
        "scroll_settle_seconds": 1.0,
        "retry_attempts": 3,
        "retry_delay_seconds": 2.0,
    },
    "resolver": {
        "navigation_timeout_ms": 60_000,
        "player_timeout_ms": 30_000,
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
    "cache": {
        "catalog_ttl_seconds": 3 * 60 * 60,
        "meta_ttl_seconds": 6 * 60 * 60,
        "stream_ttl_seconds": 1 * 60 * 60,
    },
}
