"""Pydantic configuration models with validation."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from rendarr.infrastructure.browser.constants import DEFAULT_USER_AGENT

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]


def _require_positive(name: str, v: Any) -> Any:
    if v <= 0:
        raise ValueError(f"{name} must be > 0")
    return v


class SiteConfig(BaseModel):
    """Target site: origin, naming and identity derivation."""

    origin: str = Field(
        default="https://hstream.moe",
        description="Site origin; relative poster URLs are rewritten against it.",
    )
    name: str = Field(
        default="HStream",
        description="Site name, stripped from '<title> - <name>' document titles.",
    )
    detail_marker: str = Field(
        default="/hentai/",
        description="Path segment that marks a detail-page link.",
    )
    id_prefix: str = Field(
        default="hstream:",
        description="Prefix of every catalog identity (Stremio idPrefixes).",
    )
    language: str = Field(default="jpn", description="Meta `language` (ISO 639-2).")
    country: str = Field(default="ja", description="Meta `country`.")
    content_rating: str = Field(
        default="18+", description="Shown in the meta `imdbRating` slot."
    )

    @field_validator("origin")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("origin must be an http(s) URL")
        return v.rstrip("/")


class CrawlConfig(BaseModel):
    """Catalog crawl tuning (page fetcher + catalog builder)."""

    page_size: int = Field(default=500, description="Records per catalog slice.")
    max_pages: int = Field(default=20, description="Page ceiling per namespace.")
    concurrent_pages: int = Field(
        default=5, description="Pages fetched concurrently per batch."
    )
    navigation_timeout_ms: int = Field(default=30_000)
    selector_timeout_ms: int = Field(default=15_000)
    scroll_settle_seconds: float = Field(
        default=1.0, description="Pause after scrolling so lazy posters load."
    )
    retry_attempts: int = Field(default=3, description="Navigation attempts.")
    retry_delay_seconds: float = Field(default=2.0, description="Fixed back-off.")
    user_agent: str = Field(default=DEFAULT_USER_AGENT)

    @field_validator(
        "page_size",
        "max_pages",
        "concurrent_pages",
        "navigation_timeout_ms",
        "selector_timeout_ms",
        "retry_attempts",
    )
    @classmethod
    def _validate_positive(cls, v: int, info: Any) -> int:
        return _require_positive(info.field_name, v)

    @property
    def ceiling(self) -> int:
        """Hard upper bound on accumulated records per namespace."""
        return self.max_pages * self.page_size


class ResolverConfig(BaseModel):
    """Stream resolver timeouts."""

    navigation_timeout_ms: int = Field(default=60_000)
    player_timeout_ms: int = Field(
        default=30_000, description="Wait for the <video> element."
    )

    @field_validator("navigation_timeout_ms", "player_timeout_ms")
    @classmethod
    def _validate_positive(cls, v: int, info: Any) -> int:
        return _require_positive(info.field_name, v)


class CacheConfig(BaseModel):
    """TTLs of the three in-memory result caches (seconds)."""

    catalog_ttl_seconds: int = Field(default=3 * 60 * 60)
    meta_ttl_seconds: int = Field(default=6 * 60 * 60)
    stream_ttl_seconds: int = Field(default=1 * 60 * 60)

    @field_validator("catalog_ttl_seconds", "meta_ttl_seconds", "stream_ttl_seconds")
    @classmethod
    def _validate_ttl(cls, v: int, info: Any) -> int:
        if v < 0:
            raise ValueError(f"{info.field_name} must be >= 0")
        return v


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (site/playwright/crawl/resolver/logging/cache).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    app_name: str = Field(default="rendarr", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    site: SiteConfig = Field(default_factory=SiteConfig)
    crawl: CrawlConfig = Field(default_factory=CrawlConfig)
    resolver: ResolverConfig = Field(default_factory=ResolverConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)

    # Playwright (YAML section: playwright.*)
    playwright_headless: bool = Field(
        default=True,
        validation_alias=AliasChoices(
            "playwright_headless",
            AliasPath("playwright", "headless"),
        ),
        description="Run Chromium headless.",
    )
    playwright_stealth: bool = Field(
        default=True,
        validation_alias=AliasChoices(
            "playwright_stealth",
            AliasPath("playwright", "stealth"),
        ),
        description="Apply playwright-stealth evasions to every context.",
    )
    playwright_launch_args: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices(
            "playwright_launch_args",
            AliasPath("playwright", "launch_args"),
        ),
        description="Extra Chromium command-line flags.",
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """
        Dump configuration in the sectioned shape used by config.yaml/docs.
        """
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "site": self.site.model_dump(),
            "playwright": {
                "headless": self.playwright_headless,
                "stealth": self.playwright_stealth,
                "launch_args": list(self.playwright_launch_args),
            },
            "crawl": self.crawl.model_dump(),
            "resolver": self.resolver.model_dump(),
            "logging": {"level": self.log_level, "format": self.log_format},
            "cache": self.cache.model_dump(),
        }


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    Intended usage:
    - load.py creates EnvOverrides() to read RENDARR_* variables,
      converts to dict of set values, merges into YAML/defaults,
      then validates AppConfig.

    Supported env var examples (flat, explicit):
    - RENDARR_SITE_ORIGIN
    - RENDARR_PLAYWRIGHT_HEADLESS
    - RENDARR_CRAWL_MAX_PAGES
    - RENDARR_LOG_LEVEL
    """

    model_config = SettingsConfigDict(
        env_prefix="RENDARR_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    site_origin: Optional[str] = None
    site_name: Optional[str] = None

    playwright_headless: Optional[bool] = None
    playwright_stealth: Optional[bool] = None

    crawl_max_pages: Optional[int] = None
    crawl_concurrent_pages: Optional[int] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    cache_catalog_ttl_seconds: Optional[int] = None
    cache_meta_ttl_seconds: Optional[int] = None
    cache_stream_ttl_seconds: Optional[int] = None

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
