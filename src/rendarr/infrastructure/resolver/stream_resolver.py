"""Stream resolver: detail page -> metadata, ranked streams and subtitles."""

from __future__ import annotations

from typing import Any

import structlog

from rendarr.domain.entities.media import (
    UNKNOWN_TITLE,
    CandidateSource,
    ResolvedItem,
    StreamCandidate,
    StreamPayload,
)
from rendarr.domain.exceptions import NavigationError
from rendarr.domain.ports.rendering import RenderedPage, RenderingSessionProvider
from rendarr.infrastructure.browser.constants import DEFAULT_USER_AGENT
from rendarr.infrastructure.common.retry import RetryPolicy
from rendarr.infrastructure.persistence.result_cache import ResolvedItemRepository
from rendarr.infrastructure.scraping.urls import normalize_detail_url

from .detail_extractors import (
    DETAIL_SCRIPT,
    PLAYER_SELECTOR,
    detail_script_arg,
    parse_metadata,
)
from .quality import (
    CandidateSet,
    classify_quality,
    display_title,
    is_media_url,
    make_candidate,
)
from .subtitles import SubtitleSet

log = structlog.get_logger(__name__)


class MediaInterceptor:
    """Request filter that aborts media requests and records candidates.

    Media requests never reach the network. Those without a known
    resolution marker are dropped.
    """

    def __init__(self) -> None:
        self.candidates = CandidateSet()
        self.dropped = 0

    def __call__(self, url: str, resource_type: str) -> bool:
        if not is_media_url(url):
            return False
        label = classify_quality(url)
        if label is None:
            self.dropped += 1
            log.debug("media_request_unclassified", url=url)
        else:
            self.candidates.add(make_candidate(url, label, CandidateSource.INTERCEPTION))
        return True


def page_candidates(sources: list[dict[str, Any]]) -> list[StreamCandidate]:
    """Candidates from inline ``<video>``/``<source>`` elements."""
    out: list[StreamCandidate] = []
    for source in sources:
        src = source.get("src")
        if not src:
            continue
        raw_label = (source.get("quality") or "").strip()
        label = classify_quality(raw_label) if raw_label else None
        out.append(make_candidate(src, label or raw_label or "Default", CandidateSource.PAGE))
    return out


class StreamResolver:
    """Resolves a detail page into a cached ``ResolvedItem``.

    ``resolve()`` never raises: on failure after the cache check it
    returns an uncached degraded item (``title="Unknown"``, no streams).
    """

    def __init__(
        self,
        provider: RenderingSessionProvider,
        repository: ResolvedItemRepository,
        *,
        origin: str,
        site_name: str,
        retry_policy: RetryPolicy | None = None,
        navigation_timeout_ms: int = 60_000,
        player_timeout_ms: int = 30_000,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self._provider = provider
        self._repository = repository
        self._origin = origin
        self._site_name = site_name
        self._retry = retry_policy or RetryPolicy()
        self._navigation_timeout_ms = navigation_timeout_ms
        self._player_timeout_ms = player_timeout_ms
        self._user_agent = user_agent

    async def resolve(self, detail_url: str) -> ResolvedItem:
        url = normalize_detail_url(detail_url, self._origin)

        cached = await self._repository.get(url)
        if cached is not None:
            log.debug("resolved_item_cache_hit", url=url)
            return cached

        try:
            item = await self._render(url)
        except Exception as exc:
            log.error(
                "stream_resolution_failed",
                url=url,
                error=str(exc),
                exc_info=True,
            )
            return ResolvedItem(title=UNKNOWN_TITLE)

        await self._repository.save(url, item)
        log.info(
            "stream_resolved",
            url=url,
            title=item.title,
            streams=len(item.streams),
            subtitles=len(item.subtitles),
        )
        return item

    async def _render(self, url: str) -> ResolvedItem:
        interceptor = MediaInterceptor()
        async with self._provider.session() as session:
            async with session.page() as page:
                await page.set_user_agent(self._user_agent)
                await page.intercept_requests(interceptor)
                await self._retry.run(
                    lambda: self._navigate(page, url),
                    context="detail_page",
                )
                await page.wait_for_selector(
                    PLAYER_SELECTOR, timeout_ms=self._player_timeout_ms
                )
                raw = await page.evaluate(DETAIL_SCRIPT, detail_script_arg()) or {}

        return self._compose(raw, interceptor)

    async def _navigate(self, page: RenderedPage, url: str) -> None:
        log.debug("detail_navigate", url=url)
        status = await page.goto(
            url, wait_until="networkidle", timeout_ms=self._navigation_timeout_ms
        )
        if status != 200:
            raise NavigationError(url, status=status)

    def _compose(self, raw: dict[str, Any], interceptor: MediaInterceptor) -> ResolvedItem:
        candidates = interceptor.candidates
        for candidate in page_candidates(raw.get("sources") or []):
            candidates.add(candidate)

        subtitles = SubtitleSet()
        subtitles.add_buttons(raw.get("buttons") or [])
        subtitles.add_tracks(raw.get("tracks") or [])
        subtitle_list = tuple(subtitles.to_list())

        streams = tuple(
            StreamPayload(
                label=c.quality_label,
                display_title=display_title(c.quality_label),
                url=c.url,
                subtitles=subtitle_list,
            )
            for c in candidates.ranked(https_only=True)
        )
        if interceptor.dropped:
            log.debug("media_requests_dropped", count=interceptor.dropped)

        return ResolvedItem(
            **parse_metadata(raw.get("meta") or {}, site_name=self._site_name),
            subtitles=subtitle_list,
            streams=streams,
        )
