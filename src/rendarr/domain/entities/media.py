"""Domain entities for resolved media (streams, subtitles, metadata).

Pure value objects with no framework dependencies and no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class CandidateSource(str, Enum):
    """Where a stream candidate was observed."""

    INTERCEPTION = "interception"  # outgoing media request of the player
    PAGE = "page"  # inline <video>/<source> element


class SubtitleSource(str, Enum):
    """Where a subtitle track was found (higher priority first)."""

    DOWNLOAD_BUTTON = "download_button"
    TRACK_ELEMENT = "track_element"


@dataclass(frozen=True)
class StreamCandidate:
    """Resolver-local stream observation, deduplicated by quality label."""

    url: str
    quality_label: str
    quality_rank: int
    source: CandidateSource = CandidateSource.INTERCEPTION


@dataclass(frozen=True)
class ResolvedSubtitle:
    """A subtitle track attached to every resolved stream."""

    id: str
    language_code: str
    display_name: str
    url: str
    format: str | None = None


@dataclass(frozen=True)
class StreamPayload:
    """A playable stream, or the synthetic "open externally" entry.

    Exactly one of ``url`` and ``external_url`` is set.
    """

    label: str
    display_title: str
    url: str | None = None
    subtitles: tuple[ResolvedSubtitle, ...] = ()
    external_url: str | None = None


UNKNOWN_TITLE = "Unknown"


@dataclass(frozen=True)
class ResolvedItem:
    """Durable resolver output for one detail page."""

    title: str
    description: str = ""
    original_title: str | None = None
    release_date: str | None = None
    studio: str | None = None
    genres: tuple[str, ...] = ()
    view_count: str | None = None
    sequence_number: str | None = None
    subtitles: tuple[ResolvedSubtitle, ...] = ()
    streams: tuple[StreamPayload, ...] = ()

    @property
    def is_degraded(self) -> bool:
        return self.title == UNKNOWN_TITLE and not self.streams


@dataclass(frozen=True)
class MetaRecord:
    """Item metadata served to the addon layer (resolved item minus streams)."""

    identity: str
    name: str
    poster_url: str
    background_url: str
    description: str = ""
    original_title: str | None = None
    release_date: str | None = None
    studio: str | None = None
    genres: list[str] = field(default_factory=list)
    view_count: str | None = None
    sequence_number: str | None = None
    subtitles: list[ResolvedSubtitle] = field(default_factory=list)
