"""Quality classification and stream ranking.

Quality labels are canonical ``"<height>p"`` strings; the rank of a
label is its numeric height, so ``2160p > 1080p > 720p > 480p > 360p``
and labels without a number rank last.
"""

from __future__ import annotations

import re
from urllib.parse import urlparse

from rendarr.domain.entities.media import CandidateSource, StreamCandidate

MEDIA_URL_RE = re.compile(r"\.(m3u8|mp4|mkv|avi|mov)(\?|$)", re.IGNORECASE)

# Checked in order: the first marker contained in the URL wins.
_QUALITY_MARKERS: tuple[tuple[str, str], ...] = (
    ("2160", "2160p"),
    ("1080", "1080p"),
    ("720", "720p"),
    ("480", "480p"),
    ("360", "360p"),
)

DISPLAY_TITLES: dict[str, str] = {
    "2160p": "4K UHD",
    "1080p": "Full HD",
    "720p": "HD",
    "480p": "SD",
    "360p": "Low",
}

_RANK_RE = re.compile(r"(\d{3,4})")
UNRANKED = 0


def is_media_url(url: str) -> bool:
    """Whether *url* points at a media file the player would stream."""
    return MEDIA_URL_RE.search(url) is not None


def classify_quality(text: str) -> str | None:
    """Map a URL or attribute value to a canonical quality label.

    Returns ``None`` when no known resolution marker is present.
    """
    for marker, label in _QUALITY_MARKERS:
        if marker in text:
            return label
    return None


def quality_rank(label: str) -> int:
    """Numeric ordering key of *label* (``UNRANKED`` for numeric-free labels)."""
    if label.lower() == "4k":
        return 2160
    m = _RANK_RE.search(label)
    return int(m.group(1)) if m else UNRANKED


def display_title(label: str) -> str:
    return DISPLAY_TITLES.get(label, label)


def make_candidate(url: str, label: str, source: CandidateSource) -> StreamCandidate:
    return StreamCandidate(
        url=url,
        quality_label=label,
        quality_rank=quality_rank(label),
        source=source,
    )


class CandidateSet:
    """Quality-keyed stream candidates with interception priority.

    - A later intercepted request for a label replaces the earlier one.
    - A page-source candidate is only kept for labels interception has
      not produced, and never replaces an intercepted one.
    - An intercepted candidate always replaces a page-source one.
    """

    def __init__(self) -> None:
        self._by_label: dict[str, StreamCandidate] = {}

    def add(self, candidate: StreamCandidate) -> bool:
        existing = self._by_label.get(candidate.quality_label)
        if (
            existing is not None
            and existing.source is CandidateSource.INTERCEPTION
            and candidate.source is CandidateSource.PAGE
        ):
            return False
        self._by_label[candidate.quality_label] = candidate
        return True

    def __len__(self) -> int:
        return len(self._by_label)

    def __contains__(self, label: object) -> bool:
        return label in self._by_label

    def ranked(self, *, https_only: bool = True) -> list[StreamCandidate]:
        """Candidates sorted by descending rank, optionally HTTPS-only."""
        kept = [
            c for c in self._by_label.values() if not https_only or is_https_url(c.url)
        ]
        # Stable sort keeps first-seen order among equal ranks.
        kept.sort(key=lambda c: c.quality_rank, reverse=True)
        return kept


def is_https_url(url: str) -> bool:
    """True for well-formed ``https://host/...`` URLs."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme == "https" and bool(parsed.netloc)
