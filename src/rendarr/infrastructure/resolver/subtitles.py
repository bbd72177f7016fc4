"""Subtitle extraction and merging.

Two independent sources feed one language-keyed set:

1. download buttons (primary) - ``"English"`` / ``"German (auto translated)"``
   labels mapped to 3-letter codes;
2. ``<track kind="subtitles|captions">`` elements (fallback).

A download-button entry is never replaced by a track entry for the same
language code, regardless of which source is ingested first.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from rendarr.domain.entities.media import ResolvedSubtitle, SubtitleSource

LANGUAGE_CODES: dict[str, str] = {
    "English": "eng",
    "German": "ger",
    "Spanish": "spa",
    "French": "fre",
    "Hindi": "hin",
    "Portuguese": "por",
    "Russian": "rus",
    "Italian": "ita",
}

# 2-letter srclang values normalized to the codes above.
_ISO_639_1: dict[str, str] = {
    "en": "eng",
    "de": "ger",
    "es": "spa",
    "fr": "fre",
    "hi": "hin",
    "pt": "por",
    "ru": "rus",
    "it": "ita",
}

DEFAULT_LANGUAGE = "English"
DEFAULT_CODE = "eng"
UNDETERMINED = "und"

_LEADING_WORD_RE = re.compile(r"^([A-Za-z]+)")
_AUTO_MARKER = "auto translated"


def format_of(url: str) -> str | None:
    """File extension of a subtitle URL (``"ass"``, ``"srt"``, ``"vtt"``)."""
    path = url.split("?", 1)[0].split("#", 1)[0]
    tail = path.rsplit("/", 1)[-1]
    if "." not in tail:
        return None
    return tail.rsplit(".", 1)[-1].lower() or None


def normalize_language_code(code: str | None) -> str:
    if not code:
        return UNDETERMINED
    code = code.strip().lower()
    return _ISO_639_1.get(code, code)


def subtitle_from_button(text: str, href: str) -> ResolvedSubtitle:
    """Build a subtitle from a download button's text and file link."""
    text = text.strip()
    m = _LEADING_WORD_RE.match(text)
    language = m.group(1) if m else DEFAULT_LANGUAGE
    code = LANGUAGE_CODES.get(language, DEFAULT_CODE)
    is_auto = _AUTO_MARKER in text.lower()
    return ResolvedSubtitle(
        id=code,
        language_code=code,
        display_name=f"{language}{' (Auto)' if is_auto else ''}",
        url=href,
        format=format_of(href),
    )


def subtitle_from_track(src: str, srclang: str | None, label: str | None) -> ResolvedSubtitle:
    """Build a subtitle from a ``<track>`` element's attributes."""
    code = normalize_language_code(srclang)
    name = (label or "").strip() or code
    return ResolvedSubtitle(
        id=name,
        language_code=code,
        display_name=name,
        url=src,
        format=format_of(src),
    )


class SubtitleSet:
    """Language-keyed subtitles with per-source priority."""

    _PRIORITY = {SubtitleSource.DOWNLOAD_BUTTON: 0, SubtitleSource.TRACK_ELEMENT: 1}

    def __init__(self) -> None:
        self._entries: dict[str, tuple[SubtitleSource, ResolvedSubtitle]] = {}

    def add(self, subtitle: ResolvedSubtitle, source: SubtitleSource) -> bool:
        key = subtitle.language_code
        existing = self._entries.get(key)
        if existing is not None and self._PRIORITY[existing[0]] < self._PRIORITY[source]:
            return False
        if existing is not None and existing[0] is source:
            # First one wins within a source; keeps DOM order stable.
            return False
        self._entries[key] = (source, subtitle)
        return True

    def add_buttons(self, buttons: list[Mapping[str, Any]]) -> None:
        for button in buttons:
            href = button.get("href")
            if not href:
                continue
            self.add(
                subtitle_from_button(button.get("text") or "", href),
                SubtitleSource.DOWNLOAD_BUTTON,
            )

    def add_tracks(self, tracks: list[Mapping[str, Any]]) -> None:
        for track in tracks:
            src = track.get("src")
            if not src or track.get("kind") not in ("subtitles", "captions"):
                continue
            self.add(
                subtitle_from_track(src, track.get("srclang"), track.get("label")),
                SubtitleSource.TRACK_ELEMENT,
            )

    def __len__(self) -> int:
        return len(self._entries)

    def to_list(self) -> list[ResolvedSubtitle]:
        return [subtitle for _, subtitle in self._entries.values()]
