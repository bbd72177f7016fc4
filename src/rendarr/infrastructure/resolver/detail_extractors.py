"""In-page extraction script and pure parsers for detail pages."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

SUBTITLE_BUTTON_SELECTOR = "button.group.rounded-md.shadow.bg-rose-600"
SUBTITLE_LINK_SELECTOR = 'a[href*=".ass"], a[href*=".srt"], a[href*=".vtt"]'
PLAYER_SELECTOR = "video"

# Single evaluation: raw DOM facts only, all interpretation happens in Python.
DETAIL_SCRIPT = """
(sel) => {
  const text = (el) => (el && el.textContent ? el.textContent.trim() : null);
  const buttons = [];
  document.querySelectorAll(sel.button).forEach((button) => {
    const link = button.querySelector(sel.link);
    const href = link ? link.getAttribute('href') : null;
    if (href) buttons.push({ text: button.textContent.trim(), href });
  });
  const tracks = Array.from(document.querySelectorAll('track')).map((t) => ({
    src: t.src || null, kind: t.kind || null,
    srclang: t.srclang || null, label: t.label || null,
  }));
  const sources = [];
  document.querySelectorAll('video').forEach((video) => {
    if (video.src) sources.push({ src: video.src, quality: video.getAttribute('size') });
    video.querySelectorAll('source').forEach((s) => {
      if (!s.src) return;
      sources.push({
        src: s.src,
        quality: s.getAttribute('size') || s.getAttribute('label') || s.getAttribute('title'),
      });
    });
  });
  const eye = document.querySelector('a.text-xl i.fa-eye');
  const meta = (q) => { const m = document.querySelector(q); return m ? m.content : null; };
  return {
    buttons, tracks, sources,
    meta: {
      heading: text(document.querySelector('h1')),
      documentTitle: document.title || '',
      originalTitle: text(document.querySelector('h2.inline')),
      description: meta('meta[name="description"]'),
      ogDescription: meta('meta[property="og:description"]'),
      visibleDescription: text(
        document.querySelector('.text-gray-800.dark\\\\:text-gray-200.leading-tight')),
      released: text(document.querySelector('a[data-te-toggle="tooltip"][title*="Released"]')),
      studio: text(document.querySelector('a[href*="studios"]')),
      genres: Array.from(document.querySelectorAll('ul li a[href*="tags"]')).map(text),
      viewCount: eye && eye.nextSibling ? text(eye.nextSibling) : null,
    },
  };
}
"""

_RELEASE_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")
_SEQUENCE_RE = re.compile(r"\s*-\s*(\d+)$")
_IN_4K_RE = re.compile(r"in 4k.*$")


def detail_script_arg() -> dict[str, str]:
    return {"button": SUBTITLE_BUTTON_SELECTOR, "link": SUBTITLE_LINK_SELECTOR}


def clean_title(heading: str | None, document_title: str, site_name: str) -> str:
    """Heading text, else document title minus site suffix and ``in 4k...``."""
    if heading:
        return heading
    title = document_title.replace(f" - {site_name}", "")
    return _IN_4K_RE.sub("", title).strip()


def release_date_of(text: str | None) -> str | None:
    if not text:
        return None
    m = _RELEASE_DATE_RE.search(text)
    return m.group(0) if m else None


def sequence_number_of_title(title: str) -> str | None:
    m = _SEQUENCE_RE.search(title)
    return m.group(1) if m else None


def first_text(*values: Any) -> str:
    for value in values:
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


def parse_metadata(raw: Mapping[str, Any], *, site_name: str) -> dict[str, Any]:
    """Interpret the raw ``meta`` block into ``ResolvedItem`` keyword args."""
    title = clean_title(
        (raw.get("heading") or "").strip() or None,
        raw.get("documentTitle") or "",
        site_name,
    )
    genres = tuple(g for g in (raw.get("genres") or []) if isinstance(g, str) and g)
    return {
        "title": title,
        "original_title": raw.get("originalTitle") or None,
        "description": first_text(
            raw.get("description"), raw.get("ogDescription"), raw.get("visibleDescription")
        ),
        "release_date": release_date_of(raw.get("released")),
        "studio": raw.get("studio") or None,
        "genres": genres,
        "view_count": raw.get("viewCount") or None,
        "sequence_number": sequence_number_of_title(title),
    }
