"""DOM extraction for listing pages.

The in-page script only picks the first container selector that
matches, and for each container returns the link and the raw
title/poster candidates in priority order.  All decisions about
which candidate wins live here as small pure strategies, so the
site-specific heuristics stay out of the crawl algorithm.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import Any

from rendarr.domain.entities.catalog import CatalogEntry
from rendarr.domain.exceptions import ExtractionError
from rendarr.domain.identity import identity_of, sequence_number_of

from .urls import absolutize

# Container shapes seen on the site, most specific first.
CONTAINER_SELECTORS: tuple[str, ...] = (
    'div[wire\\:key^="episode-"]',
    "div.grid > div",
    "div.grid > a",
    'div[role="grid"] > div',
    'div.grid div[role="gridcell"]',
    "div.relative.p-1.mb-8.w-full",
    "div.grid div.relative",
)

LISTING_READY_SELECTOR = "div.grid"

# (scope, selector, attribute) - scope is "link" or "item"; attribute
# "text" means textContent, anything else is read with getAttribute().
TITLE_CANDIDATES: tuple[tuple[str, str, str], ...] = (
    ("link", "div.absolute p.text-sm", "text"),
    ("link", "p.text-sm", "text"),
    ("item", "div.absolute p.text-sm", "text"),
    ("item", "p.text-sm", "text"),
    ("link", "[title]", "title"),
    ("item", "[title]", "title"),
    ("link", "img[alt]", "alt"),
    ("item", "img[alt]", "alt"),
)

POSTER_CANDIDATES: tuple[tuple[str, str, str], ...] = (
    ("link", "img", "src"),
    ("link", "img", "data-src"),
    ("item", "img", "src"),
    ("item", "img", "data-src"),
)

UNKNOWN_ENTRY_TITLE = "Unknown Title"

LISTING_SCRIPT = """
(layout) => {
  let containers = [];
  for (const selector of layout.containers) {
    const found = document.querySelectorAll(selector);
    if (found.length) { containers = Array.from(found); break; }
  }
  const read = (root, selector, attr) => {
    if (!root) return null;
    const el = root.querySelector(selector);
    if (!el) return null;
    if (attr === 'text') return (el.textContent || '').trim() || null;
    if (attr === 'src' && el.src) return el.src;
    const value = el.getAttribute(attr);
    return value ? value.trim() : null;
  };
  const records = [];
  for (const item of containers) {
    try {
      const link = item.tagName === 'A' ? item : item.querySelector('a');
      const scopes = { link, item };
      records.push({
        href: link ? link.href : null,
        titles: layout.titles.map(([s, sel, a]) => read(scopes[s], sel, a)),
        posters: layout.posters.map(([s, sel, a]) => read(scopes[s], sel, a)),
      });
    } catch (err) {
      records.push({ href: null, error: String(err) });
    }
  }
  return records;
}
"""


def listing_script_arg() -> dict[str, Any]:
    """Argument passed to ``LISTING_SCRIPT``."""
    return {
        "containers": list(CONTAINER_SELECTORS),
        "titles": [list(c) for c in TITLE_CANDIDATES],
        "posters": [list(c) for c in POSTER_CANDIDATES],
    }


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

Strategy = Callable[[Sequence[Any]], str | None]


def first_non_empty(candidates: Sequence[Any]) -> str | None:
    """Return the first candidate that is a non-blank string."""
    for candidate in candidates:
        if isinstance(candidate, str) and candidate.strip():
            return candidate.strip()
    return None


def first_of(strategies: Sequence[Strategy], candidates: Sequence[Any]) -> str | None:
    """Try *strategies* in order until one yields a value."""
    for strategy in strategies:
        value = strategy(candidates)
        if value:
            return value
    return None


def detail_link_of(raw: Mapping[str, Any], detail_marker: str) -> str | None:
    """The record's detail URL, or ``None`` when it is not a detail link."""
    href = raw.get("href")
    if not isinstance(href, str) or not href:
        return None
    if detail_marker not in href:
        return None
    return href


def entry_from_raw(
    raw: Mapping[str, Any],
    *,
    origin: str,
    detail_marker: str,
    id_prefix: str,
) -> CatalogEntry | None:
    """Normalize one raw DOM record into a ``CatalogEntry``.

    Returns ``None`` for records without a resolvable detail link.

    Raises:
        ExtractionError: the record is malformed.
    """
    if raw.get("error"):
        raise ExtractionError(str(raw["error"]))

    href = detail_link_of(raw, detail_marker)
    if href is None:
        return None
    href = absolutize(href, origin)

    sequence = sequence_number_of(href)
    identity = identity_of(href, sequence, detail_marker=detail_marker, prefix=id_prefix)
    if identity is None:
        return None

    titles = raw.get("titles") or []
    posters = raw.get("posters") or []
    if not isinstance(titles, list) or not isinstance(posters, list):
        raise ExtractionError(f"Malformed candidates for {href}")

    title = first_of([first_non_empty], titles) or UNKNOWN_ENTRY_TITLE
    if sequence:
        title = f"{title} - {sequence}"

    poster = absolutize(first_of([first_non_empty], posters) or "", origin)

    return CatalogEntry(
        identity=identity,
        display_name=title,
        poster_url=poster,
        detail_url=href,
        sequence_number=sequence,
    )
