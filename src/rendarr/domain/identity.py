"""Stable identity derivation for catalog items.

An identity is computed only from the canonical detail-page path and the
optional sequence number, so the same physical item maps to the same
identity across separate crawls.

Stripping rules, applied to the path segment after the detail marker:

1. a trailing slash is removed;
2. the suffix chain ``-watch``, ``-online``, ``-free``, ``-streaming``,
   ``-sub``, ``-eng``, ``-ita`` (each optional, in this order) is removed;
3. a trailing ``-<digits>`` sequence suffix is removed;
4. when a sequence number is known it is re-appended as ``-<n>``.
"""

from __future__ import annotations

import re

_SEQUENCE_RE = re.compile(r"-(\d+)/?$")
_SUFFIX_RE = re.compile(
    r"/?(?:-watch)?(?:-online)?(?:-free)?(?:-streaming)?(?:-sub)?(?:-eng)?(?:-ita)?(?:-\d+)?$"
)


def sequence_number_of(detail_url: str) -> str | None:
    """Extract the trailing ``-<digits>`` ordinal of a detail URL, if any."""
    m = _SEQUENCE_RE.search(detail_url.split("?", 1)[0].split("#", 1)[0])
    return m.group(1) if m else None


def identity_of(
    detail_url: str,
    sequence_number: str | None = None,
    *,
    detail_marker: str = "/hentai/",
    prefix: str = "",
) -> str | None:
    """Derive the identity for *detail_url*.

    Returns ``None`` when the URL does not contain *detail_marker* or
    nothing is left after stripping.
    """
    path = detail_url.split("?", 1)[0].split("#", 1)[0]
    if detail_marker not in path:
        return None
    raw = path.split(detail_marker, 1)[1]
    base = _SUFFIX_RE.sub("", raw.rstrip("/"))
    if not base:
        return None
    ident = f"{base}-{sequence_number}" if sequence_number else base
    return f"{prefix}{ident}"
