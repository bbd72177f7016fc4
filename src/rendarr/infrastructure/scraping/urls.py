"""URL scheme of the target site."""

from __future__ import annotations

from urllib.parse import quote_plus, urljoin

from rendarr.domain.entities.catalog import SortOrder

_SITE_ORDER: dict[SortOrder, str] = {
    SortOrder.POPULAR: "view-count",
    SortOrder.RECENT: "recently-released",
}


def listing_url(
    origin: str,
    page: int,
    search_term: str = "",
    sort_order: SortOrder = SortOrder.POPULAR,
) -> str:
    """Compose the poster-view listing URL for *page* (1-based).

    Text searches use the site's relevance order; *sort_order* only
    applies to the unfiltered catalog.
    """
    if page < 1:
        raise ValueError(f"page must be >= 1, got {page}")
    term = search_term.strip()
    if term:
        return f"{origin}/search?q={quote_plus(term)}&page={page}&view=poster"
    return f"{origin}/search?view=poster&order={_SITE_ORDER[sort_order]}&page={page}"


def normalize_detail_url(url: str, origin: str) -> str:
    """Repair ``<host>https://...`` artifacts from upstream concatenation."""
    host = origin.split("://", 1)[-1]
    for scheme in ("https://", "http://"):
        artifact = f"{host}{scheme}"
        if artifact in url:
            start = url.index(artifact)
            return url[start + len(host):]
    return url


def absolutize(url: str, origin: str) -> str:
    """Rewrite a relative URL against *origin*; empty stays empty."""
    if not url or url.startswith(("http://", "https://")):
        return url
    if url.startswith("//"):
        return f"https:{url}"
    return urljoin(f"{origin}/", url)
