"""Listing-page scraping: URL scheme, DOM extraction, page fetcher."""
