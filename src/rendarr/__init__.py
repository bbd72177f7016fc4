"""Rendarr: browser-rendered catalog crawler and stream resolver."""

__version__ = "0.1.0"
