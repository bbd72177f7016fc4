"""Cache Infrastructure - Backend-Implementations."""

from .expiring_cache import ExpiringCache

__all__ = ["ExpiringCache"]
