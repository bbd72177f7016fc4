from .cache import CachePort
from .rendering import RenderedPage, RenderingSession, RenderingSessionProvider, RequestFilter

__all__ = [
    "CachePort",
    "RenderedPage",
    "RenderingSession",
    "RenderingSessionProvider",
    "RequestFilter",
]
