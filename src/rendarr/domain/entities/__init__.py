from .catalog import CatalogEntry, CatalogSnapshot, QueryNamespace, SortOrder
from .media import (
    UNKNOWN_TITLE,
    CandidateSource,
    MetaRecord,
    ResolvedItem,
    ResolvedSubtitle,
    StreamCandidate,
    StreamPayload,
    SubtitleSource,
)

__all__ = [
    "UNKNOWN_TITLE",
    "CandidateSource",
    "CatalogEntry",
    "CatalogSnapshot",
    "MetaRecord",
    "QueryNamespace",
    "ResolvedItem",
    "ResolvedSubtitle",
    "SortOrder",
    "StreamCandidate",
    "StreamPayload",
    "SubtitleSource",
]
