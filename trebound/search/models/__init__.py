# Search models
from .candidates import ContentType, SearchCandidate, ScoredCandidate
from .responses import SearchResult

__all__ = [
    "ContentType",
    "SearchCandidate",
    "ScoredCandidate",
    "SearchResult",
]
