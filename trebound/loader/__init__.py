"""
Prioritized parallel loader: descriptors, batch execution and named bundles.
"""
from .models import BatchResult, FetchDescriptor
from .batch import BatchLoader, FetchTimeoutError, MAX_RETRIES
from .bundles import (
    Bundle,
    available_bundles,
    build_bundle,
    homepage_bundle,
    route_preload_bundle,
    search_corpus_bundle,
)

__all__ = [
    "BatchResult",
    "FetchDescriptor",
    "BatchLoader",
    "FetchTimeoutError",
    "MAX_RETRIES",
    "Bundle",
    "available_bundles",
    "build_bundle",
    "homepage_bundle",
    "route_preload_bundle",
    "search_corpus_bundle",
]
