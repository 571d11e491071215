"""
Caching module with per-entry TTL, priority-tiered TTL defaults and request coalescing.
"""
from .core import CacheEntry, Priority
from .ttl_policies import (
    TTL_CONFIG,
    DEFAULT_TTL,
    get_ttl_for_priority,
    resolve_ttl,
)
from .coalescer import RequestCoalescer
from .store import TTLCache

__all__ = [
    # Core types
    "CacheEntry",
    "Priority",
    # TTL policies
    "TTL_CONFIG",
    "DEFAULT_TTL",
    "get_ttl_for_priority",
    "resolve_ttl",
    # Coalescing
    "RequestCoalescer",
    # Store
    "TTLCache",
]
