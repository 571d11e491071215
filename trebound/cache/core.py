"""
Core cache data structures.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any


class Priority(Enum):
    """Loader priority tiers. Also selects the default cache TTL."""
    CRITICAL = "critical"   # gates first render, shortest TTL
    HIGH = "high"           # above the fold
    NORMAL = "normal"       # below the fold
    LOW = "low"             # lazy / metadata, longest TTL


@dataclass
class CacheEntry:
    """
    Represents a cached item with the timestamps needed for TTL checks.

    Timestamps come from the owning cache's clock (monotonic seconds by
    default), so entries are only meaningful to the cache that made them.
    """
    value: Any
    stored_at: float
    ttl_seconds: float

    def age_seconds(self, now: float) -> float:
        """Seconds since the value was stored."""
        return now - self.stored_at

    def is_valid(self, now: float) -> bool:
        """Check if the entry is still within its TTL."""
        return self.age_seconds(now) < self.ttl_seconds

    def expires_at(self) -> float:
        return self.stored_at + self.ttl_seconds
