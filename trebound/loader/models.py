"""
Data models for the prioritized parallel loader.
"""
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from ..cache.core import Priority


@dataclass(frozen=True)
class FetchDescriptor:
    """
    Declarative description of one fetch operation.

    The key is shared by the cache, the coalescer and the retry logic, so
    it must be unique within its namespace (e.g. "homepage:activities").
    """
    key: str
    execute: Callable[[], Any]  # returns an awaitable (a plain value is tolerated)
    priority: Priority = Priority.NORMAL
    cacheable: bool = True
    ttl: Optional[float] = None       # seconds; defaults to the priority tier TTL
    timeout: Optional[float] = None   # seconds; defaults to the batch timeout

    def __post_init__(self):
        if not isinstance(self.key, str) or not self.key.strip():
            raise ValueError(f"FetchDescriptor key must be a non-empty string, got {self.key!r}")
        if not callable(self.execute):
            raise TypeError(f"FetchDescriptor {self.key!r}: execute must be callable")
        if not isinstance(self.priority, Priority):
            raise TypeError(
                f"FetchDescriptor {self.key!r}: priority must be a Priority, got {self.priority!r}"
            )
        if self.ttl is not None and self.ttl <= 0:
            raise ValueError(f"FetchDescriptor {self.key!r}: ttl must be positive")
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError(f"FetchDescriptor {self.key!r}: timeout must be positive")

    @property
    def is_critical(self) -> bool:
        return self.priority is Priority.CRITICAL


@dataclass(frozen=True)
class BatchResult:
    """Outcome of one descriptor within a batch."""
    key: str
    data: Any = None
    error: Optional[Exception] = None
    from_cache: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON response."""
        return {
            "key": self.key,
            "data": self.data,
            "error": str(self.error) if self.error is not None else None,
            "fromCache": self.from_cache,
        }
