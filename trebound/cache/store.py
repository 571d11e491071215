"""
In-memory TTL cache with opportunistic and periodic expiry.
"""
import asyncio
import copy
import logging
import time
from typing import Any, Callable, Dict, Iterable, Optional

from .core import CacheEntry
from .ttl_policies import DEFAULT_TTL

logger = logging.getLogger("cache.store")


class TTLCache:
    """
    Key -> value store where every entry carries its own TTL.

    - Expired entries are never returned; a read that finds one deletes it
    - A background sweep removes expired entries nobody reads again
    - Values are deep-copied on write and on read, so callers never share
      a reference with the cache or with each other

    The cache has no I/O and cannot fail. It is not thread-safe; it is meant
    to be used from a single event loop, and no method awaits.
    """

    def __init__(
        self,
        default_ttl: float = DEFAULT_TTL,
        sweep_interval: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the cache.

        Args:
            default_ttl: TTL in seconds used when set() is given none
            sweep_interval: Seconds between background sweeps
            clock: Monotonic time source (injectable for tests)
        """
        self._entries: Dict[str, CacheEntry] = {}
        self._default_ttl = default_ttl
        self._sweep_interval = sweep_interval
        self._clock = clock
        self._sweeper: Optional[asyncio.Task] = None

        self._stats = {
            "hits": 0,
            "misses": 0,
            "expired_on_read": 0,
            "swept": 0,
        }

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        """Store a value, overwriting any existing entry for the key."""
        ttl_seconds = self._default_ttl if ttl is None else ttl
        self._entries[key] = CacheEntry(
            value=copy.deepcopy(value),
            stored_at=self._clock(),
            ttl_seconds=ttl_seconds,
        )

    def lookup(self, key: str) -> Optional[CacheEntry]:
        """
        Return a valid entry (holding a private copy of the value) or None.

        Unlike get(), this distinguishes a cached None or empty value
        from a miss.
        """
        entry = self._entries.get(key)
        if entry is None:
            self._stats["misses"] += 1
            return None

        if not entry.is_valid(self._clock()):
            del self._entries[key]
            self._stats["misses"] += 1
            self._stats["expired_on_read"] += 1
            logger.debug(f"CACHE EXPIRED: {key}")
            return None

        self._stats["hits"] += 1
        return CacheEntry(
            value=copy.deepcopy(entry.value),
            stored_at=entry.stored_at,
            ttl_seconds=entry.ttl_seconds,
        )

    def get(self, key: str) -> Any:
        """Return a copy of the cached value, or None if absent or expired."""
        entry = self.lookup(key)
        return entry.value if entry is not None else None

    def clear(self, keys: Optional[Iterable[str]] = None) -> int:
        """
        Remove entries.

        Args:
            keys: Only remove these keys. Removes everything when omitted.

        Returns:
            Number of entries removed
        """
        if keys is None:
            count = len(self._entries)
            self._entries.clear()
            logger.info(f"Cleared {count} cache entries")
            return count

        count = 0
        for key in keys:
            if self._entries.pop(key, None) is not None:
                count += 1
        if count:
            logger.info(f"Cleared {count} cache entries")
        return count

    def sweep(self) -> int:
        """Remove every expired entry. Returns the number removed."""
        now = self._clock()
        expired = [k for k, e in self._entries.items() if not e.is_valid(now)]
        for key in expired:
            del self._entries[key]
        if expired:
            self._stats["swept"] += len(expired)
            logger.debug(f"Swept {len(expired)} expired cache entries")
        return len(expired)

    # ========================================================================
    # Background sweep
    # ========================================================================

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval)
            self.sweep()

    def start_sweeper(self) -> None:
        """Start the periodic sweep on the running event loop."""
        if self._sweeper is not None and not self._sweeper.done():
            return
        self._sweeper = asyncio.get_running_loop().create_task(self._sweep_loop())
        logger.debug(f"Cache sweeper started (every {self._sweep_interval}s)")

    async def stop_sweeper(self) -> None:
        """Stop the periodic sweep if it is running."""
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        try:
            await self._sweeper
        except asyncio.CancelledError:
            pass
        self._sweeper = None

    @property
    def sweeper_running(self) -> bool:
        return self._sweeper is not None and not self._sweeper.done()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and entry.is_valid(self._clock())

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics (operational/debug surface)."""
        now = self._clock()
        valid = sum(1 for e in self._entries.values() if e.is_valid(now))
        total_requests = self._stats["hits"] + self._stats["misses"]
        hit_rate = (self._stats["hits"] / total_requests * 100) if total_requests > 0 else 0

        return {
            "size": len(self._entries),
            "keys": list(self._entries.keys()),
            "valid_keys": valid,
            "expired_keys": len(self._entries) - valid,
            "hits": self._stats["hits"],
            "misses": self._stats["misses"],
            "expired_on_read": self._stats["expired_on_read"],
            "swept": self._stats["swept"],
            "hit_rate_percent": round(hit_rate, 1),
        }
