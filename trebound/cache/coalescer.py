"""
Request coalescing to prevent duplicate upstream fetches.

When multiple concurrent callers ask for the same key, only one
underlying fetch runs and all callers share its outcome.
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict

logger = logging.getLogger("cache.coalescer")


class RequestCoalescer:
    """
    Ensures concurrent requests for the same key share one underlying call.

    Pattern:
    - First request for a key wraps the factory's awaitable in a task
    - Subsequent requests for the same key await that task
    - When the task settles, every waiter gets the same result or error
    - The key is released on settlement, so the next call starts fresh

    The lookup-then-register step never awaits, so two coroutines can never
    both register a task for one key.

    Usage:
        coalescer = RequestCoalescer()
        rows = await coalescer.run(
            "search:activities",
            lambda: client.query("activities", limit=150),
        )
    """

    def __init__(self):
        self._in_flight: Dict[str, asyncio.Future] = {}

    async def run(
        self,
        key: str,
        factory: Callable[[], Awaitable[Any]],
    ) -> Any:
        """
        Either join an existing in-flight call or start a new one.

        Args:
            key: Dedup key for this request
            factory: Zero-arg callable returning the awaitable to run

        Returns:
            The result shared among all concurrent callers

        Raises:
            Exception: Any error from the underlying call, unchanged
        """
        task = self._in_flight.get(key)
        if task is not None:
            logger.debug(f"Coalescing request for {key}")
        else:
            task = asyncio.ensure_future(factory())
            self._in_flight[key] = task
            task.add_done_callback(lambda t, k=key: self._release(k, t))
            logger.debug(f"Initiating fetch for {key}")

        # A cancelled waiter must not cancel the call other waiters share
        return await asyncio.shield(task)

    def _release(self, key: str, task: asyncio.Future) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]
        # Mark the outcome retrieved even if every waiter went away
        if not task.cancelled():
            task.exception()

    def is_pending(self, key: str) -> bool:
        return key in self._in_flight

    @property
    def active_requests(self) -> int:
        """Number of currently in-flight requests."""
        return len(self._in_flight)

    def get_stats(self) -> Dict[str, Any]:
        """Get coalescer statistics."""
        return {
            "active_requests": len(self._in_flight),
            "active_keys": list(self._in_flight.keys()),
        }
