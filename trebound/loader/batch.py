"""
Prioritized parallel loader.

Runs a batch of fetch descriptors: critical ones first, the rest
concurrently afterwards. Each descriptor goes through the cache, the
request coalescer and a bounded retry with exponential backoff.
A failing descriptor never fails the batch.
"""
import asyncio
import inspect
import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..cache.coalescer import RequestCoalescer
from ..cache.store import TTLCache
from ..cache.ttl_policies import resolve_ttl
from .models import BatchResult, FetchDescriptor

logger = logging.getLogger("loader.batch")

# Retries are local to one descriptor and must stay small
MAX_RETRIES = 3


class FetchTimeoutError(Exception):
    """Raised when a single fetch attempt does not settle within its timeout."""

    def __init__(self, key: str, timeout: float):
        super().__init__(f"Timeout: {key} did not settle within {timeout}s")
        self.key = key
        self.timeout = timeout


async def _invoke(execute: Callable[[], Any]) -> Any:
    # A synchronous raise lands here too, inside the retry/timeout handling
    result = execute()
    if inspect.isawaitable(result):
        return await result
    return result


def _log_retry(key: str) -> Callable[[RetryCallState], None]:
    def before_sleep(retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        delay = retry_state.next_action.sleep if retry_state.next_action else 0
        logger.debug(
            f"Retrying {key} in {delay:.2f}s "
            f"(attempt {retry_state.attempt_number} failed: {error})"
        )
    return before_sleep


class BatchLoader:
    """
    Loads batches of FetchDescriptors with priority phases.

    - CRITICAL descriptors run concurrently and settle before anything else starts
    - HIGH/NORMAL/LOW then run concurrently with no ordering between them
    - Valid cache hits short-circuit with from_cache=True
    - Misses run through the coalescer, so one key has one fetch in flight
    - Each attempt is bounded by a timeout; failures retry with doubling backoff
    - Successes are written through to the cache with the descriptor/tier TTL

    Timeouts cancel the awaited call (asyncio cancellation). Work a
    collaborator already handed to a worker thread finishes there and its
    result is discarded, so a timed-out fetch never writes to the cache.
    """

    def __init__(
        self,
        cache: TTLCache,
        coalescer: RequestCoalescer,
        timeout: float = 10.0,
        retries: int = 2,
        backoff_base: float = 0.1,
        backoff_max: float = 2.0,
    ):
        """
        Initialize the loader.

        Args:
            cache: Shared TTL cache
            coalescer: Shared in-flight request coalescer
            timeout: Default per-attempt timeout in seconds
            retries: Default number of retries after the first attempt
            backoff_base: First backoff delay in seconds (doubles per retry)
            backoff_max: Upper bound for a single backoff delay
        """
        self._check_options(timeout, retries)
        self._cache = cache
        self._coalescer = coalescer
        self._timeout = timeout
        self._retries = retries
        self._backoff_base = backoff_base
        self._backoff_max = backoff_max

    @staticmethod
    def _check_options(timeout: float, retries: int) -> None:
        if timeout <= 0:
            raise ValueError(f"timeout must be positive, got {timeout}")
        if not 0 <= retries <= MAX_RETRIES:
            raise ValueError(f"retries must be between 0 and {MAX_RETRIES}, got {retries}")

    async def load_batch(
        self,
        descriptors: Iterable[FetchDescriptor],
        timeout: Optional[float] = None,
        retries: Optional[int] = None,
        fallback_data: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, BatchResult]:
        """
        Load a batch of descriptors.

        Args:
            descriptors: Descriptors to load; keys must be unique in the batch
            timeout: Per-attempt timeout override (descriptor timeout wins)
            retries: Retry count override
            fallback_data: Per-key data reported for descriptors that fail

        Returns:
            Mapping of key -> BatchResult, in submission order

        Raises:
            ValueError: Duplicate keys or out-of-range options. Descriptor
                failures never raise; they are reported in their BatchResult.
        """
        descriptors = list(descriptors)
        timeout = self._timeout if timeout is None else timeout
        retries = self._retries if retries is None else retries
        self._check_options(timeout, retries)

        seen = set()
        for descriptor in descriptors:
            if not isinstance(descriptor, FetchDescriptor):
                raise TypeError(f"Expected FetchDescriptor, got {type(descriptor).__name__}")
            if descriptor.key in seen:
                raise ValueError(f"Duplicate descriptor key in batch: {descriptor.key}")
            seen.add(descriptor.key)

        fallback_data = fallback_data or {}
        critical = [d for d in descriptors if d.is_critical]
        rest = [d for d in descriptors if not d.is_critical]

        results: Dict[str, BatchResult] = {}
        for phase in (critical, rest):
            if phase:
                results.update(
                    await self._run_phase(phase, timeout, retries, fallback_data)
                )

        failed = [r for r in results.values() if not r.ok]
        if failed:
            logger.warning(f"{len(failed)} of {len(results)} batch requests failed")

        return {d.key: results[d.key] for d in descriptors}

    async def _run_phase(
        self,
        phase: List[FetchDescriptor],
        timeout: float,
        retries: int,
        fallback_data: Mapping[str, Any],
    ) -> Dict[str, BatchResult]:
        """Run one priority phase concurrently and settle every descriptor."""
        outcomes = await asyncio.gather(
            *(self._load_one(d, timeout, retries) for d in phase),
            return_exceptions=True,
        )

        results: Dict[str, BatchResult] = {}
        for descriptor, outcome in zip(phase, outcomes):
            if isinstance(outcome, BatchResult):
                results[descriptor.key] = outcome
            elif isinstance(outcome, Exception):
                logger.warning(f"Failed to load {descriptor.key}: {outcome!r}")
                results[descriptor.key] = BatchResult(
                    key=descriptor.key,
                    data=fallback_data.get(descriptor.key),
                    error=outcome,
                )
            else:
                raise outcome
        return results

    async def _load_one(
        self,
        descriptor: FetchDescriptor,
        timeout: float,
        retries: int,
    ) -> BatchResult:
        if descriptor.cacheable:
            entry = self._cache.lookup(descriptor.key)
            if entry is not None:
                logger.debug(f"CACHE HIT: {descriptor.key}")
                return BatchResult(key=descriptor.key, data=entry.value, from_cache=True)

        logger.debug(f"CACHE MISS: {descriptor.key}")
        data = await self._coalescer.run(
            descriptor.key,
            lambda: self._fetch(descriptor, timeout, retries),
        )
        return BatchResult(key=descriptor.key, data=data)

    async def _fetch(
        self,
        descriptor: FetchDescriptor,
        timeout: float,
        retries: int,
    ) -> Any:
        """Run execute() with timeout and retry, then write through to the cache."""
        limit = descriptor.timeout or timeout
        retrying = AsyncRetrying(
            stop=stop_after_attempt(retries + 1),
            wait=wait_exponential(multiplier=self._backoff_base, max=self._backoff_max),
            retry=retry_if_exception_type(Exception),
            before_sleep=_log_retry(descriptor.key),
            reraise=True,
        )
        data = await retrying(self._attempt, descriptor, limit)

        if descriptor.cacheable:
            ttl = resolve_ttl(descriptor.priority, descriptor.ttl)
            self._cache.set(descriptor.key, data, ttl)
        return data

    async def _attempt(self, descriptor: FetchDescriptor, limit: float) -> Any:
        try:
            return await asyncio.wait_for(_invoke(descriptor.execute), limit)
        except asyncio.TimeoutError:
            raise FetchTimeoutError(descriptor.key, limit)
