"""
Data-access context.

One DataAccess is built at application start and passed to consumers.
It owns the cache, the coalescer, the loader and the search engine, so
there is no module-level state and teardown is explicit.
"""
import logging
from typing import Any, Dict, Iterable, Mapping, Optional

from config.settings import Settings, settings as default_settings
from .cache.coalescer import RequestCoalescer
from .cache.store import TTLCache
from .content import ContentQueryClient, get_content_client
from .loader.batch import BatchLoader
from .loader.bundles import build_bundle
from .loader.models import BatchResult, FetchDescriptor
from .search.llm import NullTextGenerator, TextGenerator, get_text_generator
from .search.models.responses import SearchResult
from .search.pipeline import SearchEngine

logger = logging.getLogger("trebound.context")


class DataAccess:
    """
    Consumer-facing handle for the data-access layer.

    Usage:
        async with DataAccess.from_settings() as data:
            homepage = await data.load_bundle("homepage")
            result = await data.search("cooking team building")
    """

    def __init__(
        self,
        client: ContentQueryClient,
        generator: Optional[TextGenerator] = None,
        settings: Optional[Settings] = None,
        cache: Optional[TTLCache] = None,
    ):
        """
        Initialize the context.

        Args:
            client: Content store client
            generator: Text generator for search answers (template-only if omitted)
            settings: Tuning knobs (module settings if omitted)
            cache: Pre-built cache (tests inject one with a fake clock)
        """
        settings = settings or default_settings
        self.client = client
        self.generator = generator or NullTextGenerator()
        if cache is None:
            cache = TTLCache(
                default_ttl=settings.cache_default_ttl_seconds,
                sweep_interval=settings.cache_sweep_interval_seconds,
            )
        self.cache = cache
        self.coalescer = RequestCoalescer()
        self.loader = BatchLoader(
            cache=self.cache,
            coalescer=self.coalescer,
            timeout=settings.loader_timeout_seconds,
            retries=settings.loader_retries,
            backoff_base=settings.loader_backoff_base_seconds,
            backoff_max=settings.loader_backoff_max_seconds,
        )
        self.search_engine = SearchEngine(
            loader=self.loader,
            client=self.client,
            generator=self.generator,
            corpus_ttl=settings.search_corpus_ttl_seconds,
            generator_timeout=settings.generator_timeout_seconds,
        )

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "DataAccess":
        """Build a context with the configured content client and generator."""
        settings = settings or default_settings
        return cls(
            client=get_content_client(settings),
            generator=get_text_generator(settings),
            settings=settings,
        )

    # ========================================================================
    # Lifecycle
    # ========================================================================

    async def start(self) -> None:
        """Start background maintenance (cache sweep)."""
        self.cache.start_sweeper()
        logger.info("Data access layer started")

    async def close(self) -> None:
        """Stop background work, drop cached state and release clients."""
        await self.cache.stop_sweeper()
        self.clear_cache()
        await self.client.close()
        await self.generator.close()
        logger.info("Data access layer closed")

    async def __aenter__(self) -> "DataAccess":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # ========================================================================
    # Consumer API
    # ========================================================================

    async def load_batch(
        self,
        descriptors: Iterable[FetchDescriptor],
        timeout: Optional[float] = None,
        retries: Optional[int] = None,
        fallback_data: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, BatchResult]:
        """Load descriptors; see BatchLoader.load_batch."""
        return await self.loader.load_batch(
            descriptors, timeout=timeout, retries=retries, fallback_data=fallback_data
        )

    async def load_bundle(self, name: str) -> Dict[str, BatchResult]:
        """
        Load a named bundle.

        Raises:
            KeyError: Unknown bundle name
        """
        bundle = build_bundle(name, self.client)
        logger.debug(f"Loading bundle {name} ({len(bundle.descriptors)} descriptors)")
        return await self.loader.load_batch(
            bundle.descriptors,
            timeout=bundle.timeout,
            retries=bundle.retries,
            fallback_data=bundle.fallback_data,
        )

    async def search(self, query: str) -> SearchResult:
        """Search the content corpus. Never raises."""
        return await self.search_engine.search(query)

    def clear_cache(self, keys: Optional[Iterable[str]] = None) -> int:
        """
        Clear cached entries (all, or only the given keys).

        In-flight fetches keep their coalescer slot until they settle.
        """
        return self.cache.clear(keys)

    def get_cache_stats(self) -> Dict[str, Any]:
        """Cache statistics plus in-flight request info."""
        stats = self.cache.get_stats()
        stats["coalescer"] = self.coalescer.get_stats()
        return stats
