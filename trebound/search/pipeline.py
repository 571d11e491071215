"""
Main search pipeline orchestrator.

This module coordinates the full search flow:
1. Reject blank queries
2. Load the search corpus (cached, deduplicated, retried)
3. Build candidates from raw records
4. Filter, score and rank per category
5. Build suggestions
6. Generate an answer, or compose the template fallback
7. Return a renderable result, even when something above fails
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Dict, List

from ..content.client import ContentQueryClient
from ..loader.batch import BatchLoader
from ..loader.bundles import search_corpus_bundle
from .candidates import build_candidates
from .fallback import compose_fallback_answer, degraded_result, empty_query_result
from .llm.base import GenerationError, TextGenerator
from .models.candidates import ContentType, ScoredCandidate, SearchCandidate
from .models.responses import SearchResult
from .ranking import (
    ACTIVITY_POLICY,
    DESTINATION_POLICY,
    VENUE_POLICY,
    confidence_for,
    rank,
)
from .suggestions import build_suggestions

logger = logging.getLogger(__name__)

# Max results per category
RESULT_LIMITS: Dict[ContentType, int] = {
    ContentType.ACTIVITY: 12,
    ContentType.VENUE: 10,
    ContentType.DESTINATION: 8,
}

# Corpus table -> candidate type
CORPUS_TABLES: Dict[str, ContentType] = {
    "activities": ContentType.ACTIVITY,
    "stays": ContentType.VENUE,
    "destinations": ContentType.DESTINATION,
    "blog_posts": ContentType.BLOG,
}

ANSWER_PROMPT = """Based on the actual Trebound website data provided, analyze the search query "{query}" and provide a helpful response.

The user is looking for team building activities, venues, or destinations. Provide a conversational response that:
1. Acknowledges their search query
2. Highlights relevant options from the actual data
3. Suggests specific activities/venues that match their needs

Keep the response under 200 words and mention specific items from the data when relevant."""


@dataclass
class SearchCorpus:
    """Candidates available to one search call."""
    activities: List[SearchCandidate] = field(default_factory=list)
    venues: List[SearchCandidate] = field(default_factory=list)
    destinations: List[SearchCandidate] = field(default_factory=list)
    blogs: List[SearchCandidate] = field(default_factory=list)

    def build_context(self, query: str) -> str:
        """Context string handed to the text generator."""
        sections = [
            ("ACTIVITIES", "Activity", self.activities),
            ("VENUES", "Venue", self.venues),
            ("DESTINATIONS", "Destination", self.destinations),
            ("BLOG POSTS", "Blog", self.blogs),
        ]
        lines = ["TREBOUND WEBSITE DATA:"]
        for heading, label, candidates in sections:
            lines.append("")
            lines.append(f"{heading} ({len(candidates)} available):")
            lines.extend(f"{label}: {c.searchable_text} - Slug: {c.slug}" for c in candidates)
        lines.append("")
        lines.append(f'SEARCH QUERY: "{query}"')
        return "\n".join(lines)


class SearchEngine:
    """
    Answers free-text queries against the content corpus.

    search() never raises: a failed corpus table contributes no candidates,
    a failed generator yields the template answer, and any unexpected error
    yields the degraded result.
    """

    def __init__(
        self,
        loader: BatchLoader,
        client: ContentQueryClient,
        generator: TextGenerator,
        corpus_ttl: float = 300.0,
        generator_timeout: float = 15.0,
    ):
        self._loader = loader
        self._client = client
        self._generator = generator
        self._corpus_ttl = corpus_ttl
        self._generator_timeout = generator_timeout

    async def search(self, query: str) -> SearchResult:
        """
        Execute a search query and return a renderable result.

        Args:
            query: Raw search query from user

        Returns:
            SearchResult with ranked results and an answer
        """
        start_time = time.perf_counter()

        if not query or not query.strip():
            return empty_query_result()

        query = query.strip()
        try:
            result = await self._search(query)
        except Exception:
            logger.exception(f"Search failed for query {query!r}, returning degraded result")
            return degraded_result(query, self._elapsed_ms(start_time))

        result.elapsed_ms = self._elapsed_ms(start_time)
        logger.info(
            f"Search {query!r}: {result.total_results} results "
            f"(generated={result.generated}, {result.elapsed_ms}ms)"
        )
        return result

    async def _search(self, query: str) -> SearchResult:
        corpus = await self.load_corpus()

        activities = rank(query, corpus.activities, ACTIVITY_POLICY,
                          limit=RESULT_LIMITS[ContentType.ACTIVITY])
        venues = rank(query, corpus.venues, VENUE_POLICY,
                      limit=RESULT_LIMITS[ContentType.VENUE])
        destinations = rank(query, corpus.destinations, DESTINATION_POLICY,
                            limit=RESULT_LIMITS[ContentType.DESTINATION])

        suggestions = build_suggestions(query, corpus.activities, corpus.venues, corpus.destinations)
        answer, generated = await self._answer(query, corpus, activities, venues, destinations)

        total = len(activities) + len(venues) + len(destinations)
        return SearchResult(
            answer=answer,
            activities=activities,
            venues=venues,
            destinations=destinations,
            suggestions=suggestions,
            confidence=confidence_for(total),
            generated=generated,
        )

    async def load_corpus(self) -> SearchCorpus:
        """Load the corpus tables; a failed table contributes no candidates."""
        bundle = search_corpus_bundle(self._client, ttl=self._corpus_ttl)
        results = await self._loader.load_batch(
            bundle.descriptors,
            timeout=bundle.timeout,
            retries=bundle.retries,
            fallback_data=bundle.fallback_data,
        )

        by_type: Dict[ContentType, List[SearchCandidate]] = {}
        for table, content_type in CORPUS_TABLES.items():
            result = results[f"search:{table}"]
            if not result.ok:
                logger.warning(f"Searching without {table}: {result.error}")
            by_type[content_type] = build_candidates(content_type, result.data)

        return SearchCorpus(
            activities=by_type[ContentType.ACTIVITY],
            venues=by_type[ContentType.VENUE],
            destinations=by_type[ContentType.DESTINATION],
            blogs=by_type[ContentType.BLOG],
        )

    async def _answer(
        self,
        query: str,
        corpus: SearchCorpus,
        activities: List[ScoredCandidate],
        venues: List[ScoredCandidate],
        destinations: List[ScoredCandidate],
    ) -> tuple[str, bool]:
        """Generated answer if possible, else the template answer. Never retried."""
        if self._generator.is_available:
            try:
                text = await asyncio.wait_for(
                    self._generator.complete(
                        ANSWER_PROMPT.format(query=query),
                        corpus.build_context(query),
                    ),
                    self._generator_timeout,
                )
                if not text or not text.strip():
                    raise GenerationError("Empty completion")
                return text.strip(), True
            except Exception as e:
                logger.warning(
                    f"Answer generation failed ({self._generator.provider_name}), "
                    f"using fallback: {e!r}"
                )

        return compose_fallback_answer(query, activities, venues, destinations), False

    @staticmethod
    def _elapsed_ms(start_time: float) -> int:
        return int((time.perf_counter() - start_time) * 1000)
