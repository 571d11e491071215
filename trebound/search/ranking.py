"""
Relevance ranking for free-text search.

Additive point system, used only to order candidates within one query:
scores are never compared across queries and have no fixed maximum.
"""

import math
from dataclasses import dataclass
from typing import Iterable, List

from .models.candidates import ScoredCandidate, SearchCandidate
from .normalizer import query_words

# Score weights
EXACT_PHRASE_POINTS = 150
WORD_PRESENT_POINTS = 15
EXACT_WORD_POINTS = 8
TITLE_PHRASE_POINTS = 80
COVERAGE_POINTS = 50
CONCISE_POINTS = 25

# Positional bonus applies to the first five tokens: 10, 8, 6, 4, 2
LEADING_POSITIONS = 5
TITLE_DELIMITER = " - "
CONCISE_LENGTH_FACTOR = 5


def score(query: str, candidate_text: str) -> float:
    """
    Score how well a candidate text matches the query.

    Higher score = better match. Pure and deterministic.
    """
    query_lower = query.lower().strip()
    if not query_lower:
        return 0.0

    text_lower = candidate_text.lower()
    words = query_words(query_lower)
    tokens = text_lower.split()

    points = 0.0

    # Exact phrase match dominates
    if query_lower in text_lower:
        points += EXACT_PHRASE_POINTS

    matched = 0
    for word in words:
        if word not in text_lower:
            continue
        matched += 1
        points += WORD_PRESENT_POINTS

        # Leading tokens are titles and headline descriptors
        index = next((i for i, token in enumerate(tokens) if word in token), -1)
        if 0 <= index < LEADING_POSITIONS:
            points += max(0, 10 - index * 2)

        # Whole-token match beats substring ("garden" vs "gardener")
        if word in tokens:
            points += EXACT_WORD_POINTS

    # Name/title segment contains the full query
    title = text_lower.split(TITLE_DELIMITER, 1)[0]
    if query_lower in title:
        points += TITLE_PHRASE_POINTS

    # Share of query words found; repeated words count each time
    if words:
        points += matched / len(words) * COVERAGE_POINTS

    # Short, tight fields (taglines) over incidental matches in long text
    if 0 < len(text_lower) < len(query_lower) * CONCISE_LENGTH_FACTOR:
        points += CONCISE_POINTS

    return points


@dataclass(frozen=True)
class FilterPolicy:
    """
    Inclusion rule: full phrase present, or enough query words present.

    Required words = max(min_words, ceil(ratio * query word count)).
    """
    ratio: float
    min_words: int

    def required_words(self, word_count: int) -> int:
        return max(self.min_words, math.ceil(word_count * self.ratio))


# Venue fields are sparser than activity descriptions, so venues match looser
ACTIVITY_POLICY = FilterPolicy(ratio=0.5, min_words=2)
VENUE_POLICY = FilterPolicy(ratio=0.4, min_words=2)
DESTINATION_POLICY = FilterPolicy(ratio=0.4, min_words=1)


def matches(query: str, candidate_text: str, policy: FilterPolicy = ACTIVITY_POLICY) -> bool:
    """Check whether a candidate should be included in results for a query."""
    query_lower = query.lower().strip()
    if not query_lower:
        return False

    text_lower = candidate_text.lower()
    if query_lower in text_lower:
        return True

    words = query_words(query_lower)
    found = sum(1 for word in words if word in text_lower)
    return found >= policy.required_words(len(words))


def rank(
    query: str,
    candidates: Iterable[SearchCandidate],
    policy: FilterPolicy = ACTIVITY_POLICY,
    limit: int = 0,
) -> List[ScoredCandidate]:
    """
    Filter, score and sort candidates for a query.

    Ties keep their input order (stable sort).

    Args:
        query: Raw query text
        candidates: Candidates of one content type
        policy: Inclusion rule for this content type
        limit: Keep only the top N (0 = all)
    """
    scored = [
        ScoredCandidate(candidate=c, relevance_score=score(query, c.searchable_text))
        for c in candidates
        if matches(query, c.searchable_text, policy)
    ]
    scored.sort(key=lambda s: s.relevance_score, reverse=True)
    return scored[:limit] if limit else scored


def confidence_for(result_count: int) -> float:
    """Map a total result count to a search confidence signal."""
    if result_count >= 10:
        return 0.95
    if result_count >= 5:
        return 0.85
    if result_count >= 2:
        return 0.75
    if result_count >= 1:
        return 0.65
    return 0.40
