"""
Deterministic answers used when no generated answer is available.

Everything here is a pure template over already-ranked candidates: the
same inputs always produce byte-identical output.
"""

from typing import Sequence

from .models.candidates import ScoredCandidate
from .models.responses import SearchResult

GENERIC_SUGGESTIONS = [
    "Virtual team building games",
    "Outdoor team activities",
    "Corporate team outing venues",
    "Team building workshops",
    "Leadership development programs",
]

DEGRADED_SUGGESTIONS = [
    "Contact our team directly",
    "Browse activity categories",
    "View our popular options",
]


def no_match_answer(query: str) -> str:
    """Apology-and-redirect answer for a query with zero matches."""
    return (
        f"I couldn't find exact matches for \"{query}\", but don't worry! "
        "Our team building experts can help you find the perfect activities. "
        "We have 350+ unique experiences including virtual activities, outdoor adventures, "
        "and creative workshops. Contact us to discuss your specific needs!"
    )


def compose_fallback_answer(
    query: str,
    activities: Sequence[ScoredCandidate],
    venues: Sequence[ScoredCandidate],
    destinations: Sequence[ScoredCandidate],
) -> str:
    """
    Compose an answer from ranked results.

    Clauses always appear in the order activities, venues, destinations,
    each naming the top-ranked candidate of its category.
    """
    total = len(activities) + len(venues) + len(destinations)
    if total == 0:
        return no_match_answer(query)

    parts = [f"Great! I found {total} options for \"{query}\". "]

    if activities:
        top = activities[0].candidate
        parts.append(
            f"We have {len(activities)} activities including \"{top.title}\" "
            f"which is perfect for {top.capacity or 'teams'}. "
        )

    if venues:
        top = venues[0].candidate
        parts.append(
            f"Plus {len(venues)} venues like \"{top.title}\" "
            f"in {top.location or 'premium locations'}. "
        )

    if destinations:
        top = destinations[0].candidate
        parts.append(
            f"We also cover {len(destinations)} destinations including {top.title}. "
        )

    parts.append("Explore the options below or contact our team for personalized recommendations!")
    return "".join(parts)


def empty_query_result() -> SearchResult:
    """Result for a blank query."""
    return SearchResult(
        answer="Please enter a search term to find team building activities, venues and destinations.",
        suggestions=list(GENERIC_SUGGESTIONS),
        confidence=0.40,
    )


def degraded_result(query: str, elapsed_ms: int = 0) -> SearchResult:
    """Last-resort result when the search pipeline itself fails."""
    return SearchResult(
        answer=(
            "I apologize, but I'm having trouble searching right now. "
            "Please contact our team directly for personalized team building recommendations, "
            "or browse our categories to find the perfect activity for your team."
        ),
        suggestions=list(DEGRADED_SUGGESTIONS),
        confidence=0.3,
        elapsed_ms=elapsed_ms,
    )
