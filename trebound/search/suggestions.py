"""Follow-up search suggestions built from the corpus."""

from typing import List, Sequence

from .fallback import GENERIC_SUGGESTIONS
from .models.candidates import SearchCandidate

MAX_SUGGESTIONS = 6
MAX_LOCATION_SUGGESTIONS = 3


def build_suggestions(
    query: str,
    activities: Sequence[SearchCandidate],
    venues: Sequence[SearchCandidate],
    destinations: Sequence[SearchCandidate],
) -> List[str]:
    """
    Suggest related searches the corpus can answer.

    Activity categories come first, then up to three locations, then the
    generic list. Terms already in the query are skipped.
    """
    query_lower = query.lower()
    suggestions: List[str] = []

    categories = dict.fromkeys(a.category for a in activities if a.category)
    for category in categories:
        if category.lower() not in query_lower:
            suggestions.append(f"{category} team building activities")

    locations = dict.fromkeys(
        [v.location for v in venues if v.location]
        + [d.location for d in destinations if d.location]
    )
    for location in list(locations)[:MAX_LOCATION_SUGGESTIONS]:
        if location.lower() not in query_lower:
            suggestions.append(f"Team building in {location}")

    suggestions.extend(GENERIC_SUGGESTIONS)
    return suggestions[:MAX_SUGGESTIONS]
