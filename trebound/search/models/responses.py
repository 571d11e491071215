"""Response model for search - single envelope contract."""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from .candidates import ScoredCandidate


@dataclass
class SearchResult:
    """
    Unified response envelope for all search queries.

    Always renderable: empty lists and a template answer are valid
    terminal states.
    """
    answer: str
    activities: List[ScoredCandidate] = field(default_factory=list)
    venues: List[ScoredCandidate] = field(default_factory=list)
    destinations: List[ScoredCandidate] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)
    confidence: float = 0.40
    elapsed_ms: int = 0
    generated: bool = False  # answer came from the generative service

    @property
    def total_results(self) -> int:
        return len(self.activities) + len(self.venues) + len(self.destinations)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "answer": self.answer,
            "activities": [a.to_dict() for a in self.activities],
            "venues": [v.to_dict() for v in self.venues],
            "destinations": [d.to_dict() for d in self.destinations],
            "suggestions": self.suggestions,
            "confidence": self.confidence,
            "totalResults": self.total_results,
            "elapsedMs": self.elapsed_ms,
            "generated": self.generated,
        }
