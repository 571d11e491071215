"""Search candidate models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class ContentType(Enum):
    """Kinds of content records that can be searched."""
    ACTIVITY = "activity"
    VENUE = "venue"
    DESTINATION = "destination"
    BLOG = "blog"


@dataclass(frozen=True)
class SearchCandidate:
    """
    Normalized, query-independent view over one content record.

    searchable_text is already stripped of markup; its leading segment
    (before the first " - ") is the record's name.
    """
    id: str
    type: ContentType
    title: str
    searchable_text: str
    location: Optional[str] = None

    # Display fields carried through to results
    slug: str = ""
    description: str = ""
    image: Optional[str] = None
    duration: Optional[str] = None
    capacity: Optional[str] = None
    amenities: Tuple[str, ...] = field(default_factory=tuple)
    category: Optional[str] = None  # activity type


# Display defaults when the record has nothing better
DEFAULT_DESCRIPTIONS = {
    ContentType.ACTIVITY: "Team building activity",
    ContentType.VENUE: "Premium venue for team events",
    ContentType.DESTINATION: "Team building destination",
    ContentType.BLOG: "",
}


@dataclass(frozen=True)
class ScoredCandidate:
    """A candidate with its relevance to one query. Never cached."""
    candidate: SearchCandidate
    relevance_score: float

    @property
    def title(self) -> str:
        return self.candidate.title

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the result item dictionary."""
        c = self.candidate
        result: Dict[str, Any] = {
            "id": c.id,
            "name": c.title,
            "description": c.description or DEFAULT_DESCRIPTIONS[c.type],
            "type": c.type.value,
            "slug": c.slug,
            "image": c.image,
            "relevanceScore": round(self.relevance_score, 2),
        }
        if c.type is ContentType.ACTIVITY:
            result["duration"] = c.duration or "2-3 hours"
            result["capacity"] = c.capacity or "10-30 people"
            result["location"] = c.location or "Various"
        elif c.type is ContentType.VENUE:
            result["location"] = c.location or "Premium Location"
            result["amenities"] = list(c.amenities)
        elif c.type is ContentType.DESTINATION:
            result["location"] = c.location
        return result
