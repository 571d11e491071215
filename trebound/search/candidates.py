"""
Build search candidates from raw content records.

Records are untyped field bags from the content store; every text field
may contain CMS markup and is cleaned before it reaches the ranking engine.
"""

import re
from typing import Any, Dict, Iterable, List, Optional

from .models.candidates import ContentType, SearchCandidate
from .normalizer import extract_text_from_html, join_fields

Record = Dict[str, Any]

_AMENITY_SPLIT_RE = re.compile(r"[,;.]+")


def _clean(record: Record, *names: str) -> str:
    """First non-empty field among names, with markup stripped."""
    for name in names:
        text = extract_text_from_html(record.get(name) or "")
        if text:
            return text
    return ""


def _first(record: Record, *names: str) -> Optional[str]:
    for name in names:
        value = record.get(name)
        if value:
            return str(value)
    return None


def activity_candidate(record: Record) -> SearchCandidate:
    name = _clean(record, "name")
    tagline = _clean(record, "tagline")
    description = _clean(record, "description")
    activity_type = _clean(record, "activity_type")
    return SearchCandidate(
        id=str(record.get("id", "")),
        type=ContentType.ACTIVITY,
        title=name,
        searchable_text=join_fields(name, tagline, description, activity_type),
        location=_clean(record, "location") or None,
        slug=record.get("slug") or "",
        description=tagline or description,
        image=_first(record, "main_image", "image"),
        duration=_first(record, "duration"),
        capacity=_first(record, "group_size", "capacity"),
        category=activity_type or None,
    )


def venue_candidate(record: Record) -> SearchCandidate:
    name = _clean(record, "name")
    tagline = _clean(record, "tagline")
    description = _clean(record, "stay_description", "description")
    location = _clean(record, "location")
    facilities = _clean(record, "facilities")
    amenities = tuple(
        part.strip() for part in _AMENITY_SPLIT_RE.split(facilities) if part.strip()
    )
    return SearchCandidate(
        id=str(record.get("id", "")),
        type=ContentType.VENUE,
        title=name,
        searchable_text=join_fields(name, tagline, description, location, facilities),
        location=location or None,
        slug=record.get("slug") or "",
        description=tagline or description,
        image=_first(record, "stay_image", "image_url", "banner_image_url", "image_1", "image"),
        amenities=amenities,
    )


def destination_candidate(record: Record) -> SearchCandidate:
    name = _clean(record, "name")
    description = _clean(record, "description", "destination_description")
    region = _clean(record, "region")
    return SearchCandidate(
        id=str(record.get("id", "")),
        type=ContentType.DESTINATION,
        title=name,
        # Destinations should surface for generic "where" queries
        searchable_text=join_fields(name, description, region, "destination location venue"),
        location=region or None,
        slug=record.get("slug") or "",
        description=description,
        image=_first(record, "destination_main_image", "destination_image", "image"),
    )


def blog_candidate(record: Record) -> SearchCandidate:
    name = _clean(record, "name")
    summary = _clean(record, "small_description")
    return SearchCandidate(
        id=str(record.get("id", "")),
        type=ContentType.BLOG,
        title=name,
        searchable_text=join_fields(name, summary),
        slug=record.get("slug") or "",
        description=summary,
        image=_first(record, "main_image", "thumbnail_image", "image"),
    )


BUILDERS = {
    ContentType.ACTIVITY: activity_candidate,
    ContentType.VENUE: venue_candidate,
    ContentType.DESTINATION: destination_candidate,
    ContentType.BLOG: blog_candidate,
}


def build_candidates(content_type: ContentType, records: Optional[Iterable[Record]]) -> List[SearchCandidate]:
    """Build candidates for one content type, skipping non-record entries."""
    builder = BUILDERS[content_type]
    return [builder(r) for r in (records or []) if isinstance(r, dict)]
