"""
Shared fixtures: a controllable clock and a small content corpus.
"""
import pytest

from trebound.content.client import StaticContentClient


class FakeClock:
    """Monotonic clock the test advances by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


# =============================================================================
# Mock Content
# =============================================================================

@pytest.fixture
def activity_records():
    return [
        {
            "id": 1,
            "name": "Cooking Team Building",
            "tagline": "Cook up collaboration in the kitchen",
            "description": "<p>A hands-on <strong>cooking</strong> challenge for teams.</p>",
            "activity_type": "Culinary",
            "group_size": "10-100 people",
            "duration": "3 hours",
            "slug": "cooking-team-building",
            "main_image": "cooking.jpg",
        },
        {
            "id": 2,
            "name": "Outdoor Cooking Challenge",
            "tagline": "Campfire recipes under pressure",
            "description": "Teams compete to cook a meal outdoors.",
            "activity_type": "Outdoor",
            "slug": "outdoor-cooking-challenge",
        },
        {
            "id": 3,
            "name": "Escape Room",
            "tagline": "Solve puzzles against the clock",
            "description": "A team building classic &amp; crowd favourite.",
            "activity_type": "Indoor",
            "slug": "escape-room",
        },
        {
            "id": 4,
            "name": "Virtual Trivia",
            "tagline": "Quiz night for remote teams",
            "description": "Online trivia hosted live.",
            "activity_type": "Virtual",
            "slug": "virtual-trivia",
        },
    ]


@pytest.fixture
def stay_records():
    return [
        {
            "id": 10,
            "name": "Lakeside Retreat",
            "tagline": "Team offsite by the water",
            "stay_description": "Rooms for 80 guests with a cooking studio.",
            "location": "Lonavala",
            "facilities": "Pool, Conference hall; Kitchen",
            "slug": "lakeside-retreat",
        },
        {
            "id": 11,
            "name": "City Business Hotel",
            "tagline": "Central meetings venue",
            "description": "Meeting rooms downtown.",
            "location": "Mumbai",
            "slug": "city-business-hotel",
        },
    ]


@pytest.fixture
def destination_records():
    return [
        {
            "id": 20,
            "name": "Goa",
            "description": "Beaches, cooking classes and team outings.",
            "region": "West India",
            "slug": "goa",
        },
        {
            "id": 21,
            "name": "Coorg",
            "description": "Coffee estates and hills.",
            "region": "South India",
            "slug": "coorg",
        },
    ]


@pytest.fixture
def blog_records():
    return [
        {"id": 30, "name": "10 Cooking Activities for Teams", "small_description": "Kitchen ideas", "slug": "cooking-ideas"},
    ]


@pytest.fixture
def content_tables(activity_records, stay_records, destination_records, blog_records):
    return {
        "activities": activity_records,
        "stays": stay_records,
        "destinations": destination_records,
        "blog_posts": blog_records,
        "regions": [{"id": 1, "name": "West India"}, {"id": 2, "name": "East India"}],
        "team_outing_ads": [],
    }


@pytest.fixture
def static_client(content_tables):
    return StaticContentClient(content_tables)
