"""
Named descriptor bundles.

Each bundle is the set of fetches one page or use case needs, built
once here instead of at every call site. Keys are namespaced by bundle
("homepage:activities", "search:activities", ...) so bundles that read the
same table keep separate cache entries with their own TTLs.
"""
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from ..cache.core import Priority
from ..content.client import ContentQueryClient
from .models import FetchDescriptor

MINUTE = 60.0


@dataclass(frozen=True)
class Bundle:
    """A named batch of descriptors plus its load options."""
    name: str
    descriptors: Tuple[FetchDescriptor, ...]
    fallback_data: Mapping[str, Any] = field(default_factory=dict)
    timeout: Optional[float] = None
    retries: Optional[int] = None

    @property
    def keys(self) -> Tuple[str, ...]:
        return tuple(d.key for d in self.descriptors)


def _rows(
    client: ContentQueryClient,
    table: str,
    limit: Optional[int] = None,
    order: Optional[str] = None,
    select: str = "*",
) -> Callable[[], Any]:
    return lambda: client.query(table, limit=limit, select=select, order=order)


def _count(client: ContentQueryClient, table: str) -> Callable[[], Any]:
    async def count() -> int:
        rows = await client.query(table, select="id")
        return len(rows)
    return count


def homepage_bundle(client: ContentQueryClient) -> Bundle:
    """Everything the homepage renders, tiered by how early it is visible."""
    descriptors = (
        # Critical: required for the first render
        FetchDescriptor("homepage:activities", _rows(client, "activities", limit=50),
                        Priority.CRITICAL, timeout=3.0),
        FetchDescriptor("homepage:destinations", _rows(client, "destinations", limit=20),
                        Priority.CRITICAL, timeout=3.0),
        # High: above the fold
        FetchDescriptor("homepage:stays", _rows(client, "stays", limit=30),
                        Priority.HIGH, timeout=4.0),
        FetchDescriptor("homepage:regions", _rows(client, "regions", order="name.asc"),
                        Priority.HIGH),
        # Normal: below the fold
        FetchDescriptor("homepage:recent_activities",
                        _rows(client, "activities", order="created_at.desc"), Priority.NORMAL),
        FetchDescriptor("homepage:team_outing_ads", _rows(client, "team_outing_ads"),
                        Priority.NORMAL),
        # Low: lazy-loaded sections and counters
        FetchDescriptor("homepage:recent_stays",
                        _rows(client, "stays", order="created_on.desc"), Priority.LOW),
        FetchDescriptor("homepage:blog_posts",
                        _rows(client, "blog_posts", order="published_on.desc"), Priority.LOW),
        FetchDescriptor("homepage:activity_count", _count(client, "activities"), Priority.LOW),
        FetchDescriptor("homepage:stay_count", _count(client, "stays"), Priority.LOW),
    )
    fallback = {
        key: [] for key in (
            "homepage:activities", "homepage:destinations", "homepage:stays",
            "homepage:regions", "homepage:recent_activities", "homepage:team_outing_ads",
            "homepage:recent_stays", "homepage:blog_posts",
        )
    }
    fallback.update({"homepage:activity_count": 0, "homepage:stay_count": 0})
    return Bundle("homepage", descriptors, fallback_data=fallback, timeout=8.0, retries=2)


def essentials_bundle(client: ContentQueryClient) -> Bundle:
    """Trimmed column sets for listing pages, with per-table TTLs."""
    descriptors = (
        FetchDescriptor(
            "essentials:activities",
            _rows(client, "activities", limit=50,
                  select="id, name, small_description, image, location, duration, capacity, rating, slug, tags"),
            Priority.HIGH, ttl=10 * MINUTE,
        ),
        FetchDescriptor(
            "essentials:stays",
            _rows(client, "stays", limit=30,
                  select="id, name, description, image, location, facilities, slug, rating"),
            Priority.HIGH, ttl=10 * MINUTE,
        ),
        FetchDescriptor(
            "essentials:destinations",
            _rows(client, "destinations", limit=20,
                  select="id, name, description, image, region, slug"),
            Priority.HIGH, ttl=15 * MINUTE,
        ),
        # Regions rarely change
        FetchDescriptor(
            "essentials:regions",
            _rows(client, "regions", order="name.asc", select="id, name, slug"),
            Priority.NORMAL, ttl=30 * MINUTE,
        ),
    )
    return Bundle("essentials", descriptors, fallback_data={k: [] for k in (d.key for d in descriptors)})


def counts_bundle(client: ContentQueryClient) -> Bundle:
    """Record counts shown in the stats section."""
    descriptors = tuple(
        FetchDescriptor(f"counts:{table}", _count(client, table), Priority.LOW, ttl=30 * MINUTE)
        for table in ("activities", "stays", "blog_posts")
    )
    return Bundle("counts", descriptors, fallback_data={d.key: 0 for d in descriptors})


def search_corpus_bundle(client: ContentQueryClient, ttl: float = 5 * MINUTE) -> Bundle:
    """Records searched by the relevance engine. Missing tables degrade to []."""
    limits = (
        ("activities", 150),
        ("stays", 75),
        ("destinations", 50),
        ("blog_posts", 30),
    )
    descriptors = tuple(
        FetchDescriptor(f"search:{table}", _rows(client, table, limit=limit),
                        Priority.NORMAL, ttl=ttl)
        for table, limit in limits
    )
    return Bundle("search-corpus", descriptors, fallback_data={d.key: [] for d in descriptors})


# Route -> (table, limit) fetched ahead of navigation
PRELOAD_ROUTES: Dict[str, Tuple[str, int]] = {
    "/activities": ("activities", 100),
    "/stays": ("stays", 50),
    "/blog": ("blog_posts", 20),
}


def route_preload_bundle(client: ContentQueryClient, route: str) -> Optional[Bundle]:
    """Bundle for warming the cache before navigating to a route, if any."""
    if route not in PRELOAD_ROUTES:
        return None
    table, limit = PRELOAD_ROUTES[route]
    descriptor = FetchDescriptor(f"preload:{table}", _rows(client, table, limit=limit), Priority.NORMAL)
    return Bundle(f"preload{route.replace('/', '-')}", (descriptor,),
                  fallback_data={descriptor.key: []}, timeout=5.0)


BUNDLE_BUILDERS: Dict[str, Callable[[ContentQueryClient], Bundle]] = {
    "homepage": homepage_bundle,
    "essentials": essentials_bundle,
    "counts": counts_bundle,
    "search-corpus": search_corpus_bundle,
}


def build_bundle(name: str, client: ContentQueryClient) -> Bundle:
    """
    Build a bundle by name.

    Accepts the names in BUNDLE_BUILDERS and "preload-<route>" for the
    routes in PRELOAD_ROUTES (e.g. "preload-activities").

    Raises:
        KeyError: Unknown bundle name
    """
    if name in BUNDLE_BUILDERS:
        return BUNDLE_BUILDERS[name](client)
    if name.startswith("preload-"):
        bundle = route_preload_bundle(client, "/" + name[len("preload-"):])
        if bundle is not None:
            return bundle
    raise KeyError(name)


def available_bundles() -> Tuple[str, ...]:
    preload = tuple(f"preload{route.replace('/', '-')}" for route in PRELOAD_ROUTES)
    return tuple(BUNDLE_BUILDERS) + preload
