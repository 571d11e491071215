"""
TTL configuration by loader priority.
"""
from typing import Dict, Optional

from .core import Priority


# TTL configuration by priority (in seconds).
# Critical data goes stale fastest in business terms, so it is re-fetched
# most eagerly; low-priority metadata is kept the longest.
TTL_CONFIG: Dict[Priority, float] = {
    Priority.CRITICAL: 120.0,     # 2 minutes
    Priority.HIGH: 180.0,         # 3 minutes
    Priority.NORMAL: 300.0,       # 5 minutes
    Priority.LOW: 600.0,          # 10 minutes
}

# Used when nothing more specific applies
DEFAULT_TTL: float = TTL_CONFIG[Priority.NORMAL]


def get_ttl_for_priority(priority: Priority) -> float:
    """
    Get the default cache TTL for a priority tier.

    Args:
        priority: The descriptor's priority tier

    Returns:
        TTL in seconds
    """
    return TTL_CONFIG.get(priority, DEFAULT_TTL)


def resolve_ttl(priority: Priority, override: Optional[float] = None) -> float:
    """
    Pick the TTL for a write-through.

    An explicit per-descriptor TTL always wins over the tier default.
    """
    if override is not None:
        return override
    return get_ttl_for_priority(priority)
