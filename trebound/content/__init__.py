# Content store access
# The core depends only on ContentQueryClient.query(); the REST client is one implementation

import logging
from typing import Optional

from config.settings import Settings, settings as default_settings
from .client import (
    ContentQueryClient,
    ContentQueryError,
    RestContentClient,
    StaticContentClient,
)

logger = logging.getLogger(__name__)

__all__ = [
    "ContentQueryClient",
    "ContentQueryError",
    "RestContentClient",
    "StaticContentClient",
    "get_content_client",
]


def get_content_client(settings: Optional[Settings] = None) -> ContentQueryClient:
    """
    Get the configured content client.

    Returns a RestContentClient if CONTENT_API_URL is set. Otherwise returns
    an empty StaticContentClient, so every fetch fails per descriptor and
    pages and search still render their fallbacks.
    """
    settings = settings or default_settings

    if settings.content_api_url:
        logger.info(f"Using REST content client at {settings.content_api_url}")
        return RestContentClient(
            base_url=settings.content_api_url,
            api_key=settings.content_api_key,
            timeout=settings.content_request_timeout,
        )

    logger.warning("CONTENT_API_URL not set, using empty in-memory content store")
    return StaticContentClient()
