# Generative-text integration for search answers
# The generator ONLY phrases the answer - results are always ranked locally

import logging
from typing import Optional

from dotenv import load_dotenv

from config.settings import Settings, settings as default_settings
from .base import GenerationError, GenerationUnavailableError, NullTextGenerator, TextGenerator
from .claude import ClaudeTextGenerator

# Ensure .env is loaded for API key access
load_dotenv()

logger = logging.getLogger(__name__)

__all__ = [
    "TextGenerator",
    "NullTextGenerator",
    "ClaudeTextGenerator",
    "GenerationError",
    "GenerationUnavailableError",
    "get_text_generator",
]


def get_text_generator(settings: Optional[Settings] = None) -> TextGenerator:
    """
    Get the configured text generator.

    Returns ClaudeTextGenerator if ANTHROPIC_API_KEY is set. Otherwise returns
    NullTextGenerator, so every answer comes from the template fallback.
    """
    settings = settings or default_settings

    if settings.anthropic_api_key:
        logger.info("Using Claude text generator for search answers")
        return ClaudeTextGenerator(
            api_key=settings.anthropic_api_key,
            model=settings.generator_model,
            max_tokens=settings.generator_max_tokens,
            timeout=settings.generator_timeout_seconds,
        )

    logger.info("Using null text generator (template answers only)")
    return NullTextGenerator()
