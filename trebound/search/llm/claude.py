"""Claude text generator for search answers.

Claude only phrases the answer paragraph from the supplied content data.
Failures are never retried here: the search pipeline falls back to the
template answer immediately.
"""

import logging
from typing import Optional

import anthropic

from .base import GenerationError, TextGenerator

logger = logging.getLogger(__name__)


# ============================================================================
# Prompt Templates
# ============================================================================

SYSTEM_PROMPT = """You are a helpful assistant for Trebound, a team building and corporate experience platform.
You help users find the perfect team building activities from our collection of 350+ unique experiences.

Guidelines:
- Be friendly, professional, and enthusiastic about team building
- Provide specific recommendations when possible
- Mention relevant details like group sizes, locations, or activity types
- If you don't have specific information, guide users to contact the team
- Keep responses concise but informative (2-3 sentences max)
- Only mention activities, venues and destinations present in the context"""

USER_PROMPT = """Question: {prompt}

Relevant Context: {context}"""


# ============================================================================
# ClaudeTextGenerator Implementation
# ============================================================================

class ClaudeTextGenerator(TextGenerator):
    """
    Claude provider for search answers.

    Uses Anthropic's async client with SDK-level retries disabled.
    """

    # Haiku is fast and cheap for short answers
    MODEL = "claude-3-haiku-20240307"

    MAX_TOKENS = 200

    def __init__(
        self,
        api_key: str,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        timeout: float = 15.0,
        client: Optional[anthropic.AsyncAnthropic] = None,
    ):
        """
        Initialize the Claude provider.

        Args:
            api_key: Anthropic API key
            model: Model name (defaults to MODEL)
            max_tokens: Answer length cap (defaults to MAX_TOKENS)
            timeout: Request timeout in seconds
            client: Preconfigured client (tests)
        """
        self._model = model or self.MODEL
        self._max_tokens = max_tokens or self.MAX_TOKENS
        self._client = client or anthropic.AsyncAnthropic(
            api_key=api_key,
            max_retries=0,
            timeout=timeout,
        )
        logger.info(f"Claude text generator initialized ({self._model})")

    @property
    def provider_name(self) -> str:
        return "claude"

    @property
    def is_available(self) -> bool:
        return self._client is not None

    async def complete(self, prompt: str, context: str) -> str:
        """Generate an answer, raising GenerationError on any API failure."""
        try:
            message = await self._client.messages.create(
                model=self._model,
                max_tokens=self._max_tokens,
                system=SYSTEM_PROMPT,
                messages=[{
                    "role": "user",
                    "content": USER_PROMPT.format(prompt=prompt, context=context),
                }],
            )

        except anthropic.RateLimitError as e:
            logger.warning(f"Claude rate limit hit: {e}")
            raise GenerationError(f"Rate limited: {e}") from e

        except anthropic.APIConnectionError as e:
            logger.error(f"Claude connection error: {e}")
            raise GenerationError(f"Connection error: {e}") from e

        except anthropic.APIStatusError as e:
            logger.error(f"Claude API error: {e.status_code} - {e.message}")
            raise GenerationError(f"API error {e.status_code}") from e

        text = "".join(
            block.text for block in message.content if getattr(block, "type", "") == "text"
        ).strip()
        if not text:
            raise GenerationError("Empty completion")
        return text

    async def close(self) -> None:
        await self._client.close()
