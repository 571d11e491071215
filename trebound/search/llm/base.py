"""Base text generator abstraction for search answers.

The generator ONLY writes the conversational answer paragraph.
Results, ranking and suggestions are always computed locally, and any
generator failure falls back to the deterministic template answer.
"""

from abc import ABC, abstractmethod


class GenerationError(Exception):
    """Raised when the generative service fails to produce an answer."""
    pass


class GenerationUnavailableError(GenerationError):
    """Raised when no generative service is configured."""
    pass


class TextGenerator(ABC):
    """
    Abstract base class for generative-text providers.

    Implementations may raise anything; callers treat every failure the
    same way and never retry inline.
    """

    @abstractmethod
    async def complete(self, prompt: str, context: str) -> str:
        """
        Generate an answer.

        Args:
            prompt: Instruction for the answer
            context: Content data the answer may draw on

        Returns:
            The generated text
        """
        pass

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the name of this provider."""
        pass

    @property
    @abstractmethod
    def is_available(self) -> bool:
        """Check if the provider is configured and available."""
        pass

    async def close(self) -> None:
        """Release provider resources."""
        return None


class NullTextGenerator(TextGenerator):
    """
    Null implementation that never generates.

    Used when no API key is configured or during testing; every search
    answer then comes from the fallback composer.
    """

    async def complete(self, prompt: str, context: str) -> str:
        raise GenerationUnavailableError("No text generator configured")

    @property
    def provider_name(self) -> str:
        return "null"

    @property
    def is_available(self) -> bool:
        return False
