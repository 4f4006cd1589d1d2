from abc import ABC, abstractmethod
from typing import Any

from .models import ChatMessage, LLMResponse


class LLMProvider(ABC):
    """Abstract base class for LLM providers.

    This module hides the design decision of which LLM provider to use.
    Implementations must handle provider-specific details like:
    - API client setup and authentication
    - Request/response format conversion
    - Mapping of stop markers onto the provider's stop parameter

    A provider is constructed once per process and shared; each call is
    self-contained, so no synchronization is needed.

    Supports async context manager protocol for proper resource cleanup:
        async with provider:
            response = await provider.complete(system, messages)
        # Automatically cleaned up
    """

    @abstractmethod
    async def complete(
        self,
        system: str,
        messages: list[ChatMessage],
        stop_sequences: list[str] | None = None,
        model: str | None = None,
        temperature: float = 1.0,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> LLMResponse:
        """Run one blocking request/response exchange.

        Args:
            system: Framing text for the system channel
            messages: Trailing messages after the system text
            stop_sequences: Strings that end generation when emitted
            model: Model to use (None uses provider's default)
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
            **kwargs: Provider-specific parameters

        Returns:
            LLMResponse with the backend's content blocks

        Raises:
            Exception: Provider-specific errors during generation
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections or resources."""
        pass

    async def __aenter__(self) -> "LLMProvider":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit with automatic cleanup.

        Note: Suppresses "Event loop is closed" errors during cleanup.
        This is a known harmless race condition in httpx/anyio cleanup:
        https://github.com/encode/httpx/issues/914
        """
        try:
            await self.close()
        except RuntimeError as e:
            if "Event loop is closed" not in str(e):
                raise
