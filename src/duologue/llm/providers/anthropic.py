"""Anthropic Claude LLM provider implementation.

Uses the official Anthropic Python SDK for async message completions.
Reference: https://github.com/anthropics/anthropic-sdk-python
"""

from typing import Any

from anthropic import AsyncAnthropic

from ..base import LLMProvider
from ..models import ChatMessage, ContentBlock, LLMResponse


class AnthropicProvider(LLMProvider):
    """Anthropic Claude LLM provider implementation.

    Hidden design decisions:
    - Anthropic API client initialization
    - Message format conversion (system text is a top-level field)
    - Stop markers map onto ``stop_sequences``
    - Authentication mechanism
    """

    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-20250514",
        base_url: str | None = None,
        **client_kwargs: Any
    ):
        """Initialize Anthropic provider.

        Args:
            api_key: Anthropic API key
            model: Default model to use (default: claude-sonnet-4-20250514)
            base_url: Optional custom API base URL
            **client_kwargs: Additional kwargs for AsyncAnthropic client
        """
        self._model = model
        self._client = AsyncAnthropic(
            api_key=api_key,
            base_url=base_url,
            **client_kwargs
        )

    @property
    def model(self) -> str:
        """Get the default model name."""
        return self._model

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
        """Generate a completion using Anthropic Claude.

        A trailing assistant message is treated by the API as the start
        of the model's own reply, which is how the responder cue works.

        Args:
            system: Framing text
            messages: Trailing messages
            stop_sequences: Strings that end generation
            model: Model to use (overrides default)
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate (default: 1024)
            **kwargs: Additional Anthropic-specific parameters

        Returns:
            LLMResponse with one ContentBlock per response block
        """
        request_params: dict[str, Any] = {
            "model": model or self._model,
            "messages": [
                {"role": msg.role, "content": msg.content}
                for msg in messages
            ],
            "temperature": temperature,
            "max_tokens": max_tokens or 1024,  # Anthropic requires max_tokens
            **kwargs
        }

        if system:
            request_params["system"] = system
        if stop_sequences:
            request_params["stop_sequences"] = list(stop_sequences)

        response = await self._client.messages.create(**request_params)

        usage = None
        if response.usage:
            usage = {
                "prompt_tokens": response.usage.input_tokens,
                "completion_tokens": response.usage.output_tokens,
                "total_tokens": response.usage.input_tokens + response.usage.output_tokens
            }

        blocks = [
            ContentBlock(type=block.type, text=getattr(block, "text", None))
            for block in response.content
        ]

        return LLMResponse(
            content=blocks,
            model=response.model,
            stop_reason=response.stop_reason,
            usage=usage
        )

    async def close(self) -> None:
        """Close the Anthropic client."""
        await self._client.close()
