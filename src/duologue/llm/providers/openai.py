from typing import Any

from openai import AsyncOpenAI

from ..base import LLMProvider
from ..models import ChatMessage, ContentBlock, LLMResponse

# Chat Completions accepts at most this many stop sequences
MAX_STOP_SEQUENCES = 4


class OpenAIProvider(LLMProvider):
    """OpenAI LLM provider implementation.

    Also works with OpenAI-compatible endpoints via ``base_url``.

    Hidden design decisions:
    - OpenAI API client initialization
    - Message format conversion (system text becomes a system message)
    - Stop markers map onto ``stop``
    - A single choice becomes a single text block
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: str | None = None,
        organization: str | None = None,
        **client_kwargs: Any
    ):
        """Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key
            model: Default model to use
            base_url: Optional custom API base URL
            organization: Optional organization ID
            **client_kwargs: Additional kwargs for AsyncOpenAI client
        """
        self._model = model
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            organization=organization,
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
        """Generate a completion using OpenAI Chat Completions.

        Args:
            system: Framing text
            messages: Trailing messages
            stop_sequences: Strings that end generation
            model: Model to use (overrides default)
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
            **kwargs: Additional OpenAI-specific parameters

        Returns:
            LLMResponse with a text block, or no blocks for an empty reply
        """
        openai_messages = []
        if system:
            openai_messages.append({"role": "system", "content": system})
        openai_messages.extend(
            {"role": msg.role, "content": msg.content} for msg in messages
        )

        request_params: dict[str, Any] = {
            "model": model or self._model,
            "messages": openai_messages,
            "temperature": temperature,
            **kwargs
        }
        if max_tokens:
            request_params["max_tokens"] = max_tokens
        if stop_sequences:
            request_params["stop"] = list(stop_sequences)[:MAX_STOP_SEQUENCES]

        completion = await self._client.chat.completions.create(**request_params)

        usage = None
        if completion.usage:
            usage = {
                "prompt_tokens": completion.usage.prompt_tokens,
                "completion_tokens": completion.usage.completion_tokens,
                "total_tokens": completion.usage.total_tokens
            }

        blocks = []
        stop_reason = None
        if completion.choices:
            choice = completion.choices[0]
            stop_reason = choice.finish_reason
            if choice.message.content:
                blocks.append(ContentBlock(type="text", text=choice.message.content))

        return LLMResponse(
            content=blocks,
            model=completion.model,
            stop_reason=stop_reason,
            usage=usage
        )

    async def close(self) -> None:
        """Close the OpenAI client.

        Note: Uses the OpenAI SDK's async context manager for proper cleanup.
        See: https://github.com/openai/openai-python#async-usage
        """
        await self._client.close()
