from typing import Any

from .base import LLMProvider
from .providers import AnthropicProvider, OpenAIProvider

# Aliases accepted for LLM_PROVIDER
_PROVIDERS: dict[str, type[LLMProvider]] = {
    "anthropic": AnthropicProvider,
    "claude": AnthropicProvider,
    "openai": OpenAIProvider,
}


def create_llm_provider(provider: str, **config: Any) -> LLMProvider:
    """Create an LLM provider instance.

    Settings passed as None are dropped so the provider's own default
    applies; callers can forward optional environment values unchanged.

    Args:
        provider: Provider name or alias ('anthropic', 'claude', 'openai')
        **config: Provider-specific configuration
            - api_key: str (required)
            - model: str | None
            - base_url: str | None
            - organization: str | None (OpenAI only)

    Returns:
        Initialized LLM provider instance

    Raises:
        ValueError: If provider type is not supported
        TypeError: If the API key is missing

    Examples:
        >>> provider = create_llm_provider(
        ...     "openai",
        ...     api_key="sk-...",
        ...     model=os.getenv("OPENAI_CHAT_MODEL"),
        ... )
    """
    provider_class = _PROVIDERS.get(provider.strip().lower())
    if provider_class is None:
        raise ValueError(
            f"Unsupported provider: {provider}. "
            f"Supported providers: {', '.join(sorted(_PROVIDERS))}"
        )

    settings = {key: value for key, value in config.items() if value is not None}
    if not settings.get("api_key"):
        raise TypeError(f"{provider_class.__name__} requires an 'api_key'")
    return provider_class(**settings)
