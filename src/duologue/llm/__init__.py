from .base import LLMProvider
from .factory import create_llm_provider
from .models import ChatMessage, ContentBlock, LLMResponse
from .providers import AnthropicProvider, OpenAIProvider

__all__ = [
    "LLMProvider",
    "create_llm_provider",
    "ChatMessage",
    "ContentBlock",
    "LLMResponse",
    "AnthropicProvider",
    "OpenAIProvider",
]
