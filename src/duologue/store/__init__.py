"""Conversation store module for duologue.

Provides durable, ordered storage of chats and their turns.
"""

from .base import ConversationStore
from .factory import create_conversation_store
from .in_memory import InMemoryConversationStore
from .models import Chat, Role, Turn, derive_title

__all__ = [
    "Chat",
    "ConversationStore",
    "InMemoryConversationStore",
    "Role",
    "Turn",
    "create_conversation_store",
    "derive_title",
]
