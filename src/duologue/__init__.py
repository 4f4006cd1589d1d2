"""
Duologue: persisted multi-turn conversations framed as a dialogue
between two named personas.

The store keeps chats and turns, the framer turns history into a model
directive, the orchestrator runs one turn end to end, and the session
controller keeps a client's optimistic view in step with the server.
"""

__version__ = "0.1.0"

from .exceptions import DuologueError, ModelCallError, StorageError
from .framing import FramingDirective, PersonaConfig, PromptFramer
from .orchestrator import TurnOrchestrator, TurnResult, TurnState
from .service import ChatService, DeleteChatResponse, SendTurnResponse
from .session import SessionController, SessionState
from .store import (
    Chat,
    ConversationStore,
    Role,
    Turn,
    create_conversation_store,
)

__all__ = [
    "Chat",
    "ChatService",
    "ConversationStore",
    "DeleteChatResponse",
    "DuologueError",
    "FramingDirective",
    "ModelCallError",
    "PersonaConfig",
    "PromptFramer",
    "Role",
    "SendTurnResponse",
    "SessionController",
    "SessionState",
    "StorageError",
    "Turn",
    "TurnOrchestrator",
    "TurnResult",
    "TurnState",
    "create_conversation_store",
]
