"""In-memory conversation store backend.

Simple dict-based storage for session-only conversations.
Data is lost when the application exits.
"""

import logging
from uuid import uuid4

from ..exceptions import StorageError
from .base import ConversationStore
from .models import Chat, Role, Turn, derive_title, next_timestamp

logger = logging.getLogger(__name__)


class InMemoryConversationStore(ConversationStore):
    """In-memory conversation store (session-only).

    Data is stored in memory and lost when the app exits.
    Suitable for single-session use or testing.
    """

    def __init__(self):
        self._chats: dict[str, Chat] = {}
        self._turns: dict[str, list[Turn]] = {}

    async def connect(self) -> None:
        """Initialize store (no-op for in-memory)."""
        pass

    async def disconnect(self) -> None:
        """Close store (no-op for in-memory)."""
        pass

    async def create_chat(self, owner_id: str) -> str:
        chat_id = str(uuid4())
        now = next_timestamp(None)
        self._chats[chat_id] = Chat(
            id=chat_id,
            owner_id=owner_id,
            created_at=now,
            updated_at=now,
        )
        self._turns[chat_id] = []
        logger.debug("Created chat %s for %s", chat_id, owner_id)
        return chat_id

    async def list_chats(self, owner_id: str) -> list[Chat]:
        chats = [
            self._with_title(chat)
            for chat in self._chats.values()
            if chat.owner_id == owner_id
        ]
        chats.sort(key=lambda c: c.updated_at, reverse=True)
        return chats

    async def get_chat(self, chat_id: str) -> Chat | None:
        chat = self._chats.get(chat_id)
        if chat is None:
            return None
        return self._with_title(chat)

    async def load_history(self, chat_id: str) -> list[Turn]:
        return list(self._turns.get(chat_id, []))

    async def append_turn(self, chat_id: str, role: Role, content: str) -> Turn:
        chat = self._chats.get(chat_id)
        if chat is None:
            raise StorageError(f"Chat {chat_id} does not exist", chat_id=chat_id)

        turns = self._turns[chat_id]
        previous = turns[-1].created_at if turns else chat.updated_at
        turn = Turn(
            chat_id=chat_id,
            role=Role(role),
            content=content,
            created_at=next_timestamp(previous),
            seq=len(turns) + 1,
        )
        turns.append(turn)
        chat.touch(turn.created_at)
        return turn

    async def delete_chat(self, chat_id: str) -> None:
        self._chats.pop(chat_id, None)
        self._turns.pop(chat_id, None)

    def _with_title(self, chat: Chat) -> Chat:
        return chat.model_copy(
            update={"title": derive_title(self._turns.get(chat.id, []))}
        )

    @property
    def backend_type(self) -> str:
        return "memory"
