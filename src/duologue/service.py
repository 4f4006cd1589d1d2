"""Request surface for chat clients.

Three request/response operations (create-chat, send-turn, delete-chat)
plus the reads a client needs to list and load chats. This is what a
SessionController talks to; it can be served in-process or put behind
any transport.
"""

import logging
from collections.abc import Sequence

from pydantic import BaseModel, Field

from .orchestrator import TurnOrchestrator
from .store import Chat, ConversationStore, Turn

logger = logging.getLogger(__name__)


class SendTurnResponse(BaseModel):
    """Response to a send-turn request."""

    chat_id: str
    reply: str | None = Field(default=None, description="None when no reply was produced")
    title: str | None = None
    persisted: bool = Field(
        default=True,
        description="False when the reply was generated but could not be stored"
    )
    error: str | None = None


class DeleteChatResponse(BaseModel):
    """Response to a delete-chat request."""

    deleted_chat_id: str


class ChatService:
    """Chat operations over a store and a turn orchestrator."""

    def __init__(self, store: ConversationStore, orchestrator: TurnOrchestrator):
        self._store = store
        self._orchestrator = orchestrator

    async def create_chat(self, owner_id: str) -> str:
        chat_id = await self._store.create_chat(owner_id)
        logger.info("Created chat %s", chat_id)
        return chat_id

    async def send_turn(
        self,
        chat_id: str,
        prior_history: Sequence[Turn],
        utterance: str
    ) -> SendTurnResponse:
        """Execute one turn.

        Raises:
            ValueError: If the utterance is blank
            StorageError: If the user turn could not be stored
            ModelCallError: If the model call failed
        """
        utterance = utterance.strip()
        if not utterance:
            raise ValueError("Utterance must not be empty")

        result = await self._orchestrator.execute_turn(chat_id, prior_history, utterance)
        return SendTurnResponse(
            chat_id=chat_id,
            reply=result.reply,
            title=result.title,
            persisted=result.persisted,
            error=result.persist_error.message if result.persist_error else None,
        )

    async def delete_chat(self, chat_id: str) -> DeleteChatResponse:
        await self._store.delete_chat(chat_id)
        logger.info("Deleted chat %s", chat_id)
        return DeleteChatResponse(deleted_chat_id=chat_id)

    async def list_chats(self, owner_id: str) -> list[Chat]:
        return await self._store.list_chats(owner_id)

    async def load_history(self, chat_id: str) -> list[Turn]:
        return await self._store.load_history(chat_id)
