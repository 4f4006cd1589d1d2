"""Data structures for the turn orchestrator."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..exceptions import StorageError
from ..store.models import Turn


class TurnState(str, Enum):
    """Progress of a single conversational turn."""

    IDLE = "idle"
    USER_TURN_PERSISTED = "user_turn_persisted"
    MODEL_INVOKED = "model_invoked"
    REPLY_PARSED = "reply_parsed"
    NO_REPLY = "no_reply"
    MODEL_CALL_FAILED = "model_call_failed"
    ASSISTANT_TURN_PERSISTED = "assistant_turn_persisted"
    PERSIST_FAILED = "persist_failed"
    DONE = "done"


class TurnResult(BaseModel):
    """Outcome of one executed turn.

    Attributes:
        chat_id: Chat the turn was executed against
        reply: Responder text, or None when the model produced no text
        state: Terminal state (DONE or PERSIST_FAILED)
        title: Chat title derived from the conversation
        user_turn: The persisted initiator turn
        reply_turn: The persisted responder turn, if any
        persist_error: Set when the reply was generated but not stored
        usage: Token usage reported by the backend
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    chat_id: str
    reply: str | None = None
    state: TurnState = TurnState.DONE
    title: str | None = None
    user_turn: Turn
    reply_turn: Turn | None = None
    persist_error: StorageError | None = Field(default=None, exclude=True)
    usage: dict[str, Any] | None = None

    @property
    def produced_reply(self) -> bool:
        """Whether the model produced any reply text."""
        return self.reply is not None

    @property
    def persisted(self) -> bool:
        """Whether every produced turn is durably stored."""
        return self.persist_error is None
