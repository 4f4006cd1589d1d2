"""Data structures for the session controller."""

import asyncio
from dataclasses import dataclass, field
from enum import Enum

from ..store.models import Turn


class SessionState(str, Enum):
    """What the session is waiting on."""

    IDLE = "idle"
    CREATING_CHAT = "creating_chat"
    AWAITING_REPLY = "awaiting_reply"
    LOADING_CHAT = "loading_chat"


@dataclass
class PendingTurn:
    """The single in-flight turn request.

    Attributes:
        chat_id: Chat the request was issued against
        turn: The optimistic initiator turn shown in the view
        prior_history: View as of immediately before ``turn`` was appended
        task: Background task carrying the request
    """

    chat_id: str
    turn: Turn
    prior_history: list[Turn] = field(default_factory=list)
    task: asyncio.Task | None = field(default=None, repr=False)
