"""Data models for persisted conversations.

These models define the structure of chats and turns,
independent of the storage backend used.
"""

from datetime import datetime, timedelta, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# Smallest step used to keep timestamps strictly increasing within a chat
TIMESTAMP_EPSILON = timedelta(microseconds=1)


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def next_timestamp(previous: datetime | None) -> datetime:
    """Return a timestamp that is never earlier than ``previous``.

    Clocks can stand still (or step back) between two appends. Turns are
    ordered by creation time, so a new one must land strictly after the
    last one recorded for the chat.
    """
    now = utc_now()
    if previous is not None and now <= previous:
        return previous + TIMESTAMP_EPSILON
    return now


TITLE_MAX_LENGTH = 80


def make_title(text: str, limit: int = TITLE_MAX_LENGTH) -> str | None:
    """Collapse text to a single line and shorten it for display."""
    line = " ".join(text.split())
    if not line:
        return None
    if len(line) > limit:
        return line[:limit - 1].rstrip() + "…"
    return line


class Role(str, Enum):
    """Speaker role of a turn."""

    INITIATOR = "initiator"  # the human
    RESPONDER = "responder"  # the model


class Turn(BaseModel):
    """One persisted utterance within a chat. Immutable once stored."""

    model_config = ConfigDict(frozen=True)

    chat_id: str = Field(description="Owning chat identifier")
    role: Role = Field(description="Who said it")
    content: str = Field(description="Text of the utterance")
    created_at: datetime = Field(default_factory=utc_now)
    seq: int = Field(default=0, ge=0, description="Per-chat ordering tie-break")


class Chat(BaseModel):
    """A conversation thread owned by a user."""

    id: str = Field(description="Opaque unique chat identifier")
    owner_id: str = Field(description="Owning user identifier")
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    title: str | None = Field(
        default=None,
        description="Derived from the first initiator turn, if any"
    )

    def touch(self, at: datetime) -> None:
        """Bump last activity, never moving it backwards."""
        if at > self.updated_at:
            self.updated_at = at


def derive_title(turns: list[Turn]) -> str | None:
    """Title a conversation after its first initiator turn.

    Args:
        turns: Ordered conversation history

    Returns:
        Single-line title, or None if nobody has spoken yet
    """
    for turn in turns:
        if turn.role == Role.INITIATOR:
            return make_title(turn.content)
    return None
