"""Abstract base class for conversation store backends.

This module defines the interface for chat and turn persistence.
The abstraction hides:
- Storage format (dicts, SQLite rows, etc.)
- Persistence mechanism (in-memory, database file)
- Connection management
- How the last-activity bump is kept atomic with the turn insert
"""

from abc import ABC, abstractmethod

from .models import Chat, Role, Turn


class ConversationStore(ABC):
    """Abstract conversation store.

    Durable ordered record of chats and their turns. Every operation is
    a single suspension point; no partial progress is visible to callers.
    Implementations raise ``StorageError`` for any read or write failure.
    """

    @abstractmethod
    async def connect(self) -> None:
        """Initialize the store backend."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the store backend gracefully."""

    @abstractmethod
    async def create_chat(self, owner_id: str) -> str:
        """Create an empty chat.

        Args:
            owner_id: Identifier of the owning user

        Returns:
            The new chat identifier

        Raises:
            StorageError: If the write fails
        """

    @abstractmethod
    async def list_chats(self, owner_id: str) -> list[Chat]:
        """List a user's chats, most recently active first."""

    @abstractmethod
    async def get_chat(self, chat_id: str) -> Chat | None:
        """Get chat metadata, or None if the chat does not exist."""

    @abstractmethod
    async def load_history(self, chat_id: str) -> list[Turn]:
        """Load the turns of a chat in creation order.

        A chat that does not exist (or was deleted) has an empty history.
        """

    @abstractmethod
    async def append_turn(self, chat_id: str, role: Role, content: str) -> Turn:
        """Append a turn and bump the chat's last-activity timestamp.

        Both effects succeed or the call fails as a unit.

        Args:
            chat_id: Owning chat
            role: Speaker role
            content: Turn text

        Returns:
            The persisted turn

        Raises:
            StorageError: If the chat does not exist or the write fails
        """

    @abstractmethod
    async def delete_chat(self, chat_id: str) -> None:
        """Delete a chat and all of its turns. Idempotent."""

    @property
    @abstractmethod
    def backend_type(self) -> str:
        """Get the backend type identifier."""

    async def __aenter__(self) -> "ConversationStore":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.disconnect()
