"""Error taxonomy for duologue.

Two failures are exceptions:
- StorageError: a persistence read or write failed
- ModelCallError: the model backend call failed or returned garbage

A backend reply without any text block is not an error. It is reported
as ``TurnResult.reply is None``.
"""

from typing import Any


class DuologueError(Exception):
    """Base class for all duologue errors.

    Args:
        message: Human readable description
        original: The underlying exception, if any
    """

    def __init__(self, message: str, original: BaseException | None = None):
        super().__init__(message)
        self._message = message
        self._original = original

    @property
    def message(self) -> str:
        """Get the error message."""
        return self._message

    @property
    def original(self) -> BaseException | None:
        """Get the wrapped exception."""
        return self._original


class StorageError(DuologueError):
    """Persistence read or write failure."""

    def __init__(
        self,
        message: str,
        chat_id: str | None = None,
        original: BaseException | None = None
    ):
        super().__init__(message, original)
        self.chat_id = chat_id


class ModelCallError(DuologueError):
    """Model backend failure: network, API error or malformed response."""

    def __init__(
        self,
        message: str,
        chat_id: str | None = None,
        state: Any = None,
        original: BaseException | None = None
    ):
        super().__init__(message, original)
        self.chat_id = chat_id
        # TurnState reached when the call failed
        self.state = state


__all__ = ["DuologueError", "StorageError", "ModelCallError"]
