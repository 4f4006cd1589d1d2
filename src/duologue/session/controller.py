"""Client-side session controller.

Mirrors the server's view of one conversation optimistically and keeps
it consistent when turns resolve late or against a chat the user has
navigated away from.
"""

import asyncio
import logging
from collections.abc import Sequence
from typing import Protocol

from ..exceptions import DuologueError, StorageError
from ..service import DeleteChatResponse, SendTurnResponse
from ..store import Chat, Role, Turn
from .models import PendingTurn, SessionState

logger = logging.getLogger(__name__)


class ChatClient(Protocol):
    """The request surface a SessionController talks to."""

    async def create_chat(self, owner_id: str) -> str: ...

    async def send_turn(
        self, chat_id: str, prior_history: Sequence[Turn], utterance: str
    ) -> SendTurnResponse: ...

    async def delete_chat(self, chat_id: str) -> DeleteChatResponse: ...

    async def list_chats(self, owner_id: str) -> list[Chat]: ...

    async def load_history(self, chat_id: str) -> list[Turn]: ...


class SessionController:
    """Explicit state machine over one user's chat session.

    States:
        IDLE: nothing outstanding, submissions accepted
        CREATING_CHAT: first utterance is waiting for its chat to exist
        AWAITING_REPLY: one turn request is in flight
        LOADING_CHAT: the selected chat's history is being fetched

    At most one turn is in flight. A submission while busy is rejected,
    not queued. A reply is shown only if its chat is still selected when
    it arrives; otherwise it is dropped from the view (it is still
    stored server-side and shows up when that chat is loaded again).
    A reply that arrives while its chat's history is loading is merged
    into the loaded history rather than into whatever the view held.
    """

    def __init__(self, client: ChatClient, owner_id: str):
        self._client = client
        self._owner_id = owner_id
        self._current_chat_id: str | None = None
        self._turns: list[Turn] = []
        self._chats: list[Chat] = []
        self._pending: PendingTurn | None = None
        self._creating_chat = False
        self._last_error: Exception | None = None
        # Bumped on every selection change; a load only applies if it is current
        self._selection_epoch = 0
        self._loading = False
        self._replies_during_load: list[SendTurnResponse] = []
        self._settled_during_load = False

    @property
    def current_chat_id(self) -> str | None:
        return self._current_chat_id

    @property
    def turns(self) -> tuple[Turn, ...]:
        """Optimistic view of the selected chat. Never authoritative."""
        return tuple(self._turns)

    @property
    def chats(self) -> tuple[Chat, ...]:
        return tuple(self._chats)

    @property
    def pending(self) -> PendingTurn | None:
        return self._pending

    @property
    def last_error(self) -> Exception | None:
        """Error of the most recent failed operation, if any."""
        return self._last_error

    @property
    def state(self) -> SessionState:
        if self._creating_chat:
            return SessionState.CREATING_CHAT
        if self._pending is not None:
            return SessionState.AWAITING_REPLY
        if self._loading:
            return SessionState.LOADING_CHAT
        return SessionState.IDLE

    @property
    def is_busy(self) -> bool:
        return self.state is not SessionState.IDLE

    async def submit(self, utterance: str) -> PendingTurn | None:
        """Submit an utterance as the next turn.

        Shows the utterance immediately and sends the turn in the
        background. With no chat selected, a chat is created first and
        added to the chat list; if creation fails the utterance is
        dropped and the error propagates.

        Args:
            utterance: What the user typed

        Returns:
            The in-flight turn, or None if the submission was rejected
        """
        text = utterance.strip()
        if not text:
            return None
        if self.is_busy:
            logger.debug("Rejected submission while %s", self.state.value)
            return None

        if self._current_chat_id is None:
            self._creating_chat = True
            try:
                chat_id = await self._client.create_chat(self._owner_id)
                self._select(chat_id)
                await self.refresh_chats()
            finally:
                self._creating_chat = False
            logger.debug("Created chat %s for first utterance", chat_id)

        chat_id = self._current_chat_id
        prior = list(self._turns)
        turn = Turn(chat_id=chat_id, role=Role.INITIATOR, content=text)
        self._turns.append(turn)
        self._last_error = None

        pending = PendingTurn(chat_id=chat_id, turn=turn, prior_history=prior)
        pending.task = asyncio.create_task(self._send(pending))
        self._pending = pending
        return pending

    async def _send(self, pending: PendingTurn) -> SendTurnResponse | None:
        try:
            response = await self._client.send_turn(
                pending.chat_id, pending.prior_history, pending.turn.content
            )
        except Exception as e:
            self._fail(pending, e)
            return None
        finally:
            self._pending = None

        self._resolve(pending, response)
        return response

    def _resolve(self, pending: PendingTurn, response: SendTurnResponse) -> None:
        self._note_activity(pending.chat_id, response.title)

        if self._current_chat_id != pending.chat_id:
            logger.info(
                "Dropping reply for chat %s, chat %s is selected",
                pending.chat_id, self._current_chat_id
            )
            return

        if not response.persisted:
            self._last_error = StorageError(
                response.error or "Reply was not stored",
                chat_id=pending.chat_id
            )

        if self._loading:
            self._settled_during_load = True
            self._replies_during_load.append(response)
            return
        if response.reply is not None:
            self._turns.append(self._reply_turn(pending.chat_id, response))

    def _fail(self, pending: PendingTurn, error: Exception) -> None:
        if isinstance(error, DuologueError):
            logger.warning("Turn for chat %s failed: %s", pending.chat_id, error)
        else:
            logger.error(
                "Turn for chat %s failed unexpectedly", pending.chat_id, exc_info=error
            )
        self._last_error = error
        if self._current_chat_id != pending.chat_id:
            return
        if self._loading:
            self._settled_during_load = True
            return
        # An unstored utterance must not stay on screen
        if isinstance(error, StorageError):
            self._turns = [t for t in self._turns if t is not pending.turn]

    @staticmethod
    def _reply_turn(chat_id: str, response: SendTurnResponse) -> Turn:
        return Turn(chat_id=chat_id, role=Role.RESPONDER, content=response.reply)

    def _note_activity(self, chat_id: str, title: str | None) -> None:
        for i, chat in enumerate(self._chats):
            if chat.id == chat_id:
                updated = chat.model_copy(update={"title": title or chat.title})
                self._chats = [updated, *self._chats[:i], *self._chats[i + 1:]]
                return

    def _select(self, chat_id: str | None) -> int:
        self._selection_epoch += 1
        self._current_chat_id = chat_id
        self._turns = []
        self._loading = False
        self._replies_during_load = []
        self._settled_during_load = False
        return self._selection_epoch

    async def wait(self) -> SendTurnResponse | None:
        """Wait for the in-flight turn, if any, to resolve."""
        pending = self._pending
        if pending is None or pending.task is None:
            return None
        return await pending.task

    async def select_chat(self, chat_id: str) -> None:
        """Switch to a chat, replacing the view with its stored history.

        The view is emptied at once so nothing from the previous chat
        can be mixed into it. An in-flight turn is not cancelled; its
        reply shows up here only if it belongs to this chat.
        """
        epoch = self._select(chat_id)
        self._loading = True
        try:
            history = await self._client.load_history(chat_id)
            if epoch != self._selection_epoch:
                return
            if self._settled_during_load:
                # The read may predate the turns stored by that request
                history = await self._client.load_history(chat_id)
                if epoch != self._selection_epoch:
                    return
            self._turns = list(history)
            for response in self._replies_during_load:
                if not response.persisted and response.reply is not None:
                    self._turns.append(self._reply_turn(chat_id, response))
        finally:
            if epoch == self._selection_epoch:
                self._loading = False
                self._replies_during_load = []
                self._settled_during_load = False

    def clear_selection(self) -> None:
        """Deselect; the next submission starts a new chat."""
        self._select(None)

    async def new_chat(self) -> str:
        """Create an empty chat and select it."""
        chat_id = await self._client.create_chat(self._owner_id)
        self._select(chat_id)
        await self.refresh_chats()
        return chat_id

    async def delete_chat(self, chat_id: str) -> None:
        """Delete a chat; clears the view if it was the selected one."""
        response = await self._client.delete_chat(chat_id)
        self._chats = [c for c in self._chats if c.id != response.deleted_chat_id]
        if self._current_chat_id == response.deleted_chat_id:
            self.clear_selection()

    async def refresh_chats(self) -> list[Chat]:
        """Reload the chat list, most recently active first."""
        self._chats = await self._client.list_chats(self._owner_id)
        return list(self._chats)
