"""Turn orchestrator: one conversational turn, end to end."""

import logging
import time
from collections.abc import Sequence

from ..exceptions import ModelCallError, StorageError
from ..framing import FramingDirective, PromptFramer
from ..llm import ChatMessage, LLMProvider, LLMResponse
from ..store import ConversationStore, Role, Turn, derive_title
from .data_structures import TurnResult, TurnState

logger = logging.getLogger(__name__)


class TurnOrchestrator:
    """Executes exactly one conversational turn.

    Persists the user's utterance, frames the conversation, calls the
    model once, parses the reply and persists it. Holds no state between
    calls; every call is given the full history it needs.

    Hidden design decisions:
    - Order of persistence relative to the model call
    - How the framing directive maps onto the backend request
    - Which part of the response counts as the reply
    """

    def __init__(
        self,
        store: ConversationStore,
        llm: LLMProvider,
        framer: PromptFramer,
        model: str | None = None,
        max_tokens: int = 1024,
        temperature: float = 1.0
    ):
        """Initialize the orchestrator.

        Args:
            store: Conversation store for both turns
            llm: Model backend, shared across calls
            framer: Prompt framer holding the persona configuration
            model: Model override (None uses the provider's default)
            max_tokens: Maximum reply length in tokens
            temperature: Sampling temperature
        """
        self._store = store
        self._llm = llm
        self._framer = framer
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature

    async def execute_turn(
        self,
        chat_id: str,
        prior_history: Sequence[Turn],
        user_utterance: str
    ) -> TurnResult:
        """Run one turn.

        Args:
            chat_id: Chat to append to
            prior_history: Conversation before this turn, in order
            user_utterance: What the user just said

        Returns:
            TurnResult; ``reply`` is None when the model produced no text,
            ``persist_error`` is set when the reply could not be stored

        Raises:
            StorageError: The user turn could not be stored (model not called)
            ModelCallError: The model call failed (user turn stays stored)
        """
        # Nothing is sent to the model unless the user turn is durable
        user_turn = await self._store.append_turn(chat_id, Role.INITIATOR, user_utterance)
        logger.debug("Chat %s: %s", chat_id, TurnState.USER_TURN_PERSISTED.value)

        view = [*prior_history, user_turn]
        directive = self._framer.frame(view)

        logger.debug("Chat %s: %s", chat_id, TurnState.MODEL_INVOKED.value)
        start_time = time.time()
        try:
            response = await self._invoke(directive)
            reply = self._parse_reply(response)
        except Exception as e:
            logger.warning(
                "Chat %s: model call failed, user turn left unanswered: %s",
                chat_id, e
            )
            raise ModelCallError(
                f"Model call failed for chat {chat_id}: {e}",
                chat_id=chat_id,
                state=TurnState.MODEL_CALL_FAILED,
                original=e
            ) from e

        state = TurnState.REPLY_PARSED if reply is not None else TurnState.NO_REPLY
        logger.debug(
            "Chat %s: %s in %.2fs", chat_id, state.value, time.time() - start_time
        )

        result = TurnResult(
            chat_id=chat_id,
            reply=reply,
            title=derive_title(view),
            user_turn=user_turn,
            usage=response.usage,
        )
        if reply is None:
            return result

        try:
            result.reply_turn = await self._store.append_turn(
                chat_id, Role.RESPONDER, reply
            )
        except StorageError as e:
            # The reply is still handed back for display
            logger.warning("Chat %s: reply generated but not stored: %s", chat_id, e)
            result.state = TurnState.PERSIST_FAILED
            result.persist_error = e
            return result

        logger.debug("Chat %s: %s", chat_id, TurnState.ASSISTANT_TURN_PERSISTED.value)
        return result

    async def _invoke(self, directive: FramingDirective) -> LLMResponse:
        return await self._llm.complete(
            system=directive.text,
            messages=[ChatMessage(role="assistant", content=directive.cue)],
            stop_sequences=list(directive.stop_markers),
            model=self._model,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )

    @staticmethod
    def _parse_reply(response: LLMResponse) -> str | None:
        text = response.first_text()
        if text is None:
            return None
        text = text.strip()
        return text or None
