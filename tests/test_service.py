"""Tests for the chat request surface."""
import pytest

from conftest import FakeLLM, FlakyStore, text_response
from duologue.exceptions import ModelCallError
from duologue.orchestrator import TurnOrchestrator
from duologue.service import ChatService, DeleteChatResponse
from duologue.store import Role


class TestChatService:
    """Tests for ChatService."""

    @pytest.mark.asyncio
    async def test_send_turn_response(self, service, store, fake_llm):
        fake_llm.script.append(text_response("hi there"))
        chat_id = await service.create_chat("alice")

        response = await service.send_turn(chat_id, [], "  hello ")

        assert response.chat_id == chat_id
        assert response.reply == "hi there"
        assert response.title == "hello"
        assert response.persisted
        assert response.error is None
        assert [t.content for t in await store.load_history(chat_id)] == ["hello", "hi there"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("utterance", ["", "   ", "\n\t"])
    async def test_blank_utterance_rejected(self, service, fake_llm, utterance):
        """Test that blank utterances never reach the store or the model."""
        chat_id = await service.create_chat("alice")

        with pytest.raises(ValueError, match="empty"):
            await service.send_turn(chat_id, [], utterance)

        assert fake_llm.calls == []
        assert await service.load_history(chat_id) == []

    @pytest.mark.asyncio
    async def test_unstored_reply_is_reported(self, framer):
        store = FlakyStore(fail_roles={Role.RESPONDER})
        llm = FakeLLM(text_response("hi there"))
        service = ChatService(store, TurnOrchestrator(store=store, llm=llm, framer=framer))
        chat_id = await service.create_chat("alice")

        response = await service.send_turn(chat_id, [], "hello")

        assert response.reply == "hi there"
        assert response.persisted is False
        assert response.error == "disk full"

    @pytest.mark.asyncio
    async def test_model_error_propagates(self, store, framer):
        llm = FakeLLM(TimeoutError("slow"))
        service = ChatService(store, TurnOrchestrator(store=store, llm=llm, framer=framer))
        chat_id = await service.create_chat("alice")

        with pytest.raises(ModelCallError):
            await service.send_turn(chat_id, [], "hello")

    @pytest.mark.asyncio
    async def test_delete_chat_response(self, service):
        chat_id = await service.create_chat("alice")

        response = await service.delete_chat(chat_id)

        assert response == DeleteChatResponse(deleted_chat_id=chat_id)
        assert await service.list_chats("alice") == []

    @pytest.mark.asyncio
    async def test_list_chats_is_per_owner(self, service):
        mine = await service.create_chat("alice")
        await service.create_chat("bob")

        chats = await service.list_chats("alice")

        assert [c.id for c in chats] == [mine]
