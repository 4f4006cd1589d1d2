"""Pytest configuration and shared fixtures."""
import os
from typing import Any

import pytest

from duologue.exceptions import StorageError
from duologue.framing import PersonaConfig, PromptFramer
from duologue.llm import ChatMessage, ContentBlock, LLMProvider, LLMResponse
from duologue.orchestrator import TurnOrchestrator
from duologue.service import ChatService
from duologue.store import InMemoryConversationStore, Role
from duologue.store.sqlite import SQLiteConversationStore


def text_response(*texts: str) -> LLMResponse:
    """Build a backend response made of text blocks."""
    return LLMResponse(
        content=[ContentBlock(type="text", text=t) for t in texts],
        model="fake-model",
    )


class FakeLLM(LLMProvider):
    """Scripted model backend that records every call.

    Each queued item is either an LLMResponse to return or an
    exception to raise.
    """

    def __init__(self, *script: LLMResponse | Exception):
        self.script = list(script)
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    async def complete(
        self,
        system: str,
        messages: list[ChatMessage],
        stop_sequences: list[str] | None = None,
        model: str | None = None,
        temperature: float = 1.0,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> LLMResponse:
        self.calls.append({
            "system": system,
            "messages": messages,
            "stop_sequences": stop_sequences,
            "model": model,
            "max_tokens": max_tokens,
        })
        item = self.script.pop(0) if self.script else text_response("ok")
        if isinstance(item, Exception):
            raise item
        return item

    async def close(self) -> None:
        self.closed = True


class FlakyStore(InMemoryConversationStore):
    """In-memory store whose appends fail for chosen roles."""

    def __init__(self, fail_roles: set[Role]):
        super().__init__()
        self.fail_roles = fail_roles

    async def append_turn(self, chat_id, role, content):
        if Role(role) in self.fail_roles:
            raise StorageError("disk full", chat_id=chat_id)
        return await super().append_turn(chat_id, role, content)


@pytest.fixture(scope="session")
def api_keys():
    """Return API keys from environment."""
    return {
        "anthropic": os.getenv("ANTHROPIC_API_KEY"),
        "openai": os.getenv("OPENAI_API_KEY"),
    }


@pytest.fixture
def persona():
    """Persona config with a fixed preamble (no template file lookup)."""
    return PersonaConfig.from_names(
        initiator="friend 1",
        responder="friend 2",
        preamble_template="A chat between {initiator} and {responder}.",
    )


@pytest.fixture
def framer(persona):
    return PromptFramer(persona)


@pytest.fixture
def store():
    return InMemoryConversationStore()


@pytest.fixture
async def sqlite_store(tmp_path):
    """Connected SQLite store in a temporary directory."""
    store = SQLiteConversationStore(path=tmp_path / "chats.db")
    await store.connect()
    yield store
    await store.disconnect()


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def orchestrator(store, fake_llm, framer):
    return TurnOrchestrator(store=store, llm=fake_llm, framer=framer)


@pytest.fixture
def service(store, orchestrator):
    return ChatService(store, orchestrator)
