"""Tests for the command-line interface."""
import asyncio

import pytest
from typer.testing import CliRunner

from duologue.cli.app import app
from duologue.cli.providers import build_service, get_owner_id, get_persona, get_store
from duologue.store import Role
from duologue.store.sqlite import SQLiteConversationStore

runner = CliRunner()


@pytest.fixture
def cli_env(monkeypatch, tmp_path):
    """Point the CLI at a temporary SQLite file."""
    db_path = tmp_path / "cli.db"
    monkeypatch.setenv("DUOLOGUE_STORE", "sqlite")
    monkeypatch.setenv("DUOLOGUE_DB_PATH", str(db_path))
    monkeypatch.setenv("DUOLOGUE_OWNER", "alice")
    monkeypatch.delenv("DUOLOGUE_INITIATOR_NAME", raising=False)
    monkeypatch.delenv("DUOLOGUE_RESPONDER_NAME", raising=False)
    return db_path


class TestCommands:
    """Tests for the non-interactive commands."""

    def test_new_then_chats(self, cli_env):
        result = runner.invoke(app, ["new"])
        assert result.exit_code == 0
        chat_id = result.output.strip()

        listed = runner.invoke(app, ["chats"])

        assert listed.exit_code == 0
        assert chat_id in listed.output

    def test_chats_empty(self, cli_env):
        result = runner.invoke(app, ["chats"])
        assert result.exit_code == 0
        assert "No chats yet" in result.output

    def test_show_prints_turns(self, cli_env):
        async def seed():
            async with SQLiteConversationStore(path=cli_env) as store:
                chat_id = await store.create_chat("alice")
                await store.append_turn(chat_id, Role.INITIATOR, "hello")
                await store.append_turn(chat_id, Role.RESPONDER, "hi there")
            return chat_id

        chat_id = asyncio.run(seed())

        result = runner.invoke(app, ["show", chat_id])

        assert result.exit_code == 0
        assert "friend 1: hello" in result.output
        assert "friend 2: hi there" in result.output

    def test_show_unknown_chat_fails(self, cli_env):
        result = runner.invoke(app, ["show", "no-such-chat"])

        assert result.exit_code == 1
        assert "no chat no-such-chat" in result.output

    def test_delete(self, cli_env):
        chat_id = runner.invoke(app, ["new"]).output.strip()

        result = runner.invoke(app, ["delete", chat_id])

        assert result.exit_code == 0
        assert "Deleted" in result.output
        assert chat_id not in runner.invoke(app, ["chats"]).output

    def test_chat_without_api_key_exits(self, cli_env, monkeypatch):
        monkeypatch.setenv("LLM_PROVIDER", "anthropic")
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)

        result = runner.invoke(app, ["chat"])

        assert result.exit_code == 1
        assert "not configured" in result.output


class TestProviders:
    """Tests for environment-driven wiring."""

    def test_store_backend_from_env(self, monkeypatch):
        monkeypatch.setenv("DUOLOGUE_STORE", "memory")
        assert get_store().backend_type == "memory"

    def test_persona_from_env(self, monkeypatch):
        monkeypatch.setenv("DUOLOGUE_INITIATOR_NAME", "Ada")
        monkeypatch.setenv("DUOLOGUE_RESPONDER_NAME", "Grace")

        persona = get_persona()

        assert persona.name_for(Role.INITIATOR) == "Ada"
        assert persona.name_for(Role.RESPONDER) == "Grace"
        assert "Ada" in persona.preamble

    def test_owner_from_env(self, monkeypatch):
        monkeypatch.setenv("DUOLOGUE_OWNER", "bob")
        assert get_owner_id() == "bob"

    @pytest.mark.asyncio
    async def test_build_service_uses_max_tokens(self, monkeypatch, store, fake_llm, persona):
        monkeypatch.setenv("DUOLOGUE_MAX_TOKENS", "77")
        service = build_service(store, fake_llm, persona)
        chat_id = await service.create_chat("alice")

        await service.send_turn(chat_id, [], "hello")

        assert fake_llm.calls[0]["max_tokens"] == 77

    def test_preamble_file_from_env(self, monkeypatch, tmp_path):
        path = tmp_path / "preamble.txt"
        path.write_text("{initiator} and {responder} talk shop.")
        monkeypatch.setenv("DUOLOGUE_PREAMBLE_FILE", str(path))
        monkeypatch.delenv("DUOLOGUE_INITIATOR_NAME", raising=False)
        monkeypatch.delenv("DUOLOGUE_RESPONDER_NAME", raising=False)

        assert get_persona().preamble == "friend 1 and friend 2 talk shop.\n"
