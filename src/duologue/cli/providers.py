"""Provider factory functions for CLI.

Centralizes creation of the store, LLM and persona configuration from
environment variables. Hides configuration details from command
implementations.
"""

import getpass
import os
from pathlib import Path

from rich.console import Console

from ..framing import PersonaConfig, PromptFramer, load_preamble
from ..framing.framer import DEFAULT_INITIATOR_NAME, DEFAULT_RESPONDER_NAME
from ..llm import LLMProvider, create_llm_provider
from ..orchestrator import TurnOrchestrator
from ..service import ChatService
from ..store import ConversationStore, create_conversation_store

# Default console for output
_console = Console()

DEFAULT_MAX_TOKENS = 1024


def get_store(backend: str | None = None) -> ConversationStore:
    """Create conversation store from environment variables.

    Args:
        backend: Backend override ("sqlite" or "memory")

    Returns:
        Conversation store instance (not yet connected)

    Environment variables:
        DUOLOGUE_STORE: Backend type (default: sqlite)
        DUOLOGUE_DB_PATH: SQLite database file (default: ./duologue.db)
    """
    backend = (backend or os.getenv("DUOLOGUE_STORE", "sqlite")).lower()
    if backend == "sqlite":
        return create_conversation_store(
            "sqlite",
            path=Path(os.getenv("DUOLOGUE_DB_PATH", "./duologue.db"))
        )
    return create_conversation_store(backend)


def get_llm(console: Console | None = None) -> LLMProvider | None:
    """Create LLM provider from environment variables.

    Args:
        console: Optional Rich console for output

    Returns:
        LLM provider instance, or None if not configured

    Environment variables:
        LLM_PROVIDER: Provider type (anthropic, openai; default: anthropic)
        ANTHROPIC_API_KEY: Anthropic API key (for anthropic provider)
        ANTHROPIC_MODEL: Anthropic model (default: claude-sonnet-4-20250514)
        OPENAI_API_KEY: OpenAI API key (for openai provider)
        OPENAI_CHAT_MODEL: OpenAI model (default: gpt-4o-mini)
        OPENAI_BASE_URL: OpenAI-compatible endpoint (default: api.openai.com)
    """
    con = console or _console
    llm_provider = os.getenv("LLM_PROVIDER", "anthropic").lower()

    if llm_provider in ("anthropic", "claude"):
        api_key = os.getenv("ANTHROPIC_API_KEY")
        if not api_key:
            con.print("[yellow]Warning: ANTHROPIC_API_KEY not set[/yellow]")
            return None
        return create_llm_provider(
            "anthropic", api_key=api_key, model=os.getenv("ANTHROPIC_MODEL")
        )

    elif llm_provider == "openai":
        api_key = os.getenv("OPENAI_API_KEY")
        if not api_key:
            con.print("[yellow]Warning: OPENAI_API_KEY not set[/yellow]")
            return None
        return create_llm_provider(
            "openai",
            api_key=api_key,
            model=os.getenv("OPENAI_CHAT_MODEL"),
            base_url=os.getenv("OPENAI_BASE_URL"),
        )

    else:
        con.print(f"[red]Error: Unknown LLM provider: {llm_provider}[/red]")
        return None


def require_llm(console: Console | None = None) -> LLMProvider:
    """Get LLM provider, raising error if not configured.

    Raises:
        SystemExit: If LLM provider is not configured
    """
    import typer

    con = console or _console
    llm = get_llm(con)
    if not llm:
        con.print("[red]Error: LLM provider not configured[/red]")
        raise typer.Exit(code=1)
    return llm


def get_persona() -> PersonaConfig:
    """Build the persona configuration.

    Environment variables:
        DUOLOGUE_INITIATOR_NAME: Display name of the user (default: friend 1)
        DUOLOGUE_RESPONDER_NAME: Display name of the model (default: friend 2)
        DUOLOGUE_PREAMBLE_FILE: Preamble template (default: ./prompts/preamble.txt
            if present, else the packaged one)
    """
    return PersonaConfig.from_names(
        initiator=os.getenv("DUOLOGUE_INITIATOR_NAME", DEFAULT_INITIATOR_NAME),
        responder=os.getenv("DUOLOGUE_RESPONDER_NAME", DEFAULT_RESPONDER_NAME),
        preamble_template=load_preamble(os.getenv("DUOLOGUE_PREAMBLE_FILE") or None),
    )


def get_owner_id() -> str:
    """Identify the local user.

    Environment variables:
        DUOLOGUE_OWNER: Owner identifier (default: login name, else 'local')
    """
    owner = os.getenv("DUOLOGUE_OWNER")
    if owner:
        return owner
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "local"


def build_service(
    store: ConversationStore,
    llm: LLMProvider,
    persona: PersonaConfig | None = None
) -> ChatService:
    """Wire store, model and framing into a ChatService.

    Environment variables:
        DUOLOGUE_MAX_TOKENS: Maximum reply length (default: 1024)
    """
    orchestrator = TurnOrchestrator(
        store=store,
        llm=llm,
        framer=PromptFramer(persona or get_persona()),
        max_tokens=int(os.getenv("DUOLOGUE_MAX_TOKENS", str(DEFAULT_MAX_TOKENS))),
    )
    return ChatService(store, orchestrator)
