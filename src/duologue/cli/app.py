"""Main CLI application using Typer."""
import asyncio
import logging
import os

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..exceptions import DuologueError
from ..framing import PersonaConfig
from ..session import SessionController
from ..store import Role, Turn
from .providers import build_service, get_owner_id, get_persona, get_store, require_llm

# Load environment variables
load_dotenv()

# Create Typer app
app = typer.Typer(
    name="duologue",
    help="Persisted two-persona conversations with an LLM",
    no_args_is_help=True,
    add_completion=True,
)

# Console for rich output
console = Console()

HELP_TEXT = (
    "[dim]/new  start a new chat    /switch ID  open a chat    /chats  list chats\n"
    "/delete ID  delete a chat    /quit  leave[/dim]"
)


@app.callback()
def main(
    log_level: str = typer.Option(
        os.getenv("DUOLOGUE_LOG_LEVEL", "WARNING"),
        "--log-level",
        "-L",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
):
    """Configure logging for every command."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(name)s: %(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _print_turn(turn: Turn, persona: PersonaConfig) -> None:
    style = "cyan" if turn.role == Role.INITIATOR else "green"
    console.print(f"[bold {style}]{persona.name_for(turn.role)}:[/bold {style}] {turn.content}")


def _print_chats(chats) -> None:
    if not chats:
        console.print("[yellow]No chats yet[/yellow]")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Chat", style="dim")
    table.add_column("Title")
    table.add_column("Last active", style="green")
    for chat in chats:
        table.add_row(
            chat.id,
            chat.title or "[dim]New chat[/dim]",
            chat.updated_at.strftime("%Y-%m-%d %H:%M"),
        )
    console.print(table)


@app.command()
def new():
    """Create an empty chat and print its id."""
    async def _new():
        store = get_store()
        try:
            await store.connect()
            chat_id = await store.create_chat(get_owner_id())
            console.print(chat_id)
        except DuologueError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(code=1)
        finally:
            await store.disconnect()

    asyncio.run(_new())


@app.command()
def chats():
    """List chats, most recently active first."""
    async def _chats():
        store = get_store()
        try:
            await store.connect()
            _print_chats(await store.list_chats(get_owner_id()))
        except DuologueError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(code=1)
        finally:
            await store.disconnect()

    asyncio.run(_chats())


@app.command()
def show(chat_id: str = typer.Argument(..., help="Chat to print")):
    """Print a stored conversation."""
    async def _show():
        store = get_store()
        persona = get_persona()
        try:
            await store.connect()
            chat = await store.get_chat(chat_id)
            if chat is None:
                console.print(f"[red]Error: no chat {chat_id}[/red]")
                raise typer.Exit(code=1)
            console.print(f"[bold]{chat.title or 'New chat'}[/bold]")
            history = await store.load_history(chat_id)
            if not history:
                console.print("[yellow]No turns in this chat[/yellow]")
                return
            for turn in history:
                _print_turn(turn, persona)
        except DuologueError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(code=1)
        finally:
            await store.disconnect()

    asyncio.run(_show())


@app.command()
def delete(chat_id: str = typer.Argument(..., help="Chat to delete")):
    """Delete a chat and all of its turns."""
    async def _delete():
        store = get_store()
        try:
            await store.connect()
            await store.delete_chat(chat_id)
            console.print(f"[green]Deleted {chat_id}[/green]")
        except DuologueError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(code=1)
        finally:
            await store.disconnect()

    asyncio.run(_delete())


@app.command()
def chat(
    chat_id: str | None = typer.Option(
        None,
        "--chat",
        "-c",
        help="Continue an existing chat (default: start a new one)"
    )
):
    """Talk interactively."""
    async def _chat():
        store = get_store()
        llm = require_llm(console)
        persona = get_persona()

        try:
            await store.connect()
            controller = SessionController(build_service(store, llm, persona), get_owner_id())
            if chat_id:
                await controller.select_chat(chat_id)
                for turn in controller.turns:
                    _print_turn(turn, persona)

            console.print(HELP_TEXT)
            while True:
                line = console.input(f"[bold cyan]{persona.name_for(Role.INITIATOR)}:[/bold cyan] ")
                command, _, arg = line.strip().partition(" ")

                if command in ("/quit", "/exit"):
                    break
                if command == "/new":
                    controller.clear_selection()
                    console.print("[dim]Next message starts a new chat[/dim]")
                    continue
                if command == "/chats":
                    _print_chats(await controller.refresh_chats())
                    continue
                if command == "/switch" and arg:
                    await controller.select_chat(arg.strip())
                    for turn in controller.turns:
                        _print_turn(turn, persona)
                    continue
                if command == "/delete" and arg:
                    await controller.delete_chat(arg.strip())
                    console.print(f"[green]Deleted {arg.strip()}[/green]")
                    continue

                pending = await controller.submit(line)
                if pending is None:
                    continue

                with console.status(f"[dim]{persona.name_for(Role.RESPONDER)} is typing...[/dim]"):
                    response = await controller.wait()

                if response is None:
                    console.print(f"[red]Error: {controller.last_error}[/red]")
                    continue
                if response.reply is None:
                    console.print("[dim](no reply)[/dim]")
                else:
                    _print_turn(controller.turns[-1], persona)
                if not response.persisted:
                    console.print(f"[yellow]Warning: reply not saved: {response.error}[/yellow]")

        except (EOFError, KeyboardInterrupt):
            console.print()
        except DuologueError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(code=1)
        finally:
            await store.disconnect()
            await llm.close()

    asyncio.run(_chat())


if __name__ == "__main__":
    app()
