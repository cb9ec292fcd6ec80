"""
adapters.cli.main - CLI adapter for the shop assistant.

Mirrors src/shop_assistant/adapters/rest/ but for terminal use. Uses the
same ServiceFactory and ConversationalAgent as the REST API so behaviour
is identical.

Commands
--------
  init-db        Create the database tables
  ask            One-shot question (continues the last conversation unless --new)
  chat           Interactive chat session
  conversations  List your conversations

Usage
-----
  shop-assistant init-db
  shop-assistant ask "gaming laptop under 400000 HUF"
  shop-assistant chat --user alice
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import typer
from rich import box
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from shop_assistant import __version__
from shop_assistant.adapters.cli.session import Session, clear_session, load_session, save_session
from shop_assistant.agent.executor import ConversationalAgent
from shop_assistant.domain.entities import Product
from shop_assistant.domain.exceptions import ConversationNotFoundError, DomainError
from shop_assistant.domain.models import AgentResponse
from shop_assistant.factory import ServiceFactory
from shop_assistant.infrastructure.config import Settings

DEFAULT_USER = "cli-user"

console = Console()
app = typer.Typer(
    help="Shop Assistant CLI",
    add_completion=False,
    no_args_is_help=True,
)


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

async def _make_factory() -> ServiceFactory:
    """Create and initialise a ServiceFactory from the environment."""
    config = Settings.from_env()
    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    factory = ServiceFactory(config)
    await factory.initialize()
    return factory


def _user_id(user: Optional[str]) -> str:
    if user:
        return user
    session = load_session()
    return session.user_id if session else DEFAULT_USER


def _products_table(products: tuple[Product, ...]) -> Table:
    table = Table(box=box.SIMPLE_HEAD, show_lines=False)
    table.add_column("ID", style="dim", justify="right")
    table.add_column("Product", style="bold")
    table.add_column("Price", justify="right", style="green")
    table.add_column("Store")
    for p in products:
        table.add_row(
            str(p.id) if p.id is not None else "-",
            p.name,
            f"{p.price:,.0f} {p.currency}",
            p.store_name or "",
        )
    return table


def _print_response(response: AgentResponse) -> None:
    console.print()
    console.print(Panel(Markdown(response.answer), title="Assistant", border_style="green"))
    if response.products:
        console.print(_products_table(response.products))


async def _respond(
    agent: ConversationalAgent,
    factory: ServiceFactory,
    message: str,
    user_id: str,
    conversation_id: Optional[str],
) -> AgentResponse:
    context_products = await factory.get_catalog().for_user(user_id)
    with console.status("[bold cyan]Thinking…", spinner="dots"):
        return await agent.respond(
            message,
            user_id,
            conversation_id,
            context_products=context_products,
            deadline=factory.config.agent_deadline,
        )


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"shop-assistant v{__version__}")
        raise typer.Exit()


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

@app.command("init-db")
def init_db() -> None:
    """Create the database tables (safe to run repeatedly)."""
    async def _run() -> ServiceFactory:
        return await _make_factory()

    factory = asyncio.run(_run())
    console.print(Panel(
        f"[bold green]Database ready[/bold green] at {factory.config.db_path}",
        border_style="green",
    ))


@app.command()
def ask(
    message: str = typer.Argument(..., help="Your shopping question."),
    user: Optional[str] = typer.Option(None, "--user", "-u", help="User id to ask as."),
    new: bool = typer.Option(False, "--new", "-n", help="Start a new conversation."),
) -> None:
    """Ask a one-shot question, continuing the previous conversation."""
    user_id = _user_id(user)
    session = load_session()
    conversation_id = None
    if session and session.user_id == user_id and not new:
        conversation_id = session.conversation_id or None

    async def _run() -> AgentResponse:
        factory = await _make_factory()
        agent = factory.create_agent()
        try:
            return await _respond(agent, factory, message, user_id, conversation_id)
        except ConversationNotFoundError:
            clear_session()
            console.print("[yellow]Previous conversation not found, starting a new one.[/yellow]")
            return await _respond(agent, factory, message, user_id, None)

    try:
        response = asyncio.run(_run())
    except DomainError as e:
        console.print(f"[bold red]{type(e).__name__}:[/bold red] {e}")
        raise typer.Exit(code=1)

    save_session(Session(user_id=user_id, conversation_id=response.conversation_id))
    _print_response(response)


@app.command()
def chat(
    user: Optional[str] = typer.Option(None, "--user", "-u", help="User id to chat as."),
) -> None:
    """Start an interactive chat session."""
    user_id = _user_id(user)

    async def _run() -> None:
        factory = await _make_factory()
        agent = factory.create_agent()
        conversation_id: Optional[str] = None

        console.print(Panel(
            f"[bold]Shop Assistant Chat[/bold]\n"
            f"Chatting as [bold]{user_id}[/bold]\n"
            "Type your question, or [bold]exit[/bold] / [bold]quit[/bold] to stop.",
            border_style="cyan",
        ))

        while True:
            try:
                user_input = Prompt.ask("\n[bold cyan]You[/bold cyan]")
            except (KeyboardInterrupt, EOFError):
                console.print("\n[dim]Goodbye![/dim]")
                break

            if user_input.strip().lower() in ("exit", "quit", "q", "bye"):
                console.print("[dim]Goodbye![/dim]")
                break

            if not user_input.strip():
                continue

            try:
                response = await _respond(agent, factory, user_input, user_id, conversation_id)
            except DomainError as e:
                console.print(f"[bold red]{type(e).__name__}:[/bold red] {e}")
                continue

            conversation_id = response.conversation_id
            _print_response(response)

    asyncio.run(_run())


@app.command()
def conversations(
    user: Optional[str] = typer.Option(None, "--user", "-u", help="Whose conversations to list."),
) -> None:
    """List conversations, most recently active first."""
    user_id = _user_id(user)

    async def _run():
        factory = await _make_factory()
        return await factory.create_memory().list_conversations(user_id)

    items = asyncio.run(_run())
    if not items:
        console.print(f"[dim]No conversations for {user_id}.[/dim]")
        return

    table = Table(title=f"Conversations of {user_id}", box=box.ROUNDED)
    table.add_column("Conversation", style="dim")
    table.add_column("Title", style="bold")
    table.add_column("Last activity")
    for c in items:
        table.add_row(c.conversation_id, c.title, c.updated_at[:19].replace("T", " "))
    console.print(table)


# ---------------------------------------------------------------------------
# Global version option
# ---------------------------------------------------------------------------

@app.callback()
def _callback(
    version: bool = typer.Option(
        False, "--version", "-v",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Shop Assistant CLI"""


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    app()
