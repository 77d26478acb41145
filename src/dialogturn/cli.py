"""dialogturn CLI: drive the sample greeting router from a terminal."""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import typer

from dialogturn.bot import DialogBot
from dialogturn.config import Settings, get_settings
from dialogturn.errors import ConfigurationError
from dialogturn.samples.greeting import GreetingRouter
from dialogturn.state import ConversationState
from dialogturn.storage import FileStorage, MemoryStorage
from dialogturn.turn import activity_field
from dialogturn.types import BotTurnResult

app = typer.Typer(name="dialogturn", help="Turn-dispatch runtime for stack-based dialogs", add_completion=False)

EXIT_COMMANDS = frozenset({"/exit", "/quit"})


def build_bot(settings: Settings) -> DialogBot:
    storage = FileStorage(settings.storage_path) if settings.storage_path else MemoryStorage()
    conversation_state = ConversationState(storage)
    router = GreetingRouter(conversation_state.create_property(settings.state_property), settings.router_id)
    return DialogBot(router, conversation_state)


@app.command("run")
def run(
    message: str = typer.Argument(..., help="Inbound message content"),
    storage: Path | None = typer.Option(None, "--storage", "-s", help="JSON state file"),  # noqa: B008
    channel: str = typer.Option("cli", "--channel", help="Message channel"),
    chat_id: str = typer.Option("local", "--chat-id", help="Chat id"),
) -> None:
    """Run one inbound message through the router."""

    bot = build_bot(_load_settings(storage))
    inbound: dict[str, Any] = {"channel": channel, "chat_id": chat_id, "content": message}
    result = asyncio.run(bot.process_inbound(inbound))
    _echo_result(result)


@app.command("chat")
def chat(
    storage: Path | None = typer.Option(None, "--storage", "-s", help="JSON state file"),  # noqa: B008
    chat_id: str = typer.Option("local", "--chat-id", help="Chat id"),
) -> None:
    """Read messages from stdin, one turn per line, until EOF or /exit."""

    bot = build_bot(_load_settings(storage))
    asyncio.run(_chat_loop(bot, sys.stdin, chat_id=chat_id))


async def _chat_loop(bot: DialogBot, lines: Iterable[str], *, chat_id: str) -> None:
    for line in lines:
        content = line.strip()
        if not content:
            continue
        if content in EXIT_COMMANDS:
            break
        result = await bot.process_inbound({"channel": "cli", "chat_id": chat_id, "content": content})
        _echo_result(result)


def _load_settings(storage: Path | None) -> Settings:
    try:
        return get_settings(storage)
    except ConfigurationError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=2) from exc


def _echo_result(result: BotTurnResult) -> None:
    for outbound in result.outbounds:
        typer.echo(f"[{result.conversation_id}] {activity_field(outbound, 'content', '')}")
    typer.echo(f"({result.status.value})")
