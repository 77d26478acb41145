"""Pluggy hook namespace and bot hook specifications."""

from __future__ import annotations

import pluggy

from dialogturn.turn import TurnContext
from dialogturn.types import DialogTurnResult, Envelope

DIALOGTURN_HOOK_NAMESPACE = "dialogturn"
hookspec = pluggy.HookspecMarker(DIALOGTURN_HOOK_NAMESPACE)
hookimpl = pluggy.HookimplMarker(DIALOGTURN_HOOK_NAMESPACE)


class DialogTurnHookSpecs:
    """Hook contract for bot extensions."""

    @hookspec(firstresult=True)
    def normalize_inbound(self, message: Envelope) -> Envelope | None:
        """Normalize or rewrite one inbound message."""

    @hookspec(firstresult=True)
    def resolve_conversation(self, message: Envelope) -> str | None:
        """Resolve the conversation id whose dialog stack handles this message."""

    @hookspec
    def on_turn_start(self, turn_context: TurnContext) -> None:
        """Observe a turn before the router runs."""

    @hookspec
    def on_turn_end(self, turn_context: TurnContext, result: DialogTurnResult) -> None:
        """Observe a turn after the router returned and state was saved."""

    @hookspec
    def dispatch_outbound(self, message: Envelope) -> bool | None:
        """Dispatch one outbound message to external channel(s)."""

    @hookspec
    def on_error(self, stage: str, error: Exception, message: Envelope | None) -> None:
        """Observe errors from any stage."""


HOOK_NAMES: tuple[str, ...] = tuple(name for name in vars(DialogTurnHookSpecs) if not name.startswith("_"))
