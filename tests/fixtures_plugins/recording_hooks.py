from __future__ import annotations

from typing import Any

from dialogturn.hookspecs import hookimpl
from dialogturn.turn import TurnContext, activity_field
from dialogturn.types import DialogTurnResult, Envelope


def normalize_envelope(message: Envelope) -> dict[str, Any]:
    if isinstance(message, dict):
        return dict(message)
    return dict(vars(message))


class RecordingHooks:
    def __init__(self) -> None:
        self.started: list[str] = []
        self.ended: list[str] = []
        self.errors: list[tuple[str, Exception]] = []
        self.dispatched: list[Envelope] = []

    @hookimpl
    def on_turn_start(self, turn_context: TurnContext) -> None:
        self.started.append(turn_context.text)

    @hookimpl
    async def on_turn_end(self, turn_context: TurnContext, result: DialogTurnResult) -> None:
        self.ended.append(result.status.value)

    @hookimpl
    def dispatch_outbound(self, message: Envelope) -> bool:
        self.dispatched.append(message)
        return True

    @hookimpl
    def on_error(self, stage: str, error: Exception, message: Envelope | None) -> None:
        _ = message
        self.errors.append((stage, error))


class NormalizingHooks:
    @hookimpl
    def normalize_inbound(self, message: Envelope) -> Envelope:
        envelope = normalize_envelope(message)
        envelope["content"] = str(activity_field(message, "content", "")).strip()
        return envelope

    @hookimpl
    def resolve_conversation(self, message: Envelope) -> str | None:
        thread = normalize_envelope(message).get("thread")
        return f"thread:{thread}" if thread else None


class BrokenStartHooks:
    @hookimpl
    def on_turn_start(self, turn_context: TurnContext) -> None:
        raise RuntimeError("start hook broke on purpose")
