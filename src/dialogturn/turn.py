"""Per-turn context handed to routers and dialogs."""

from __future__ import annotations

from collections.abc import Mapping
from contextvars import ContextVar, Token
from typing import Any

from dialogturn.types import Envelope

_current_conversation: ContextVar[str] = ContextVar("dialogturn_conversation", default="-")


def current_conversation() -> str:
    """Conversation id of the turn running in this task, for log records."""

    return _current_conversation.get()


def activity_field(activity: Envelope, key: str, default: Any = None) -> Any:
    """Read ``key`` from a dict activity or an attribute-style activity object."""

    if isinstance(activity, Mapping):
        return activity.get(key, default)
    return getattr(activity, key, default)


def conversation_id_for(activity: Envelope) -> str:
    """Explicit non-blank ``conversation_id``, else ``channel:chat_id``."""

    explicit = str(activity_field(activity, "conversation_id") or "").strip()
    if explicit:
        return explicit
    return f"{activity_field(activity, 'channel', 'default')}:{activity_field(activity, 'chat_id', 'default')}"


class TurnContext:
    """One inbound activity plus the outbound replies and cached state of its turn."""

    def __init__(self, activity: Envelope, *, conversation_id: str | None = None) -> None:
        self.activity = activity
        self.conversation_id = conversation_id or conversation_id_for(activity)
        self.turn_state: dict[Any, Any] = {}
        self.responses: list[dict[str, Any]] = []

    @property
    def channel(self) -> str:
        return str(activity_field(self.activity, "channel", "default"))

    @property
    def text(self) -> str:
        content = activity_field(self.activity, "content")
        return "" if content is None else str(content)

    async def send_activity(self, message: str | dict[str, Any]) -> dict[str, Any]:
        """Queue one outbound reply addressed back to the inbound conversation."""

        outbound: dict[str, Any] = {"content": message} if isinstance(message, str) else dict(message)
        outbound.setdefault("channel", self.channel)
        chat_id = activity_field(self.activity, "chat_id")
        if chat_id is not None:
            outbound.setdefault("chat_id", chat_id)
        outbound.setdefault("conversation_id", self.conversation_id)
        self.responses.append(outbound)
        return outbound

    def bind(self) -> Token[str]:
        """Mark this turn's conversation as current; returns a token for ``unbind``."""

        return _current_conversation.set(self.conversation_id)

    @staticmethod
    def unbind(token: Token[str]) -> None:
        _current_conversation.reset(token)
