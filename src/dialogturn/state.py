"""Conversation-scoped state cached per turn and persisted through a ``Storage``."""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

from loguru import logger

from dialogturn.errors import InvalidArgumentError
from dialogturn.storage import Storage
from dialogturn.turn import TurnContext
from dialogturn.types import State


class StateAccessor(Protocol):
    """Load/store contract for one persisted property."""

    name: str

    async def get(self, turn_context: TurnContext, default_factory: Callable[[], Any] | None = None) -> Any: ...

    async def set(self, turn_context: TurnContext, value: Any) -> None: ...

    async def delete(self, turn_context: TurnContext) -> None: ...


@dataclass
class _CachedState:
    state: State
    digest: str

    def changed(self) -> bool:
        return _digest(self.state) != self.digest


def _digest(state: State) -> str:
    return json.dumps(state, sort_keys=True, default=str)


class ConversationState:
    """State document scoped to one conversation of one channel."""

    def __init__(self, storage: Storage, *, namespace: str = "conversation") -> None:
        if storage is None:
            raise InvalidArgumentError("ConversationState requires a storage")
        self.storage = storage
        self.namespace = namespace
        # One cache slot per instance; two states on one turn never share a document.
        self._cache_key = object()

    def create_property(self, name: str) -> StatePropertyAccessor:
        if not name or not name.strip():
            raise InvalidArgumentError("state property name must not be blank")
        return StatePropertyAccessor(self, name)

    def storage_key(self, turn_context: TurnContext) -> str:
        return f"{turn_context.channel}/{self.namespace}s/{turn_context.conversation_id}"

    async def load(self, turn_context: TurnContext, *, force: bool = False) -> State:
        """Read the conversation document into the turn cache, once per turn unless forced."""

        cached = turn_context.turn_state.get(self._cache_key)
        if cached is None or force:
            key = self.storage_key(turn_context)
            items = await self.storage.read([key])
            state = items.get(key) or {}
            cached = _CachedState(state=state, digest=_digest(state))
            turn_context.turn_state[self._cache_key] = cached
        return cached.state

    async def save_changes(self, turn_context: TurnContext, *, force: bool = False) -> bool:
        """Write the cached document back if it changed. Returns whether a write happened."""

        cached: _CachedState | None = turn_context.turn_state.get(self._cache_key)
        if cached is None or not (force or cached.changed()):
            return False
        key = self.storage_key(turn_context)
        await self.storage.write({key: cached.state})
        cached.digest = _digest(cached.state)
        logger.debug("state.saved key={}", key)
        return True

    async def clear(self, turn_context: TurnContext) -> None:
        """Empty the cached document; the next ``save_changes`` persists the empty state."""

        turn_context.turn_state[self._cache_key] = _CachedState(state={}, digest="")

    async def delete(self, turn_context: TurnContext) -> None:
        turn_context.turn_state.pop(self._cache_key, None)
        await self.storage.delete([self.storage_key(turn_context)])


class StatePropertyAccessor:
    """Named property inside a ``ConversationState`` document."""

    def __init__(self, owner: ConversationState, name: str) -> None:
        self._owner = owner
        self.name = name

    async def get(self, turn_context: TurnContext, default_factory: Callable[[], Any] | None = None) -> Any:
        state = await self._owner.load(turn_context)
        if self.name not in state:
            if default_factory is None:
                return None
            state[self.name] = default_factory()
        return state[self.name]

    async def set(self, turn_context: TurnContext, value: Any) -> None:
        state = await self._owner.load(turn_context)
        state[self.name] = value

    async def delete(self, turn_context: TurnContext) -> None:
        state = await self._owner.load(turn_context)
        state.pop(self.name, None)
