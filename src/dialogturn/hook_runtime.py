"""Typed entry points over the bot's pluggy hooks, isolating plugin failures."""

from __future__ import annotations

import inspect
from typing import Any

import pluggy
from loguru import logger

from dialogturn.hookspecs import HOOK_NAMES
from dialogturn.turn import TurnContext, conversation_id_for
from dialogturn.types import DialogTurnResult, Envelope


class HookRuntime:
    """Calls each hook the way ``DialogBot`` needs it.

    Implementations run newest-registered first and may be sync or async. A
    plugin that raises is reported through ``on_error`` and skipped; the turn
    carries on without it. Only ``on_error`` observers that themselves fail
    are just logged.
    """

    def __init__(self, plugin_manager: pluggy.PluginManager) -> None:
        self._plugin_manager = plugin_manager

    async def normalize_inbound(self, message: Envelope) -> Envelope:
        normalized = await self._first_answer("normalize_inbound", message, message=message)
        return message if normalized is None else normalized

    async def resolve_conversation(self, message: Envelope) -> str:
        resolved = await self._first_answer("resolve_conversation", message, message=message)
        if resolved is None or not str(resolved).strip():
            return conversation_id_for(message)
        return str(resolved).strip()

    async def turn_started(self, turn_context: TurnContext) -> None:
        await self._broadcast("on_turn_start", turn_context.activity, turn_context=turn_context)

    async def turn_ended(self, turn_context: TurnContext, result: DialogTurnResult) -> None:
        await self._broadcast("on_turn_end", turn_context.activity, turn_context=turn_context, result=result)

    async def dispatch_outbound(self, outbound: Envelope) -> bool:
        """Offer one reply to every dispatcher; True when any of them took it."""

        answers = await self._broadcast("dispatch_outbound", outbound, message=outbound)
        return any(answer is True for answer in answers)

    async def report_error(self, stage: str, error: Exception, message: Envelope | None) -> None:
        for plugin_name, function, argnames in self._implementations("on_error"):
            try:
                value = function(**_select(argnames, stage=stage, error=error, message=message))
                if inspect.isawaitable(value):
                    await value
            except Exception:
                logger.opt(exception=True).warning("hook.on_error_failed stage={} plugin={}", stage, plugin_name)

    def implementations(self) -> dict[str, list[str]]:
        """Plugin names per hook, for diagnostics."""

        report: dict[str, list[str]] = {}
        for hook_name in HOOK_NAMES:
            names = [plugin_name for plugin_name, _, _ in self._implementations(hook_name)]
            if names:
                report[hook_name] = names[::-1]
        return report

    async def _first_answer(self, hook_name: str, message: Envelope, /, **kwargs: Any) -> Any:
        for plugin_name, function, argnames in self._implementations(hook_name):
            failed, value = await self._call(hook_name, plugin_name, function, _select(argnames, **kwargs), message)
            if not failed and value is not None:
                return value
        return None

    async def _broadcast(self, hook_name: str, message: Envelope, /, **kwargs: Any) -> list[Any]:
        answers: list[Any] = []
        for plugin_name, function, argnames in self._implementations(hook_name):
            failed, value = await self._call(hook_name, plugin_name, function, _select(argnames, **kwargs), message)
            if not failed:
                answers.append(value)
        return answers

    async def _call(
        self,
        hook_name: str,
        plugin_name: str,
        function: Any,
        call_kwargs: dict[str, Any],
        message: Envelope,
    ) -> tuple[bool, Any]:
        try:
            value = function(**call_kwargs)
            if inspect.isawaitable(value):
                value = await value
        except Exception as error:
            await self.report_error(f"{hook_name}:{plugin_name}", error, message)
            return True, None
        return False, value

    def _implementations(self, hook_name: str) -> list[tuple[str, Any, tuple[str, ...]]]:
        caller = getattr(self._plugin_manager.hook, hook_name)
        return [
            (impl.plugin_name or "<unknown>", impl.function, tuple(impl.argnames))
            for impl in reversed(caller.get_hookimpls())
        ]


def _select(argnames: tuple[str, ...], **kwargs: Any) -> dict[str, Any]:
    return {name: kwargs[name] for name in argnames if name in kwargs}
