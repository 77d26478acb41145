"""Turn driver: loads conversation state, runs the router, saves state, emits replies."""

from __future__ import annotations

import pluggy
from loguru import logger

from dialogturn.bus import ActivitySource
from dialogturn.errors import InvalidArgumentError
from dialogturn.hook_runtime import HookRuntime
from dialogturn.hookspecs import DIALOGTURN_HOOK_NAMESPACE, DialogTurnHookSpecs
from dialogturn.router import TurnRouter
from dialogturn.state import ConversationState
from dialogturn.turn import TurnContext
from dialogturn.types import BotTurnResult, Envelope


class DialogBot:
    """Runs one ``TurnRouter`` against a ``ConversationState``, one inbound at a time."""

    def __init__(
        self,
        router: TurnRouter,
        conversation_state: ConversationState,
        *,
        plugin_manager: pluggy.PluginManager | None = None,
    ) -> None:
        if router is None:
            raise InvalidArgumentError("DialogBot requires a router")
        if conversation_state is None:
            raise InvalidArgumentError("DialogBot requires a conversation state")
        self.router = router
        self.conversation_state = conversation_state
        self._plugin_manager = plugin_manager or pluggy.PluginManager(DIALOGTURN_HOOK_NAMESPACE)
        self._plugin_manager.add_hookspecs(DialogTurnHookSpecs)
        self._hook_runtime = HookRuntime(self._plugin_manager)

    def register(self, plugin: object, name: str | None = None) -> None:
        self._plugin_manager.register(plugin, name=name)

    def hook_report(self) -> dict[str, list[str]]:
        return self._hook_runtime.implementations()

    async def process_inbound(self, inbound: Envelope) -> BotTurnResult:
        """Run one inbound message through the router and return the turn result.

        Conversation state is saved only after the router returned; a failing
        turn leaves the persisted dialog stack as it was.
        """

        try:
            message = await self._hook_runtime.normalize_inbound(inbound)
            conversation_id = await self._hook_runtime.resolve_conversation(message)
            turn_context = TurnContext(message, conversation_id=conversation_id)
            token = turn_context.bind()
            try:
                await self._hook_runtime.turn_started(turn_context)
                result = await self.router.run(turn_context)
                await self.conversation_state.save_changes(turn_context)
                await self._hook_runtime.turn_ended(turn_context, result)
            finally:
                TurnContext.unbind(token)

            outbounds = list(turn_context.responses)
            for outbound in outbounds:
                await self._hook_runtime.dispatch_outbound(outbound)
            logger.info(
                "bot.turn conversation={} status={} replies={}",
                turn_context.conversation_id,
                result.status.value,
                len(outbounds),
            )
            return BotTurnResult(
                conversation_id=turn_context.conversation_id,
                status=result.status,
                result=result.result,
                outbounds=outbounds,
            )
        except Exception as exc:
            await self._hook_runtime.report_error("turn", exc, inbound)
            raise

    async def handle_bus_once(
        self, source: ActivitySource, *, timeout_seconds: float | None = None
    ) -> BotTurnResult | None:
        """Take one activity from ``source``, run its turn and send the replies back."""

        inbound = await source.receive(timeout_seconds=timeout_seconds)
        if inbound is None:
            return None
        result = await self.process_inbound(inbound)
        for outbound in result.outbounds:
            await source.reply(outbound)
        return result

    async def serve(self, source: ActivitySource, *, idle_timeout_seconds: float) -> int:
        """Run turns until ``source`` stays quiet for ``idle_timeout_seconds``; returns the turn count.

        Turns run strictly one after another, which keeps each conversation's
        stack free of concurrent writers.
        """

        turns = 0
        while await self.handle_bus_once(source, timeout_seconds=idle_timeout_seconds) is not None:
            turns += 1
        return turns
