"""Top-level dialog that owns every turn of a conversation."""

from __future__ import annotations

from abc import abstractmethod
from typing import Any

from loguru import logger

from dialogturn.dialogs.component_dialog import ComponentDialog
from dialogturn.dialogs.dialog_context import DialogContext
from dialogturn.dialogs.dialog_set import DialogSet
from dialogturn.errors import DialogStackError, InvalidArgumentError
from dialogturn.state import StateAccessor
from dialogturn.turn import TurnContext
from dialogturn.types import DialogTurnResult, DialogTurnStatus

MAIN_DIALOG_ID = "main"


class TurnRouter(ComponentDialog):
    """Base class for a bot's main dialog.

    ``run`` dispatches an inbound turn to the persisted stack: the dialog on
    top of the stack is continued, and when nothing is running the router
    itself is begun. Both the begin and continue paths of the router funnel
    into ``on_run_turn``, so the application decides what happens on every
    turn without telling the first turn apart from the rest.

    Child dialogs are registered with ``add_dialog``.
    """

    def __init__(self, dialog_state: StateAccessor, dialog_id: str = MAIN_DIALOG_ID) -> None:
        if dialog_state is None:
            raise InvalidArgumentError("TurnRouter requires a dialog state accessor")
        super().__init__(dialog_id)
        self.dialog_state = dialog_state
        self._router_set = DialogSet(dialog_state).add(self)

    @abstractmethod
    async def on_run_turn(self, dc: DialogContext) -> DialogTurnResult:
        """Route the turn: begin, continue, replace or end child dialogs on ``dc``."""

    async def run(self, turn_context: TurnContext) -> DialogTurnResult:
        """Process one inbound turn and return its outcome."""

        if turn_context is None:
            raise InvalidArgumentError("TurnRouter.run(): turn_context is None")

        dc = await self._router_set.create_context(turn_context)
        self._check_root_frame(dc)

        result = await dc.continue_dialog()
        if result.status is DialogTurnStatus.EMPTY:
            logger.debug("router.begin dialog={} conversation={}", self.id, turn_context.conversation_id)
            result = await dc.begin_dialog(self.id)
        logger.debug(
            "router.turn_done dialog={} conversation={} status={}",
            self.id,
            turn_context.conversation_id,
            result.status.value,
        )
        return result

    async def on_begin_dialog(self, inner_dc: DialogContext, options: Any = None) -> DialogTurnResult:
        # options are intentionally dropped; on_run_turn reads what it needs from the context.
        _ = options
        return await self.on_continue_dialog(inner_dc)

    async def on_continue_dialog(self, inner_dc: DialogContext) -> DialogTurnResult:
        return await self.on_run_turn(inner_dc)

    def _check_root_frame(self, dc: DialogContext) -> None:
        stack = dc.stack
        if not stack:
            return
        frames = [instance["id"] for instance in stack]
        if frames[-1] != self.id or frames.count(self.id) != 1:
            raise DialogStackError(f"router {self.id!r} expected as the only root frame, found stack {frames}")
