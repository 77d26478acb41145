"""Dialog that runs its own inner stack of child dialogs."""

from __future__ import annotations

from typing import Any

from dialogturn.dialogs.dialog import Dialog
from dialogturn.dialogs.dialog_context import DialogContext
from dialogturn.dialogs.dialog_set import DialogSet
from dialogturn.errors import DialogStackError
from dialogturn.turn import TurnContext
from dialogturn.types import (
    END_OF_TURN,
    DialogInstance,
    DialogReason,
    DialogState,
    DialogTurnResult,
    DialogTurnStatus,
    new_dialog_state,
)

INNER_STACK_KEY = "dialogs"


class ComponentDialog(Dialog):
    """Container dialog.

    Children are registered with ``add_dialog``. The inner stack is persisted
    in this dialog's own instance state under ``"dialogs"``. Subclasses
    customize a turn through the ``on_*`` hooks; the component ends itself as
    soon as an inner turn returns anything but ``WAITING``.
    """

    def __init__(self, dialog_id: str) -> None:
        super().__init__(dialog_id)
        self._dialogs = DialogSet()
        self.initial_dialog_id: str | None = None

    def add_dialog(self, dialog: Dialog) -> ComponentDialog:
        self._dialogs.add(dialog)
        if self.initial_dialog_id is None:
            self.initial_dialog_id = dialog.id
        return self

    def find_dialog(self, dialog_id: str) -> Dialog | None:
        return self._dialogs.find(dialog_id)

    async def begin_dialog(self, dc: DialogContext, options: Any = None) -> DialogTurnResult:
        instance = self._require_active(dc)
        inner_state = new_dialog_state()
        instance["state"][INNER_STACK_KEY] = inner_state
        inner_dc = DialogContext(self._dialogs, dc.context, inner_state, parent=dc)
        turn_result = await self.on_begin_dialog(inner_dc, options)
        return await self._finish_inner_turn(dc, turn_result)

    async def continue_dialog(self, dc: DialogContext) -> DialogTurnResult:
        instance = self._require_active(dc)
        inner_dc = DialogContext(self._dialogs, dc.context, self._inner_state(instance), parent=dc)
        turn_result = await self.on_continue_dialog(inner_dc)
        return await self._finish_inner_turn(dc, turn_result)

    async def resume_dialog(self, dc: DialogContext, reason: DialogReason, result: Any = None) -> DialogTurnResult:
        # Something pushed on top of the component ended; stay active and re-prompt the inner stack.
        _ = reason, result
        await self.reprompt_dialog(dc.context, self._require_active(dc))
        return END_OF_TURN

    async def reprompt_dialog(self, turn_context: TurnContext, instance: DialogInstance) -> None:
        inner_dc = DialogContext(self._dialogs, turn_context, self._inner_state(instance))
        await inner_dc.reprompt_dialog()
        await self.on_reprompt_dialog(turn_context, instance)

    async def end_dialog(self, turn_context: TurnContext, instance: DialogInstance, reason: DialogReason) -> None:
        if reason is DialogReason.CANCEL_CALLED:
            inner_dc = DialogContext(self._dialogs, turn_context, self._inner_state(instance))
            await inner_dc.cancel_all_dialogs()
        await self.on_end_dialog(turn_context, instance, reason)

    async def on_begin_dialog(self, inner_dc: DialogContext, options: Any = None) -> DialogTurnResult:
        if self.initial_dialog_id is None:
            raise DialogStackError(f"component {self.id!r} has no child dialogs to begin")
        return await inner_dc.begin_dialog(self.initial_dialog_id, options)

    async def on_continue_dialog(self, inner_dc: DialogContext) -> DialogTurnResult:
        return await inner_dc.continue_dialog()

    async def on_reprompt_dialog(self, turn_context: TurnContext, instance: DialogInstance) -> None:
        _ = turn_context, instance

    async def on_end_dialog(self, turn_context: TurnContext, instance: DialogInstance, reason: DialogReason) -> None:
        _ = turn_context, instance, reason

    async def end_component(self, outer_dc: DialogContext, result: Any = None) -> DialogTurnResult:
        return await outer_dc.end_dialog(result)

    async def _finish_inner_turn(self, dc: DialogContext, turn_result: DialogTurnResult) -> DialogTurnResult:
        if turn_result.status is DialogTurnStatus.WAITING:
            return END_OF_TURN
        return await self.end_component(dc, turn_result.result)

    @staticmethod
    def _inner_state(instance: DialogInstance) -> DialogState:
        inner = instance["state"].setdefault(INNER_STACK_KEY, new_dialog_state())
        inner.setdefault("dialog_stack", [])
        return inner

    def _require_active(self, dc: DialogContext) -> DialogInstance:
        instance = dc.active_dialog
        if instance is None or instance["id"] != self.id:
            raise DialogStackError(f"component {self.id!r} is not the active dialog")
        return instance
