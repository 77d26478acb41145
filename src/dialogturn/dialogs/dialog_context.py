"""Stack operations for one dialog stack during one turn."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from loguru import logger

from dialogturn.errors import DialogNotFoundError, InvalidArgumentError
from dialogturn.types import (
    DialogInstance,
    DialogReason,
    DialogState,
    DialogTurnResult,
    DialogTurnStatus,
)

if TYPE_CHECKING:
    from dialogturn.dialogs.dialog import Dialog
    from dialogturn.dialogs.dialog_set import DialogSet
    from dialogturn.turn import TurnContext


class DialogContext:
    """Begin, continue, end and cancel dialogs on a persisted stack.

    The stack list is mutated in place, so changes land in whatever document
    ``state`` belongs to (the conversation state, or a parent dialog's
    instance state for nested stacks).
    """

    def __init__(
        self,
        dialogs: DialogSet,
        turn_context: TurnContext,
        state: DialogState,
        *,
        parent: DialogContext | None = None,
    ) -> None:
        self.dialogs = dialogs
        self.context = turn_context
        self.parent = parent
        self._state = state

    @property
    def stack(self) -> list[DialogInstance]:
        return self._state["dialog_stack"]

    @property
    def active_dialog(self) -> DialogInstance | None:
        return self.stack[0] if self.stack else None

    def find_dialog(self, dialog_id: str) -> Dialog | None:
        dialog = self.dialogs.find(dialog_id)
        if dialog is None and self.parent is not None:
            return self.parent.find_dialog(dialog_id)
        return dialog

    async def begin_dialog(self, dialog_id: str, options: Any = None) -> DialogTurnResult:
        """Push a new instance of ``dialog_id`` and start it."""

        if not dialog_id or not dialog_id.strip():
            raise InvalidArgumentError("begin_dialog requires a dialog id")
        dialog = self.find_dialog(dialog_id)
        if dialog is None:
            raise DialogNotFoundError(f"dialog {dialog_id!r} is not registered")
        self.stack.insert(0, {"id": dialog_id, "state": {}})
        logger.debug("dialog.begin id={} depth={}", dialog_id, len(self.stack))
        return await dialog.begin_dialog(self, options)

    async def continue_dialog(self) -> DialogTurnResult:
        """Resume the dialog on top of the stack; ``EMPTY`` when nothing is active."""

        instance = self.active_dialog
        if instance is None:
            return DialogTurnResult(DialogTurnStatus.EMPTY)
        dialog = self._dialog_for(instance)
        return await dialog.continue_dialog(self)

    async def end_dialog(self, result: Any = None) -> DialogTurnResult:
        """Pop the active dialog and resume its parent with ``result``."""

        await self._end_active_dialog(DialogReason.END_CALLED)
        instance = self.active_dialog
        if instance is not None:
            dialog = self._dialog_for(instance)
            return await dialog.resume_dialog(self, DialogReason.END_CALLED, result)
        return DialogTurnResult(DialogTurnStatus.COMPLETE, result)

    async def replace_dialog(self, dialog_id: str, options: Any = None) -> DialogTurnResult:
        await self._end_active_dialog(DialogReason.REPLACE_CALLED)
        return await self.begin_dialog(dialog_id, options)

    async def cancel_all_dialogs(self) -> DialogTurnResult:
        if not self.stack:
            return DialogTurnResult(DialogTurnStatus.EMPTY)
        while self.stack:
            await self._end_active_dialog(DialogReason.CANCEL_CALLED)
        return DialogTurnResult(DialogTurnStatus.CANCELLED)

    async def reprompt_dialog(self) -> None:
        instance = self.active_dialog
        if instance is not None:
            await self._dialog_for(instance).reprompt_dialog(self.context, instance)

    async def _end_active_dialog(self, reason: DialogReason) -> None:
        instance = self.active_dialog
        if instance is None:
            return
        dialog = self.find_dialog(instance["id"])
        if dialog is not None:
            await dialog.end_dialog(self.context, instance, reason)
        self.stack.pop(0)
        logger.debug("dialog.end id={} reason={}", instance["id"], reason.value)

    def _dialog_for(self, instance: DialogInstance) -> Dialog:
        dialog = self.find_dialog(instance["id"])
        if dialog is None:
            raise DialogNotFoundError(f"active dialog {instance['id']!r} is not registered")
        return dialog
