"""Registry of dialogs that can be started from one stack."""

from __future__ import annotations

from dialogturn.dialogs.dialog import Dialog
from dialogturn.dialogs.dialog_context import DialogContext
from dialogturn.errors import InvalidArgumentError
from dialogturn.state import StateAccessor
from dialogturn.turn import TurnContext
from dialogturn.types import new_dialog_state


class DialogSet:
    """Dialogs keyed by id, optionally bound to a persisted stack property."""

    def __init__(self, dialog_state: StateAccessor | None = None) -> None:
        self._dialog_state = dialog_state
        self._dialogs: dict[str, Dialog] = {}

    @property
    def ids(self) -> list[str]:
        return list(self._dialogs)

    def add(self, dialog: Dialog) -> DialogSet:
        if dialog is None:
            raise InvalidArgumentError("cannot add a missing dialog")
        if dialog.id in self._dialogs:
            raise InvalidArgumentError(f"dialog id {dialog.id!r} is already registered")
        self._dialogs[dialog.id] = dialog
        return self

    def find(self, dialog_id: str) -> Dialog | None:
        return self._dialogs.get(dialog_id)

    def __contains__(self, dialog_id: object) -> bool:
        return dialog_id in self._dialogs

    async def create_context(self, turn_context: TurnContext) -> DialogContext:
        """Bind the persisted stack for this turn's conversation, creating an empty one if needed."""

        if self._dialog_state is None:
            raise InvalidArgumentError("DialogSet was created without a dialog state accessor")
        state = await self._dialog_state.get(turn_context, new_dialog_state)
        state.setdefault("dialog_stack", [])
        return DialogContext(self, turn_context, state)
