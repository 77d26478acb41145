"""Base class for everything that can sit on a dialog stack."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from dialogturn.errors import InvalidArgumentError
from dialogturn.types import DialogInstance, DialogReason, DialogTurnResult

if TYPE_CHECKING:
    from dialogturn.dialogs.dialog_context import DialogContext
    from dialogturn.turn import TurnContext


class Dialog(ABC):
    """A unit of conversation addressed on the stack by its id."""

    def __init__(self, dialog_id: str) -> None:
        if not dialog_id or not dialog_id.strip():
            raise InvalidArgumentError("dialog id must not be blank")
        self.id = dialog_id

    @abstractmethod
    async def begin_dialog(self, dc: DialogContext, options: Any = None) -> DialogTurnResult:
        """Start the dialog. Its instance has already been pushed onto ``dc``."""

    async def continue_dialog(self, dc: DialogContext) -> DialogTurnResult:
        """Handle a turn while this dialog is active. Ends the dialog by default."""

        return await dc.end_dialog()

    async def resume_dialog(self, dc: DialogContext, reason: DialogReason, result: Any = None) -> DialogTurnResult:
        """Called when a dialog this one started has ended. Ends with that result by default."""

        _ = reason
        return await dc.end_dialog(result)

    async def reprompt_dialog(self, turn_context: TurnContext, instance: DialogInstance) -> None:
        _ = turn_context, instance

    async def end_dialog(self, turn_context: TurnContext, instance: DialogInstance, reason: DialogReason) -> None:
        _ = turn_context, instance, reason

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r})"
