"""A small router that asks for the user's name and greets them."""

from __future__ import annotations

from dialogturn.dialogs import DialogContext, WaterfallDialog, WaterfallStepContext
from dialogturn.router import MAIN_DIALOG_ID, TurnRouter
from dialogturn.state import StateAccessor
from dialogturn.types import END_OF_TURN, DialogTurnResult, DialogTurnStatus

GREET_DIALOG_ID = "greet"
CANCEL_WORDS = frozenset({"cancel", "stop", "reset"})


class GreetingRouter(TurnRouter):
    def __init__(self, dialog_state: StateAccessor, dialog_id: str = MAIN_DIALOG_ID) -> None:
        super().__init__(dialog_state, dialog_id)
        self.add_dialog(WaterfallDialog(GREET_DIALOG_ID, [self._ask_name, self._greet]))

    async def on_run_turn(self, dc: DialogContext) -> DialogTurnResult:
        if dc.context.text.strip().lower() in CANCEL_WORDS:
            await dc.cancel_all_dialogs()
            await dc.context.send_activity("Cancelled. Say anything to start over.")
            return DialogTurnResult(DialogTurnStatus.CANCELLED)

        result = await dc.continue_dialog()
        if result.status is DialogTurnStatus.EMPTY:
            return await dc.begin_dialog(GREET_DIALOG_ID)
        if result.status is DialogTurnStatus.COMPLETE:
            await dc.context.send_activity(f"All done, {result.result}. Say anything to start over.")
        return result

    @staticmethod
    async def _ask_name(step: WaterfallStepContext) -> DialogTurnResult:
        await step.context.send_activity("Hi! What's your name?")
        return END_OF_TURN

    @staticmethod
    async def _greet(step: WaterfallStepContext) -> DialogTurnResult:
        name = str(step.result or "").strip() or "stranger"
        step.values["name"] = name
        await step.context.send_activity(f"Nice to meet you, {name}!")
        return await step.end_dialog(name)
