from __future__ import annotations

from typing import Any

from dialogturn.dialogs import Dialog, DialogContext
from dialogturn.router import TurnRouter
from dialogturn.state import ConversationState
from dialogturn.turn import TurnContext
from dialogturn.types import END_OF_TURN, DialogInstance, DialogReason, DialogTurnResult

CHANNEL = "test"


def make_turn(content: str = "", *, chat_id: str = "c1") -> TurnContext:
    return TurnContext({"channel": CHANNEL, "chat_id": chat_id, "content": content})


def storage_key(chat_id: str = "c1") -> str:
    return f"{CHANNEL}/conversations/{CHANNEL}:{chat_id}"


async def run_turn(
    router: TurnRouter, state: ConversationState, content: str, *, chat_id: str = "c1"
) -> tuple[TurnContext, DialogTurnResult]:
    turn_context = make_turn(content, chat_id=chat_id)
    result = await router.run(turn_context)
    await state.save_changes(turn_context)
    return turn_context, result


def stack_ids(document: dict[str, Any], prop: str = "dialog_state") -> list[str]:
    return [frame["id"] for frame in document.get(prop, {}).get("dialog_stack", [])]


def inner_stack_ids(document: dict[str, Any], prop: str = "dialog_state") -> list[str]:
    root = document[prop]["dialog_stack"][-1]
    return [frame["id"] for frame in root["state"]["dialogs"]["dialog_stack"]]


class EchoDialog(Dialog):
    """Waits one turn, then ends with that turn's text."""

    async def begin_dialog(self, dc: DialogContext, options: Any = None) -> DialogTurnResult:
        dc.active_dialog["state"]["options"] = options
        return END_OF_TURN

    async def continue_dialog(self, dc: DialogContext) -> DialogTurnResult:
        return await dc.end_dialog(dc.context.text)


class RecordingDialog(EchoDialog):
    def __init__(self, dialog_id: str) -> None:
        super().__init__(dialog_id)
        self.ended: list[DialogReason] = []
        self.reprompts = 0

    async def end_dialog(self, turn_context: TurnContext, instance: DialogInstance, reason: DialogReason) -> None:
        self.ended.append(reason)

    async def reprompt_dialog(self, turn_context: TurnContext, instance: DialogInstance) -> None:
        self.reprompts += 1
