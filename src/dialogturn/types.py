"""Framework-neutral data types shared by dialogs, state and the bot driver."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeAlias, TypedDict

Envelope: TypeAlias = Any
State: TypeAlias = dict[str, Any]


class DialogTurnStatus(str, Enum):
    """Outcome of advancing a dialog stack for one turn."""

    EMPTY = "empty"
    WAITING = "waiting"
    COMPLETE = "complete"
    CANCELLED = "cancelled"


class DialogReason(str, Enum):
    """Why a dialog is being started, resumed or ended."""

    BEGIN_CALLED = "begin_called"
    CONTINUE_CALLED = "continue_called"
    END_CALLED = "end_called"
    REPLACE_CALLED = "replace_called"
    CANCEL_CALLED = "cancel_called"


class DialogInstance(TypedDict):
    """One persisted stack frame."""

    id: str
    state: dict[str, Any]


class DialogState(TypedDict):
    """Persisted dialog stack document. Index 0 is the top of the stack."""

    dialog_stack: list[DialogInstance]


def new_dialog_state() -> DialogState:
    return {"dialog_stack": []}


@dataclass(frozen=True)
class DialogTurnResult:
    """Status/result pair returned from processing a turn."""

    status: DialogTurnStatus
    result: Any = None


END_OF_TURN = DialogTurnResult(DialogTurnStatus.WAITING)


@dataclass(frozen=True)
class BotTurnResult:
    """Result of one complete inbound turn driven by ``DialogBot``."""

    conversation_id: str
    status: DialogTurnStatus
    result: Any = None
    outbounds: list[Envelope] = field(default_factory=list)
