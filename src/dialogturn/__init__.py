"""dialogturn - turn dispatch for stack-based dialogs."""

from dialogturn.bot import DialogBot
from dialogturn.router import MAIN_DIALOG_ID, TurnRouter
from dialogturn.state import ConversationState, StatePropertyAccessor
from dialogturn.storage import FileStorage, MemoryStorage
from dialogturn.turn import TurnContext
from dialogturn.types import END_OF_TURN, BotTurnResult, DialogTurnResult, DialogTurnStatus

__version__ = "0.1.0"

__all__ = [
    "END_OF_TURN",
    "MAIN_DIALOG_ID",
    "BotTurnResult",
    "ConversationState",
    "DialogBot",
    "DialogTurnResult",
    "DialogTurnStatus",
    "FileStorage",
    "MemoryStorage",
    "StatePropertyAccessor",
    "TurnContext",
    "TurnRouter",
]
