"""Dialog stack primitives."""

from dialogturn.dialogs.component_dialog import ComponentDialog
from dialogturn.dialogs.dialog import Dialog
from dialogturn.dialogs.dialog_context import DialogContext
from dialogturn.dialogs.dialog_set import DialogSet
from dialogturn.dialogs.waterfall import WaterfallDialog, WaterfallStepContext

__all__ = [
    "ComponentDialog",
    "Dialog",
    "DialogContext",
    "DialogSet",
    "WaterfallDialog",
    "WaterfallStepContext",
]
