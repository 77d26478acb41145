"""Dialog made of a fixed sequence of async steps, one per turn."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeAlias

from dialogturn.dialogs.dialog import Dialog
from dialogturn.dialogs.dialog_context import DialogContext
from dialogturn.errors import DialogTurnError
from dialogturn.turn import TurnContext
from dialogturn.types import DialogReason, DialogTurnResult

WaterfallStep: TypeAlias = "Callable[[WaterfallStepContext], Awaitable[DialogTurnResult]]"


class WaterfallDialog(Dialog):
    """Run ``steps`` in order.

    A step that returns ``END_OF_TURN`` waits for the next inbound turn,
    whose text becomes the next step's ``result``. Finishing the last step
    ends the dialog with that step's result.
    """

    def __init__(self, dialog_id: str, steps: Sequence[WaterfallStep] | None = None) -> None:
        super().__init__(dialog_id)
        self._steps: list[WaterfallStep] = list(steps or [])

    def add_step(self, step: WaterfallStep) -> WaterfallDialog:
        self._steps.append(step)
        return self

    async def begin_dialog(self, dc: DialogContext, options: Any = None) -> DialogTurnResult:
        state = dc.active_dialog["state"]
        state["options"] = options
        state["values"] = {}
        return await self._run_step(dc, 0, DialogReason.BEGIN_CALLED, None)

    async def continue_dialog(self, dc: DialogContext) -> DialogTurnResult:
        return await self.resume_dialog(dc, DialogReason.CONTINUE_CALLED, dc.context.text)

    async def resume_dialog(self, dc: DialogContext, reason: DialogReason, result: Any = None) -> DialogTurnResult:
        index = int(dc.active_dialog["state"].get("step_index", -1)) + 1
        return await self._run_step(dc, index, reason, result)

    async def _run_step(self, dc: DialogContext, index: int, reason: DialogReason, result: Any) -> DialogTurnResult:
        if index >= len(self._steps):
            return await dc.end_dialog(result)
        state = dc.active_dialog["state"]
        state["step_index"] = index
        step_context = WaterfallStepContext(self, dc, index=index, reason=reason, result=result)
        return await self._steps[index](step_context)


class WaterfallStepContext:
    """What a waterfall step sees: the turn, its inputs and the stack operations."""

    def __init__(
        self,
        waterfall: WaterfallDialog,
        dc: DialogContext,
        *,
        index: int,
        reason: DialogReason,
        result: Any,
    ) -> None:
        self._waterfall = waterfall
        self._next_called = False
        self.dc = dc
        self.index = index
        self.reason = reason
        self.result = result

    @property
    def context(self) -> TurnContext:
        return self.dc.context

    @property
    def options(self) -> Any:
        return self.dc.active_dialog["state"].get("options")

    @property
    def values(self) -> dict[str, Any]:
        return self.dc.active_dialog["state"]["values"]

    async def next(self, result: Any = None) -> DialogTurnResult:
        """Skip to the next step within the same turn."""

        if self._next_called:
            raise DialogTurnError(f"next() called twice in step {self.index} of {self._waterfall.id!r}")
        self._next_called = True
        return await self._waterfall.resume_dialog(self.dc, DialogReason.END_CALLED, result)

    async def begin_dialog(self, dialog_id: str, options: Any = None) -> DialogTurnResult:
        return await self.dc.begin_dialog(dialog_id, options)

    async def end_dialog(self, result: Any = None) -> DialogTurnResult:
        return await self.dc.end_dialog(result)
