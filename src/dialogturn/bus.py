"""Queue-backed source of inbound activities and sink for replies."""

from __future__ import annotations

import asyncio
from typing import Protocol

from dialogturn.types import Envelope


class ActivitySource(Protocol):
    """Where ``DialogBot.handle_bus_once`` takes activities from and sends replies to."""

    async def receive(self, timeout_seconds: float | None = None) -> Envelope | None: ...

    async def reply(self, outbound: Envelope) -> None: ...


class QueueBus:
    """Inbound activities and outbound replies on two asyncio queues."""

    def __init__(self) -> None:
        self.inbound: asyncio.Queue[Envelope] = asyncio.Queue()
        self.outbound: asyncio.Queue[Envelope] = asyncio.Queue()

    async def submit(self, activity: Envelope) -> None:
        await self.inbound.put(activity)

    async def receive(self, timeout_seconds: float | None = None) -> Envelope | None:
        """Next inbound activity, or None when ``timeout_seconds`` pass first."""

        try:
            async with asyncio.timeout(timeout_seconds):
                return await self.inbound.get()
        except TimeoutError:
            return None

    async def reply(self, outbound: Envelope) -> None:
        await self.outbound.put(outbound)

    def drain_replies(self) -> list[Envelope]:
        replies: list[Envelope] = []
        while not self.outbound.empty():
            replies.append(self.outbound.get_nowait())
        return replies
