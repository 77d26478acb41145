from __future__ import annotations

import pytest
from fixtures_plugins.recording_hooks import BrokenStartHooks, NormalizingHooks, RecordingHooks
from helpers import stack_ids, storage_key

from dialogturn.bot import DialogBot
from dialogturn.bus import QueueBus
from dialogturn.dialogs import DialogContext
from dialogturn.errors import InvalidArgumentError
from dialogturn.samples.greeting import GreetingRouter
from dialogturn.state import ConversationState
from dialogturn.storage import MemoryStorage
from dialogturn.types import DialogTurnResult, DialogTurnStatus


class ExplodingRouter(GreetingRouter):
    async def on_run_turn(self, dc: DialogContext) -> DialogTurnResult:
        if dc.context.text == "explode":
            await dc.cancel_all_dialogs()
            raise RuntimeError("router broke on purpose")
        return await super().on_run_turn(dc)


def _bot(conversation_state: ConversationState, router_cls: type[GreetingRouter] = GreetingRouter) -> DialogBot:
    return DialogBot(router_cls(conversation_state.create_property("dialog_state")), conversation_state)


def _inbound(content: str, chat_id: str = "c1") -> dict[str, str]:
    return {"channel": "test", "chat_id": chat_id, "content": content}


def _contents(result) -> list[str]:
    return [outbound["content"] for outbound in result.outbounds]


def test_bot_requires_router_and_state(conversation_state: ConversationState) -> None:
    router = GreetingRouter(conversation_state.create_property("dialog_state"))

    with pytest.raises(InvalidArgumentError):
        DialogBot(None, conversation_state)  # type: ignore[arg-type]
    with pytest.raises(InvalidArgumentError):
        DialogBot(router, None)  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_bot_persists_stack_between_turns(conversation_state: ConversationState, storage: MemoryStorage) -> None:
    bot = _bot(conversation_state)

    first = await bot.process_inbound(_inbound("hello"))
    second = await bot.process_inbound(_inbound("Ada"))
    third = await bot.process_inbound(_inbound("hello again"))

    assert first.conversation_id == "test:c1"
    assert first.status is DialogTurnStatus.WAITING
    assert _contents(first) == ["Hi! What's your name?"]
    assert second.status is DialogTurnStatus.COMPLETE
    assert second.result == "Ada"
    assert _contents(second) == ["Nice to meet you, Ada!", "All done, Ada. Say anything to start over."]
    assert third.status is DialogTurnStatus.WAITING
    assert _contents(third) == ["Hi! What's your name?"]
    assert stack_ids(storage.snapshot()[storage_key()]) == ["main"]


@pytest.mark.asyncio
async def test_outbounds_are_addressed_to_inbound_chat(conversation_state: ConversationState) -> None:
    result = await _bot(conversation_state).process_inbound(_inbound("hello", chat_id="room-7"))

    assert result.outbounds[0]["channel"] == "test"
    assert result.outbounds[0]["chat_id"] == "room-7"
    assert result.outbounds[0]["conversation_id"] == "test:room-7"


@pytest.mark.asyncio
async def test_cancel_word_clears_stack(conversation_state: ConversationState, storage: MemoryStorage) -> None:
    bot = _bot(conversation_state)
    await bot.process_inbound(_inbound("hello"))

    result = await bot.process_inbound(_inbound("cancel"))

    assert result.status is DialogTurnStatus.COMPLETE
    assert _contents(result) == ["Cancelled. Say anything to start over."]
    assert stack_ids(storage.snapshot()[storage_key()]) == []


@pytest.mark.asyncio
async def test_failed_turn_is_reported_and_not_saved(
    conversation_state: ConversationState, storage: MemoryStorage
) -> None:
    bot = _bot(conversation_state, ExplodingRouter)
    hooks = RecordingHooks()
    bot.register(hooks, name="recording")
    await bot.process_inbound(_inbound("hello"))
    before = storage.snapshot()

    with pytest.raises(RuntimeError, match="broke on purpose"):
        await bot.process_inbound(_inbound("explode"))

    assert storage.snapshot() == before
    assert [stage for stage, _ in hooks.errors] == ["turn"]
    assert hooks.started == ["hello", "explode"]
    assert hooks.ended == ["waiting"]


@pytest.mark.asyncio
async def test_hooks_observe_turns_and_dispatch(conversation_state: ConversationState) -> None:
    bot = _bot(conversation_state)
    hooks = RecordingHooks()
    bot.register(hooks, name="recording")

    result = await bot.process_inbound(_inbound("hello"))

    assert hooks.started == ["hello"]
    assert hooks.ended == ["waiting"]
    assert hooks.dispatched == result.outbounds
    assert bot.hook_report()["on_turn_start"] == ["recording"]


@pytest.mark.asyncio
async def test_broken_observer_does_not_break_turn(conversation_state: ConversationState) -> None:
    bot = _bot(conversation_state)
    hooks = RecordingHooks()
    bot.register(hooks, name="recording")
    bot.register(BrokenStartHooks(), name="broken")

    result = await bot.process_inbound(_inbound("hello"))

    assert result.status is DialogTurnStatus.WAITING
    assert [stage for stage, _ in hooks.errors] == ["on_turn_start:broken"]


@pytest.mark.asyncio
async def test_normalize_and_resolve_conversation_hooks(
    conversation_state: ConversationState, storage: MemoryStorage
) -> None:
    bot = _bot(conversation_state)
    bot.register(NormalizingHooks(), name="normalizing")

    first = await bot.process_inbound({"channel": "test", "chat_id": "c1", "thread": "t1", "content": "  hi  "})
    second = await bot.process_inbound({"channel": "test", "chat_id": "c2", "thread": "t1", "content": "  Ada  "})

    assert first.conversation_id == "thread:t1"
    assert _contents(second)[0] == "Nice to meet you, Ada!"
    assert list(storage.snapshot()) == ["test/conversations/thread:t1"]


@pytest.mark.asyncio
async def test_handle_bus_once_replies_on_the_bus(conversation_state: ConversationState) -> None:
    bot = _bot(conversation_state)
    bus = QueueBus()
    await bus.submit(_inbound("from bus"))

    result = await bot.handle_bus_once(bus, timeout_seconds=0.1)

    assert result is not None
    assert [reply["content"] for reply in bus.drain_replies()] == ["Hi! What's your name?"]
    assert bus.drain_replies() == []


@pytest.mark.asyncio
async def test_handle_bus_once_times_out_without_inbound(conversation_state: ConversationState) -> None:
    result = await _bot(conversation_state).handle_bus_once(QueueBus(), timeout_seconds=0.01)

    assert result is None


@pytest.mark.asyncio
async def test_serve_runs_queued_turns_in_order(conversation_state: ConversationState, storage: MemoryStorage) -> None:
    bot = _bot(conversation_state)
    bus = QueueBus()
    for content in ("hello", "Ada", "hi", "hello"):
        chat_id = "other" if content == "hi" else "c1"
        await bus.submit(_inbound(content, chat_id=chat_id))

    turns = await bot.serve(bus, idle_timeout_seconds=0.01)

    assert turns == 4
    assert [reply["content"] for reply in bus.drain_replies()] == [
        "Hi! What's your name?",
        "Nice to meet you, Ada!",
        "All done, Ada. Say anything to start over.",
        "Hi! What's your name?",
        "Hi! What's your name?",
    ]
    assert stack_ids(storage.snapshot()[storage_key("other")]) == ["main"]


@pytest.mark.asyncio
async def test_attribute_style_activity_is_accepted(conversation_state: ConversationState) -> None:
    class Activity:
        def __init__(self, channel: str, chat_id: str, content: str) -> None:
            self.channel = channel
            self.chat_id = chat_id
            self.content = content

    result = await _bot(conversation_state).process_inbound(Activity("test", "obj", "hello"))

    assert result.conversation_id == "test:obj"
    assert result.outbounds[0]["chat_id"] == "obj"


@pytest.mark.asyncio
async def test_explicit_conversation_id_wins(conversation_state: ConversationState) -> None:
    inbound = {**_inbound("hello"), "conversation_id": "  shared  "}

    result = await _bot(conversation_state).process_inbound(inbound)

    assert result.conversation_id == "shared"
