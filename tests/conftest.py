from __future__ import annotations

from collections.abc import Iterator

import pytest
from loguru import logger

from dialogturn import logging_utils
from dialogturn.state import ConversationState, StatePropertyAccessor
from dialogturn.storage import MemoryStorage


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    yield
    logger.remove()
    logging_utils._CONFIGURED_PROFILE = None


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def conversation_state(storage: MemoryStorage) -> ConversationState:
    return ConversationState(storage)


@pytest.fixture
def dialog_state(conversation_state: ConversationState) -> StatePropertyAccessor:
    return conversation_state.create_property("dialog_state")
