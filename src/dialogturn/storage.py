"""Key/value document storage backing conversation state."""

from __future__ import annotations

import asyncio
import copy
import json
import threading
from collections.abc import Callable, Iterable
from functools import partial
from pathlib import Path
from typing import Any, Protocol, TypeVar

from loguru import logger

from dialogturn.errors import StorageError

T = TypeVar("T")


class Storage(Protocol):
    """Minimal async contract for state storage providers."""

    async def read(self, keys: Iterable[str]) -> dict[str, dict[str, Any]]: ...

    async def write(self, changes: dict[str, dict[str, Any]]) -> None: ...

    async def delete(self, keys: Iterable[str]) -> None: ...


class MemoryStorage:
    """In-process storage. Documents are deep-copied on the way in and out."""

    def __init__(self, documents: dict[str, dict[str, Any]] | None = None) -> None:
        self._documents: dict[str, dict[str, Any]] = copy.deepcopy(documents) if documents else {}
        self._lock = threading.RLock()

    async def read(self, keys: Iterable[str]) -> dict[str, dict[str, Any]]:
        with self._lock:
            return {key: copy.deepcopy(self._documents[key]) for key in keys if key in self._documents}

    async def write(self, changes: dict[str, dict[str, Any]]) -> None:
        with self._lock:
            for key, document in changes.items():
                self._documents[key] = copy.deepcopy(document)

    async def delete(self, keys: Iterable[str]) -> None:
        with self._lock:
            for key in keys:
                self._documents.pop(key, None)

    def snapshot(self) -> dict[str, dict[str, Any]]:
        """Copy of every stored document, for diagnostics and tests."""

        with self._lock:
            return copy.deepcopy(self._documents)


class FileStorage:
    """
    A JSON file storage.

    All documents live in one JSON object keyed by storage key. The file is
    re-read on every call so several processes taking turns (e.g. repeated
    CLI invocations) see each other's writes.
    """

    def __init__(self, file_path: str | Path) -> None:
        self.file_path = Path(file_path)
        self._lock = threading.RLock()

    async def read(self, keys: Iterable[str]) -> dict[str, dict[str, Any]]:
        return await self._in_executor(self._read_sync, list(keys))

    async def write(self, changes: dict[str, dict[str, Any]]) -> None:
        await self._in_executor(self._write_sync, copy.deepcopy(changes))

    async def delete(self, keys: Iterable[str]) -> None:
        await self._in_executor(self._delete_sync, list(keys))

    @staticmethod
    async def _in_executor(func: Callable[..., T], *args: Any) -> T:
        # Blocking file I/O stays off the event loop.
        return await asyncio.get_running_loop().run_in_executor(None, partial(func, *args))

    def _read_sync(self, keys: list[str]) -> dict[str, dict[str, Any]]:
        with self._lock:
            documents = self._load()
            return {key: documents[key] for key in keys if key in documents}

    def _write_sync(self, changes: dict[str, dict[str, Any]]) -> None:
        with self._lock:
            documents = self._load()
            documents.update(changes)
            self._save(documents)

    def _delete_sync(self, keys: list[str]) -> None:
        with self._lock:
            documents = self._load()
            removed = [key for key in keys if documents.pop(key, None) is not None]
            if removed:
                self._save(documents)

    def _load(self) -> dict[str, dict[str, Any]]:
        """Load documents from the JSON file."""
        if not self.file_path.exists():
            return {}
        try:
            with open(self.file_path, encoding="utf-8") as f:
                loaded = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error("storage.load_failed path={} error={}", self.file_path, e)
            raise StorageError(f"cannot read storage file {self.file_path}") from e
        if not isinstance(loaded, dict):
            raise StorageError(f"storage file {self.file_path} does not hold a JSON object")
        return loaded

    def _save(self, documents: dict[str, dict[str, Any]]) -> None:
        """Save documents to the JSON file."""
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.file_path.with_suffix(self.file_path.suffix + ".tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(documents, f, ensure_ascii=False, indent=2)
            tmp_path.replace(self.file_path)
        except (OSError, TypeError) as e:
            logger.error("storage.save_failed path={} error={}", self.file_path, e)
            raise StorageError(f"cannot write storage file {self.file_path}") from e
