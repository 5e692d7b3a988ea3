"""Persistent string-keyed storage for super properties.

Reads are awaited once at startup. Writes are synchronous so that the
stored value matches memory as soon as ``register``/``reset`` returns.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

from pymixpanel.exceptions import MixpanelStorageError

_logger = logging.getLogger(__name__)


class PropertyStorage(Protocol):
    """Structural storage interface used by the super-property store."""

    async def get_item(self, key: str) -> str | None:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...


class MemoryStorage:
    """Process-local storage. Survives client instances, not restarts."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    async def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value


class JsonFileStorage:
    """Storage backed by a single JSON object on disk.

    Every key maps to a string value. Writes replace the file atomically
    through a temporary file in the same directory.

    ``set_item`` writes synchronously, so calling it from a coroutine
    blocks the event loop for one small file write. The document is
    cached after the first read or write, so a write never has to read
    the file again.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path)
        self._cache: dict[str, str] | None = None

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict[str, str]:
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as exc:
            raise MixpanelStorageError(f"Could not read {self._path}: {exc}") from exc

        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise MixpanelStorageError(f"Storage file {self._path} is not JSON") from exc
        if not isinstance(data, dict):
            raise MixpanelStorageError(f"Storage file {self._path} does not hold an object")
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    async def get_item(self, key: str) -> str | None:
        items = await asyncio.to_thread(self._read_all)
        self._cache = dict(items)
        return items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self._cache is None:
            try:
                self._cache = self._read_all()
            except MixpanelStorageError:
                _logger.debug("Discarding unreadable storage file %s", self._path, exc_info=True)
                self._cache = {}
        items = {**self._cache, key: value}

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._path.parent, prefix=f".{self._path.name}.")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(items, handle, separators=(",", ":"))
                os.replace(tmp_name, self._path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise MixpanelStorageError(f"Could not write {self._path}: {exc}", key=key) from exc
        self._cache = items
