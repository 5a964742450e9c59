"""Durable key-scoped storage for store snapshots.

Each store owns one key.  The stored value is a JSON envelope
``{"state": {...}, "version": N}``; a snapshot written under another
version is ignored on startup.
"""

from __future__ import annotations

import contextlib
import logging
import os
import re
import tempfile
from collections.abc import Callable
from pathlib import Path
from types import TracebackType
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from inventrack.exceptions import InventrackPersistenceError

_logger = logging.getLogger(__name__)

_SAFE_KEY = re.compile(r"^[A-Za-z0-9._-]+$")


class StorageBackend(Protocol):
    """Minimal synchronous key/value storage (the local-storage contract)."""

    def get_item(self, key: str) -> str | None:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...

    def remove_item(self, key: str) -> None:
        ...


class MemoryStorage:
    """Process-local storage, optionally with a byte quota like a browser's."""

    def __init__(self, *, quota: int | None = None) -> None:
        self._items: dict[str, str] = {}
        self._quota = quota

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self._quota is not None:
            used = sum(len(v) for k, v in self._items.items() if k != key)
            if used + len(value) > self._quota:
                raise InventrackPersistenceError(f"Storage quota exceeded writing {key!r}", key=key)
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._items)


class JsonFileStorage:
    """One ``<key>.json`` file per key, replaced atomically on write."""

    def __init__(self, directory: str | os.PathLike[str]) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise InventrackPersistenceError(f"Invalid storage key {key!r}", key=key)
        return self._directory / f"{key}.json"

    def get_item(self, key: str) -> str | None:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise InventrackPersistenceError(f"Could not read {path}: {exc}", key=key) from exc

    def set_item(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp_name: str | None = None
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{key}.", suffix=".tmp", dir=self._directory)
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(value)
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as exc:
            raise InventrackPersistenceError(f"Could not write {path}: {exc}", key=key) from exc
        finally:
            if tmp_name is not None:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_name)

    def remove_item(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise InventrackPersistenceError(f"Could not remove {path}: {exc}", key=key) from exc


class PersistedEnvelope(BaseModel):
    model_config = ConfigDict(extra="ignore")

    state: dict[str, Any] = Field(default_factory=dict)
    version: int = 0


def read_envelope(storage: StorageBackend, key: str, *, version: int) -> dict[str, Any] | None:
    """Return the persisted state for *key*, or ``None`` if there is no usable one.

    Unreadable, corrupt and version-mismatched entries are logged and ignored
    so a bad snapshot never blocks startup.
    """
    try:
        raw = storage.get_item(key)
    except InventrackPersistenceError:
        _logger.warning("Could not read persisted snapshot %s", key, exc_info=True)
        return None
    if raw is None:
        return None

    try:
        envelope = PersistedEnvelope.model_validate_json(raw)
    except ValidationError:
        _logger.warning("Discarding corrupt persisted snapshot %s", key)
        return None

    if envelope.version != version:
        _logger.warning(
            "Discarding persisted snapshot %s: version %d, expected %d",
            key,
            envelope.version,
            version,
        )
        return None
    return envelope.state


class StorageTransaction:
    """Scoped persistence of one store transition.

    On every exit path the owner's *current* state (as returned by
    ``state()``) is serialized and written.  A write failure raises
    :class:`InventrackPersistenceError`, unless another exception is
    already propagating: that one wins and the write failure is logged.
    """

    def __init__(
        self,
        storage: StorageBackend,
        key: str,
        *,
        version: int,
        state: Callable[[], dict[str, Any]],
    ) -> None:
        self._storage = storage
        self._key = key
        self._version = version
        self._state = state

    def __enter__(self) -> StorageTransaction:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool:
        try:
            self.flush()
        except InventrackPersistenceError:
            if exc is None:
                raise
            _logger.error(
                "Failed to persist %s while handling %s",
                self._key,
                exc_type.__name__ if exc_type else "error",
                exc_info=True,
            )
        return False

    def flush(self) -> None:
        try:
            payload = PersistedEnvelope(state=self._state(), version=self._version).model_dump_json()
        except (TypeError, ValueError) as exc:
            raise InventrackPersistenceError(f"Could not serialize {self._key}: {exc}", key=self._key) from exc
        self._storage.set_item(self._key, payload)
