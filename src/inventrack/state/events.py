"""Store change events and the listener registry that delivers them."""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Callable
from datetime import UTC, datetime
from enum import StrEnum
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from inventrack.models._base import RecordId

_logger = logging.getLogger(__name__)

E = TypeVar("E")


class StoreAction(StrEnum):
    REHYDRATED = "rehydrated"
    LOAD_STARTED = "load_started"
    LOADED = "loaded"
    LOAD_FAILED = "load_failed"
    ADDED = "added"
    UPDATED = "updated"
    DELETED = "deleted"
    REPLACED = "replaced"
    MUTATION_FAILED = "mutation_failed"
    RESET = "reset"


class StoreChange(BaseModel):
    """A completed state transition of one store."""

    model_config = ConfigDict(frozen=True)

    store: str
    action: StoreAction
    record_id: RecordId | None = None
    observed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("observed_at")
    @classmethod
    def _ensure_tz_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value


class ChangeNotifier(Generic[E]):
    """Synchronous listener registry.

    Listeners run in registration order on the caller's thread (the event
    loop).  A failing listener is logged and never breaks the notifier.
    """

    def __init__(self) -> None:
        self._listeners: list[Callable[[E], None]] = []

    def __len__(self) -> int:
        return len(self._listeners)

    def subscribe(self, listener: Callable[[E], None]) -> Callable[[], None]:
        """Register *listener*; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._listeners.remove(listener)

        return _unsubscribe

    def notify(self, event: E) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                _logger.warning("Change listener failed for %r", event, exc_info=True)
