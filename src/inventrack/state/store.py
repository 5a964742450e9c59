"""Entity stores: the single authoritative client-side snapshot per entity type.

A store is the only component allowed to change its snapshot.  Every
transition is persisted through a :class:`StorageTransaction` and then
announced to subscribers as a :class:`StoreChange`.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Generic, Protocol, TypeVar

from pydantic import ValidationError

from inventrack._constants import PRODUCT_STORAGE_KEY, SUPPLIER_STORAGE_KEY
from inventrack.models._base import IdentifiedRecord, RecordId
from inventrack.models.failure import ApiFailure
from inventrack.models.product import Product
from inventrack.models.supplier import Supplier
from inventrack.state.events import ChangeNotifier, StoreAction, StoreChange
from inventrack.state.persistence import MemoryStorage, StorageBackend, StorageTransaction, read_envelope
from inventrack.state.policy import is_current_load

_logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=IdentifiedRecord)


class LoadStatus(StrEnum):
    UNLOADED = "unloaded"
    LOADING = "loading"
    LOADED = "loaded"
    LOAD_FAILED = "load_failed"


@dataclass(frozen=True, slots=True)
class CollectionSnapshot(Generic[RecordT]):
    """Immutable view of a collection store."""

    items: tuple[RecordT, ...] = ()
    loading: bool = False
    error: str | None = None
    status: LoadStatus = LoadStatus.UNLOADED
    has_loaded_once: bool = False


class CollectionSource(Protocol[RecordT]):
    async def list(self) -> list[RecordT] | ApiFailure:
        ...


class PersistentStore:
    """Persistence, change notification and load sequencing shared by all stores."""

    def __init__(
        self,
        *,
        name: str,
        storage: StorageBackend | None,
        storage_key: str,
        persist_version: int = 0,
    ) -> None:
        self._name = name
        self._storage: StorageBackend = storage if storage is not None else MemoryStorage()
        self._storage_key = storage_key
        self._persist_version = persist_version
        self._changes: ChangeNotifier[StoreChange] = ChangeNotifier()
        self._loading = False
        self._error: str | None = None
        self._status = LoadStatus.UNLOADED
        self._has_loaded_once = False
        self._load_seq = 0

    @property
    def name(self) -> str:
        return self._name

    @property
    def storage_key(self) -> str:
        return self._storage_key

    @property
    def is_loading(self) -> bool:
        return self._loading

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def status(self) -> LoadStatus:
        return self._status

    @property
    def has_loaded_once(self) -> bool:
        return self._has_loaded_once

    def subscribe(self, listener: Callable[[StoreChange], None]) -> Callable[[], None]:
        """Call *listener* after every transition; returns an unsubscribe callable."""
        return self._changes.subscribe(listener)

    # ------------------------------------------------------------------
    # Persistence hooks
    # ------------------------------------------------------------------

    def _persisted_state(self) -> dict[str, Any]:
        raise NotImplementedError

    def _restore_state(self, state: dict[str, Any]) -> None:
        raise NotImplementedError

    def _rehydrate(self) -> None:
        """Seed in-memory state from storage before any load resolves."""
        state = read_envelope(self._storage, self._storage_key, version=self._persist_version)
        if state is None:
            return
        try:
            self._restore_state(state)
        except (ValidationError, TypeError, ValueError):
            _logger.warning("Discarding unreadable %s snapshot", self._name, exc_info=True)
            return
        _logger.debug("Rehydrated %s from %s", self._name, self._storage_key)
        self._changes.notify(StoreChange(store=self._name, action=StoreAction.REHYDRATED))

    @contextlib.contextmanager
    def _transition(
        self,
        action: StoreAction,
        record_id: RecordId | None = None,
        *,
        persist: bool = True,
    ) -> Iterator[None]:
        """Scope one state transition: persist on exit, then notify."""
        try:
            if persist:
                with StorageTransaction(
                    self._storage,
                    self._storage_key,
                    version=self._persist_version,
                    state=self._persisted_state,
                ):
                    yield
            else:
                yield
        finally:
            _logger.debug("%s: %s id=%s", self._name, action, record_id)
            self._changes.notify(StoreChange(store=self._name, action=action, record_id=record_id))

    # ------------------------------------------------------------------
    # Load sequencing
    # ------------------------------------------------------------------

    def _claim_load(self) -> int:
        """Mark a load as started; must run before the first suspension point."""
        self._load_seq += 1
        # Only the loading flag changes here and it is never persisted.
        with self._transition(StoreAction.LOAD_STARTED, persist=False):
            self._loading = True
            self._status = LoadStatus.LOADING
        return self._load_seq

    def _is_stale(self, seq: int) -> bool:
        if is_current_load(seq, self._load_seq):
            return False
        _logger.debug("Discarding stale %s response (request %d, latest %d)", self._name, seq, self._load_seq)
        return True

    def _fail_load(self, message: str) -> None:
        with self._transition(StoreAction.LOAD_FAILED):
            self._error = message
            self._loading = False
            self._status = LoadStatus.LOAD_FAILED


class EntityStore(PersistentStore, Generic[RecordT]):
    """Collection store keyed by record ``id``.

    State machine: ``UNLOADED → LOADING → {LOADED, LOAD_FAILED}``.
    ``load()`` is a no-op while loading or when loaded with data;
    ``reload()`` always starts a new load and supersedes any in-flight
    one.  Mutations never call the API: callers pass server-confirmed
    records and patches.

    Identifiers stay unique under every mutation.
    """

    def __init__(
        self,
        source: CollectionSource[RecordT],
        *,
        model: type[RecordT],
        name: str,
        storage: StorageBackend | None = None,
        storage_key: str,
        persist_version: int = 0,
        load_error_message: str | None = None,
    ) -> None:
        super().__init__(name=name, storage=storage, storage_key=storage_key, persist_version=persist_version)
        self._source = source
        self._model = model
        self._items: list[RecordT] = []
        self._load_error_message = load_error_message or f"Failed to load {name}. Please try again later."
        self._rehydrate()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[RecordT]:
        return iter(tuple(self._items))

    @property
    def items(self) -> tuple[RecordT, ...]:
        return tuple(self._items)

    @property
    def is_empty(self) -> bool:
        return not self._items

    @property
    def snapshot(self) -> CollectionSnapshot[RecordT]:
        return CollectionSnapshot(
            items=tuple(self._items),
            loading=self._loading,
            error=self._error,
            status=self._status,
            has_loaded_once=self._has_loaded_once,
        )

    def get(self, record_id: RecordId) -> RecordT | None:
        index = self._index_of(record_id)
        return None if index is None else self._items[index]

    def _index_of(self, record_id: RecordId) -> int | None:
        for index, record in enumerate(self._items):
            if record.id == record_id:
                return index
        return None

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _persisted_state(self) -> dict[str, Any]:
        return {
            "items": [record.to_payload() for record in self._items],
            "error": self._error,
        }

    def _restore_state(self, state: dict[str, Any]) -> None:
        raw_items = state.get("items") or []
        if not isinstance(raw_items, list):
            raise TypeError("persisted items must be a list")
        self._items = self._unique([self._model.model_validate(item) for item in raw_items])
        error = state.get("error")
        self._error = error if isinstance(error, str) else None

    def _unique(self, records: Iterable[RecordT]) -> list[RecordT]:
        """Drop records without an id; a later duplicate replaces an earlier one in place."""
        by_id: dict[RecordId, RecordT] = {}
        for record in records:
            if record.id is None:
                _logger.warning("Ignoring %s record without id", self._name)
                continue
            by_id[record.id] = record
        return list(by_id.values())

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def load(self) -> None:
        """Fetch the collection unless a load is running or data is already loaded."""
        if self._loading:
            _logger.debug("%s load skipped: already loading", self._name)
            return
        if self._status is LoadStatus.LOADED and self._items:
            _logger.debug("%s load skipped: already loaded", self._name)
            return
        await self._run_load()

    async def reload(self) -> None:
        """Fetch the collection unconditionally (retry, manual refresh)."""
        await self._run_load()

    async def _run_load(self) -> None:
        seq = self._claim_load()
        try:
            result = await self._source.list()
        except BaseException:
            if not self._is_stale(seq):
                self._fail_load(self._load_error_message)
            raise

        if self._is_stale(seq):
            return

        if isinstance(result, ApiFailure):
            # Previous items stay available.
            _logger.warning("Failed to load %s: %s", self._name, result.message)
            self._fail_load(self._load_error_message)
            return

        with self._transition(StoreAction.LOADED):
            self._items = self._unique(result)
            self._error = None
            self._loading = False
            self._status = LoadStatus.LOADED
            self._has_loaded_once = True

    def _coerce(self, record: RecordT | Mapping[str, Any]) -> RecordT:
        if isinstance(record, self._model):
            return record
        if isinstance(record, IdentifiedRecord):
            return self._model.model_validate(record.model_dump())
        return self._model.model_validate(dict(record))

    def add(self, record: RecordT | Mapping[str, Any]) -> RecordT:
        """Append a server-confirmed record.

        A record whose id is already present replaces the existing one.
        """
        confirmed = self._coerce(record)
        if confirmed.id is None:
            raise ValueError(f"cannot add a {self._name} record without an id")

        with self._transition(StoreAction.ADDED, confirmed.id):
            index = self._index_of(confirmed.id)
            if index is None:
                self._items.append(confirmed)
            else:
                _logger.warning("%s already holds id=%s; replacing it", self._name, confirmed.id)
                self._items[index] = confirmed
        return confirmed

    def update(self, record_id: RecordId, patch: Mapping[str, Any]) -> RecordT | None:
        """Shallow-merge *patch* into the record; returns ``None`` if the id is unknown."""
        index = self._index_of(record_id)
        if index is None:
            _logger.debug("%s update ignored: id=%s not present", self._name, record_id)
            return None

        fields = {key: value for key, value in patch.items() if key != "id"}
        current = self._items[index]
        merged = self._model.model_validate({**current.model_dump(), **fields})
        with self._transition(StoreAction.UPDATED, record_id):
            self._items[index] = merged
        return merged

    def delete(self, record_id: RecordId) -> bool:
        index = self._index_of(record_id)
        if index is None:
            return False
        with self._transition(StoreAction.DELETED, record_id):
            del self._items[index]
        return True

    def reset(self) -> None:
        """Return to the initial empty state; in-flight loads are discarded."""
        self._load_seq += 1
        with self._transition(StoreAction.RESET):
            self._items = []
            self._loading = False
            self._error = None
            self._status = LoadStatus.UNLOADED
            self._has_loaded_once = False


class ProductStore(EntityStore[Product]):
    def __init__(
        self,
        source: CollectionSource[Product],
        *,
        storage: StorageBackend | None = None,
        storage_key: str = PRODUCT_STORAGE_KEY,
        persist_version: int = 0,
    ) -> None:
        super().__init__(
            source,
            model=Product,
            name="products",
            storage=storage,
            storage_key=storage_key,
            persist_version=persist_version,
        )

    def by_category(self, category_id: RecordId) -> list[Product]:
        return [p for p in self._items if p.category_id == category_id]

    def by_supplier(self, supplier_id: RecordId) -> list[Product]:
        return [p for p in self._items if p.supplier_id == supplier_id]

    def low_stock(self) -> list[Product]:
        return [p for p in self._items if p.is_low_stock]


class SupplierStore(EntityStore[Supplier]):
    def __init__(
        self,
        source: CollectionSource[Supplier],
        *,
        storage: StorageBackend | None = None,
        storage_key: str = SUPPLIER_STORAGE_KEY,
        persist_version: int = 0,
    ) -> None:
        super().__init__(
            source,
            model=Supplier,
            name="suppliers",
            storage=storage,
            storage_key=storage_key,
            persist_version=persist_version,
        )

    def choices(self) -> list[tuple[RecordId, str]]:
        """``(id, name)`` pairs sorted by name, for supplier pickers."""
        pairs = [(s.id, s.name or "") for s in self._items if s.id is not None]
        return sorted(pairs, key=lambda pair: pair[1].casefold())
