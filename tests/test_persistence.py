from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from inventrack.exceptions import InventrackPersistenceError
from inventrack.models.product import Product
from inventrack.state.persistence import JsonFileStorage, MemoryStorage, StorageTransaction, read_envelope
from inventrack.state.store import LoadStatus, ProductStore


class _NoSource:
    async def list(self) -> Any:
        raise AssertionError("no load expected")


def test_store_rehydrates_from_storage() -> None:
    storage = MemoryStorage()
    first = ProductStore(_NoSource(), storage=storage)
    first.add(Product(id=1, name="Widget", quantity_home=4, custom_field="kept"))
    first.add(Product(id=2, name="Gadget"))

    second = ProductStore(_NoSource(), storage=storage)

    assert second.items == first.items
    assert second.get(1).model_extra == {"custom_field": "kept"}
    # Rehydrated data is shown but still counts as not loaded.
    assert second.status is LoadStatus.UNLOADED
    assert second.is_loading is False


def test_persisted_envelope_shape() -> None:
    storage = MemoryStorage()
    store = ProductStore(_NoSource(), storage=storage, persist_version=2)
    store.add(Product(id=1, name="Widget"))

    envelope = json.loads(storage.get_item("product-storage") or "")

    assert envelope == {"state": {"items": [{"id": 1, "name": "Widget"}], "error": None}, "version": 2}


def test_version_mismatch_starts_empty() -> None:
    storage = MemoryStorage()
    ProductStore(_NoSource(), storage=storage, persist_version=1).add(Product(id=1))

    store = ProductStore(_NoSource(), storage=storage, persist_version=2)

    assert store.is_empty


def test_corrupt_snapshot_starts_empty() -> None:
    storage = MemoryStorage()
    storage.set_item("product-storage", "{not json")

    assert ProductStore(_NoSource(), storage=storage).is_empty


def test_unreadable_items_start_empty() -> None:
    storage = MemoryStorage()
    storage.set_item("product-storage", json.dumps({"state": {"items": "oops"}, "version": 0}))

    assert ProductStore(_NoSource(), storage=storage).is_empty


def test_quota_exceeded_surfaces_persistence_error() -> None:
    store = ProductStore(_NoSource(), storage=MemoryStorage(quota=40))

    with pytest.raises(InventrackPersistenceError) as exc_info:
        store.add(Product(id=1, name="A product name long enough to overflow the quota"))

    assert exc_info.value.key == "product-storage"


def test_transaction_flushes_when_body_raises() -> None:
    storage = MemoryStorage()

    with pytest.raises(RuntimeError):
        with StorageTransaction(storage, "k", version=0, state=lambda: {"x": 1}):
            raise RuntimeError("boom")

    assert read_envelope(storage, "k", version=0) == {"x": 1}


def test_transaction_write_failure_does_not_mask_original_error() -> None:
    storage = MemoryStorage(quota=1)

    with pytest.raises(RuntimeError):
        with StorageTransaction(storage, "k", version=0, state=lambda: {"x": 1}):
            raise RuntimeError("boom")


def test_json_file_storage_round_trip(tmp_path: Path) -> None:
    storage = JsonFileStorage(tmp_path / "state")

    assert storage.get_item("product-storage") is None
    storage.set_item("product-storage", '{"a": 1}')
    assert storage.get_item("product-storage") == '{"a": 1}'
    assert (tmp_path / "state" / "product-storage.json").exists()

    storage.remove_item("product-storage")
    assert storage.get_item("product-storage") is None
    storage.remove_item("product-storage")


def test_json_file_storage_rejects_path_keys(tmp_path: Path) -> None:
    storage = JsonFileStorage(tmp_path)
    with pytest.raises(InventrackPersistenceError):
        storage.set_item("../escape", "{}")


def test_store_survives_restart_on_disk(tmp_path: Path) -> None:
    ProductStore(_NoSource(), storage=JsonFileStorage(tmp_path)).add(Product(id="sku-1", name="Widget"))

    restored = ProductStore(_NoSource(), storage=JsonFileStorage(tmp_path))

    assert restored.get("sku-1") == Product(id="sku-1", name="Widget")
