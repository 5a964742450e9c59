from __future__ import annotations

from typing import Any

import pytest

from inventrack.exceptions import InventrackServerError
from inventrack.models.failure import ApiFailure, ErrorKind
from inventrack.models.profile import Profile
from inventrack.state.persistence import MemoryStorage
from inventrack.state.profile import ProfileStore
from inventrack.state.store import LoadStatus


class _FakeProfileSource:
    def __init__(self, profile: Profile | ApiFailure, *, upload: str | Exception = "https://cdn.example.com/new.png") -> None:
        self._profile = profile
        self._upload = upload
        self.get_calls: list[Any] = []

    async def get(self, user_id: Any) -> Profile | ApiFailure:
        self.get_calls.append(user_id)
        return self._profile

    async def upload_image(self, user_id: Any, data: bytes, *, filename: str, content_type: str = "") -> str:
        if isinstance(self._upload, Exception):
            raise self._upload
        return self._upload


@pytest.mark.asyncio
async def test_load_profile_for_user() -> None:
    source = _FakeProfileSource(Profile(id=1, full_name="Sam Owner"))
    store = ProfileStore(source)

    await store.load(7)
    await store.load(7)

    assert source.get_calls == [7]
    assert store.profile is not None
    assert store.profile.to_payload() == {"id": 1, "user_id": 7, "full_name": "Sam Owner"}
    assert store.status is LoadStatus.LOADED
    assert len(store) == 1


@pytest.mark.asyncio
async def test_load_for_another_user_fetches_again() -> None:
    source = _FakeProfileSource(Profile(id=1, user_id=7))
    store = ProfileStore(source)

    await store.load(7)
    await store.load(8)

    assert source.get_calls == [7, 8]


@pytest.mark.asyncio
async def test_load_failure_keeps_server_message() -> None:
    source = _FakeProfileSource(ApiFailure(kind=ErrorKind.NOT_FOUND, message="Error fetching profile by ID."))
    store = ProfileStore(source)

    await store.load(7)

    assert store.profile is None
    assert store.error == "Error fetching profile by ID."
    assert store.status is LoadStatus.LOAD_FAILED
    assert store.is_loading is False


@pytest.mark.asyncio
async def test_update_image_merges_url() -> None:
    store = ProfileStore(_FakeProfileSource(Profile(id=1, user_id=7)))
    await store.load(7)

    url = await store.update_image(7, b"png", filename="me.png")

    assert url == "https://cdn.example.com/new.png"
    assert store.profile is not None
    assert store.profile.profile_image_url == url


@pytest.mark.asyncio
async def test_update_image_failure_sets_error_and_raises() -> None:
    failure = ApiFailure(kind=ErrorKind.SERVER, message="Error uploading profile image.")
    store = ProfileStore(_FakeProfileSource(Profile(id=1, user_id=7), upload=InventrackServerError(failure)))
    await store.load(7)

    with pytest.raises(InventrackServerError):
        await store.update_image(7, b"png", filename="me.png")

    assert store.error == "Error uploading profile image."
    assert store.profile is not None
    assert store.profile.profile_image_url is None


def test_update_without_profile_is_noop() -> None:
    store = ProfileStore(_FakeProfileSource(Profile(id=1)))

    assert store.update({"full_name": "x"}) is None
    assert store.is_empty


@pytest.mark.asyncio
async def test_profile_persists_and_resets() -> None:
    storage = MemoryStorage()
    store = ProfileStore(_FakeProfileSource(Profile(id=1, user_id=7, store_name="Corner")), storage=storage)
    await store.load(7)

    restored = ProfileStore(_FakeProfileSource(Profile(id=1)), storage=storage)
    assert restored.profile is not None and store.profile is not None
    assert restored.profile.to_payload() == store.profile.to_payload()
    assert restored.status is LoadStatus.UNLOADED

    restored.reset()
    assert restored.snapshot.profile is None
    assert ProfileStore(_FakeProfileSource(Profile(id=1)), storage=storage).is_empty
