from __future__ import annotations

import asyncio
from typing import Any

import pytest

from inventrack.models.auth import AuthUser
from inventrack.models.failure import ApiFailure, ErrorKind
from inventrack.models.product import Product
from inventrack.state.auth import AuthSession, AuthState
from inventrack.state.loader import SessionGatedLoader
from inventrack.state.policy import is_current_load, should_load
from inventrack.state.store import ProductStore


class _CountingSource:
    def __init__(self, result: Any) -> None:
        self._result = result
        self.calls = 0

    async def list(self) -> Any:
        self.calls += 1
        await asyncio.sleep(0)
        return self._result


@pytest.mark.parametrize(
    ("authenticated", "length", "loading", "expected"),
    [
        (True, 0, False, True),
        (False, 0, False, False),
        (True, 3, False, False),
        (True, 0, True, False),
    ],
)
def test_should_load(authenticated: bool, length: int, loading: bool, expected: bool) -> None:
    assert should_load(is_authenticated=authenticated, collection_length=length, loading=loading) is expected


def test_is_current_load() -> None:
    assert is_current_load(3, 3)
    assert not is_current_load(2, 3)


@pytest.mark.asyncio
async def test_authentication_triggers_exactly_one_load() -> None:
    auth = AuthSession()
    source = _CountingSource([Product(id=1, name="Widget")])
    store = ProductStore(source)
    loader = SessionGatedLoader(auth, store)
    loader.start()

    await loader.wait()
    assert source.calls == 0

    auth.set_authenticated(AuthUser(id=7))
    loader.evaluate()
    await loader.wait()

    snapshot = store.snapshot
    assert source.calls == 1
    assert [p.name for p in snapshot.items] == ["Widget"]
    assert snapshot.loading is False
    assert snapshot.error is None
    loader.stop()


@pytest.mark.asyncio
async def test_empty_collection_is_loaded_once_per_session() -> None:
    auth = AuthSession()
    source = _CountingSource([])
    store = ProductStore(source)
    loader = SessionGatedLoader(auth, store)
    loader.start()

    auth.set_authenticated(AuthUser(id=7))
    await loader.wait()
    loader.evaluate()
    await loader.wait()

    assert source.calls == 1
    assert store.has_loaded_once is True
    loader.stop()


@pytest.mark.asyncio
async def test_failed_load_is_not_retried_in_same_session() -> None:
    auth = AuthSession()
    source = _CountingSource(ApiFailure(kind=ErrorKind.SERVER, message="down"))
    store = ProductStore(source)
    loader = SessionGatedLoader(auth, store)
    loader.start()

    auth.set_authenticated(AuthUser(id=7))
    await loader.wait()

    assert source.calls == 1
    assert store.error is not None
    loader.stop()


@pytest.mark.asyncio
async def test_new_session_loads_again() -> None:
    auth = AuthSession()
    source = _CountingSource([])
    store = ProductStore(source)
    loader = SessionGatedLoader(auth, store)
    loader.start()

    auth.set_authenticated(AuthUser(id=7))
    await loader.wait()
    auth.clear()
    await loader.wait()
    assert source.calls == 1

    auth.set_authenticated(AuthUser(id=8))
    await loader.wait()

    assert source.calls == 2
    loader.stop()


@pytest.mark.asyncio
async def test_distinguish_empty_skips_loaded_empty_collection() -> None:
    auth = AuthSession()
    source = _CountingSource([])
    store = ProductStore(source)
    await store.load()

    loader = SessionGatedLoader(auth, store, distinguish_empty=True)
    loader.start()
    auth.set_authenticated(AuthUser(id=7))
    await loader.wait()

    assert source.calls == 1
    assert loader.triggered is False
    loader.stop()


@pytest.mark.asyncio
async def test_custom_trigger_receives_auth_state() -> None:
    auth = AuthSession()
    store = ProductStore(_CountingSource([]))
    received: list[AuthState] = []

    async def _trigger(state: AuthState) -> None:
        received.append(state)

    loader = SessionGatedLoader(auth, store, trigger=_trigger)
    loader.start()
    auth.set_authenticated(AuthUser(id=3))
    await loader.wait()

    assert len(received) == 1
    assert received[0].user == AuthUser(id=3)
    loader.stop()


@pytest.mark.asyncio
async def test_stopped_loader_ignores_auth_changes() -> None:
    auth = AuthSession()
    source = _CountingSource([])
    loader = SessionGatedLoader(auth, ProductStore(source))
    loader.start()
    loader.stop()

    auth.set_authenticated(AuthUser(id=7))
    await loader.wait()

    assert source.calls == 0
    assert loader.running is False
