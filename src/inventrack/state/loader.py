"""Session-gated loader.

Binds a store to the authentication state: once a session is confirmed
and the store is empty and idle, a single load is triggered.  The
decision is re-evaluated whenever the auth state or the store changes.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

from inventrack.models._base import RecordId
from inventrack.state.auth import AuthSession, AuthState
from inventrack.state.events import StoreChange
from inventrack.state.policy import should_load

_logger = logging.getLogger(__name__)

LoadTrigger = Callable[[AuthState], Awaitable[Any]]


class GatedStore(Protocol):
    @property
    def name(self) -> str:
        ...

    @property
    def is_loading(self) -> bool:
        ...

    @property
    def has_loaded_once(self) -> bool:
        ...

    def __len__(self) -> int:
        ...

    def subscribe(self, listener: Callable[[StoreChange], None]) -> Callable[[], None]:
        ...


class SessionGatedLoader:
    """Trigger at most one load per authenticated session.

    Parameters
    ----------
    auth : AuthSession
        Observable authentication state.
    store : GatedStore
        Store whose ``(len(store), store.is_loading)`` pair feeds the
        predicate.
    trigger : callable, optional
        Coroutine function receiving the current :class:`AuthState`.
        Defaults to ``store.load()``.
    distinguish_empty : bool
        Also require ``not store.has_loaded_once``, so a collection that
        loaded empty is not treated as "never loaded".
    """

    def __init__(
        self,
        auth: AuthSession,
        store: GatedStore,
        *,
        trigger: LoadTrigger | None = None,
        distinguish_empty: bool = False,
    ) -> None:
        self._auth = auth
        self._store = store
        self._trigger = trigger or self._default_trigger
        self._distinguish_empty = distinguish_empty
        self._triggered = False
        self._session_user: RecordId | None = None
        self._tasks: set[asyncio.Task[None]] = set()
        self._unsubscribers: list[Callable[[], None]] = []

    @property
    def triggered(self) -> bool:
        """Whether the current session already issued its load."""
        return self._triggered

    @property
    def running(self) -> bool:
        return bool(self._unsubscribers)

    async def _default_trigger(self, _state: AuthState) -> None:
        await self._store.load()  # type: ignore[attr-defined]

    def start(self) -> None:
        if self._unsubscribers:
            return
        self._unsubscribers = [
            self._auth.subscribe(self._on_auth_change),
            self._store.subscribe(self._on_store_change),
        ]
        self.evaluate()

    def stop(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

    def _on_auth_change(self, state: AuthState) -> None:
        user_id = state.user.id if state.user is not None else None
        if not state.is_authenticated or user_id != self._session_user:
            # A new session (or none at all): the next one may load again.
            self._triggered = False
        self._session_user = user_id if state.is_authenticated else None
        self.evaluate()

    def _on_store_change(self, _change: StoreChange) -> None:
        self.evaluate()

    def evaluate(self) -> bool:
        """Re-check the predicate; returns True when a load was scheduled."""
        state = self._auth.state
        if self._triggered:
            return False
        if not should_load(
            is_authenticated=state.is_authenticated,
            collection_length=len(self._store),
            loading=self._store.is_loading,
        ):
            return False
        if self._distinguish_empty and self._store.has_loaded_once:
            return False

        self._triggered = True
        self._session_user = state.user.id if state.user is not None else None
        _logger.debug("Session load triggered for %s", self._store.name)
        task = asyncio.get_running_loop().create_task(self._run(state))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return True

    async def _run(self, state: AuthState) -> None:
        try:
            await self._trigger(state)
        except Exception:
            _logger.warning("Session load for %s failed", self._store.name, exc_info=True)

    async def wait(self) -> None:
        """Wait for every load this loader has scheduled."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))
