"""Observable authentication state."""

from __future__ import annotations

from collections.abc import Callable

from pydantic import BaseModel, ConfigDict

from inventrack.models.auth import AuthUser
from inventrack.state.events import ChangeNotifier


class AuthState(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_authenticated: bool = False
    user: AuthUser | None = None
    checking: bool = False


class AuthSession:
    """Holds the current :class:`AuthState` and notifies on every change."""

    def __init__(self) -> None:
        self._state = AuthState()
        self._changes: ChangeNotifier[AuthState] = ChangeNotifier()

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def is_authenticated(self) -> bool:
        return self._state.is_authenticated

    @property
    def user(self) -> AuthUser | None:
        return self._state.user

    def subscribe(self, listener: Callable[[AuthState], None]) -> Callable[[], None]:
        return self._changes.subscribe(listener)

    def _set(self, state: AuthState) -> None:
        if state == self._state:
            return
        self._state = state
        self._changes.notify(state)

    def set_checking(self) -> None:
        self._set(self._state.model_copy(update={"checking": True}))

    def set_authenticated(self, user: AuthUser | None) -> None:
        self._set(AuthState(is_authenticated=True, user=user))

    def clear(self) -> None:
        self._set(AuthState())
