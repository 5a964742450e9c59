"""Authentication lifecycle endpoints under ``/user``."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from inventrack._api._common import ErrorReporter, GatewayBase, failure_from_validation_error
from inventrack._constants import LOGIN_PATH, LOGOUT_PATH, SIGNUP_PATH, VALIDATE_TOKEN_PATH
from inventrack.models.auth import AuthUser, TokenValidation
from inventrack.models.failure import ApiFailure
from inventrack.models.requests import LoginRequest, SignupRequest


def _parse_user(body: Any) -> AuthUser:
    user = body.get("user") if isinstance(body, dict) else None
    if not isinstance(user, dict):
        raise ValueError("response carries no user")
    return AuthUser.model_validate(user)


def _parse_optional_user(body: Any) -> AuthUser | None:
    if isinstance(body, dict) and isinstance(body.get("user"), dict):
        return AuthUser.model_validate(body["user"])
    return None


class AuthGateway(GatewayBase):
    """Login, signup, logout and session validation.

    Login and signup are sent without the session cookie; the cookie they
    set is kept by the transport for every later request.
    """

    async def login(self, email: str, password: str, *, on_error: ErrorReporter | None = None) -> AuthUser:
        try:
            request = LoginRequest(email=email, password=password)
        except ValidationError as exc:
            self._reject(failure_from_validation_error(exc, endpoint=LOGIN_PATH), on_error)

        return await self._write(
            "POST",
            LOGIN_PATH,
            json=request.model_dump(),
            parse=_parse_user,
            error_message="Login failed. Please check your credentials.",
            on_error=on_error,
            credentials=False,
        )

    async def signup(
        self,
        payload: Mapping[str, Any],
        *,
        on_error: ErrorReporter | None = None,
    ) -> AuthUser | None:
        try:
            request = SignupRequest.model_validate(dict(payload))
        except ValidationError as exc:
            self._reject(failure_from_validation_error(exc, endpoint=SIGNUP_PATH), on_error)

        return await self._write(
            "POST",
            SIGNUP_PATH,
            json=request.model_dump(mode="json", exclude_none=True),
            parse=_parse_optional_user,
            error_message="Failed to register the user. Please try again later.",
            on_error=on_error,
            credentials=False,
        )

    async def logout(self, *, on_error: ErrorReporter | None = None) -> None:
        await self._write(
            "POST",
            LOGOUT_PATH,
            json={"logout": True},
            parse=lambda _body: None,
            error_message="Logout failed. Please try again.",
            on_error=on_error,
        )

    async def validate_token(self, *, on_error: ErrorReporter | None = None) -> TokenValidation | ApiFailure:
        return await self._read(
            "GET",
            VALIDATE_TOKEN_PATH,
            parse=TokenValidation.from_response,
            error_message="Failed to validate the token.",
            on_error=on_error,
        )
