"""Authentication models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict

from inventrack.models._base import InventrackBaseModel, RecordId


class AuthUser(InventrackBaseModel):
    """User returned by login / token validation."""

    id: RecordId
    email: str | None = None


class TokenValidation(BaseModel):
    """Outcome of ``GET /user/validate-token``."""

    model_config = ConfigDict(frozen=True)

    authenticated: bool
    user: AuthUser | None = None

    @classmethod
    def from_response(cls, body: Any) -> TokenValidation:
        """Interpret the validation response.

        The endpoint answers either with the bare string ``"Authenticated"``
        or with an object carrying the user.
        """
        if isinstance(body, str):
            return cls(authenticated=body.strip() == "Authenticated")
        if not isinstance(body, dict):
            return cls(authenticated=False)

        user_raw = body.get("user")
        user = AuthUser.model_validate(user_raw) if isinstance(user_raw, dict) else None
        flag = body.get("authenticated")
        if flag is None:
            flag = body.get("status") == "Authenticated" or user is not None
        return cls(authenticated=bool(flag), user=user)
