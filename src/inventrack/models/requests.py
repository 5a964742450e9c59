"""Pydantic request models for write entrypoints.

These models provide a consistent "validate → normalize → execute" flow:
a payload that fails here never reaches the network.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator, model_validator


class _Draft(BaseModel):
    """Create payload; the server assigns the identifier."""

    model_config = ConfigDict(
        frozen=True,
        extra="allow",
        str_strip_whitespace=True,
    )

    @model_validator(mode="before")
    @classmethod
    def _reject_id(cls, values: Any) -> Any:
        if isinstance(values, dict) and values.get("id") is not None:
            raise ValueError("payload must not include an id; the server assigns it")
        return values

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class _NamedDraft(_Draft):
    name: str

    @field_validator("name")
    @classmethod
    def _name_non_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("name is required")
        return value


class ProductDraft(_NamedDraft):
    pass


class SupplierDraft(_NamedDraft):
    pass


class LoginRequest(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=True)

    email: str
    password: str

    @field_validator("email", "password")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("must be non-empty")
        return value


class SignupRequest(LoginRequest):
    model_config = ConfigDict(frozen=True, extra="allow", str_strip_whitespace=True)

    full_name: str | None = None
