"""Normalized failure result returned by the gateway read paths."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class ErrorKind(StrEnum):
    NETWORK = "network"
    AUTH = "auth"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    SERVER = "server"


class ApiFailure(BaseModel):
    """A failed gateway call.

    Read operations return this instead of raising; write operations wrap
    it in an :class:`~inventrack.exceptions.InventrackApiError` subclass.
    """

    model_config = ConfigDict(frozen=True)

    kind: ErrorKind
    message: str
    status_code: int | None = None
    endpoint: str = ""
    field_errors: dict[str, str] = Field(default_factory=dict)
