"""Custom exception hierarchy for inventrack."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from inventrack.models.failure import ApiFailure


class InventrackError(Exception):
    """Base exception for all inventrack errors."""


class InventrackConfigError(InventrackError):
    """Invalid or missing configuration."""


class InventrackTransportError(InventrackError):
    """HTTP-level failure (no response, non-2xx status, invalid JSON).

    ``status_code`` is ``None`` when no response was received at all.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
        body: Any = None,
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        self.body = body
        super().__init__(message)


class InventrackApiError(InventrackError):
    """A write operation failed.

    Raised (after the failure has been reported) by create/update/delete
    so the caller can skip its local mutation.  The normalized failure is
    available as :attr:`failure`.
    """

    def __init__(self, failure: ApiFailure) -> None:
        self.failure = failure
        super().__init__(failure.message)

    @property
    def kind(self) -> str:
        return self.failure.kind

    @property
    def status_code(self) -> int | None:
        return self.failure.status_code

    @property
    def endpoint(self) -> str:
        return self.failure.endpoint


class InventrackNetworkError(InventrackApiError):
    """No response was received from the API."""


class InventrackAuthenticationError(InventrackApiError):
    """Session missing, expired or not allowed (401/403)."""


class InventrackValidationError(InventrackApiError):
    """Payload rejected by field-level checks (locally or by the server).

    ``field_errors`` maps field names to messages when known.
    """

    @property
    def field_errors(self) -> dict[str, str]:
        return dict(self.failure.field_errors)


class InventrackNotFoundError(InventrackApiError):
    """The addressed record does not exist server-side (404)."""


class InventrackServerError(InventrackApiError):
    """5xx or otherwise unclassified failure."""


class InventrackPersistenceError(InventrackError):
    """Reading or writing a persisted store snapshot failed."""

    def __init__(self, message: str, *, key: str = "") -> None:
        self.key = key
        super().__init__(message)
