"""Shared helpers for the gateway modules.

This module centralizes the most repeated patterns:
- classifying transport failures into an :class:`ErrorKind`
- picking the user-facing message for a failure
- reporting a failure to the caller-supplied callbacks
- the read path (failure returned) and write path (failure raised)

It is internal to inventrack and may change at any time.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, NoReturn, TypeVar

import aiohttp
from pydantic import ValidationError

from inventrack._constants import ERROR_MESSAGE_FIELDS
from inventrack._transport import Transport
from inventrack.exceptions import (
    InventrackApiError,
    InventrackAuthenticationError,
    InventrackNetworkError,
    InventrackNotFoundError,
    InventrackServerError,
    InventrackTransportError,
    InventrackValidationError,
)
from inventrack.models.failure import ApiFailure, ErrorKind

_logger = logging.getLogger(__name__)

T = TypeVar("T")

ErrorReporter = Callable[[ApiFailure], None]

DEFAULT_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.NETWORK: "Network error. Please check your connection.",
    ErrorKind.AUTH: "Authentication failed. Please log in again.",
    ErrorKind.VALIDATION: "Validation error. Please check the form inputs.",
    ErrorKind.NOT_FOUND: "The requested record was not found.",
    ErrorKind.SERVER: "An unexpected error occurred. Please try again later.",
}

_EXCEPTION_BY_KIND: dict[ErrorKind, type[InventrackApiError]] = {
    ErrorKind.NETWORK: InventrackNetworkError,
    ErrorKind.AUTH: InventrackAuthenticationError,
    ErrorKind.VALIDATION: InventrackValidationError,
    ErrorKind.NOT_FOUND: InventrackNotFoundError,
    ErrorKind.SERVER: InventrackServerError,
}


def classify_status(status_code: int | None) -> ErrorKind:
    """Map an HTTP status (``None`` = no response) to an error kind."""
    if status_code is None:
        return ErrorKind.NETWORK
    if status_code in (401, 403):
        return ErrorKind.AUTH
    if status_code == 404:
        return ErrorKind.NOT_FOUND
    if 400 <= status_code < 500:
        return ErrorKind.VALIDATION
    return ErrorKind.SERVER


def _message_from_body(body: Any) -> str | None:
    if isinstance(body, dict):
        for key in ERROR_MESSAGE_FIELDS:
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    return None


def _field_errors_from_body(body: Any) -> dict[str, str]:
    if not isinstance(body, dict):
        return {}
    raw = body.get("errors")
    errors: dict[str, str] = {}
    if isinstance(raw, dict):
        for field, value in raw.items():
            if isinstance(value, list):
                errors[str(field)] = "; ".join(str(v) for v in value)
            else:
                errors[str(field)] = str(value)
    elif isinstance(raw, list):
        for item in raw:
            if not isinstance(item, dict):
                continue
            field = item.get("field") or item.get("path") or item.get("param")
            message = item.get("message") or item.get("msg")
            if field and message:
                errors[str(field)] = str(message)
    return errors


def failure_from_transport_error(exc: InventrackTransportError, *, message: str | None = None) -> ApiFailure:
    """Normalize a transport error.

    Message priority: the server's own error text, then *message* (the
    operation-specific text, used only when a response arrived), then the
    kind's default.
    """
    kind = classify_status(exc.status_code)
    text = _message_from_body(exc.body)
    if text is None and kind is not ErrorKind.NETWORK:
        text = message
    return ApiFailure(
        kind=kind,
        message=text or DEFAULT_MESSAGES[kind],
        status_code=exc.status_code,
        endpoint=exc.endpoint,
        field_errors=_field_errors_from_body(exc.body),
    )


def failure_from_validation_error(exc: ValidationError, *, endpoint: str) -> ApiFailure:
    """Turn a local draft validation error into a VALIDATION failure."""
    field_errors: dict[str, str] = {}
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ())) or "payload"
        field_errors[field] = str(error.get("msg", "invalid value"))
    details = "; ".join(f"{field}: {msg}" for field, msg in field_errors.items())
    return ApiFailure(
        kind=ErrorKind.VALIDATION,
        message=f"Validation error: {details}",
        endpoint=endpoint,
        field_errors=field_errors,
    )


def api_error_for(failure: ApiFailure) -> InventrackApiError:
    return _EXCEPTION_BY_KIND[failure.kind](failure)


def report_failure(failure: ApiFailure, *reporters: ErrorReporter | None) -> None:
    """Forward *failure* to every reporter; a failing reporter is logged and skipped."""
    for reporter in reporters:
        if reporter is None:
            continue
        try:
            reporter(failure)
        except Exception:
            _logger.debug("Error reporter failed", exc_info=True)


class GatewayBase:
    """Read/write plumbing shared by the entity, profile and auth gateways."""

    def __init__(self, transport: Transport, *, on_error: ErrorReporter | None = None) -> None:
        self._transport = transport
        self._on_error = on_error

    def _report(self, failure: ApiFailure, on_error: ErrorReporter | None) -> None:
        report_failure(failure, self._on_error, on_error)

    def _reject(self, failure: ApiFailure, on_error: ErrorReporter | None) -> NoReturn:
        self._report(failure, on_error)
        raise api_error_for(failure)

    def _bad_response(self, path: str, exc: Exception) -> ApiFailure:
        _logger.debug("Unexpected response shape from %s", path, exc_info=exc)
        return ApiFailure(
            kind=ErrorKind.SERVER,
            message=f"Unexpected response from {path}",
            endpoint=path,
        )

    async def _read(
        self,
        method: str,
        path: str,
        *,
        parse: Callable[[Any], T],
        error_message: str,
        on_error: ErrorReporter | None,
    ) -> T | ApiFailure:
        """Issue a read request; failures are reported and returned, never raised."""
        try:
            body = await self._transport.request(method, path)
        except InventrackTransportError as exc:
            failure = failure_from_transport_error(exc, message=error_message)
            _logger.debug("%s %s failed: kind=%s message=%s", method, path, failure.kind, failure.message)
            self._report(failure, on_error)
            return failure

        try:
            return parse(body)
        except (ValidationError, TypeError, ValueError) as exc:
            failure = self._bad_response(path, exc)
            self._report(failure, on_error)
            return failure

    async def _write(
        self,
        method: str,
        path: str,
        *,
        parse: Callable[[Any], T],
        error_message: str,
        on_error: ErrorReporter | None,
        json: Any = None,
        form: aiohttp.FormData | None = None,
        credentials: bool = True,
    ) -> T:
        """Issue a write request; failures are reported, then raised."""
        try:
            body = await self._transport.request(method, path, json=json, form=form, credentials=credentials)
        except InventrackTransportError as exc:
            failure = failure_from_transport_error(exc, message=error_message)
            _logger.debug("%s %s failed: kind=%s message=%s", method, path, failure.kind, failure.message)
            self._report(failure, on_error)
            raise api_error_for(failure) from exc

        try:
            return parse(body)
        except (ValidationError, TypeError, ValueError) as exc:
            failure = self._bad_response(path, exc)
            self._report(failure, on_error)
            raise api_error_for(failure) from exc
