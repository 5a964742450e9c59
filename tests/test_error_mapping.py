from __future__ import annotations

import pytest
from pydantic import ValidationError

from inventrack._api._common import (
    DEFAULT_MESSAGES,
    api_error_for,
    classify_status,
    failure_from_transport_error,
    failure_from_validation_error,
    report_failure,
)
from inventrack.exceptions import (
    InventrackAuthenticationError,
    InventrackNetworkError,
    InventrackNotFoundError,
    InventrackServerError,
    InventrackTransportError,
    InventrackValidationError,
)
from inventrack.models.failure import ApiFailure, ErrorKind
from inventrack.models.requests import ProductDraft


@pytest.mark.parametrize(
    ("status", "kind"),
    [
        (None, ErrorKind.NETWORK),
        (400, ErrorKind.VALIDATION),
        (401, ErrorKind.AUTH),
        (403, ErrorKind.AUTH),
        (404, ErrorKind.NOT_FOUND),
        (422, ErrorKind.VALIDATION),
        (500, ErrorKind.SERVER),
        (503, ErrorKind.SERVER),
    ],
)
def test_classify_status(status: int | None, kind: ErrorKind) -> None:
    assert classify_status(status) is kind


def test_server_message_wins_over_operation_message() -> None:
    exc = InventrackTransportError(
        "HTTP 400",
        status_code=400,
        endpoint="/products",
        body={"error": "Name already exists"},
    )

    failure = failure_from_transport_error(exc, message="Error adding product.")

    assert failure.kind is ErrorKind.VALIDATION
    assert failure.message == "Name already exists"
    assert failure.status_code == 400
    assert failure.endpoint == "/products"


def test_operation_message_used_when_body_has_none() -> None:
    exc = InventrackTransportError("HTTP 500", status_code=500, endpoint="/products", body="<html>")

    failure = failure_from_transport_error(exc, message="Error fetching products.")

    assert failure.kind is ErrorKind.SERVER
    assert failure.message == "Error fetching products."


def test_network_failure_uses_default_message() -> None:
    exc = InventrackTransportError("connection refused", endpoint="/products")

    failure = failure_from_transport_error(exc, message="Error fetching products.")

    assert failure.kind is ErrorKind.NETWORK
    assert failure.status_code is None
    assert failure.message == DEFAULT_MESSAGES[ErrorKind.NETWORK]


def test_field_errors_extracted_from_body() -> None:
    exc = InventrackTransportError(
        "HTTP 422",
        status_code=422,
        endpoint="/suppliers",
        body={"message": "Invalid supplier", "errors": [{"field": "email", "message": "is invalid"}]},
    )

    failure = failure_from_transport_error(exc)

    assert failure.message == "Invalid supplier"
    assert failure.field_errors == {"email": "is invalid"}


def test_local_validation_error_message_names_fields() -> None:
    with pytest.raises(ValidationError) as exc_info:
        ProductDraft.model_validate({"name": ""})

    failure = failure_from_validation_error(exc_info.value, endpoint="/products")

    assert failure.kind is ErrorKind.VALIDATION
    assert failure.message.startswith("Validation error: name")
    assert "name" in failure.field_errors


@pytest.mark.parametrize(
    ("kind", "exc_type"),
    [
        (ErrorKind.NETWORK, InventrackNetworkError),
        (ErrorKind.AUTH, InventrackAuthenticationError),
        (ErrorKind.VALIDATION, InventrackValidationError),
        (ErrorKind.NOT_FOUND, InventrackNotFoundError),
        (ErrorKind.SERVER, InventrackServerError),
    ],
)
def test_api_error_for_kind(kind: ErrorKind, exc_type: type) -> None:
    error = api_error_for(ApiFailure(kind=kind, message="boom", endpoint="/x"))
    assert isinstance(error, exc_type)
    assert str(error) == "boom"
    assert error.endpoint == "/x"


def test_failing_reporter_does_not_block_others() -> None:
    seen: list[str] = []

    def _broken(_failure: ApiFailure) -> None:
        raise RuntimeError("listener bug")

    report_failure(
        ApiFailure(kind=ErrorKind.SERVER, message="boom"),
        None,
        _broken,
        lambda failure: seen.append(failure.message),
    )

    assert seen == ["boom"]
