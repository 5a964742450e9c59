from __future__ import annotations

import pytest
from pydantic import ValidationError

from inventrack.models import AuthUser, Product, Profile, SignupRequest, Supplier, TokenValidation
from inventrack.summary import summarize_inventory


def test_blank_and_null_values_fall_back_to_defaults() -> None:
    product = Product.model_validate({"id": 1, "name": " ", "quantity_home": None, "reorder_point": float("nan")})

    assert product.name is None
    assert product.quantity_home is None
    assert product.reorder_point is None


def test_unknown_fields_survive_round_trip() -> None:
    supplier = Supplier.model_validate({"id": 4, "name": "Acme", "vat_number": "GB123"})

    assert Supplier.model_validate(supplier.to_payload()) == supplier
    assert supplier.to_payload()["vat_number"] == "GB123"


def test_records_are_frozen() -> None:
    product = Product(id=1, name="Widget")
    with pytest.raises(ValidationError):
        product.name = "Gadget"  # type: ignore[misc]


def test_low_stock_needs_both_figures() -> None:
    assert Product(id=1, total_quantity=2, reorder_point=2).is_low_stock is True
    assert Product(id=1, total_quantity=3, reorder_point=2).is_low_stock is False
    assert Product(id=1, total_quantity=0).is_low_stock is False


def test_profile_keeps_image_url() -> None:
    profile = Profile.model_validate({"id": 2, "user_id": 7, "full_name": "Sam", "profile_image_url": "https://x/y.png"})

    assert profile.user_id == 7
    assert profile.profile_image_url == "https://x/y.png"


@pytest.mark.parametrize(
    ("body", "authenticated", "user"),
    [
        ("Authenticated", True, None),
        ("Nope", False, None),
        ({"user": {"id": 9}}, True, AuthUser(id=9)),
        ({"authenticated": False}, False, None),
        (None, False, None),
    ],
)
def test_token_validation_from_response(body: object, authenticated: bool, user: AuthUser | None) -> None:
    result = TokenValidation.from_response(body)

    assert result.authenticated is authenticated
    assert result.user == user


def test_signup_request_requires_credentials() -> None:
    with pytest.raises(ValidationError):
        SignupRequest.model_validate({"email": "a@example.com", "password": ""})

    request = SignupRequest.model_validate({"email": " a@example.com ", "password": "pw", "store_name": "Corner"})
    assert request.email == "a@example.com"
    assert request.model_dump()["store_name"] == "Corner"


def test_summarize_inventory() -> None:
    products = [
        Product(id=1, total_quantity=4, reorder_point=5, stock_retail_value=40, stock_wholesale_value=20),
        Product(id=2, total_quantity=10, reorder_point=5, stock_retail_value=12.5, stock_wholesale_value=7.5),
        Product(id=3),
    ]

    summary = summarize_inventory(products)

    assert summary.total_retail_value == 52.5
    assert summary.total_wholesale_value == 27.5
    assert summary.total_units == 14
    assert summary.low_stock_count == 1


def test_summarize_empty_inventory() -> None:
    summary = summarize_inventory([])

    assert summary.total_retail_value == 0
    assert summary.low_stock_count == 0
