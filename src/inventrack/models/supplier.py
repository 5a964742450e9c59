"""Supplier record."""

from __future__ import annotations

from inventrack.models._base import IdentifiedRecord, Number


class Supplier(IdentifiedRecord):
    name: str | None = None
    contact_person: str | None = None
    phone: str | None = None
    email: str | None = None
    address: str | None = None

    total_quantity: Number | None = None
    stock_retail_value: Number | None = None
    stock_wholesale_value: Number | None = None
