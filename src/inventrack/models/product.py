"""Product record."""

from __future__ import annotations

from inventrack.models._base import IdentifiedRecord, Number, RecordId


class Product(IdentifiedRecord):
    """A stocked product.

    Quantities are tracked per storage location; ``total_quantity`` and
    the ``stock_*_value`` figures are computed server-side.
    ``supplier_id`` references a :class:`~inventrack.models.supplier.Supplier`
    but is not checked by the client.
    """

    name: str | None = None
    short_description: str | None = None
    long_description: str | None = None
    category_id: RecordId | None = None
    supplier_id: RecordId | None = None
    measurement_unit: str | None = None

    retail_price_per_unit: Number | None = None
    wholesale_price_per_unit: Number | None = None

    quantity_office_1: Number | None = None
    quantity_office_8: Number | None = None
    quantity_home: Number | None = None
    display_shelf: Number | None = None
    reorder_point: Number | None = None

    total_quantity: Number | None = None
    stock_retail_value: Number | None = None
    stock_wholesale_value: Number | None = None

    @property
    def is_low_stock(self) -> bool:
        """Whether stock has fallen to the reorder point."""
        if self.total_quantity is None or self.reorder_point is None:
            return False
        return self.total_quantity <= self.reorder_point
