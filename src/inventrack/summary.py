"""Inventory summary figures shown on the dashboard."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from inventrack.models.product import Product


@dataclass(frozen=True)
class InventorySummary:
    total_retail_value: float = 0.0
    total_wholesale_value: float = 0.0
    low_stock_count: int = 0
    total_units: float = 0.0


def summarize_inventory(products: Iterable[Product]) -> InventorySummary:
    """Aggregate stock value and quantity; missing figures count as zero."""
    retail = 0.0
    wholesale = 0.0
    low_stock = 0
    units = 0.0
    for product in products:
        retail += product.stock_retail_value or 0
        wholesale += product.stock_wholesale_value or 0
        units += product.total_quantity or 0
        if product.is_low_stock:
            low_stock += 1
    return InventorySummary(
        total_retail_value=retail,
        total_wholesale_value=wholesale,
        low_stock_count=low_stock,
        total_units=units,
    )
