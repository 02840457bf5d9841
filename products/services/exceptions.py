# products/services/exceptions.py

"""
INVENTORY SERVICE ERRORS

Raised inside transaction.atomic blocks: the movement, the product quantity
and any journal entry of the same operation roll back together.
"""

from __future__ import annotations

from decimal import Decimal


class InventoryError(Exception):
    """Base exception for stock failures."""


class InsufficientStockError(InventoryError):
    """Raised when an outbound movement would leave a product below zero."""

    def __init__(self, *, sku: str, requested: Decimal, available: Decimal):
        self.sku = sku
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for {sku}: requested {requested}, available {available}"
        )


class StockImpactError(InventoryError):
    """Raised when a document's stock impact has already been applied."""


class MissingUnitCostError(InventoryError):
    """Raised when neither a costed movement nor a cost price exists for a product."""

    def __init__(self, sku: str):
        self.sku = sku
        super().__init__(
            f"No unit cost available for {sku}: no purchase or positive adjustment "
            f"movement and no cost price"
        )
