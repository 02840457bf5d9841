# products/services/inventory.py

"""
======================================================
PATH: products/services/inventory.py
======================================================
INVENTORY CORE SERVICES

Purpose:
- record_stock_movement(): the ONLY writer of Product.quantity
- latest_unit_cost(): replacement cost used by CMV and adjustments

Rules:
- the product row is locked (select_for_update) and re-read inside the
  caller's transaction: stock_before is the quantity at write time
- callers pass a positive magnitude; the sign follows the movement type
- outbound movements below zero raise InsufficientStockError unless the
  product allows negative stock
- purchases refresh Product.last_cost (update_last_cost=True)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.db import transaction

from products.models import Product, StockMovement
from products.services.exceptions import (
    InsufficientStockError,
    InventoryError,
    MissingUnitCostError,
)

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")
QTY_PLACES = Decimal("0.001")


@dataclass(frozen=True)
class UnitCost:
    amount: Decimal
    currency: str
    source: str  # "movement" | "cost_price"


def _to_decimal(value, *, field_name="value") -> Decimal:
    if value is None or value == "":
        raise InventoryError(f"{field_name} is required")
    if isinstance(value, bool):
        raise InventoryError(f"{field_name} must be a number")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise InventoryError(f"{field_name} must be a valid decimal") from exc


def _movement_type(value) -> str:
    try:
        return StockMovement.MovementType(value)
    except ValueError as exc:
        raise InventoryError(f"Unknown movement type: {value!r}") from exc


def signed_quantity(movement_type, quantity) -> Decimal:
    movement_type = _movement_type(movement_type)
    qty = _to_decimal(quantity, field_name="quantity").quantize(QTY_PLACES, rounding=ROUND_HALF_UP)
    if qty <= 0:
        raise InventoryError("quantity must be greater than zero")
    return qty if movement_type in StockMovement.INBOUND_TYPES else -qty


@transaction.atomic
def record_stock_movement(
    *,
    product: Product,
    movement_type,
    quantity,
    unit_cost=None,
    currency: str | None = None,
    reference: str = "",
    notes: str = "",
    user=None,
    update_last_cost: bool = False,
    journal_entry=None,
) -> StockMovement:
    """
    Append one movement and persist the product's new quantity.

    The caller's Product instance is refreshed with the new quantity (and
    last_cost) so later steps in the same request see current values.
    """
    movement_type = _movement_type(movement_type)
    delta = signed_quantity(movement_type, quantity)

    locked = Product.objects.select_for_update().get(pk=product.pk)

    before = Decimal(locked.quantity or 0)
    after = before + delta

    if after < 0 and not locked.allow_negative:
        logger.warning(
            "stock movement rejected: insufficient stock",
            extra={"sku": locked.sku, "requested": str(-delta), "available": str(before)},
        )
        raise InsufficientStockError(sku=locked.sku, requested=-delta, available=before)

    cost = None
    total_cost = None
    if unit_cost is not None and unit_cost != "":
        cost = _to_decimal(unit_cost, field_name="unit_cost").quantize(TWOPLACES, rounding=ROUND_HALF_UP)
        if cost < 0:
            raise InventoryError("unit_cost cannot be negative")
        total_cost = (abs(delta) * cost).quantize(TWOPLACES, rounding=ROUND_HALF_UP)

    movement = StockMovement.objects.create(
        product=locked,
        movement_type=movement_type,
        quantity=delta,
        unit_cost=cost,
        total_cost=total_cost,
        currency=(currency or locked.currency or "ARS").upper(),
        stock_before=before,
        stock_after=after,
        reference=(reference or "")[:100],
        notes=notes or "",
        journal_entry=journal_entry,
        created_by=user,
    )

    locked.quantity = after
    update_fields = ["quantity", "updated_at"]
    if update_last_cost and cost is not None:
        locked.last_cost = cost
        update_fields.append("last_cost")
    locked.save(update_fields=update_fields)

    product.quantity = locked.quantity
    product.last_cost = locked.last_cost

    logger.info(
        "stock movement recorded",
        extra={
            "sku": locked.sku,
            "movement_type": movement_type,
            "quantity": str(delta),
            "stock_after": str(after),
            "reference": movement.reference,
        },
    )
    return movement


def latest_unit_cost(product: Product) -> UnitCost:
    """
    Replacement cost of a product:
    1) unit cost of the latest COMPRA / AJUSTE_POSITIVO movement
    2) Product.cost_price
    Raises MissingUnitCostError when neither exists.
    """
    movement = (
        StockMovement.objects.filter(
            product=product,
            movement_type__in=StockMovement.COST_SOURCE_TYPES,
            unit_cost__isnull=False,
        )
        .order_by("-created_at", "-id")
        .first()
    )
    if movement is not None:
        return UnitCost(amount=movement.unit_cost, currency=movement.currency, source="movement")

    if product.cost_price is not None and Decimal(product.cost_price) > 0:
        return UnitCost(amount=product.cost_price, currency=product.currency, source="cost_price")

    raise MissingUnitCostError(product.sku)
