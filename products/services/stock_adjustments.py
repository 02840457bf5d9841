# products/services/stock_adjustments.py

"""
STOCK ADJUSTMENTS SERVICE

Purpose:
- Set a product's on-hand stock to a counted quantity.
- Enforce auditability via an immutable StockMovement row.

Rules:
- difference = new_quantity - current quantity; zero difference is rejected
- difference > 0 -> AJUSTE_POSITIVO, difference < 0 -> AJUSTE_NEGATIVO
- unit cost: explicit value, else the product's latest unit cost
- reference AJUSTE_MANUAL, notes "Ajuste de inventario: <reason>"
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from django.db import transaction

from products.models import Product, StockMovement
from products.services.exceptions import InventoryError
from products.services.inventory import _to_decimal, latest_unit_cost, record_stock_movement

ADJUSTMENT_REFERENCE = "AJUSTE_MANUAL"


@dataclass(frozen=True)
class AdjustmentResult:
    product: Product
    movement: StockMovement
    difference: Decimal


@transaction.atomic
def adjust_stock(
    *,
    product: Product,
    new_quantity,
    reason: str,
    unit_cost=None,
    user=None,
) -> AdjustmentResult:
    reason = (reason or "").strip()
    if not reason:
        raise InventoryError("reason is required")

    target = _to_decimal(new_quantity, field_name="new_quantity")
    if target < 0:
        raise InventoryError("new_quantity cannot be negative")

    locked = Product.objects.select_for_update().get(pk=product.pk)
    difference = target - Decimal(locked.quantity or 0)
    if difference == 0:
        raise InventoryError(
            f"New quantity {target} equals the current stock of {locked.sku}; nothing to adjust"
        )

    movement_type = (
        StockMovement.MovementType.AJUSTE_POSITIVO
        if difference > 0
        else StockMovement.MovementType.AJUSTE_NEGATIVO
    )

    if unit_cost is None or unit_cost == "":
        cost = latest_unit_cost(locked)
        unit_cost, currency = cost.amount, cost.currency
    else:
        currency = locked.currency

    movement = record_stock_movement(
        product=locked,
        movement_type=movement_type,
        quantity=abs(difference),
        unit_cost=unit_cost,
        currency=currency,
        reference=ADJUSTMENT_REFERENCE,
        notes=f"Ajuste de inventario: {reason}",
        user=user,
    )

    product.quantity = locked.quantity
    return AdjustmentResult(product=locked, movement=movement, difference=difference)
