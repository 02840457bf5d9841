# products/models/stock_movement.py

"""
CANONICAL INVENTORY LEDGER

Immutable inventory ledger entry.

GUARANTEES:
- Append-only (no updates, no deletes)
- stock_after = stock_before + quantity (model check + DB constraint)
- quantity is signed; its sign is fixed by the movement type
- unit_cost / total_cost are snapshots at movement time
"""

from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Q

from .product import Product


class StockMovement(models.Model):
    class MovementType(models.TextChoices):
        COMPRA = "COMPRA", "Compra"
        VENTA = "VENTA", "Venta"
        AJUSTE_POSITIVO = "AJUSTE_POSITIVO", "Ajuste positivo"
        AJUSTE_NEGATIVO = "AJUSTE_NEGATIVO", "Ajuste negativo"
        DEVOLUCION_CLIENTE = "DEVOLUCION_CLIENTE", "Devolución de cliente"
        DEVOLUCION_PROVEEDOR = "DEVOLUCION_PROVEEDOR", "Devolución a proveedor"

    INBOUND_TYPES = {
        MovementType.COMPRA,
        MovementType.AJUSTE_POSITIVO,
        MovementType.DEVOLUCION_CLIENTE,
    }
    OUTBOUND_TYPES = {
        MovementType.VENTA,
        MovementType.AJUSTE_NEGATIVO,
        MovementType.DEVOLUCION_PROVEEDOR,
    }

    # Movements whose unit_cost is a valid replacement cost for CMV.
    COST_SOURCE_TYPES = {
        MovementType.COMPRA,
        MovementType.AJUSTE_POSITIVO,
    }

    product = models.ForeignKey(
        Product, on_delete=models.PROTECT, related_name="stock_movements"
    )

    movement_type = models.CharField(max_length=24, choices=MovementType.choices)

    quantity = models.DecimalField(max_digits=14, decimal_places=3)

    unit_cost = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    total_cost = models.DecimalField(max_digits=16, decimal_places=2, null=True, blank=True)
    currency = models.CharField(max_length=3, default="ARS")

    stock_before = models.DecimalField(max_digits=14, decimal_places=3)
    stock_after = models.DecimalField(max_digits=14, decimal_places=3)

    reference = models.CharField(
        max_length=100,
        blank=True,
        default="",
        help_text="Source document (PURCHASE_INVOICE:<id>, SALES_INVOICE:<id>, AJUSTE_MANUAL)",
    )
    notes = models.TextField(blank=True, default="")

    journal_entry = models.ForeignKey(
        "accounting.JournalEntry",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stock_movements",
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stock_movements",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["product", "created_at"], name="stockmov_product_created_idx"),
            models.Index(fields=["movement_type"], name="stockmov_type_idx"),
            models.Index(fields=["reference"], name="stockmov_reference_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(stock_after=F("stock_before") + F("quantity")),
                name="stockmov_after_equals_before_plus_qty",
            ),
        ]

    def clean(self):
        qty = Decimal(self.quantity or 0)
        if qty == 0:
            raise ValidationError("quantity cannot be zero")

        if self.movement_type in self.INBOUND_TYPES and qty < 0:
            raise ValidationError(f"{self.movement_type} requires a positive quantity")
        if self.movement_type in self.OUTBOUND_TYPES and qty > 0:
            raise ValidationError(f"{self.movement_type} requires a negative quantity")

        if Decimal(self.stock_after) != Decimal(self.stock_before) + qty:
            raise ValidationError("stock_after must equal stock_before + quantity")

        if self.unit_cost is not None and Decimal(self.unit_cost) < 0:
            raise ValidationError("unit_cost cannot be negative")

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("StockMovement records are immutable")

        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError(
            "StockMovement records are immutable and cannot be deleted"
        )

    @property
    def is_inbound(self) -> bool:
        return Decimal(self.quantity) > 0

    def __str__(self):
        product_name = getattr(self.product, "name", "Product")
        return f"{product_name} | {self.movement_type} | {self.quantity}"
