# products/models/product.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models


class Product(models.Model):
    """
    Represents a stocked, sellable product.

    STOCK MODEL (IMPORTANT):
    - `quantity` is the on-hand stock, changed ONLY by
      products.services.inventory.record_stock_movement()
    - every change leaves an immutable StockMovement (stock_before/after)
    - `last_cost` is refreshed by purchases; `cost_price` is the catalogue
      fallback when no costed movement exists yet
    """

    class Currency(models.TextChoices):
        ARS = "ARS", "Peso argentino"
        USD = "USD", "Dólar estadounidense"
        EUR = "EUR", "Euro"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    sku = models.CharField(max_length=64, unique=True, db_index=True)
    name = models.CharField(max_length=255, db_index=True)
    description = models.TextField(blank=True, default="")
    unit = models.CharField(max_length=16, default="UN", help_text="Unidad de medida (UN, KG, M, ...)")

    quantity = models.DecimalField(
        max_digits=14,
        decimal_places=3,
        default=Decimal("0.000"),
        help_text="On-hand stock. Written only through stock movements.",
    )

    cost_price = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    last_cost = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    sale_price = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    currency = models.CharField(max_length=3, choices=Currency.choices, default=Currency.ARS)

    allow_negative = models.BooleanField(
        default=False,
        help_text="Allow sales/returns to drive stock below zero",
    )
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        indexes = [
            models.Index(fields=["sku"], name="product_sku_idx"),
            models.Index(fields=["name"], name="product_name_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.sku})"

    def clean(self):
        if not (self.sku or "").strip():
            raise ValidationError("SKU is required")

        for field in ("cost_price", "last_cost", "sale_price"):
            value = getattr(self, field)
            if value is not None and Decimal(value) < Decimal("0.00"):
                raise ValidationError(f"{field} cannot be negative")

    @property
    def is_in_stock(self) -> bool:
        return Decimal(self.quantity or 0) > 0
