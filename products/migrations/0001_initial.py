"""
======================================================
PATH: products/migrations/0001_initial.py
======================================================
MIGRATION: PRODUCTS + INVENTORY LEDGER

Creates:
- Product (on-hand quantity, costs, allow_negative)
- StockMovement (immutable, stock_after = stock_before + quantity)
"""

from __future__ import annotations

from decimal import Decimal
import uuid

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("accounting", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("sku", models.CharField(db_index=True, max_length=64, unique=True)),
                ("name", models.CharField(db_index=True, max_length=255)),
                ("description", models.TextField(blank=True, default="")),
                ("unit", models.CharField(default="UN", help_text="Unidad de medida (UN, KG, M, ...)", max_length=16)),
                (
                    "quantity",
                    models.DecimalField(
                        decimal_places=3,
                        default=Decimal("0.000"),
                        help_text="On-hand stock. Written only through stock movements.",
                        max_digits=14,
                    ),
                ),
                ("cost_price", models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True)),
                ("last_cost", models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True)),
                ("sale_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                (
                    "currency",
                    models.CharField(
                        choices=[
                            ("ARS", "Peso argentino"),
                            ("USD", "Dólar estadounidense"),
                            ("EUR", "Euro"),
                        ],
                        default="ARS",
                        max_length=3,
                    ),
                ),
                (
                    "allow_negative",
                    models.BooleanField(default=False, help_text="Allow sales/returns to drive stock below zero"),
                ),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["name"],
                "indexes": [
                    models.Index(fields=["sku"], name="product_sku_idx"),
                    models.Index(fields=["name"], name="product_name_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="StockMovement",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "movement_type",
                    models.CharField(
                        choices=[
                            ("COMPRA", "Compra"),
                            ("VENTA", "Venta"),
                            ("AJUSTE_POSITIVO", "Ajuste positivo"),
                            ("AJUSTE_NEGATIVO", "Ajuste negativo"),
                            ("DEVOLUCION_CLIENTE", "Devolución de cliente"),
                            ("DEVOLUCION_PROVEEDOR", "Devolución a proveedor"),
                        ],
                        max_length=24,
                    ),
                ),
                ("quantity", models.DecimalField(decimal_places=3, max_digits=14)),
                ("unit_cost", models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True)),
                ("total_cost", models.DecimalField(blank=True, decimal_places=2, max_digits=16, null=True)),
                ("currency", models.CharField(default="ARS", max_length=3)),
                ("stock_before", models.DecimalField(decimal_places=3, max_digits=14)),
                ("stock_after", models.DecimalField(decimal_places=3, max_digits=14)),
                (
                    "reference",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Source document (PURCHASE_INVOICE:<id>, SALES_INVOICE:<id>, AJUSTE_MANUAL)",
                        max_length=100,
                    ),
                ),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="stock_movements",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "journal_entry",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="stock_movements",
                        to="accounting.journalentry",
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="stock_movements",
                        to="products.product",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at", "id"],
                "indexes": [
                    models.Index(fields=["product", "created_at"], name="stockmov_product_created_idx"),
                    models.Index(fields=["movement_type"], name="stockmov_type_idx"),
                    models.Index(fields=["reference"], name="stockmov_reference_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("stock_after", models.F("stock_before") + models.F("quantity"))),
                        name="stockmov_after_equals_before_plus_qty",
                    ),
                ],
            },
        ),
    ]
