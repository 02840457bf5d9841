"""
======================================================
PATH: purchases/migrations/0001_initial.py
======================================================
MIGRATION: SUPPLIER DOCUMENTS

Creates:
- Supplier (with ledger-currency balance)
- PurchaseInvoice (FACTURA / NOTA_CREDITO, stock_impacted guard)
- PurchaseInvoiceItem, PurchasePerception
"""

from __future__ import annotations

from decimal import Decimal
import uuid

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone

TAX_TYPE_CHOICES = [
    ("IIBB_CABA", "IIBB CABA"),
    ("IIBB_BUENOS_AIRES", "IIBB Buenos Aires"),
    ("IIBB_CORDOBA", "IIBB Córdoba"),
    ("IIBB_SANTA_FE", "IIBB Santa Fe"),
    ("IIBB_MENDOZA", "IIBB Mendoza"),
    ("IIBB_TUCUMAN", "IIBB Tucumán"),
    ("IIBB_SALTA", "IIBB Salta"),
    ("IIBB_ENTRE_RIOS", "IIBB Entre Ríos"),
    ("IIBB_OTRAS", "IIBB Otras jurisdicciones"),
    ("IVA", "Retención IVA"),
    ("GANANCIAS", "Retención Ganancias"),
    ("SUSS", "Retención SUSS"),
]


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("accounting", "0001_initial"),
        ("products", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Supplier",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=200)),
                ("cuit", models.CharField(blank=True, default="", max_length=13)),
                ("phone", models.CharField(blank=True, default="", max_length=50)),
                ("email", models.EmailField(blank=True, default="", max_length=254)),
                ("address", models.TextField(blank=True, default="")),
                ("balance", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=16)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["name"],
                "indexes": [
                    models.Index(fields=["name"], name="supplier_name_idx"),
                    models.Index(fields=["cuit"], name="supplier_cuit_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="PurchaseInvoice",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "document_type",
                    models.CharField(
                        choices=[("FACTURA", "Factura"), ("NOTA_CREDITO", "Nota de crédito")],
                        default="FACTURA",
                        max_length=16,
                    ),
                ),
                (
                    "invoice_type",
                    models.CharField(
                        choices=[("A", "A"), ("B", "B"), ("C", "C"), ("M", "M"), ("E", "E")],
                        default="A",
                        max_length=1,
                    ),
                ),
                ("number", models.CharField(help_text="Supplier numbering, e.g. 0003-00012345", max_length=32)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("DRAFT", "Borrador"),
                            ("APPROVED", "Aprobada"),
                            ("PAID", "Pagada"),
                            ("CANCELLED", "Anulada"),
                        ],
                        default="DRAFT",
                        max_length=20,
                    ),
                ),
                ("issue_date", models.DateField(default=django.utils.timezone.localdate)),
                ("due_date", models.DateField(blank=True, null=True)),
                ("currency", models.CharField(default="ARS", max_length=3)),
                (
                    "exchange_rate",
                    models.DecimalField(
                        blank=True,
                        decimal_places=6,
                        help_text="Ledger currency per unit of `currency` (required when not ARS)",
                        max_digits=16,
                        null=True,
                    ),
                ),
                (
                    "general_discount",
                    models.DecimalField(decimal_places=2, default=Decimal("0.00"), help_text="Percent", max_digits=5),
                ),
                ("subtotal", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=16)),
                ("discount_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=16)),
                ("net_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=16)),
                ("tax_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=16)),
                ("perceptions_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=16)),
                ("total", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=16)),
                ("balance", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=16)),
                ("stock_impacted", models.BooleanField(default=False)),
                ("stock_impacted_at", models.DateTimeField(blank=True, null=True)),
                ("notes", models.TextField(blank=True, default="")),
                ("approved_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "approved_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="purchase_invoices_approved",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="purchase_invoices_created",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "journal_entry",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="purchase_invoices",
                        to="accounting.journalentry",
                    ),
                ),
                (
                    "original_invoice",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="credit_notes",
                        to="purchases.purchaseinvoice",
                    ),
                ),
                (
                    "supplier",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="invoices",
                        to="purchases.supplier",
                    ),
                ),
            ],
            options={
                "ordering": ["-issue_date", "-created_at"],
                "indexes": [
                    models.Index(fields=["supplier", "issue_date"], name="pinv_supplier_date_idx"),
                    models.Index(fields=["status", "issue_date"], name="pinv_status_date_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("supplier", "document_type", "number"),
                        name="uniq_supplier_document_number",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("total__gte", Decimal("0.00"))),
                        name="purchase_invoice_total_nonnegative",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("balance__gte", Decimal("0.00"))),
                        name="purchase_invoice_balance_nonnegative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="PurchaseInvoiceItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("position", models.PositiveIntegerField(default=0)),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                ("quantity", models.DecimalField(decimal_places=3, max_digits=14)),
                ("unit_price", models.DecimalField(decimal_places=2, max_digits=14)),
                ("tax_rate", models.DecimalField(decimal_places=2, default=Decimal("21.00"), max_digits=5)),
                ("subtotal", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=16)),
                (
                    "account",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="purchase_items",
                        to="accounting.account",
                    ),
                ),
                (
                    "invoice",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="purchases.purchaseinvoice",
                    ),
                ),
                (
                    "original_item",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="returns",
                        to="purchases.purchaseinvoiceitem",
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="purchase_items",
                        to="products.product",
                    ),
                ),
            ],
            options={
                "ordering": ["position", "id"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("quantity__gt", Decimal("0"))),
                        name="purchase_item_quantity_positive",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("unit_price__gte", Decimal("0.00"))),
                        name="purchase_item_price_nonnegative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="PurchasePerception",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("jurisdiction", models.CharField(choices=TAX_TYPE_CHOICES, max_length=32)),
                ("rate", models.DecimalField(decimal_places=3, default=Decimal("0.000"), max_digits=6)),
                ("base_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=16)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=16)),
                (
                    "account",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="purchase_perceptions",
                        to="accounting.account",
                    ),
                ),
                (
                    "invoice",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="perceptions",
                        to="purchases.purchaseinvoice",
                    ),
                ),
            ],
            options={
                "ordering": ["id"],
            },
        ),
    ]
