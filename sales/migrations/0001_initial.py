"""
======================================================
PATH: sales/migrations/0001_initial.py
======================================================
MIGRATION: CUSTOMERS, QUOTES, INVOICES

Creates:
- Customer (tax condition, ledger-currency balance)
- Quote, QuoteItem, QuoteStatusHistory
- Invoice (unique number per letter), InvoiceItem (weak link to QuoteItem)
"""

from __future__ import annotations

from decimal import Decimal
import uuid

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone

INVOICE_STATUS_CHOICES = [
    ("DRAFT", "Borrador"),
    ("PENDING", "Pendiente"),
    ("AUTHORIZED", "Autorizada"),
    ("SENT", "Enviada"),
    ("PAID", "Pagada"),
    ("OVERDUE", "Vencida"),
    ("CANCELLED", "Anulada"),
]

QUOTE_STATUS_CHOICES = [
    ("DRAFT", "Borrador"),
    ("SENT", "Enviada"),
    ("ACCEPTED", "Aceptada"),
    ("CONVERTED", "Facturada"),
    ("REJECTED", "Rechazada"),
    ("EXPIRED", "Vencida"),
    ("CANCELLED", "Cancelada"),
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
            name="Customer",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=200)),
                ("cuit", models.CharField(blank=True, default="", max_length=13)),
                (
                    "tax_condition",
                    models.CharField(
                        choices=[
                            ("RESPONSABLE_INSCRIPTO", "Responsable Inscripto"),
                            ("MONOTRIBUTO", "Monotributo"),
                            ("EXENTO", "Exento"),
                            ("CONSUMIDOR_FINAL", "Consumidor Final"),
                            ("EXTERIOR", "Cliente del Exterior"),
                        ],
                        default="RESPONSABLE_INSCRIPTO",
                        max_length=32,
                    ),
                ),
                ("email", models.EmailField(blank=True, default="", max_length=254)),
                ("phone", models.CharField(blank=True, default="", max_length=50)),
                ("address", models.TextField(blank=True, default="")),
                (
                    "payment_terms_days",
                    models.PositiveIntegerField(
                        blank=True,
                        help_text="Days until due; empty uses the default due interval",
                        null=True,
                    ),
                ),
                ("balance", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=16)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["name"],
                "indexes": [
                    models.Index(fields=["name"], name="customer_name_idx"),
                    models.Index(fields=["cuit"], name="customer_cuit_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Quote",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("number", models.CharField(max_length=32, unique=True)),
                ("status", models.CharField(choices=QUOTE_STATUS_CHOICES, default="DRAFT", max_length=16)),
                ("issue_date", models.DateField(default=django.utils.timezone.localdate)),
                ("valid_until", models.DateField(blank=True, null=True)),
                ("currency", models.CharField(default="ARS", max_length=3)),
                (
                    "exchange_rate",
                    models.DecimalField(
                        blank=True,
                        decimal_places=6,
                        help_text="Ledger currency per unit of `currency`; required to invoice a foreign-currency quote",
                        max_digits=16,
                        null=True,
                    ),
                ),
                ("subtotal", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=16)),
                ("responded_at", models.DateTimeField(blank=True, null=True)),
                ("response_notes", models.TextField(blank=True, default="")),
                ("notes", models.TextField(blank=True, default="")),
                ("status_changed_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "customer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="quotes",
                        to="sales.customer",
                    ),
                ),
                (
                    "status_changed_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="quotes",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-issue_date", "-created_at"],
                "indexes": [
                    models.Index(fields=["status", "issue_date"], name="quote_status_date_idx"),
                    models.Index(fields=["customer", "issue_date"], name="quote_customer_date_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="QuoteItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("position", models.PositiveIntegerField(default=1)),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                ("quantity", models.DecimalField(decimal_places=3, max_digits=14)),
                ("unit_price", models.DecimalField(decimal_places=2, max_digits=14)),
                ("is_alternative", models.BooleanField(default=False)),
                (
                    "delivery_time",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text='"Inmediato" / "stock" or a lead time such as "15 días"',
                        max_length=64,
                    ),
                ),
                (
                    "quote",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="sales.quote",
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="quote_items",
                        to="products.product",
                    ),
                ),
            ],
            options={
                "ordering": ["position", "id"],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(quantity__gt=0), name="quoteitem_quantity_positive"),
                    models.CheckConstraint(condition=models.Q(unit_price__gte=0), name="quoteitem_price_non_negative"),
                ],
            },
        ),
        migrations.CreateModel(
            name="QuoteStatusHistory",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("from_status", models.CharField(max_length=16)),
                ("to_status", models.CharField(max_length=16)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "quote",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="status_history",
                        to="sales.quote",
                    ),
                ),
                (
                    "changed_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={"ordering": ["created_at", "id"]},
        ),
        migrations.CreateModel(
            name="Invoice",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("number", models.CharField(max_length=13)),
                (
                    "invoice_type",
                    models.CharField(
                        choices=[
                            ("A", "Factura A"),
                            ("B", "Factura B"),
                            ("C", "Factura C"),
                            ("E", "Factura E (exportación)"),
                        ],
                        max_length=1,
                    ),
                ),
                ("status", models.CharField(choices=INVOICE_STATUS_CHOICES, default="DRAFT", max_length=16)),
                ("currency", models.CharField(default="ARS", max_length=3)),
                ("exchange_rate", models.DecimalField(decimal_places=6, default=Decimal("1"), max_digits=16)),
                ("issue_date", models.DateField()),
                ("due_date", models.DateField()),
                ("subtotal", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=16)),
                ("discount_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=16)),
                ("tax_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=16)),
                ("total", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=16)),
                ("paid_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=16)),
                ("balance", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=16)),
                ("stock_impacted", models.BooleanField(default=False)),
                ("stock_impacted_at", models.DateTimeField(blank=True, null=True)),
                ("notes", models.TextField(blank=True, default="")),
                ("issued_at", models.DateTimeField(blank=True, null=True)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "customer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="invoices",
                        to="sales.customer",
                    ),
                ),
                (
                    "quote",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="invoices",
                        to="sales.quote",
                    ),
                ),
                (
                    "journal_entry",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="sales_invoices",
                        to="accounting.journalentry",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="sales_invoices",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-issue_date", "-number"],
                "constraints": [
                    models.UniqueConstraint(fields=("invoice_type", "number"), name="uniq_invoice_type_number"),
                    models.CheckConstraint(condition=models.Q(total__gte=0), name="invoice_total_non_negative"),
                    models.CheckConstraint(condition=models.Q(paid_amount__gte=0), name="invoice_paid_non_negative"),
                    models.CheckConstraint(
                        condition=models.Q(due_date__gte=models.F("issue_date")),
                        name="invoice_due_after_issue",
                    ),
                ],
                "indexes": [
                    models.Index(fields=["customer", "issue_date"], name="invoice_customer_date_idx"),
                    models.Index(fields=["status", "due_date"], name="invoice_status_due_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="InvoiceItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("position", models.PositiveIntegerField(default=1)),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                ("quantity", models.DecimalField(decimal_places=3, max_digits=14)),
                ("unit_price", models.DecimalField(decimal_places=2, max_digits=14)),
                ("tax_rate", models.DecimalField(decimal_places=2, default=Decimal("21.00"), max_digits=5)),
                ("subtotal", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=16)),
                (
                    "invoice",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="sales.invoice",
                    ),
                ),
                (
                    "quote_item",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="invoice_items",
                        to="sales.quoteitem",
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="invoice_items",
                        to="products.product",
                    ),
                ),
            ],
            options={
                "ordering": ["position", "id"],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(quantity__gt=0), name="invoiceitem_quantity_positive"),
                    models.CheckConstraint(condition=models.Q(unit_price__gte=0), name="invoiceitem_price_non_negative"),
                ],
            },
        ),
    ]
