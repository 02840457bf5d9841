"""
======================================================
PATH: purchases/migrations/0002_purchasepayment.py
======================================================
MIGRATION: SUPPLIER PAYMENTS

Creates:
- PurchasePayment (payment against an invoice or on account)
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):
    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("accounting", "0001_initial"),
        ("purchases", "0001_initial"),
        ("treasury", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="PurchasePayment",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("date", models.DateField(default=django.utils.timezone.localdate)),
                (
                    "method",
                    models.CharField(
                        choices=[
                            ("TRANSFERENCIA", "Transferencia"),
                            ("CHEQUE", "Cheque"),
                            ("EFECTIVO", "Efectivo"),
                            ("DEBITO", "Débito automático"),
                            ("OTROS", "Otros"),
                        ],
                        default="TRANSFERENCIA",
                        max_length=16,
                    ),
                ),
                ("amount", models.DecimalField(decimal_places=2, max_digits=16)),
                (
                    "status",
                    models.CharField(
                        choices=[("APPLIED", "Aplicado"), ("VOIDED", "Anulado")],
                        default="APPLIED",
                        max_length=10,
                    ),
                ),
                ("reference", models.CharField(blank=True, default="", max_length=100)),
                ("notes", models.CharField(blank=True, default="", max_length=255)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("voided_at", models.DateTimeField(blank=True, null=True)),
                (
                    "supplier",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payments",
                        to="purchases.supplier",
                    ),
                ),
                (
                    "invoice",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payments",
                        to="purchases.purchaseinvoice",
                    ),
                ),
                (
                    "treasury_account",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="supplier_payments",
                        to="treasury.treasuryaccount",
                    ),
                ),
                (
                    "journal_entry",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="supplier_payments",
                        to="accounting.journalentry",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="supplier_payments",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-date", "-created_at"],
                "indexes": [models.Index(fields=["supplier", "date"], name="ppay_supplier_date_idx")],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(amount__gt=Decimal("0.00")),
                        name="purchase_payment_amount_positive",
                    ),
                ],
            },
        ),
    ]
