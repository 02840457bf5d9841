"""
======================================================
PATH: treasury/migrations/0001_initial.py
======================================================
MIGRATION: TREASURY ACCOUNTS AND RECEIPTS

Creates:
- TreasuryAccount (leaf ledger account per cash box / bank)
- Receipt with applications, payments and withholding groups/lines
"""

from __future__ import annotations

from decimal import Decimal
import uuid

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion

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

MONEY = dict(decimal_places=2, default=Decimal("0.00"), max_digits=16)


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("accounting", "0001_initial"),
        ("sales", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="TreasuryAccount",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=120, unique=True)),
                (
                    "kind",
                    models.CharField(
                        choices=[
                            ("CASH", "Caja"),
                            ("BANK", "Banco"),
                            ("CHECKS", "Valores a depositar"),
                            ("OTHER", "Otra"),
                        ],
                        default="BANK",
                        max_length=10,
                    ),
                ),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "account",
                    models.ForeignKey(
                        limit_choices_to={"accepts_entries": True},
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="treasury_accounts",
                        to="accounting.account",
                    ),
                ),
            ],
            options={"ordering": ["name"]},
        ),
        migrations.CreateModel(
            name="Receipt",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("number", models.CharField(max_length=13, unique=True)),
                ("date", models.DateField()),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                (
                    "status",
                    models.CharField(
                        choices=[("BORRADOR", "Borrador"), ("APROBADO", "Aprobado"), ("ANULADO", "Anulado")],
                        default="BORRADOR",
                        max_length=10,
                    ),
                ),
                ("total_applied", models.DecimalField(**MONEY)),
                ("total_withholdings", models.DecimalField(**MONEY)),
                ("total_to_collect", models.DecimalField(**MONEY)),
                ("total_collected", models.DecimalField(**MONEY)),
                ("approved_at", models.DateTimeField(blank=True, null=True)),
                ("voided_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "customer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="receipts",
                        to="sales.customer",
                    ),
                ),
                (
                    "journal_entry",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="receipts",
                        to="accounting.journalentry",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="receipts",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "approved_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-date", "-number"],
                "indexes": [
                    models.Index(fields=["customer", "date"], name="receipt_customer_date_idx"),
                    models.Index(fields=["status", "date"], name="receipt_status_date_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ReceiptApplication",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("invoice_total", models.DecimalField(decimal_places=2, max_digits=16)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=16)),
                (
                    "invoice",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="receipt_applications",
                        to="sales.invoice",
                    ),
                ),
                (
                    "receipt",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="applications",
                        to="treasury.receipt",
                    ),
                ),
            ],
            options={
                "ordering": ["id"],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(amount__gt=0), name="receiptapp_amount_positive"),
                    models.UniqueConstraint(fields=["receipt", "invoice"], name="uniq_receipt_invoice"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ReceiptPayment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "method",
                    models.CharField(
                        choices=[
                            ("TRANSFERENCIA", "Transferencia"),
                            ("CHEQUE", "Cheque"),
                            ("EFECTIVO", "Efectivo"),
                            ("DEPOSITO", "Depósito"),
                            ("OTROS", "Otros"),
                        ],
                        default="TRANSFERENCIA",
                        max_length=16,
                    ),
                ),
                ("amount", models.DecimalField(decimal_places=2, max_digits=16)),
                ("check_number", models.CharField(blank=True, default="", max_length=32)),
                ("check_date", models.DateField(blank=True, null=True)),
                ("check_bank", models.CharField(blank=True, default="", max_length=80)),
                ("reference", models.CharField(blank=True, default="", max_length=100)),
                ("notes", models.CharField(blank=True, default="", max_length=255)),
                (
                    "receipt",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="payments",
                        to="treasury.receipt",
                    ),
                ),
                (
                    "treasury_account",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payments",
                        to="treasury.treasuryaccount",
                    ),
                ),
            ],
            options={
                "ordering": ["id"],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(amount__gt=0), name="receiptpay_amount_positive"),
                ],
            },
        ),
        migrations.CreateModel(
            name="WithholdingGroup",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "group_type",
                    models.CharField(
                        choices=[
                            ("IIBB", "Ingresos Brutos"),
                            ("IVA", "IVA"),
                            ("GANANCIAS", "Ganancias"),
                            ("SUSS", "SUSS"),
                        ],
                        max_length=10,
                    ),
                ),
                ("total_amount", models.DecimalField(**MONEY)),
                (
                    "receipt",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="withholding_groups",
                        to="treasury.receipt",
                    ),
                ),
            ],
            options={
                "ordering": ["id"],
                "constraints": [
                    models.UniqueConstraint(fields=["receipt", "group_type"], name="uniq_receipt_withholding_group"),
                ],
            },
        ),
        migrations.CreateModel(
            name="WithholdingLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("tax_type", models.CharField(choices=TAX_TYPE_CHOICES, max_length=32)),
                ("jurisdiction_label", models.CharField(blank=True, default="", max_length=80)),
                ("certificate_number", models.CharField(blank=True, default="", max_length=40)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=16)),
                (
                    "group",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="lines",
                        to="treasury.withholdinggroup",
                    ),
                ),
            ],
            options={
                "ordering": ["id"],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(amount__gt=0), name="withholding_amount_positive"),
                ],
            },
        ),
    ]
