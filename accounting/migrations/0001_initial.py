"""
======================================================
PATH: accounting/migrations/0001_initial.py
======================================================
MIGRATION: LEDGER SCHEMA

Creates:
- Account (dotted-code chart of accounts, leaf flag)
- ExchangeRate (time-ranged FX table)
- JournalEntry + JournalEntryLine (DRAFT/POSTED/VOIDED lifecycle)
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Account",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=20, unique=True)),
                ("name", models.CharField(max_length=150)),
                ("description", models.TextField(blank=True, default="")),
                (
                    "account_type",
                    models.CharField(
                        choices=[
                            ("ASSET", "Activo"),
                            ("LIABILITY", "Pasivo"),
                            ("EQUITY", "Patrimonio Neto"),
                            ("REVENUE", "Ingresos"),
                            ("EXPENSE", "Egresos"),
                        ],
                        max_length=20,
                    ),
                ),
                ("level", models.PositiveSmallIntegerField(default=1)),
                (
                    "accepts_entries",
                    models.BooleanField(
                        default=False,
                        help_text="Leaf account: only these may appear on journal lines",
                    ),
                ),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "parent",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="children",
                        to="accounting.account",
                    ),
                ),
            ],
            options={
                "verbose_name": "Account",
                "verbose_name_plural": "Accounts",
                "ordering": ["code"],
                "indexes": [
                    models.Index(fields=["account_type"], name="accounting__account_8b5f4e_idx"),
                    models.Index(fields=["accepts_entries"], name="accounting__accepts_3c1a9d_idx"),
                    models.Index(fields=["is_active"], name="accounting__is_acti_7d2e61_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=~models.Q(code=""),
                        name="chk_account_code_not_blank",
                    ),
                    models.CheckConstraint(
                        condition=~models.Q(name=""),
                        name="chk_account_name_not_blank",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ExchangeRate",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("from_currency", models.CharField(max_length=3)),
                ("to_currency", models.CharField(default="ARS", max_length=3)),
                ("rate", models.DecimalField(decimal_places=6, max_digits=16)),
                ("valid_from", models.DateField()),
                ("valid_until", models.DateField(blank=True, null=True)),
                (
                    "source",
                    models.CharField(
                        choices=[("MANUAL", "Manual"), ("BCRA", "BCRA")],
                        default="MANUAL",
                        max_length=10,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["from_currency", "-valid_from"],
                "indexes": [
                    models.Index(
                        fields=["from_currency", "to_currency", "valid_from"],
                        name="accounting__from_cu_4a9b0c_idx",
                    ),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(rate__gt=0),
                        name="chk_exchange_rate_positive",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(valid_until__isnull=True)
                        | models.Q(valid_until__gte=models.F("valid_from")),
                        name="chk_exchange_rate_window_order",
                    ),
                    models.UniqueConstraint(
                        fields=("from_currency", "to_currency", "valid_from"),
                        name="uniq_exchange_rate_pair_start",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="JournalEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("entry_number", models.PositiveIntegerField(unique=True)),
                ("date", models.DateField(help_text="Accounting effective date")),
                ("description", models.TextField(help_text="Narrative description of the journal entry")),
                (
                    "reference",
                    models.CharField(
                        blank=True,
                        help_text="Source document reference (PURCHASE_INVOICE:<id>, RECEIPT:<id>, ...)",
                        max_length=100,
                        null=True,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("DRAFT", "Borrador"),
                            ("POSTED", "Contabilizado"),
                            ("VOIDED", "Anulado"),
                        ],
                        default="DRAFT",
                        max_length=10,
                    ),
                ),
                (
                    "source",
                    models.CharField(
                        choices=[("MANUAL", "Manual"), ("AUTOMATIC", "Automatic")],
                        default="MANUAL",
                        max_length=10,
                    ),
                ),
                ("posted_at", models.DateTimeField(blank=True, null=True)),
                ("voided_at", models.DateTimeField(blank=True, null=True)),
                ("void_reason", models.CharField(blank=True, default="", max_length=255)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="journal_entries",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "reversal_of",
                    models.OneToOneField(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="reversed_by",
                        to="accounting.journalentry",
                    ),
                ),
            ],
            options={
                "verbose_name": "Journal Entry",
                "verbose_name_plural": "Journal Entries",
                "ordering": ["-date", "-entry_number"],
                "indexes": [
                    models.Index(fields=["date", "entry_number"], name="accounting__date_5e0f7a_idx"),
                    models.Index(fields=["status"], name="accounting__status_2b8c44_idx"),
                    models.Index(fields=["reference"], name="accounting__referen_9e1d03_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(reference__isnull=False) & ~models.Q(reference=""),
                        fields=("reference",),
                        name="uniq_journal_reference_not_blank",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="JournalEntryLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("debit", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=16)),
                ("credit", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=16)),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                ("position", models.PositiveIntegerField(default=0)),
                (
                    "account",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="journal_lines",
                        to="accounting.account",
                    ),
                ),
                (
                    "entry",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="lines",
                        to="accounting.journalentry",
                    ),
                ),
            ],
            options={
                "verbose_name": "Journal Entry Line",
                "verbose_name_plural": "Journal Entry Lines",
                "ordering": ["entry", "position", "id"],
                "indexes": [
                    models.Index(fields=["account"], name="accounting__account_1f6a2b_idx"),
                    models.Index(fields=["entry", "position"], name="accounting__entry_i_6c3d90_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(debit__gte=0) & models.Q(credit__gte=0),
                        name="chk_journal_line_non_negative",
                    ),
                    models.CheckConstraint(
                        condition=(models.Q(debit__gt=0) & models.Q(credit=0))
                        | (models.Q(debit=0) & models.Q(credit__gt=0)),
                        name="chk_journal_line_one_side",
                    ),
                ],
            },
        ),
    ]
