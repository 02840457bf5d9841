# accounting/models/journal.py

"""
======================================================
PATH: accounting/models/journal.py
======================================================
JOURNAL ENTRY + JOURNAL ENTRY LINE MODELS

A journal entry (asiento) is the header; its lines carry the debits and
credits against leaf accounts.

Guarantees:
- DRAFT entries are editable and deletable (lines cascade)
- POSTED entries are immutable; the only allowed change is POSTED -> VOIDED
- VOIDED entries are frozen
- Idempotency via reference uniqueness (when reference is provided)
- entry_number is a monotonic sequence used to order lines within a date
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q


class JournalEntry(models.Model):
    STATUS_DRAFT = "DRAFT"
    STATUS_POSTED = "POSTED"
    STATUS_VOIDED = "VOIDED"

    STATUS_CHOICES = [
        (STATUS_DRAFT, "Borrador"),
        (STATUS_POSTED, "Contabilizado"),
        (STATUS_VOIDED, "Anulado"),
    ]

    SOURCE_MANUAL = "MANUAL"
    SOURCE_AUTOMATIC = "AUTOMATIC"

    SOURCE_CHOICES = [
        (SOURCE_MANUAL, "Manual"),
        (SOURCE_AUTOMATIC, "Automatic"),
    ]

    # Fields that may change on a POSTED entry (the void transition only).
    VOID_FIELDS = {"status", "voided_at", "void_reason", "updated_at"}

    entry_number = models.PositiveIntegerField(unique=True)

    date = models.DateField(help_text="Accounting effective date")

    description = models.TextField(help_text="Narrative description of the journal entry")

    reference = models.CharField(
        max_length=100,
        blank=True,
        null=True,
        help_text="Source document reference (PURCHASE_INVOICE:<id>, RECEIPT:<id>, ...)",
    )

    status = models.CharField(
        max_length=10,
        choices=STATUS_CHOICES,
        default=STATUS_DRAFT,
    )

    source = models.CharField(
        max_length=10,
        choices=SOURCE_CHOICES,
        default=SOURCE_MANUAL,
    )

    reversal_of = models.OneToOneField(
        "self",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="reversed_by",
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="journal_entries",
    )

    posted_at = models.DateTimeField(null=True, blank=True)
    voided_at = models.DateTimeField(null=True, blank=True)
    void_reason = models.CharField(max_length=255, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-date", "-entry_number"]
        indexes = [
            models.Index(fields=["date", "entry_number"], name="accounting__date_5e0f7a_idx"),
            models.Index(fields=["status"], name="accounting__status_2b8c44_idx"),
            models.Index(fields=["reference"], name="accounting__referen_9e1d03_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["reference"],
                condition=Q(reference__isnull=False) & ~Q(reference=""),
                name="uniq_journal_reference_not_blank",
            ),
        ]
        verbose_name = "Journal Entry"
        verbose_name_plural = "Journal Entries"

    def __str__(self):
        return f"Asiento #{self.entry_number} – {self.date} ({self.status})"

    @property
    def is_draft(self) -> bool:
        return self.status == self.STATUS_DRAFT

    @property
    def is_posted(self) -> bool:
        return self.status == self.STATUS_POSTED

    def totals(self) -> tuple[Decimal, Decimal]:
        agg = self.lines.aggregate(
            debit=models.Sum("debit"),
            credit=models.Sum("credit"),
        )
        return (agg["debit"] or Decimal("0.00"), agg["credit"] or Decimal("0.00"))

    def clean(self):
        if self.reference is not None:
            ref = str(self.reference).strip()
            self.reference = ref or None

        self.description = (self.description or "").strip()
        if not self.description:
            raise ValidationError("Journal entry description is required")

    def save(self, *args, **kwargs):
        if self.pk:
            previous = (
                type(self).objects.filter(pk=self.pk).values_list("status", flat=True).first()
            )
            if previous == self.STATUS_VOIDED:
                raise ValidationError("VOIDED journal entries are frozen")
            if previous == self.STATUS_POSTED:
                update_fields = set(kwargs.get("update_fields") or ())
                if self.status != self.STATUS_VOIDED or not update_fields or not (
                    update_fields <= self.VOID_FIELDS
                ):
                    raise ValidationError(
                        "POSTED journal entries are immutable; void them with a reversing entry"
                    )

        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        if self.status != self.STATUS_DRAFT:
            raise ValidationError("Only DRAFT journal entries can be deleted")
        return super().delete(*args, **kwargs)


class JournalEntryLine(models.Model):
    """
    Single debit or credit line of a journal entry.

    Exactly one of debit/credit is non-zero; the account must be a leaf.
    """

    entry = models.ForeignKey(
        JournalEntry,
        on_delete=models.CASCADE,
        related_name="lines",
    )

    account = models.ForeignKey(
        "accounting.Account",
        on_delete=models.PROTECT,
        related_name="journal_lines",
    )

    debit = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))
    credit = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))

    description = models.CharField(max_length=255, blank=True, default="")

    position = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["entry", "position", "id"]
        indexes = [
            models.Index(fields=["account"], name="accounting__account_1f6a2b_idx"),
            models.Index(fields=["entry", "position"], name="accounting__entry_i_6c3d90_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(debit__gte=0) & Q(credit__gte=0),
                name="chk_journal_line_non_negative",
            ),
            models.CheckConstraint(
                condition=(Q(debit__gt=0) & Q(credit=0)) | (Q(debit=0) & Q(credit__gt=0)),
                name="chk_journal_line_one_side",
            ),
        ]
        verbose_name = "Journal Entry Line"
        verbose_name_plural = "Journal Entry Lines"

    def __str__(self):
        side = f"D {self.debit}" if self.debit else f"C {self.credit}"
        return f"{side} → {self.account}"

    def clean(self):
        debit = self.debit or Decimal("0.00")
        credit = self.credit or Decimal("0.00")

        if debit < 0 or credit < 0:
            raise ValidationError("Debit or credit cannot be negative")
        if (debit > 0) == (credit > 0):
            raise ValidationError("A line must have exactly one of debit or credit")

        if self.account_id and not self.account.accepts_entries:
            raise ValidationError(
                f"Account {self.account.code} is not a leaf account and cannot receive entries"
            )

    def save(self, *args, **kwargs):
        if self.entry_id and self.entry.status != JournalEntry.STATUS_DRAFT:
            raise ValidationError("Lines of a non-DRAFT journal entry are immutable")

        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        if self.entry.status != JournalEntry.STATUS_DRAFT:
            raise ValidationError("Lines of a non-DRAFT journal entry cannot be deleted")
        return super().delete(*args, **kwargs)
