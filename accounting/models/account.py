# accounting/models/account.py

from __future__ import annotations

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q


class Account(models.Model):
    """
    A single account of the (Argentine) chart of accounts.

    Guarantees:
    - Account codes are globally unique dotted codes (e.g. 1.1.05.001)
    - level is derived from the number of code segments
    - Only leaf accounts (accepts_entries=True) may receive journal lines
    """

    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    EQUITY = "EQUITY"
    REVENUE = "REVENUE"
    EXPENSE = "EXPENSE"

    ACCOUNT_TYPES = [
        (ASSET, "Activo"),
        (LIABILITY, "Pasivo"),
        (EQUITY, "Patrimonio Neto"),
        (REVENUE, "Ingresos"),
        (EXPENSE, "Egresos"),
    ]

    code = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=150)
    description = models.TextField(blank=True, default="")

    account_type = models.CharField(
        max_length=20,
        choices=ACCOUNT_TYPES,
    )

    parent = models.ForeignKey(
        "self",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="children",
    )

    level = models.PositiveSmallIntegerField(default=1)

    accepts_entries = models.BooleanField(
        default=False,
        help_text="Leaf account: only these may appear on journal lines",
    )

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["code"]
        verbose_name = "Account"
        verbose_name_plural = "Accounts"
        indexes = [
            models.Index(fields=["account_type"], name="accounting__account_8b5f4e_idx"),
            models.Index(fields=["accepts_entries"], name="accounting__accepts_3c1a9d_idx"),
            models.Index(fields=["is_active"], name="accounting__is_acti_7d2e61_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=~Q(code=""),
                name="chk_account_code_not_blank",
            ),
            models.CheckConstraint(
                condition=~Q(name=""),
                name="chk_account_name_not_blank",
            ),
        ]

    def __str__(self):
        return f"{self.code} – {self.name}"

    @property
    def is_leaf(self) -> bool:
        return bool(self.accepts_entries)

    def clean(self):
        self.code = (self.code or "").strip()
        self.name = (self.name or "").strip()

        if not self.code:
            raise ValidationError("Account code is required")
        if not self.name:
            raise ValidationError("Account name is required")

        segments = self.code.split(".")
        if any(not s.isdigit() for s in segments):
            raise ValidationError(
                f"Account code {self.code!r} must be dotted numeric segments"
            )
        self.level = len(segments)

        if self.parent_id:
            if self.parent.accepts_entries:
                raise ValidationError(
                    f"Parent account {self.parent.code} is a leaf and cannot have children"
                )
            if not self.code.startswith(f"{self.parent.code}."):
                raise ValidationError(
                    f"Account {self.code} must be nested under parent code {self.parent.code}"
                )
            if self.parent.account_type != self.account_type:
                raise ValidationError(
                    f"Account {self.code} must share its parent's type ({self.parent.account_type})"
                )

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
