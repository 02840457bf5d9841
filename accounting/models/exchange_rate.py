# accounting/models/exchange_rate.py

"""
======================================================
PATH: accounting/models/exchange_rate.py
======================================================
EXCHANGE RATE (TIME-RANGED)

One row = "1 from_currency is worth <rate> to_currency" between valid_from
and valid_until (inclusive). valid_until NULL means "still in force".

Lookups must go through accounting.services.exchange_rates (which uses the
shared validity-window query in accounting.services.date_ranges).
"""

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Q


class ExchangeRate(models.Model):
    SOURCE_MANUAL = "MANUAL"
    SOURCE_BCRA = "BCRA"

    SOURCE_CHOICES = [
        (SOURCE_MANUAL, "Manual"),
        (SOURCE_BCRA, "BCRA"),
    ]

    from_currency = models.CharField(max_length=3)
    to_currency = models.CharField(max_length=3, default="ARS")

    rate = models.DecimalField(max_digits=16, decimal_places=6)

    valid_from = models.DateField()
    valid_until = models.DateField(null=True, blank=True)

    source = models.CharField(max_length=10, choices=SOURCE_CHOICES, default=SOURCE_MANUAL)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["from_currency", "-valid_from"]
        indexes = [
            models.Index(
                fields=["from_currency", "to_currency", "valid_from"],
                name="accounting__from_cu_4a9b0c_idx",
            ),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(rate__gt=0),
                name="chk_exchange_rate_positive",
            ),
            models.CheckConstraint(
                condition=Q(valid_until__isnull=True) | Q(valid_until__gte=F("valid_from")),
                name="chk_exchange_rate_window_order",
            ),
            models.UniqueConstraint(
                fields=["from_currency", "to_currency", "valid_from"],
                name="uniq_exchange_rate_pair_start",
            ),
        ]

    def __str__(self):
        until = self.valid_until or "…"
        return f"{self.from_currency}/{self.to_currency} {self.rate} [{self.valid_from} – {until}]"

    def clean(self):
        self.from_currency = (self.from_currency or "").strip().upper()
        self.to_currency = (self.to_currency or "").strip().upper()

        if self.from_currency == self.to_currency:
            raise ValidationError("Exchange rate currencies must differ")
        if self.rate is None or self.rate <= Decimal("0"):
            raise ValidationError("Exchange rate must be > 0")
        if self.valid_until and self.valid_until < self.valid_from:
            raise ValidationError("valid_until cannot be before valid_from")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
