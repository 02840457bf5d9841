# accounting/models/sequence.py

"""
======================================================
PATH: accounting/models/sequence.py
======================================================
DOCUMENT SEQUENCE

One row per numbering series (journal entries, invoices per letter and
point of sale, receipts per point of sale). The row is locked with
SELECT ... FOR UPDATE while the next number is taken, so concurrent
writers queue on it even when the numbered table is still empty.

Only accounting.services.sequences touches this table.
"""

from __future__ import annotations

from django.db import models


class DocumentSequence(models.Model):
    name = models.CharField(max_length=64, unique=True)
    last_value = models.PositiveBigIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} = {self.last_value}"
