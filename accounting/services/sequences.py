# accounting/services/sequences.py

"""
======================================================
PATH: accounting/services/sequences.py
======================================================
DOCUMENT NUMBERING

next_value(name, floor=...)
1) Lock the DocumentSequence row for `name` (create it on first use)
2) Take max(last_value, floor()) + 1 and store it

Rules:
- must run inside the caller's transaction; the lock is held until commit
- `floor` reports the highest number already in use, so a series created
  over existing documents (or after a manual import) never reissues one
- two first-use writers racing on the insert both end up on the same row
"""

from __future__ import annotations

import logging
from typing import Callable

from django.db import IntegrityError, transaction

from accounting.models.sequence import DocumentSequence

logger = logging.getLogger(__name__)


def _locked_row(name: str) -> DocumentSequence:
    row = DocumentSequence.objects.select_for_update().filter(name=name).first()
    if row is not None:
        return row
    try:
        with transaction.atomic():
            DocumentSequence.objects.create(name=name)
    except IntegrityError:
        # another transaction created the row first; wait on its lock below
        logger.debug("document sequence created concurrently", extra={"sequence": name})
    return DocumentSequence.objects.select_for_update().get(name=name)


def next_value(name: str, *, floor: Callable[[], int] | None = None) -> int:
    if not transaction.get_connection().in_atomic_block:
        raise RuntimeError("next_value() must run inside a transaction")

    row = _locked_row(name)
    current = max(row.last_value, floor() if floor else 0)
    row.last_value = current + 1
    row.save(update_fields=["last_value", "updated_at"])
    return row.last_value
