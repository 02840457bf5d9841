# sales/services/quote_lifecycle.py

"""
======================================================
PATH: sales/services/quote_lifecycle.py
======================================================
QUOTE LIFECYCLE

The only allowed quote status transitions. Reverts (CONVERTED -> ACCEPTED,
ACCEPTED -> DRAFT, CANCELLED -> DRAFT) are allowed explicitly; REJECTED and
EXPIRED are terminal. A quote with active invoices never goes back to DRAFT.

Every change writes a QuoteStatusHistory row in the same transaction.
"""

from __future__ import annotations

import logging

from django.db import transaction
from django.utils import timezone

from sales.models import Invoice, Quote, QuoteStatusHistory
from sales.services.exceptions import InvalidQuoteTransitionError, QuoteInvoicedError

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    Quote.STATUS_DRAFT: {
        Quote.STATUS_SENT,
        Quote.STATUS_ACCEPTED,
        Quote.STATUS_REJECTED,
        Quote.STATUS_CANCELLED,
    },
    Quote.STATUS_SENT: {
        Quote.STATUS_ACCEPTED,
        Quote.STATUS_REJECTED,
        Quote.STATUS_EXPIRED,
        Quote.STATUS_CANCELLED,
    },
    Quote.STATUS_ACCEPTED: {
        Quote.STATUS_CONVERTED,
        Quote.STATUS_REJECTED,
        Quote.STATUS_CANCELLED,
        Quote.STATUS_DRAFT,
    },
    Quote.STATUS_CONVERTED: {Quote.STATUS_ACCEPTED},
    Quote.STATUS_CANCELLED: {Quote.STATUS_DRAFT},
    Quote.STATUS_REJECTED: set(),
    Quote.STATUS_EXPIRED: set(),
}

REVERTS = {
    (Quote.STATUS_CONVERTED, Quote.STATUS_ACCEPTED),
    (Quote.STATUS_ACCEPTED, Quote.STATUS_DRAFT),
    (Quote.STATUS_CANCELLED, Quote.STATUS_DRAFT),
}

RESPONSE_STATUSES = {Quote.STATUS_ACCEPTED, Quote.STATUS_REJECTED}


def can_transition(from_status: str, to_status: str) -> bool:
    return to_status in ALLOWED_TRANSITIONS.get(from_status, set())


def is_revert(from_status: str, to_status: str) -> bool:
    return (from_status, to_status) in REVERTS


def record_status(quote: Quote, *, from_status: str, to_status: str, user=None, notes: str = ""):
    return QuoteStatusHistory.objects.create(
        quote=quote,
        from_status=from_status,
        to_status=to_status,
        changed_by=user,
        notes=notes or "",
    )


@transaction.atomic
def change_quote_status(quote_id, to_status: str, *, user=None, notes: str = "") -> Quote:
    quote = Quote.objects.select_for_update().get(pk=quote_id)
    from_status = quote.status

    if not can_transition(from_status, to_status):
        raise InvalidQuoteTransitionError(from_status, to_status)
    if to_status == Quote.STATUS_DRAFT and quote.invoices.exclude(status=Invoice.STATUS_CANCELLED).exists():
        raise QuoteInvoicedError(
            f"Quote {quote.number} has active invoices; cancel them before returning it to DRAFT"
        )

    now = timezone.now()
    revert = is_revert(from_status, to_status)

    quote.status = to_status
    quote.status_changed_at = now
    quote.status_changed_by = user

    if to_status in RESPONSE_STATUSES and not revert:
        quote.responded_at = now
        if notes:
            quote.response_notes = notes

    if to_status == Quote.STATUS_DRAFT:
        # back to draft: the customer's previous answer no longer applies
        quote.responded_at = None
        quote.response_notes = ""

    quote.save(
        update_fields=[
            "status",
            "status_changed_at",
            "status_changed_by",
            "responded_at",
            "response_notes",
            "updated_at",
        ]
    )
    record_status(quote, from_status=from_status, to_status=to_status, user=user, notes=notes)

    logger.info(
        "quote status changed",
        extra={"quote": quote.number, "from": from_status, "to": to_status, "revert": revert},
    )
    return quote
