# sales/services/quote_service.py

"""
QUOTE EDITING

Quotes are written here so the subtotal always matches the items.
Items can be replaced only while the quote is DRAFT.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from django.db import transaction

from accounting.services.document_totals import q2
from accounting.services.exchange_rates import ledger_currency
from sales.models import Quote, QuoteItem
from sales.services.exceptions import QuoteInvoicedError, SalesError

logger = logging.getLogger(__name__)

QUOTE_NUMBER_PREFIX = "COT-"


@dataclass(frozen=True)
class QuoteLineInput:
    quantity: Decimal
    unit_price: Decimal
    product: object = None
    description: str = ""
    is_alternative: bool = False
    delivery_time: str = ""


def next_quote_number() -> str:
    last = (
        Quote.objects.select_for_update()
        .filter(number__startswith=QUOTE_NUMBER_PREFIX)
        .order_by("-number")
        .values_list("number", flat=True)
        .first()
    )
    seq = int(last[len(QUOTE_NUMBER_PREFIX):]) + 1 if last else 1
    return f"{QUOTE_NUMBER_PREFIX}{seq:06d}"


def _write_items(quote: Quote, items: list[QuoteLineInput]) -> None:
    if not items:
        raise SalesError("A quote needs at least one item")

    subtotal = Decimal("0.00")
    rows = []
    for position, line in enumerate(items, start=1):
        if line.product is None and not line.description:
            raise SalesError(f"Item {position}: lines without a product need a description")
        row = QuoteItem(
            quote=quote,
            position=position,
            product=line.product,
            description=line.description or "",
            quantity=line.quantity,
            unit_price=line.unit_price,
            is_alternative=line.is_alternative,
            delivery_time=line.delivery_time or "",
        )
        if not row.is_alternative:
            subtotal += row.quantity * row.unit_price
        rows.append(row)

    QuoteItem.objects.bulk_create(rows)
    quote.subtotal = q2(subtotal)
    quote.save(update_fields=["subtotal", "updated_at"])


@transaction.atomic
def create_quote(
    *,
    customer,
    items: list[QuoteLineInput],
    currency: str | None = None,
    exchange_rate: Decimal | None = None,
    issue_date=None,
    valid_until=None,
    notes: str = "",
    user=None,
) -> Quote:
    quote = Quote(
        number=next_quote_number(),
        customer=customer,
        currency=(currency or ledger_currency()).upper(),
        exchange_rate=exchange_rate,
        valid_until=valid_until,
        notes=notes or "",
        created_by=user,
    )
    if issue_date:
        quote.issue_date = issue_date
    if quote.valid_until and quote.valid_until < quote.issue_date:
        raise SalesError("valid_until cannot be before the issue date")
    quote.save()

    _write_items(quote, items)
    logger.info("quote created", extra={"quote": quote.number, "customer": str(customer.pk)})
    return quote


@transaction.atomic
def update_quote(quote_id, *, items: list[QuoteLineInput] | None = None, **fields) -> Quote:
    quote = Quote.objects.select_for_update().get(pk=quote_id)
    if not quote.is_editable:
        raise SalesError(f"Quote {quote.number} is {quote.status}; only DRAFT quotes can be edited")

    editable = {"customer", "currency", "exchange_rate", "issue_date", "valid_until", "notes"}
    unknown = set(fields) - editable
    if unknown:
        raise SalesError(f"Fields not editable: {', '.join(sorted(unknown))}")

    for name, value in fields.items():
        if name == "currency" and value:
            value = value.upper()
        setattr(quote, name, value)
    if quote.valid_until and quote.valid_until < quote.issue_date:
        raise SalesError("valid_until cannot be before the issue date")
    quote.save()

    if items is not None:
        if quote.invoices.exists():
            raise QuoteInvoicedError(f"Quote {quote.number} has invoices; its items cannot be replaced")
        quote.items.all().delete()
        _write_items(quote, items)
    return quote


@transaction.atomic
def delete_quote(quote_id) -> None:
    quote = Quote.objects.select_for_update().get(pk=quote_id)
    if not quote.is_editable:
        raise SalesError(f"Quote {quote.number} is {quote.status}; only DRAFT quotes can be deleted")
    if quote.invoices.exists():
        raise QuoteInvoicedError(f"Quote {quote.number} has invoices and cannot be deleted")
    quote.delete()
