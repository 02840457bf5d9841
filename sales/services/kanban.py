# sales/services/kanban.py

"""
INVOICING BOARD

Read-side grouping of ACCEPTED quotes by stock readiness of their main
(non-alternative) lines:

- ready   : every line is in stock
- partial : some lines are in stock
- pending : none are (or the quote has no main lines)

A line is in stock when its delivery time is empty, "inmediato",
"inmediata" or "stock". Quotes with nothing left to invoice are left off
the board.
"""

from __future__ import annotations

import re
from decimal import Decimal

from django.db.models import Prefetch

from sales.models import Invoice, InvoiceItem, Quote, QuoteItem

COLUMN_READY = "ready"
COLUMN_PARTIAL = "partial"
COLUMN_PENDING = "pending"
COLUMNS = (COLUMN_READY, COLUMN_PARTIAL, COLUMN_PENDING)

IN_STOCK_WORDS = {"inmediato", "inmediata", "stock"}
TO_CONFIRM = "A confirmar"
IMMEDIATE = "Inmediato"

_RANGE_RE = re.compile(r"(\d+)\s*[-a]\s*(\d+)\s*d[ií]as?")
_DAYS_RE = re.compile(r"(\d+)\s*d[ií]as?")


def is_item_in_stock(delivery_time: str | None) -> bool:
    if not delivery_time or not delivery_time.strip():
        return True
    return delivery_time.strip().lower() in IN_STOCK_WORDS


def parse_delivery_days(delivery_time: str | None) -> int | None:
    """
    0 for immediate delivery, the (upper) number of days for "15 días" or
    "7-10 días", None when the text is not a lead time ("A confirmar").
    """
    if is_item_in_stock(delivery_time):
        return 0
    text = delivery_time.strip().lower()

    match = _RANGE_RE.search(text)
    if match:
        return int(match.group(2))
    match = _DAYS_RE.search(text)
    if match:
        return int(match.group(1))
    return None


def _main_items(items):
    return [item for item in items if not item.is_alternative]


def farthest_delivery(items) -> str:
    max_days = 0
    unparseable = False
    for item in _main_items(items):
        days = parse_delivery_days(item.delivery_time)
        if days is None:
            unparseable = True
        elif days > max_days:
            max_days = days

    if max_days > 0:
        return f"{max_days} días"
    return TO_CONFIRM if unparseable else IMMEDIATE


def classify_quote(items) -> str:
    main = _main_items(items)
    if not main:
        return COLUMN_PENDING

    ready = sum(1 for item in main if is_item_in_stock(item.delivery_time))
    if ready == len(main):
        return COLUMN_READY
    if ready == 0:
        return COLUMN_PENDING
    return COLUMN_PARTIAL


def _invoiced(item: QuoteItem) -> Decimal:
    # invoice_items is prefetched without cancelled invoices
    return sum((line.quantity for line in item.invoice_items.all()), Decimal("0"))


def _card(quote: Quote) -> dict | None:
    main = _main_items(quote.items.all())
    lines = []
    for item in main:
        invoiced = _invoiced(item)
        lines.append(
            {
                "id": item.id,
                "description": item.label,
                "sku": item.product.sku if item.product_id else None,
                "quantity": item.quantity,
                "invoiced_quantity": invoiced,
                "remaining_quantity": item.quantity - invoiced,
                "delivery_time": item.delivery_time,
                "in_stock": is_item_in_stock(item.delivery_time),
            }
        )

    if all(line["remaining_quantity"] <= 0 for line in lines):
        return None

    return {
        "id": quote.id,
        "number": quote.number,
        "customer": {"id": quote.customer_id, "name": quote.customer.name},
        "currency": quote.currency,
        "subtotal": quote.subtotal,
        "exchange_rate": quote.exchange_rate,
        "issue_date": quote.issue_date,
        "column": classify_quote(main),
        "farthest_delivery": farthest_delivery(main),
        "ready_items": sum(1 for line in lines if line["in_stock"]),
        "total_items": len(lines),
        "items": lines,
    }


def kanban_board(*, customer=None, currency: str | None = None, date_from=None, date_to=None) -> dict:
    open_lines = InvoiceItem.objects.exclude(invoice__status=Invoice.STATUS_CANCELLED)
    quotes = (
        Quote.objects.filter(status=Quote.STATUS_ACCEPTED)
        .select_related("customer")
        .prefetch_related(
            Prefetch(
                "items",
                queryset=QuoteItem.objects.select_related("product").prefetch_related(
                    Prefetch("invoice_items", queryset=open_lines)
                ),
            )
        )
        .order_by("-issue_date", "-created_at")
    )
    if customer is not None:
        quotes = quotes.filter(customer=customer)
    if currency:
        quotes = quotes.filter(currency=currency.upper())
    if date_from:
        quotes = quotes.filter(issue_date__gte=date_from)
    if date_to:
        quotes = quotes.filter(issue_date__lte=date_to)

    board = {column: [] for column in COLUMNS}
    for quote in quotes:
        card = _card(quote)
        if card is not None:
            board[card["column"]].append(card)

    result = {}
    for column, cards in board.items():
        totals: dict[str, Decimal] = {}
        for card in cards:
            totals[card["currency"]] = totals.get(card["currency"], Decimal("0.00")) + card["subtotal"]
        result[column] = {"count": len(cards), "totals": totals, "quotes": cards}
    return result
