# sales/services/fulfillment_service.py

"""
======================================================
PATH: sales/services/fulfillment_service.py
======================================================
QUOTE FULFILLMENT

An ACCEPTED quote is invoiced in one or more partial invoices.

Per quote line:
    invoiced  = sum of quantities on non-cancelled invoice lines
    remaining = quoted - invoiced          (never negative)

generate_invoice_from_quote()  (one transaction, quote row locked)
1) Quote must be ACCEPTED; foreign-currency quotes need an exchange rate
2) Every requested quantity must be > 0 and <= remaining (OverInvoiceError)
3) Invoice letter and VAT rate from the customer's tax condition
4) DRAFT invoice created with lines pointing at the consumed quote lines
5) Quote moves to CONVERTED once nothing is left to invoice; partial
   invoices leave an ACCEPTED -> ACCEPTED history row

Alternative lines are never invoiced and do not block conversion.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from accounting.services.date_ranges import DueInterval, as_date
from accounting.services.document_totals import LineInput, compute_totals
from accounting.services.exchange_rates import ledger_currency
from accounting.services.sequences import next_value
from sales.models import Customer, Invoice, InvoiceItem, Quote, QuoteItem
from sales.services.exceptions import FulfillmentError, OverInvoiceError
from sales.services.quote_lifecycle import record_status

logger = logging.getLogger(__name__)

ZERO_QTY = Decimal("0.000")

VAT_RATE_BY_INVOICE_TYPE = {
    Invoice.TYPE_A: Decimal("21.00"),
    Invoice.TYPE_B: Decimal("0.00"),
    Invoice.TYPE_C: Decimal("0.00"),
    Invoice.TYPE_E: Decimal("0.00"),
}


@dataclass(frozen=True)
class InvoiceLineRequest:
    quote_item_id: int
    quantity: Decimal


# =========================================================
# Quantities
# =========================================================
def invoiced_quantity(item: QuoteItem, *, exclude_invoice=None) -> Decimal:
    qs = item.invoice_items.exclude(invoice__status=Invoice.STATUS_CANCELLED)
    if exclude_invoice is not None:
        qs = qs.exclude(invoice=exclude_invoice)
    return qs.aggregate(total=Sum("quantity"))["total"] or ZERO_QTY


def remaining_quantity(item: QuoteItem) -> Decimal:
    return max(item.quantity - invoiced_quantity(item), ZERO_QTY)


def quote_progress(quote: Quote) -> dict:
    items = []
    fully_invoiced = True
    for item in quote.items.select_related("product").all():
        invoiced = invoiced_quantity(item)
        remaining = max(item.quantity - invoiced, ZERO_QTY)
        if not item.is_alternative and remaining > 0:
            fully_invoiced = False
        items.append(
            {
                "id": item.id,
                "position": item.position,
                "description": item.label,
                "sku": item.product.sku if item.product_id else None,
                "is_alternative": item.is_alternative,
                "quantity": item.quantity,
                "invoiced_quantity": invoiced,
                "remaining_quantity": remaining,
            }
        )

    main = [i for i in items if not i["is_alternative"]]
    return {
        "quote": quote.id,
        "number": quote.number,
        "status": quote.status,
        "items": items,
        "total_quantity": sum((i["quantity"] for i in main), ZERO_QTY),
        "invoiced_quantity": sum((i["invoiced_quantity"] for i in main), ZERO_QTY),
        "fully_invoiced": bool(main) and fully_invoiced,
    }


def is_fully_invoiced(quote: Quote) -> bool:
    main = [item for item in quote.items.all() if not item.is_alternative]
    return bool(main) and all(remaining_quantity(item) <= 0 for item in main)


# =========================================================
# Invoice letter / numbering
# =========================================================
def determine_invoice_type(tax_condition: str, export: bool = False) -> str:
    if export or tax_condition == Customer.TAX_EXTERIOR:
        return Invoice.TYPE_E
    if tax_condition == Customer.TAX_RESPONSABLE_INSCRIPTO:
        return Invoice.TYPE_A
    if tax_condition == Customer.TAX_EXENTO:
        return Invoice.TYPE_C
    return Invoice.TYPE_B


def vat_rate_for(invoice_type: str) -> Decimal:
    return VAT_RATE_BY_INVOICE_TYPE.get(invoice_type, Decimal("0.00"))


def next_invoice_number(invoice_type: str, point_of_sale: str | None = None) -> str:
    pos = str(point_of_sale or settings.LEDGER["DEFAULT_POINT_OF_SALE"]).zfill(4)

    def highest() -> int:
        last = (
            Invoice.objects.filter(invoice_type=invoice_type, number__startswith=f"{pos}-")
            .order_by("-number")
            .values_list("number", flat=True)
            .first()
        )
        return int(last.split("-", 1)[1]) if last else 0

    seq = next_value(f"sales_invoice:{invoice_type}:{pos}", floor=highest)
    return f"{pos}-{seq:08d}"


def due_interval_for(customer: Customer) -> DueInterval:
    if customer.payment_terms_days is not None:
        return DueInterval(customer.payment_terms_days)
    return DueInterval(settings.LEDGER["DEFAULT_DUE_DAYS"])


# =========================================================
# Generation
# =========================================================
def _merge_requests(lines: list[InvoiceLineRequest]) -> dict[int, Decimal]:
    merged: dict[int, Decimal] = {}
    for line in lines:
        key = int(line.quote_item_id)
        merged[key] = merged.get(key, ZERO_QTY) + Decimal(str(line.quantity))
    return merged


@transaction.atomic
def generate_invoice_from_quote(
    quote_id,
    *,
    items: list[InvoiceLineRequest],
    user=None,
    issue_date=None,
    export: bool = False,
    point_of_sale: str | None = None,
    general_discount: Decimal = Decimal("0"),
    notes: str = "",
) -> Invoice:
    quote = Quote.objects.select_for_update().select_related("customer").get(pk=quote_id)

    if quote.status not in (Quote.STATUS_ACCEPTED, Quote.STATUS_CONVERTED):
        raise FulfillmentError(
            f"Quote {quote.number} is {quote.status}; only ACCEPTED quotes can be invoiced"
        )
    if not items:
        raise FulfillmentError("Select at least one quote item to invoice")

    base = ledger_currency()
    if quote.currency != base and not quote.exchange_rate:
        raise FulfillmentError(f"Quote {quote.number} in {quote.currency} has no exchange rate")

    quote_items = {item.id: item for item in quote.items.select_related("product")}
    requested = _merge_requests(items)

    for item_id, quantity in requested.items():
        item = quote_items.get(item_id)
        if item is None:
            raise FulfillmentError(f"Item {item_id} does not belong to quote {quote.number}")
        if item.is_alternative:
            raise FulfillmentError(f'Item "{item.label}" is an alternative and cannot be invoiced')
        remaining = remaining_quantity(item)
        if quantity <= 0 or quantity > remaining:
            raise OverInvoiceError(item=item.label, requested=quantity, remaining=remaining)

    if quote.status != Quote.STATUS_ACCEPTED:
        raise FulfillmentError(f"Quote {quote.number} is already fully invoiced")

    customer = quote.customer
    invoice_type = determine_invoice_type(customer.tax_condition, export=export)
    tax_rate = vat_rate_for(invoice_type)

    chosen = [(quote_items[item_id], quantity) for item_id, quantity in requested.items()]
    totals = compute_totals(
        [LineInput(unit_price=item.unit_price, quantity=qty, tax_rate=tax_rate) for item, qty in chosen],
        general_discount,
    )

    issue = as_date(issue_date or timezone.localdate())
    invoice = Invoice.objects.create(
        number=next_invoice_number(invoice_type, point_of_sale),
        invoice_type=invoice_type,
        status=Invoice.STATUS_DRAFT,
        customer=customer,
        quote=quote,
        currency=quote.currency,
        exchange_rate=quote.exchange_rate if quote.currency != base else Decimal("1"),
        issue_date=issue,
        due_date=due_interval_for(customer).due_date(issue),
        subtotal=totals.subtotal,
        discount_amount=totals.discount,
        tax_amount=totals.tax,
        total=totals.total,
        balance=totals.total,
        notes=notes or f"Cotización {quote.number}",
        created_by=user,
    )
    InvoiceItem.objects.bulk_create(
        [
            InvoiceItem(
                invoice=invoice,
                position=position,
                quote_item=item,
                product=item.product,
                description=item.label,
                quantity=qty,
                unit_price=item.unit_price,
                tax_rate=tax_rate,
                subtotal=line.subtotal,
            )
            for position, ((item, qty), line) in enumerate(zip(chosen, totals.lines), start=1)
        ]
    )

    if is_fully_invoiced(quote):
        quote.status = Quote.STATUS_CONVERTED
        quote.status_changed_at = timezone.now()
        quote.status_changed_by = user
        quote.save(update_fields=["status", "status_changed_at", "status_changed_by", "updated_at"])
        record_status(
            quote,
            from_status=Quote.STATUS_ACCEPTED,
            to_status=Quote.STATUS_CONVERTED,
            user=user,
            notes=f"Factura {invoice.number} (facturación completa)",
        )
    else:
        record_status(
            quote,
            from_status=Quote.STATUS_ACCEPTED,
            to_status=Quote.STATUS_ACCEPTED,
            user=user,
            notes=f"Facturación parcial: factura {invoice.number} ({len(chosen)} ítems)",
        )

    logger.info(
        "invoice generated from quote",
        extra={
            "quote": quote.number,
            "invoice": invoice.number,
            "invoice_type": invoice_type,
            "converted": quote.status == Quote.STATUS_CONVERTED,
        },
    )
    return invoice
