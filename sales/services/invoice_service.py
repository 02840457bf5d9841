# sales/services/invoice_service.py

"""
======================================================
PATH: sales/services/invoice_service.py
======================================================
SALES INVOICE LIFECYCLE

issue_invoice()  (one transaction)
1) Lock invoice, require DRAFT with lines, stock not yet impacted
2) Unit cost per product line (latest purchase / positive adjustment,
   else cost price)
3) Post the CMV entry (idempotent by SALES_INVOICE_CMV:<id>; none when the
   cost is zero)
4) VENTA movements linked to that entry
5) Customer balance += total in ledger currency; status PENDING

cancel_invoice()
- DRAFT   : allowed while stock is untouched
- PENDING : stock returned (DEVOLUCION_CLIENTE), CMV entry voided,
            customer balance restored; refused once receipts were applied
- The cancelled lines stop counting as invoiced, so a CONVERTED quote
  returns to ACCEPTED.

mark_overdue_invoices()
- Open invoices past their due date with a balance become OVERDUE.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from accounting.services.document_totals import q2
from accounting.services.journal_entry_service import make_reference, void_entry
from accounting.services.posting_rules_cmv import CostLine, CostOfSalesEvent, post_cost_of_goods_sold
from products.models import StockMovement
from products.services.exceptions import StockImpactError
from products.services.inventory import latest_unit_cost, record_stock_movement
from sales.models import Customer, Invoice, Quote
from sales.services.exceptions import InvoiceStateError
from sales.services.fulfillment_service import is_fully_invoiced
from sales.services.quote_lifecycle import record_status

logger = logging.getLogger(__name__)

REFERENCE_TYPE = "SALES_INVOICE"


def _get_locked(invoice_id) -> Invoice:
    return Invoice.objects.select_for_update().select_related("customer", "quote").get(pk=invoice_id)


def ledger_amount(invoice: Invoice, amount: Decimal) -> Decimal:
    return q2(Decimal(str(amount)) * Decimal(str(invoice.exchange_rate or 1)))


def _adjust_customer_balance(customer: Customer, delta: Decimal) -> None:
    Customer.objects.filter(pk=customer.pk).update(balance=F("balance") + delta)


@transaction.atomic
def issue_invoice(invoice_id, *, user=None) -> Invoice:
    invoice = _get_locked(invoice_id)

    if invoice.status != Invoice.STATUS_DRAFT:
        raise InvoiceStateError(f"Invoice {invoice.number} is {invoice.status}; only DRAFT invoices can be issued")
    if invoice.stock_impacted:
        raise StockImpactError(f"Invoice {invoice.number} already impacted stock")

    lines = list(invoice.items.select_related("product").order_by("position", "id"))
    if not lines:
        raise InvoiceStateError(f"Invoice {invoice.number} has no items")

    reference = make_reference(REFERENCE_TYPE, invoice.pk)
    stocked = [line for line in lines if line.product_id]
    costs = {line.pk: latest_unit_cost(line.product) for line in stocked}

    entry = post_cost_of_goods_sold(
        CostOfSalesEvent(
            document_id=invoice.pk,
            document_number=invoice.number,
            issue_date=invoice.issue_date,
            lines=[
                CostLine(
                    description=line.description,
                    quantity=line.quantity,
                    unit_cost=costs[line.pk].amount,
                    currency=costs[line.pk].currency,
                )
                for line in stocked
            ],
        ),
        user=user,
    )

    for line in stocked:
        record_stock_movement(
            product=line.product,
            movement_type=StockMovement.MovementType.VENTA,
            quantity=line.quantity,
            unit_cost=costs[line.pk].amount,
            currency=costs[line.pk].currency,
            reference=reference,
            notes=f"Venta {invoice.label}",
            user=user,
            journal_entry=entry,
        )

    now = timezone.now()
    invoice.status = Invoice.STATUS_PENDING
    invoice.journal_entry = entry
    invoice.stock_impacted = True
    invoice.stock_impacted_at = now
    invoice.issued_at = now
    invoice.save(
        update_fields=[
            "status",
            "journal_entry",
            "stock_impacted",
            "stock_impacted_at",
            "issued_at",
            "updated_at",
        ]
    )
    _adjust_customer_balance(invoice.customer, ledger_amount(invoice, invoice.total))

    logger.info(
        "sales invoice issued",
        extra={
            "invoice": invoice.number,
            "customer": str(invoice.customer_id),
            "cmv_entry": entry.entry_number if entry else None,
            "lines": len(lines),
        },
    )
    return invoice


@transaction.atomic
def cancel_invoice(invoice_id, *, user=None, reason: str = "") -> Invoice:
    invoice = _get_locked(invoice_id)

    if invoice.status == Invoice.STATUS_DRAFT:
        if invoice.stock_impacted:
            raise InvoiceStateError(f"Invoice {invoice.number} already moved stock")
    elif invoice.status == Invoice.STATUS_PENDING:
        if invoice.paid_amount > 0:
            raise InvoiceStateError(f"Invoice {invoice.number} has receipts applied and cannot be cancelled")
        _reverse_issue(invoice, user=user, reason=reason)
    else:
        raise InvoiceStateError(
            f"Invoice {invoice.number} is {invoice.status}; only DRAFT or PENDING invoices can be cancelled"
        )

    invoice.status = Invoice.STATUS_CANCELLED
    invoice.balance = Decimal("0.00")
    invoice.cancelled_at = timezone.now()
    if reason:
        invoice.notes = f"{invoice.notes}\nAnulada: {reason}".strip()
    invoice.save(update_fields=["status", "balance", "cancelled_at", "notes", "updated_at"])

    _release_quote(invoice, user=user)

    logger.info("sales invoice cancelled", extra={"invoice": invoice.number, "reason": reason})
    return invoice


def _reverse_issue(invoice: Invoice, *, user=None, reason: str = "") -> None:
    reversal = None
    if invoice.journal_entry_id:
        reversal = void_entry(
            invoice.journal_entry_id,
            reason=reason or f"Anulación {invoice.label}",
            user=user,
        )

    if invoice.stock_impacted:
        sold = StockMovement.objects.filter(
            reference=make_reference(REFERENCE_TYPE, invoice.pk),
            movement_type=StockMovement.MovementType.VENTA,
        ).select_related("product")
        for movement in sold:
            record_stock_movement(
                product=movement.product,
                movement_type=StockMovement.MovementType.DEVOLUCION_CLIENTE,
                quantity=abs(movement.quantity),
                unit_cost=movement.unit_cost,
                currency=movement.currency,
                reference=make_reference("SALES_INVOICE_CANCEL", invoice.pk),
                notes=f"Anulación {invoice.label}",
                user=user,
                journal_entry=reversal,
            )

    _adjust_customer_balance(invoice.customer, -ledger_amount(invoice, invoice.total))


def _release_quote(invoice: Invoice, *, user=None) -> None:
    if not invoice.quote_id:
        return
    quote = Quote.objects.select_for_update().get(pk=invoice.quote_id)
    if quote.status == Quote.STATUS_CONVERTED and not is_fully_invoiced(quote):
        quote.status = Quote.STATUS_ACCEPTED
        quote.status_changed_at = timezone.now()
        quote.status_changed_by = user
        quote.save(update_fields=["status", "status_changed_at", "status_changed_by", "updated_at"])
        record_status(
            quote,
            from_status=Quote.STATUS_CONVERTED,
            to_status=Quote.STATUS_ACCEPTED,
            user=user,
            notes=f"Factura {invoice.number} anulada",
        )


@transaction.atomic
def mark_overdue_invoices(today=None) -> int:
    today = today or timezone.localdate()
    updated = Invoice.objects.filter(
        status__in=(Invoice.STATUS_PENDING, Invoice.STATUS_AUTHORIZED, Invoice.STATUS_SENT),
        due_date__lt=today,
        balance__gt=0,
    ).update(status=Invoice.STATUS_OVERDUE, updated_at=timezone.now())
    if updated:
        logger.info("invoices marked overdue", extra={"count": updated, "as_of": str(today)})
    return updated
