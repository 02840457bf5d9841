# purchases/services/credit_note_service.py

"""
======================================================
PATH: purchases/services/credit_note_service.py
======================================================
PURCHASE CREDIT NOTE (RETURN) SERVICE

issue_credit_note(original_invoice_id, items=[(original_item_id, quantity, reason)])

In one transaction:
1) Lock the original invoice (must be an APPROVED or PAID FACTURA)
2) Validate each returned quantity against what is still returnable
   (original quantity minus earlier credit notes)
3) Totals: the original general discount applies to every returned line,
   tax re-derived per line from its net amount
4) Create the NOTA_CREDITO document, auto-APPROVED, balance 0
5) Supplier balance -= total; original balance = max(0, balance - total)
6) Post the reversing journal entry (PURCHASE_CREDIT_NOTE:<id>)
7) DEVOLUCION_PROVEEDOR stock movements (InsufficientStockError rolls back)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from accounting.services.document_totals import q2
from accounting.services.journal_entry_service import make_reference
from accounting.services.posting_rules_credit_note import (
    REFERENCE_TYPE,
    CreditNoteEvent,
    ReturnedItem,
    compute_credit_note,
    post_credit_note,
)
from products.models import StockMovement
from products.services.inventory import record_stock_movement
from purchases.models import PurchaseInvoice, PurchaseInvoiceItem, Supplier
from purchases.services.exceptions import CreditNoteError
from purchases.services.purchase_service import document_rate

logger = logging.getLogger(__name__)

RETURNABLE_STATUSES = {PurchaseInvoice.STATUS_APPROVED, PurchaseInvoice.STATUS_PAID}


@dataclass(frozen=True)
class ReturnLineInput:
    original_item_id: int
    quantity: Decimal
    reason: str = ""


def returned_quantity(item: PurchaseInvoiceItem) -> Decimal:
    total = (
        PurchaseInvoiceItem.objects.filter(original_item=item)
        .exclude(invoice__status=PurchaseInvoice.STATUS_CANCELLED)
        .aggregate(total=Sum("quantity"))
        .get("total")
    )
    return Decimal(total or 0)


def _validated_lines(original: PurchaseInvoice, items: list[ReturnLineInput]):
    if not items:
        raise CreditNoteError("Select at least one item to return")

    by_id = {item.pk: item for item in original.items.select_related("product", "account")}
    requested: dict[int, Decimal] = {}
    lines = []

    for line in items:
        item = by_id.get(line.original_item_id)
        if item is None:
            raise CreditNoteError(
                f"Item {line.original_item_id} does not belong to invoice {original.number}"
            )

        qty = Decimal(str(line.quantity))
        if qty <= 0:
            raise CreditNoteError(f"Return quantity for item {item.pk} must be greater than zero")

        requested[item.pk] = requested.get(item.pk, Decimal("0")) + qty
        returnable = Decimal(item.quantity) - returned_quantity(item)
        if requested[item.pk] > returnable:
            raise CreditNoteError(
                f"Return quantity {requested[item.pk]} for item {item.pk} "
                f"({item.description}) exceeds the returnable quantity {returnable}"
            )
        lines.append((item, qty, (line.reason or "").strip()))

    return lines


@transaction.atomic
def issue_credit_note(
    original_invoice_id,
    *,
    number: str,
    items: list[ReturnLineInput],
    issue_date=None,
    reason: str = "",
    user=None,
) -> PurchaseInvoice:
    try:
        original = (
            PurchaseInvoice.objects.select_for_update()
            .select_related("supplier")
            .get(pk=original_invoice_id)
        )
    except PurchaseInvoice.DoesNotExist as exc:
        raise CreditNoteError(f"Purchase invoice {original_invoice_id} not found") from exc

    if original.is_credit_note:
        raise CreditNoteError("A credit note cannot be issued against another credit note")
    if original.status not in RETURNABLE_STATUSES:
        raise CreditNoteError(
            f"Invoice {original.number} is {original.status}; only approved invoices accept returns"
        )

    number = (number or "").strip()
    if not number:
        raise CreditNoteError("Credit note number is required")
    if PurchaseInvoice.objects.filter(
        supplier=original.supplier, document_type=PurchaseInvoice.DOC_NOTA_CREDITO, number=number
    ).exists():
        raise CreditNoteError(f"Credit note {number} already exists for {original.supplier.name}")

    lines = _validated_lines(original, items)
    issue_date = issue_date or timezone.localdate()

    returned = [
        ReturnedItem(
            unit_price=item.unit_price,
            quantity=qty,
            tax_rate=item.tax_rate,
            account=item.account,
            description=f"Devolución: {item.description}" + (f" - {why}" if why else ""),
        )
        for item, qty, why in lines
    ]
    totals = compute_credit_note(returned, original.general_discount)

    credit_note = PurchaseInvoice.objects.create(
        supplier=original.supplier,
        document_type=PurchaseInvoice.DOC_NOTA_CREDITO,
        invoice_type=original.invoice_type,
        number=number,
        status=PurchaseInvoice.STATUS_APPROVED,
        issue_date=issue_date,
        due_date=issue_date,
        currency=original.currency,
        exchange_rate=original.exchange_rate,
        general_discount=original.general_discount,
        subtotal=totals.subtotal,
        discount_amount=totals.discount,
        net_amount=totals.net,
        tax_amount=totals.tax,
        total=totals.total,
        balance=Decimal("0.00"),
        stock_impacted=True,
        stock_impacted_at=timezone.now(),
        original_invoice=original,
        notes=reason or f"Nota de crédito por devolución - Ref: {original.number}",
        created_by=user,
        approved_by=user,
        approved_at=timezone.now(),
    )
    PurchaseInvoiceItem.objects.bulk_create(
        [
            PurchaseInvoiceItem(
                invoice=credit_note,
                original_item=item,
                position=index,
                product=item.product,
                account=item.account,
                description=r.description[:255],
                quantity=qty,
                unit_price=item.unit_price,
                tax_rate=item.tax_rate,
                subtotal=line_totals.subtotal,
            )
            for index, ((item, qty, _why), r, line_totals) in enumerate(
                zip(lines, returned, totals.lines), start=1
            )
        ]
    )

    # Ledger amounts: same lines, priced in ledger currency.
    rate = document_rate(original)
    event = CreditNoteEvent(
        document_id=credit_note.pk,
        document_label=credit_note.label,
        supplier_name=original.supplier.name,
        issue_date=issue_date,
        items=[
            ReturnedItem(
                unit_price=Decimal(r.unit_price) * rate,
                quantity=r.quantity,
                tax_rate=r.tax_rate,
                account=r.account,
                description=r.description,
            )
            for r in returned
        ],
        general_discount=original.general_discount,
    )
    ledger_totals = compute_credit_note(event.items, event.general_discount)
    entry = post_credit_note(event, totals=ledger_totals, user=user)

    credit_note.journal_entry = entry
    credit_note.save(update_fields=["journal_entry", "updated_at"])

    supplier = Supplier.objects.select_for_update().get(pk=original.supplier_id)
    supplier.balance = q2(supplier.balance - ledger_totals.total)
    supplier.save(update_fields=["balance"])

    if original.balance > 0:
        original.balance = max(Decimal("0.00"), q2(original.balance - totals.total))
        original.save(update_fields=["balance", "updated_at"])

    reference = make_reference(REFERENCE_TYPE, credit_note.pk)
    for item, qty, _why in lines:
        if item.product_id is None:
            continue
        record_stock_movement(
            product=item.product,
            movement_type=StockMovement.MovementType.DEVOLUCION_PROVEEDOR,
            quantity=qty,
            unit_cost=item.unit_price,
            currency=original.currency,
            reference=reference,
            notes=f"Devolución a proveedor {credit_note.label}",
            user=user,
            journal_entry=entry,
        )

    logger.info(
        "purchase credit note issued",
        extra={
            "credit_note_id": str(credit_note.pk),
            "original_invoice_id": str(original.pk),
            "entry_id": entry.pk,
            "total": str(totals.total),
        },
    )
    return credit_note
