# purchases/services/purchase_service.py

"""
======================================================
PATH: purchases/services/purchase_service.py
======================================================
PURCHASE INVOICE SERVICE

create_purchase_invoice()
    DRAFT document; every total recomputed server-side from the lines.

approve_purchase_invoice()  (one transaction)
1) Lock invoice, require DRAFT FACTURA with lines
2) Convert figures to ledger currency (document rate, else rate table)
3) Post the journal entry (idempotent by PURCHASE_INVOICE:<id>)
4) Apply inventory: COMPRA movements + last_cost (stock_impacted guard)
5) Increase supplier balance, mark APPROVED

apply_purchase_inventory()
    The stock step on its own. A second call for the same invoice raises
    StockImpactError instead of double-counting stock.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from django.db import transaction
from django.utils import timezone

from accounting.services.document_totals import LineInput, compute_totals, q2
from accounting.services.exchange_rates import get_rate, ledger_currency
from accounting.services.journal_entry_service import make_reference
from accounting.services.posting_rules_purchase import (
    REFERENCE_TYPE,
    PerceptionAmount,
    PurchaseInvoiceEvent,
    PurchaseItemAmount,
    post_purchase_invoice,
)
from products.models import StockMovement
from products.services.exceptions import StockImpactError
from products.services.inventory import record_stock_movement
from purchases.models import PurchaseInvoice, PurchaseInvoiceItem, PurchasePerception, Supplier
from purchases.services.exceptions import PurchaseApprovalError, PurchaseError

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class PurchaseLineInput:
    quantity: Decimal
    unit_price: Decimal
    tax_rate: Decimal = Decimal("21.00")
    description: str = ""
    product: object = None
    account: object = None


@dataclass(frozen=True)
class PerceptionInput:
    jurisdiction: str
    amount: Decimal | None = None
    rate: Decimal = Decimal("0")
    base_amount: Decimal = Decimal("0")
    account: object = None

    def resolved_amount(self) -> Decimal:
        if self.amount is not None:
            return q2(self.amount)
        return q2(Decimal(str(self.base_amount)) * Decimal(str(self.rate)) / HUNDRED)


# =========================================================
# Helpers
# =========================================================
def document_rate(invoice: PurchaseInvoice) -> Decimal:
    """
    Ledger currency per unit of the document currency: 1 for ledger-currency
    documents, the rate frozen on the document, else the rate table.
    """
    if (invoice.currency or "").upper() == ledger_currency():
        return Decimal("1")
    if invoice.exchange_rate:
        return Decimal(invoice.exchange_rate)
    return get_rate(invoice.currency, invoice.issue_date)


def to_ledger(amount, rate: Decimal) -> Decimal:
    return (Decimal(str(amount or "0")) * rate).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _get_locked(invoice_id) -> PurchaseInvoice:
    try:
        return (
            PurchaseInvoice.objects.select_for_update()
            .select_related("supplier")
            .get(pk=invoice_id)
        )
    except PurchaseInvoice.DoesNotExist as exc:
        raise PurchaseError(f"Purchase invoice {invoice_id} not found") from exc


# =========================================================
# Create
# =========================================================
@transaction.atomic
def create_purchase_invoice(
    *,
    supplier: Supplier,
    number: str,
    issue_date,
    items: list[PurchaseLineInput],
    invoice_type: str = "A",
    due_date=None,
    currency: str = "ARS",
    exchange_rate=None,
    general_discount=Decimal("0"),
    perceptions: list[PerceptionInput] | None = None,
    notes: str = "",
    user=None,
) -> PurchaseInvoice:
    if not items:
        raise PurchaseError("A purchase invoice needs at least one item")
    if not supplier.is_active:
        raise PurchaseError(f"Supplier {supplier.name} is inactive")

    currency = (currency or ledger_currency()).upper()
    if currency != ledger_currency() and exchange_rate is None:
        exchange_rate = get_rate(currency, issue_date)

    try:
        totals = compute_totals(
            [LineInput(unit_price=i.unit_price, quantity=i.quantity, tax_rate=i.tax_rate) for i in items],
            general_discount,
        )
    except ValueError as exc:
        raise PurchaseError(str(exc)) from exc

    perceptions = perceptions or []
    perceptions_amount = sum((p.resolved_amount() for p in perceptions), Decimal("0.00"))
    total = q2(totals.total + perceptions_amount)

    invoice = PurchaseInvoice(
        supplier=supplier,
        document_type=PurchaseInvoice.DOC_FACTURA,
        invoice_type=invoice_type,
        number=(number or "").strip(),
        status=PurchaseInvoice.STATUS_DRAFT,
        issue_date=issue_date,
        due_date=due_date,
        currency=currency,
        exchange_rate=exchange_rate,
        general_discount=general_discount or Decimal("0"),
        subtotal=totals.subtotal,
        discount_amount=totals.discount,
        net_amount=totals.net,
        tax_amount=totals.tax,
        perceptions_amount=q2(perceptions_amount),
        total=total,
        balance=total,
        notes=notes or "",
        created_by=user,
    )
    if PurchaseInvoice.objects.filter(
        supplier=supplier, document_type=invoice.document_type, number=invoice.number
    ).exists():
        raise PurchaseError(f"Invoice {invoice.number} already exists for {supplier.name}")
    invoice.full_clean()
    invoice.save()

    PurchaseInvoiceItem.objects.bulk_create(
        [
            PurchaseInvoiceItem(
                invoice=invoice,
                position=index,
                product=item.product,
                account=item.account,
                description=item.description or getattr(item.product, "name", ""),
                quantity=item.quantity,
                unit_price=item.unit_price,
                tax_rate=item.tax_rate,
                subtotal=line.subtotal,
            )
            for index, (item, line) in enumerate(zip(items, totals.lines), start=1)
        ]
    )
    PurchasePerception.objects.bulk_create(
        [
            PurchasePerception(
                invoice=invoice,
                jurisdiction=p.jurisdiction,
                rate=p.rate or Decimal("0"),
                base_amount=p.base_amount or Decimal("0"),
                amount=p.resolved_amount(),
                account=p.account,
            )
            for p in perceptions
        ]
    )

    logger.info(
        "purchase invoice created",
        extra={"invoice_id": str(invoice.pk), "number": invoice.number, "total": str(total)},
    )
    return invoice


# =========================================================
# Inventory
# =========================================================
@transaction.atomic
def apply_purchase_inventory(invoice: PurchaseInvoice, *, user=None, journal_entry=None) -> list[StockMovement]:
    locked = PurchaseInvoice.objects.select_for_update().get(pk=invoice.pk)
    if locked.stock_impacted:
        raise StockImpactError(
            f"Stock for purchase invoice {locked.number} was already applied on {locked.stock_impacted_at}"
        )

    reference = make_reference(REFERENCE_TYPE, locked.pk)
    movements = []
    for item in locked.items.select_related("product").filter(product__isnull=False):
        movements.append(
            record_stock_movement(
                product=item.product,
                movement_type=StockMovement.MovementType.COMPRA,
                quantity=item.quantity,
                unit_cost=item.unit_price,
                currency=locked.currency,
                reference=reference,
                notes=f"Compra {locked.label}",
                user=user,
                update_last_cost=True,
                journal_entry=journal_entry,
            )
        )

    locked.stock_impacted = True
    locked.stock_impacted_at = timezone.now()
    locked.save(update_fields=["stock_impacted", "stock_impacted_at", "updated_at"])

    invoice.stock_impacted = True
    invoice.stock_impacted_at = locked.stock_impacted_at
    return movements


# =========================================================
# Approve
# =========================================================
def build_purchase_event(invoice: PurchaseInvoice) -> PurchaseInvoiceEvent:
    rate = document_rate(invoice)

    rows = list(invoice.items.select_related("account").order_by("position", "id"))
    totals = compute_totals(
        [LineInput(unit_price=r.unit_price, quantity=r.quantity, tax_rate=r.tax_rate) for r in rows],
        invoice.general_discount,
    )

    items = [
        PurchaseItemAmount(amount=to_ledger(line.net, rate), account=row.account, description=row.description)
        for row, line in zip(rows, totals.lines)
    ]
    perceptions = [
        PerceptionAmount(tax_type=p.jurisdiction, amount=to_ledger(p.amount, rate), account=p.account)
        for p in invoice.perceptions.select_related("account")
    ]
    tax = to_ledger(invoice.tax_amount, rate)
    # the payable is the stored document total; the posting rule checks it against the parts
    total = to_ledger(invoice.total, rate)

    return PurchaseInvoiceEvent(
        document_id=invoice.pk,
        document_label=invoice.label,
        supplier_name=invoice.supplier.name,
        issue_date=invoice.issue_date,
        total=total,
        tax_amount=tax,
        items=items,
        perceptions=perceptions,
    )


@transaction.atomic
def approve_purchase_invoice(invoice_id, *, user=None) -> PurchaseInvoice:
    invoice = _get_locked(invoice_id)

    if invoice.is_credit_note:
        raise PurchaseApprovalError("Credit notes are approved when issued")
    if invoice.status != PurchaseInvoice.STATUS_DRAFT:
        raise PurchaseApprovalError(
            f"Invoice {invoice.number} is {invoice.status}; only DRAFT invoices can be approved"
        )
    if not invoice.items.exists():
        raise PurchaseApprovalError(f"Invoice {invoice.number} has no items")

    event = build_purchase_event(invoice)
    entry = post_purchase_invoice(event, user=user)

    apply_purchase_inventory(invoice, user=user, journal_entry=entry)

    supplier = Supplier.objects.select_for_update().get(pk=invoice.supplier_id)
    supplier.balance = q2(supplier.balance + event.total)
    supplier.save(update_fields=["balance"])

    invoice.status = PurchaseInvoice.STATUS_APPROVED
    invoice.journal_entry = entry
    invoice.approved_by = user
    invoice.approved_at = timezone.now()
    invoice.save(update_fields=["status", "journal_entry", "approved_by", "approved_at", "updated_at"])

    logger.info(
        "purchase invoice approved",
        extra={
            "invoice_id": str(invoice.pk),
            "entry_id": entry.pk,
            "ledger_total": str(event.total),
        },
    )
    return invoice
