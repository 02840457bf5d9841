# purchases/services/payment_service.py

"""
======================================================
PATH: purchases/services/payment_service.py
======================================================
SUPPLIER PAYMENT SERVICE

register_purchase_payment()  (one transaction)
1) Lock invoice, require an APPROVED ledger-currency FACTURA
2) 0 < amount <= balance (+ tolerance)
3) Post DEBIT Proveedores / CREDIT treasury account (SUPPLIER_PAYMENT:<id>)
4) Lower invoice balance (PAID once settled) and supplier balance

register_supplier_payment()
    Same posting without an invoice: a payment on account.

void_purchase_payment()
    Reverses the entry and restores both balances; a PAID invoice goes
    back to APPROVED.

supplier_account_statement()
    Running balance owed to a supplier: invoices add, credit notes and
    payments subtract. Amounts in ledger currency.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from accounting.services.date_ranges import as_date
from accounting.services.document_totals import q2
from accounting.services.exchange_rates import ledger_currency
from accounting.services.journal_entry_service import void_entry
from accounting.services.posting import ZERO, balance_tolerance
from accounting.services.posting_rules_supplier_payment import SupplierPaymentEvent, post_supplier_payment
from purchases.models import PurchaseInvoice, PurchasePayment, Supplier
from purchases.services.exceptions import PurchasePaymentError
from purchases.services.purchase_service import document_rate, to_ledger
from treasury.models import TreasuryAccount

logger = logging.getLogger(__name__)

METHODS = {value for value, _ in PurchasePayment.METHOD_CHOICES}


def _treasury_account(treasury_account_id) -> TreasuryAccount:
    try:
        account = TreasuryAccount.objects.select_related("account").get(pk=treasury_account_id)
    except TreasuryAccount.DoesNotExist as exc:
        raise PurchasePaymentError(f"Treasury account {treasury_account_id} not found") from exc
    if not account.is_active:
        raise PurchasePaymentError(f"Treasury account {account.name} is inactive")
    return account


def _check_amount_and_method(amount: Decimal, method: str) -> Decimal:
    if method not in METHODS:
        raise PurchasePaymentError(f"Unknown payment method: {method}")
    amount = q2(amount)
    if amount <= 0:
        raise PurchasePaymentError("Payment amount must be greater than 0")
    return amount


def _post(payment: PurchasePayment, *, user=None):
    event = SupplierPaymentEvent(
        document_id=payment.pk,
        supplier_name=payment.supplier.name,
        issue_date=payment.date,
        amount=payment.amount,
        treasury_account=payment.treasury_account.account,
        method_label=f"{payment.get_method_display()} {payment.treasury_account.name}",
        invoice_label=payment.invoice.label if payment.invoice_id else "",
        reference=payment.reference,
    )
    entry = post_supplier_payment(event, user=user)
    payment.journal_entry = entry
    payment.save(update_fields=["journal_entry"])
    return entry


# =========================================================
# Register
# =========================================================
@transaction.atomic
def register_purchase_payment(
    invoice_id,
    *,
    treasury_account_id,
    amount,
    date=None,
    method: str = PurchasePayment.METHOD_TRANSFER,
    reference: str = "",
    notes: str = "",
    user=None,
) -> PurchasePayment:
    try:
        invoice = PurchaseInvoice.objects.select_for_update().select_related("supplier").get(pk=invoice_id)
    except PurchaseInvoice.DoesNotExist as exc:
        raise PurchasePaymentError(f"Purchase invoice {invoice_id} not found") from exc

    if invoice.is_credit_note:
        raise PurchasePaymentError("Credit notes are not paid")
    if invoice.status != PurchaseInvoice.STATUS_APPROVED:
        raise PurchasePaymentError(
            f"Invoice {invoice.number} is {invoice.status}; only APPROVED invoices can be paid"
        )
    if (invoice.currency or "").upper() != ledger_currency():
        raise PurchasePaymentError(
            f"Invoice {invoice.label} is in {invoice.currency}; payments apply to {ledger_currency()} invoices"
        )

    amount = _check_amount_and_method(amount, method)
    tolerance = balance_tolerance()
    if amount > invoice.balance + tolerance:
        raise PurchasePaymentError(
            f"Payment of {amount} exceeds the balance of {invoice.label} ({invoice.balance})"
        )

    payment = PurchasePayment.objects.create(
        supplier=invoice.supplier,
        invoice=invoice,
        treasury_account=_treasury_account(treasury_account_id),
        date=as_date(date or timezone.localdate()),
        method=method,
        amount=amount,
        reference=(reference or "").strip(),
        notes=(notes or "").strip(),
        created_by=user,
    )
    entry = _post(payment, user=user)

    invoice.balance = max(q2(invoice.balance - amount), ZERO)
    if invoice.balance <= tolerance:
        invoice.balance = ZERO
        invoice.status = PurchaseInvoice.STATUS_PAID
    invoice.save(update_fields=["balance", "status", "updated_at"])

    Supplier.objects.filter(pk=invoice.supplier_id).update(balance=F("balance") - amount)

    logger.info(
        "purchase invoice payment registered",
        extra={
            "invoice_id": str(invoice.pk),
            "payment_id": str(payment.pk),
            "entry_id": entry.pk,
            "amount": str(amount),
            "invoice_status": invoice.status,
        },
    )
    return payment


@transaction.atomic
def register_supplier_payment(
    supplier_id,
    *,
    treasury_account_id,
    amount,
    date=None,
    method: str = PurchasePayment.METHOD_TRANSFER,
    reference: str = "",
    notes: str = "",
    user=None,
) -> PurchasePayment:
    try:
        supplier = Supplier.objects.select_for_update().get(pk=supplier_id)
    except Supplier.DoesNotExist as exc:
        raise PurchasePaymentError(f"Supplier {supplier_id} not found") from exc

    amount = _check_amount_and_method(amount, method)

    payment = PurchasePayment.objects.create(
        supplier=supplier,
        treasury_account=_treasury_account(treasury_account_id),
        date=as_date(date or timezone.localdate()),
        method=method,
        amount=amount,
        reference=(reference or "").strip(),
        notes=(notes or "").strip(),
        created_by=user,
    )
    entry = _post(payment, user=user)

    supplier.balance = q2(supplier.balance - amount)
    supplier.save(update_fields=["balance"])

    logger.info(
        "supplier payment on account registered",
        extra={"supplier_id": str(supplier.pk), "payment_id": str(payment.pk), "entry_id": entry.pk},
    )
    return payment


# =========================================================
# Void
# =========================================================
@transaction.atomic
def void_purchase_payment(payment_id, *, user=None, reason: str = "") -> PurchasePayment:
    try:
        payment = (
            PurchasePayment.objects.select_for_update()
            .select_related("supplier", "invoice")
            .get(pk=payment_id)
        )
    except PurchasePayment.DoesNotExist as exc:
        raise PurchasePaymentError(f"Payment {payment_id} not found") from exc

    if payment.status != PurchasePayment.STATUS_APPLIED:
        raise PurchasePaymentError(f"Payment {payment.pk} is already {payment.status}")

    void_entry(
        payment.journal_entry_id,
        reason=reason or f"Anulación pago a {payment.supplier.name}",
        user=user,
    )

    if payment.invoice_id:
        invoice = PurchaseInvoice.objects.select_for_update().get(pk=payment.invoice_id)
        invoice.balance = q2(invoice.balance + payment.amount)
        if invoice.status == PurchaseInvoice.STATUS_PAID:
            invoice.status = PurchaseInvoice.STATUS_APPROVED
        invoice.save(update_fields=["balance", "status", "updated_at"])

    Supplier.objects.filter(pk=payment.supplier_id).update(balance=F("balance") + payment.amount)

    payment.status = PurchasePayment.STATUS_VOIDED
    payment.voided_at = timezone.now()
    payment.save(update_fields=["status", "voided_at"])

    logger.info("supplier payment voided", extra={"payment_id": str(payment.pk), "reason": reason})
    return payment


# =========================================================
# Statement
# =========================================================
STATEMENT_ORDER = {"INVOICE": 0, "CREDIT_NOTE": 1, "PAYMENT": 2}


def _row(kind, day, created_at, reference, description, *, debit=ZERO, credit=ZERO) -> dict:
    return {
        "type": kind,
        "date": day,
        "reference": reference,
        "description": description,
        "debit": debit,
        "credit": credit,
        "_created_at": created_at,
    }


def _statement_rows(supplier: Supplier) -> list[dict]:
    rows = []
    documents = supplier.invoices.filter(
        status__in=(PurchaseInvoice.STATUS_APPROVED, PurchaseInvoice.STATUS_PAID)
    )
    for doc in documents:
        amount = to_ledger(doc.total, document_rate(doc))
        if doc.is_credit_note:
            rows.append(_row("CREDIT_NOTE", doc.issue_date, doc.created_at, doc.number, doc.label, debit=amount))
        else:
            rows.append(_row("INVOICE", doc.issue_date, doc.created_at, doc.number, doc.label, credit=amount))

    payments = supplier.payments.filter(status=PurchasePayment.STATUS_APPLIED).select_related("invoice")
    for p in payments:
        target = p.invoice.label if p.invoice_id else "a cuenta"
        description = f"Pago {p.get_method_display()} - {target}"
        rows.append(_row("PAYMENT", p.date, p.created_at, p.reference or str(p.pk), description, debit=p.amount))

    rows.sort(key=lambda r: (r["date"], STATEMENT_ORDER[r["type"]], r["_created_at"]))
    for row in rows:
        del row["_created_at"]
    return rows


def supplier_account_statement(supplier: Supplier, *, date_from=None, date_to=None) -> dict:
    """
    Movements on the supplier's account (credit = we owe more, debit = we
    owe less) with the running balance owed, restricted to [date_from, date_to].
    """
    date_from = as_date(date_from) if date_from else None
    date_to = as_date(date_to) if date_to else None

    opening = ZERO
    running = ZERO
    movements = []
    for row in _statement_rows(supplier):
        if date_to and row["date"] > date_to:
            break
        running = q2(running + row["credit"] - row["debit"])
        if date_from and row["date"] < date_from:
            opening = running
            continue
        movements.append({**row, "balance": running})

    return {
        "supplier": str(supplier.pk),
        "supplier_name": supplier.name,
        "date_from": date_from,
        "date_to": date_to,
        "opening_balance": opening,
        "movements": movements,
        "total_invoiced": q2(sum((m["credit"] for m in movements), ZERO)),
        "total_paid": q2(sum((m["debit"] for m in movements if m["type"] == "PAYMENT"), ZERO)),
        "total_credited": q2(sum((m["debit"] for m in movements if m["type"] == "CREDIT_NOTE"), ZERO)),
        "closing_balance": running if movements else opening,
    }
