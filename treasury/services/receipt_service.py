# treasury/services/receipt_service.py

"""
======================================================
PATH: treasury/services/receipt_service.py
======================================================
RECEIPT (COBRANZA) SERVICE

create_receipt()
- Applications: invoices of the same customer, issued and still open,
  amount <= invoice balance + tolerance
- Payments: active treasury accounts, positive amounts
- Withholdings: known tax types, grouped per family (IIBB, IVA, ...)
- Totals recomputed server-side; the receipt starts as BORRADOR

approve_receipt()  (one transaction)
1) Lock receipt, require BORRADOR
2) |applied - (collected + withholdings)| <= tolerance
3) Re-check every invoice balance under lock
4) Post the entry (idempotent by RECEIPT:<id>)
5) Invoices: paid_amount += amount, PAID once settled
6) Customer balance -= applied; status APROBADO

void_receipt()
- BORRADOR : discarded
- APROBADO : entry voided, invoices and customer balance restored
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date as date_type
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from accounting.services.account_registry import IIBB_JURISDICTIONS, TAX_TYPE_LABELS
from accounting.services.date_ranges import as_date
from accounting.services.document_totals import q2
from accounting.services.exchange_rates import ledger_currency
from accounting.services.journal_entry_service import void_entry
from accounting.services.posting import ZERO, balance_tolerance
from accounting.services.sequences import next_value
from accounting.services.posting_rules_receipt import (
    PaymentAmount,
    ReceiptEvent,
    WithholdingAmount,
    post_receipt,
)
from sales.models import Customer, Invoice
from treasury.models import (
    Receipt,
    ReceiptApplication,
    ReceiptPayment,
    TreasuryAccount,
    WithholdingGroup,
    WithholdingLine,
)
from treasury.services.exceptions import ReceiptError, ReceiptStateError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApplicationInput:
    invoice_id: object
    amount: Decimal


@dataclass(frozen=True)
class PaymentInput:
    treasury_account_id: int
    amount: Decimal
    method: str = ReceiptPayment.METHOD_TRANSFER
    reference: str = ""
    check_number: str = ""
    check_date: date_type | None = None
    check_bank: str = ""
    notes: str = ""


@dataclass(frozen=True)
class WithholdingInput:
    tax_type: str
    amount: Decimal
    certificate_number: str = ""
    jurisdiction_label: str = ""


# =========================================================
# Helpers
# =========================================================
def withholding_group_for(tax_type: str) -> str:
    tax_type = (tax_type or "").strip().upper()
    if tax_type in IIBB_JURISDICTIONS:
        return WithholdingGroup.GROUP_IIBB
    if tax_type in (WithholdingGroup.GROUP_IVA, WithholdingGroup.GROUP_GANANCIAS, WithholdingGroup.GROUP_SUSS):
        return tax_type
    raise ReceiptError(f"Unknown withholding tax type: {tax_type or '<blank>'}")


def next_receipt_number(point_of_sale: str | None = None) -> str:
    pos = str(point_of_sale or settings.LEDGER["DEFAULT_POINT_OF_SALE"]).zfill(4)

    def highest() -> int:
        last = (
            Receipt.objects.filter(number__startswith=f"{pos}-")
            .order_by("-number")
            .values_list("number", flat=True)
            .first()
        )
        return int(last.split("-", 1)[1]) if last else 0

    seq = next_value(f"receipt:{pos}", floor=highest)
    return f"{pos}-{seq:08d}"


def _get_locked(receipt_id) -> Receipt:
    try:
        return Receipt.objects.select_for_update().select_related("customer").get(pk=receipt_id)
    except Receipt.DoesNotExist as exc:
        raise ReceiptError(f"Receipt {receipt_id} not found") from exc


def _check_application(invoice: Invoice | None, amount: Decimal, *, customer, ref, tolerance) -> list[str]:
    if invoice is None:
        return [f"Invoice {ref} not found"]

    errors = []
    if invoice.customer_id != customer.pk:
        errors.append(f"Invoice {invoice.label} does not belong to {customer.name}")
    if invoice.status in (Invoice.STATUS_PAID, Invoice.STATUS_CANCELLED):
        errors.append(f"Invoice {invoice.label} is {invoice.status}")
    elif not invoice.is_open:
        errors.append(f"Invoice {invoice.label} has not been issued")
    if (invoice.currency or "").upper() != ledger_currency():
        errors.append(f"Invoice {invoice.label} is in {invoice.currency}; receipts apply to {ledger_currency()} invoices")
    if amount <= 0:
        errors.append(f"Amount applied to {invoice.label} must be greater than 0")
    elif amount > invoice.balance + tolerance:
        errors.append(f"Amount applied to {invoice.label} ({amount}) exceeds its balance ({invoice.balance})")
    return errors


def _validate_applications(customer: Customer, applications: list[ApplicationInput]):
    tolerance = balance_tolerance()
    ids = [a.invoice_id for a in applications]
    invoices = {str(i.pk): i for i in Invoice.objects.filter(pk__in=ids)}

    errors = []
    seen = set()
    resolved = []
    for app in applications:
        key = str(app.invoice_id)
        if key in seen:
            errors.append(f"Invoice {key} is applied twice")
            continue
        seen.add(key)
        amount = q2(app.amount)
        invoice = invoices.get(key)
        errors.extend(_check_application(invoice, amount, customer=customer, ref=key, tolerance=tolerance))
        if invoice is not None:
            resolved.append((invoice, amount))
    return resolved, errors


def _validate_payments(payments: list[PaymentInput]):
    accounts = TreasuryAccount.objects.select_related("account").in_bulk(
        [p.treasury_account_id for p in payments]
    )
    methods = {value for value, _ in ReceiptPayment.METHOD_CHOICES}

    errors = []
    resolved = []
    for payment in payments:
        account = accounts.get(payment.treasury_account_id)
        amount = q2(payment.amount)
        if account is None:
            errors.append(f"Treasury account {payment.treasury_account_id} not found")
            continue
        if not account.is_active:
            errors.append(f"Treasury account {account.name} is inactive")
        if payment.method not in methods:
            errors.append(f"Unknown payment method: {payment.method}")
        if amount <= 0:
            errors.append(f"Payment into {account.name} must be greater than 0")
        resolved.append((account, amount, payment))
    return resolved, errors


def _validate_withholdings(withholdings: list[WithholdingInput]):
    errors = []
    resolved = []
    for w in withholdings:
        tax_type = (w.tax_type or "").strip().upper()
        amount = q2(w.amount)
        try:
            group = withholding_group_for(tax_type)
        except ReceiptError as exc:
            errors.append(str(exc))
            continue
        if amount <= 0:
            errors.append(f"Withholding {TAX_TYPE_LABELS[tax_type]} must be greater than 0")
        resolved.append((group, tax_type, amount, w))
    return resolved, errors


# =========================================================
# Create
# =========================================================
@transaction.atomic
def create_receipt(
    *,
    customer: Customer,
    date,
    applications: list[ApplicationInput],
    payments: list[PaymentInput] | None = None,
    withholdings: list[WithholdingInput] | None = None,
    description: str = "",
    point_of_sale: str | None = None,
    user=None,
) -> Receipt:
    if not applications:
        raise ReceiptError("A receipt needs at least one invoice application")

    payments = payments or []
    withholdings = withholdings or []

    applied, errors = _validate_applications(customer, applications)
    paid, payment_errors = _validate_payments(payments)
    withheld, withholding_errors = _validate_withholdings(withholdings)
    errors += payment_errors + withholding_errors
    if not payments and not withholdings:
        errors.append("A receipt needs at least one payment or withholding")
    if errors:
        raise ReceiptError("Receipt is invalid", errors=errors)

    total_applied = q2(sum((amount for _, amount in applied), ZERO))
    total_withholdings = q2(sum((amount for _, _, amount, _ in withheld), ZERO))
    total_collected = q2(sum((amount for _, amount, _ in paid), ZERO))

    receipt = Receipt.objects.create(
        number=next_receipt_number(point_of_sale),
        customer=customer,
        date=as_date(date),
        description=(description or "").strip(),
        status=Receipt.STATUS_BORRADOR,
        total_applied=total_applied,
        total_withholdings=total_withholdings,
        total_to_collect=q2(total_applied - total_withholdings),
        total_collected=total_collected,
        created_by=user,
    )

    ReceiptApplication.objects.bulk_create(
        [
            ReceiptApplication(receipt=receipt, invoice=invoice, invoice_total=invoice.total, amount=amount)
            for invoice, amount in applied
        ]
    )
    ReceiptPayment.objects.bulk_create(
        [
            ReceiptPayment(
                receipt=receipt,
                treasury_account=account,
                method=p.method,
                amount=amount,
                reference=p.reference or "",
                check_number=p.check_number or "",
                check_date=p.check_date,
                check_bank=p.check_bank or "",
                notes=p.notes or "",
            )
            for account, amount, p in paid
        ]
    )

    groups: dict[str, WithholdingGroup] = {}
    for group_type, tax_type, amount, w in withheld:
        group = groups.get(group_type)
        if group is None:
            group = groups[group_type] = WithholdingGroup.objects.create(receipt=receipt, group_type=group_type)
        group.total_amount = q2(group.total_amount + amount)
        WithholdingLine.objects.create(
            group=group,
            tax_type=tax_type,
            jurisdiction_label=w.jurisdiction_label or TAX_TYPE_LABELS[tax_type],
            certificate_number=w.certificate_number or "",
            amount=amount,
        )
    for group in groups.values():
        group.save(update_fields=["total_amount"])

    logger.info(
        "receipt created",
        extra={
            "receipt_id": str(receipt.pk),
            "number": receipt.number,
            "total_applied": str(total_applied),
        },
    )
    return receipt


# =========================================================
# Approve
# =========================================================
def build_receipt_event(receipt: Receipt) -> ReceiptEvent:
    payments = [
        PaymentAmount(
            account=p.treasury_account.account,
            amount=p.amount,
            label=f"{p.get_method_display()} {p.treasury_account.name}",
        )
        for p in receipt.payments.select_related("treasury_account__account")
    ]
    withholdings = [
        WithholdingAmount(tax_type=line.tax_type, amount=line.amount, certificate_number=line.certificate_number)
        for line in WithholdingLine.objects.filter(group__receipt=receipt).order_by("id")
    ]
    return ReceiptEvent(
        document_id=receipt.pk,
        receipt_number=receipt.number,
        customer_name=receipt.customer.name,
        issue_date=receipt.date,
        total_applied=receipt.total_applied,
        payments=payments,
        withholdings=withholdings,
    )


@transaction.atomic
def approve_receipt(receipt_id, *, user=None) -> Receipt:
    receipt = _get_locked(receipt_id)

    if receipt.status != Receipt.STATUS_BORRADOR:
        raise ReceiptStateError(f"Receipt {receipt.number} is {receipt.status}; only BORRADOR can be approved")

    tolerance = balance_tolerance()
    covered = q2(receipt.total_collected + receipt.total_withholdings)
    if abs(receipt.total_applied - covered) > tolerance:
        raise ReceiptError(
            f"Receipt {receipt.number} does not balance: applied {receipt.total_applied}, "
            f"collected {receipt.total_collected} + withholdings {receipt.total_withholdings}"
        )

    applications = list(receipt.applications.all())
    invoices = Invoice.objects.select_for_update().in_bulk([a.invoice_id for a in applications])
    errors = []
    for app in applications:
        errors.extend(
            _check_application(
                invoices.get(app.invoice_id),
                app.amount,
                customer=receipt.customer,
                ref=app.invoice_id,
                tolerance=tolerance,
            )
        )
    if errors:
        raise ReceiptError(f"Receipt {receipt.number} can no longer be applied", errors=errors)

    entry = post_receipt(build_receipt_event(receipt), user=user)

    for app in applications:
        invoice = invoices[app.invoice_id]
        invoice.paid_amount = q2(invoice.paid_amount + app.amount)
        invoice.balance = max(q2(invoice.total - invoice.paid_amount), ZERO)
        if invoice.paid_amount >= invoice.total - tolerance:
            invoice.status = Invoice.STATUS_PAID
            invoice.balance = ZERO
        invoice.save(update_fields=["paid_amount", "balance", "status", "updated_at"])

    Customer.objects.filter(pk=receipt.customer_id).update(balance=F("balance") - receipt.total_applied)

    receipt.status = Receipt.STATUS_APROBADO
    receipt.journal_entry = entry
    receipt.approved_by = user
    receipt.approved_at = timezone.now()
    receipt.save(update_fields=["status", "journal_entry", "approved_by", "approved_at", "updated_at"])

    logger.info(
        "receipt approved",
        extra={"receipt_id": str(receipt.pk), "entry_id": entry.pk, "total_applied": str(receipt.total_applied)},
    )
    return receipt


# =========================================================
# Void
# =========================================================
@transaction.atomic
def void_receipt(receipt_id, *, user=None, reason: str = "") -> Receipt:
    receipt = _get_locked(receipt_id)

    if receipt.status == Receipt.STATUS_ANULADO:
        raise ReceiptStateError(f"Receipt {receipt.number} is already ANULADO")

    if receipt.status == Receipt.STATUS_APROBADO:
        void_entry(receipt.journal_entry_id, reason=reason or f"Anulación recibo {receipt.number}", user=user)

        applications = list(receipt.applications.all())
        invoices = Invoice.objects.select_for_update().in_bulk([a.invoice_id for a in applications])
        today = timezone.localdate()
        for app in applications:
            invoice = invoices[app.invoice_id]
            invoice.paid_amount = max(q2(invoice.paid_amount - app.amount), ZERO)
            invoice.balance = q2(invoice.total - invoice.paid_amount)
            if invoice.status == Invoice.STATUS_PAID:
                overdue = invoice.due_date and invoice.due_date < today
                invoice.status = Invoice.STATUS_OVERDUE if overdue else Invoice.STATUS_PENDING
            invoice.save(update_fields=["paid_amount", "balance", "status", "updated_at"])

        Customer.objects.filter(pk=receipt.customer_id).update(balance=F("balance") + receipt.total_applied)

    receipt.status = Receipt.STATUS_ANULADO
    receipt.voided_at = timezone.now()
    receipt.save(update_fields=["status", "voided_at", "updated_at"])

    logger.info(
        "receipt voided",
        extra={"receipt_id": str(receipt.pk), "reason": reason},
    )
    return receipt
