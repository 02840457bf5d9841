# accounting/services/posting_rules_supplier_payment.py

"""
======================================================
PATH: accounting/services/posting_rules_supplier_payment.py
======================================================
SUPPLIER PAYMENT (ORDEN DE PAGO) POSTING RULE

    DEBIT  Proveedores                         amount
    CREDIT <treasury account>                  amount

Rules:
- amount arrives in ledger currency and must be > 0
- the treasury account is a leaf account (cash box, bank, checks)
- reference SUPPLIER_PAYMENT:<payment id>; a second post raises IdempotencyError
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from accounting.services import account_registry
from accounting.services.account_registry import AccountKey
from accounting.services.exceptions import EntryValidationError
from accounting.services.journal_entry_service import make_reference, post_entry
from accounting.services.posting import LinePosting, assert_balanced, money

REFERENCE_TYPE = "SUPPLIER_PAYMENT"


@dataclass(frozen=True)
class SupplierPaymentEvent:
    document_id: object
    supplier_name: str
    issue_date: date
    amount: Decimal
    treasury_account: object
    method_label: str = ""
    invoice_label: str = ""
    reference: str = ""


def _description(event: SupplierPaymentEvent) -> str:
    target = event.invoice_label or "a cuenta"
    return f"Pago a proveedor {event.supplier_name} - {target}"


def build_supplier_payment_lines(event: SupplierPaymentEvent) -> list[LinePosting]:
    amount = money(event.amount)
    if amount <= 0:
        raise EntryValidationError("Supplier payment amount must be greater than 0")

    payable = account_registry.resolve(AccountKey.ACCOUNTS_PAYABLE)
    paid_with = event.method_label or "Pago"
    if event.reference:
        paid_with = f"{paid_with} - {event.reference}"

    postings = [
        LinePosting.debit_line(payable, amount, _description(event)),
        LinePosting.credit_line(event.treasury_account, amount, paid_with),
    ]
    assert_balanced(postings, context=_description(event))
    return postings


def post_supplier_payment(event: SupplierPaymentEvent, *, user=None):
    postings = build_supplier_payment_lines(event)
    return post_entry(
        date=event.issue_date,
        description=_description(event),
        lines=postings,
        reference=make_reference(REFERENCE_TYPE, event.document_id),
        created_by=user,
    )
