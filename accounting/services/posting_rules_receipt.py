# accounting/services/posting_rules_receipt.py

"""
======================================================
PATH: accounting/services/posting_rules_receipt.py
======================================================
RECEIPT (COBRANZA) POSTING RULE

    CREDIT Deudores por Ventas                 total applied
    DEBIT  <treasury account>                  amount, per payment method
    DEBIT  <withholding account>               amount, ONE line per account

Withholdings are grouped by ledger ACCOUNT, not by jurisdiction: IIBB CABA
30 + IIBB Buenos Aires 45 -> a single 75 debit on the IIBB account. The
jurisdiction and certificate numbers survive in the line description (and
in the treasury app's WithholdingLine rows).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from accounting.services import account_registry
from accounting.services.account_registry import TAX_TYPE_LABELS, AccountKey
from accounting.services.journal_entry_service import make_reference, post_entry
from accounting.services.posting import ZERO, LinePosting, assert_balanced, money

REFERENCE_TYPE = "RECEIPT"


@dataclass(frozen=True)
class PaymentAmount:
    account: object
    amount: Decimal
    label: str = ""


@dataclass(frozen=True)
class WithholdingAmount:
    tax_type: str
    amount: Decimal
    certificate_number: str = ""


@dataclass(frozen=True)
class ReceiptEvent:
    document_id: object
    receipt_number: str
    customer_name: str
    issue_date: date
    total_applied: Decimal
    payments: list[PaymentAmount] = field(default_factory=list)
    withholdings: list[WithholdingAmount] = field(default_factory=list)


def _withholding_label(w: WithholdingAmount) -> str:
    label = TAX_TYPE_LABELS.get(w.tax_type, w.tax_type)
    if w.certificate_number:
        return f"{label} (Cert. {w.certificate_number})"
    return label


def group_withholdings_by_account(withholdings: list[WithholdingAmount]) -> list[tuple]:
    """
    Returns [(account, amount, [labels...]), ...] in first-seen order.
    """
    grouped: dict[int, list] = {}
    for w in withholdings:
        amount = money(w.amount)
        if amount <= 0:
            continue
        account = account_registry.resolve(account_registry.withholding_account_key(w.tax_type))
        slot = grouped.setdefault(account.pk, [account, ZERO, []])
        slot[1] = money(slot[1] + amount)
        slot[2].append(_withholding_label(w))
    return [tuple(v) for v in grouped.values()]


def build_receipt_lines(event: ReceiptEvent) -> list[LinePosting]:
    receivable = account_registry.resolve(AccountKey.ACCOUNTS_RECEIVABLE)
    label = f"Recibo {event.receipt_number} - {event.customer_name}"

    postings: list[LinePosting] = [
        LinePosting.credit_line(receivable, event.total_applied, f"Cobranza {label}"),
    ]

    for payment in event.payments:
        if money(payment.amount) <= 0:
            continue
        postings.append(
            LinePosting.debit_line(
                payment.account, payment.amount, f"{payment.label or 'Cobro'} - {label}"
            )
        )

    for account, amount, labels in group_withholdings_by_account(event.withholdings):
        postings.append(
            LinePosting.debit_line(account, amount, f"Retenciones: {', '.join(labels)}")
        )

    assert_balanced(postings, context=label)
    return postings


def post_receipt(event: ReceiptEvent, *, user=None):
    postings = build_receipt_lines(event)
    return post_entry(
        date=event.issue_date,
        description=f"Cobranza recibo {event.receipt_number} - {event.customer_name}",
        lines=postings,
        reference=make_reference(REFERENCE_TYPE, event.document_id),
        created_by=user,
    )
