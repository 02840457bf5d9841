# accounting/services/posting_rules_credit_note.py

"""
======================================================
PATH: accounting/services/posting_rules_credit_note.py
======================================================
PURCHASE CREDIT NOTE (RETURN) POSTING RULE

Structural inverse of the purchase rule:

    DEBIT  Proveedores                         total
    CREDIT IVA Crédito Fiscal                  tax
    CREDIT <original item account>             net amount, per returned item

Amounts come from compute_credit_note(): the original invoice's general
discount is applied to each returned line, then tax is re-derived per line
from its net amount.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from accounting.services import account_registry
from accounting.services.account_registry import AccountKey
from accounting.services.document_totals import DocumentTotals, LineInput, compute_totals
from accounting.services.journal_entry_service import make_reference, post_entry
from accounting.services.posting import LinePosting, assert_balanced, merge_by_account, money

REFERENCE_TYPE = "PURCHASE_CREDIT_NOTE"


@dataclass(frozen=True)
class ReturnedItem:
    unit_price: Decimal
    quantity: Decimal
    tax_rate: Decimal
    account: object = None
    description: str = ""


@dataclass(frozen=True)
class CreditNoteEvent:
    document_id: object
    document_label: str
    supplier_name: str
    issue_date: date
    items: list[ReturnedItem] = field(default_factory=list)
    general_discount: Decimal = Decimal("0")


def compute_credit_note(items: list[ReturnedItem], general_discount=Decimal("0")) -> DocumentTotals:
    return compute_totals(
        [LineInput(unit_price=i.unit_price, quantity=i.quantity, tax_rate=i.tax_rate) for i in items],
        general_discount,
    )


def build_credit_note_lines(event: CreditNoteEvent, totals: DocumentTotals | None = None) -> list[LinePosting]:
    totals = totals or compute_credit_note(event.items, event.general_discount)
    label = f"{event.document_label} - {event.supplier_name}"

    payable = account_registry.resolve(AccountKey.ACCOUNTS_PAYABLE)
    postings: list[LinePosting] = [
        LinePosting.debit_line(payable, totals.total, f"NC {label}"),
    ]

    if totals.tax > 0:
        vat_credit = account_registry.resolve(AccountKey.VAT_CREDIT)
        postings.append(LinePosting.credit_line(vat_credit, totals.tax, f"Reversión IVA CF {label}"))

    default_account = None
    for item, line_totals in zip(event.items, totals.lines):
        if money(line_totals.net) <= 0:
            continue
        account = item.account
        if account is None:
            if default_account is None:
                default_account = account_registry.resolve(AccountKey.MERCHANDISE_INVENTORY)
            account = default_account
        postings.append(
            LinePosting.credit_line(
                account, line_totals.net, item.description or f"Devolución {label}"
            )
        )

    postings = merge_by_account(postings)
    assert_balanced(postings, context=label)
    return postings


def post_credit_note(event: CreditNoteEvent, *, totals: DocumentTotals | None = None, user=None):
    postings = build_credit_note_lines(event, totals)
    return post_entry(
        date=event.issue_date,
        description=f"Nota de crédito {event.document_label} - {event.supplier_name}",
        lines=postings,
        reference=make_reference(REFERENCE_TYPE, event.document_id),
        created_by=user,
    )
