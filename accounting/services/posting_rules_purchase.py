# accounting/services/posting_rules_purchase.py

"""
======================================================
PATH: accounting/services/posting_rules_purchase.py
======================================================
PURCHASE INVOICE POSTING RULE

    CREDIT Proveedores                         total
    DEBIT  IVA Crédito Fiscal                  tax
    DEBIT  <item account | Mercaderías>        net amount, per item
    DEBIT  <perception account>                amount, per perception

Rules:
- amounts arrive in ledger currency (the caller applies the document rate)
- items without an account fall back to Mercaderías
- perceptions map tax type -> account through the registry (IIBB
  jurisdictions share one account); an explicit account overrides
- same-account debit lines are merged
- |debit - credit| > tolerance -> UnbalancedEntryError, nothing persisted
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from accounting.services import account_registry
from accounting.services.account_registry import TAX_TYPE_LABELS, AccountKey
from accounting.services.journal_entry_service import make_reference, post_entry
from accounting.services.posting import LinePosting, assert_balanced, merge_by_account, money

REFERENCE_TYPE = "PURCHASE_INVOICE"


@dataclass(frozen=True)
class PurchaseItemAmount:
    amount: Decimal
    account: object = None
    description: str = ""


@dataclass(frozen=True)
class PerceptionAmount:
    tax_type: str
    amount: Decimal
    account: object = None


@dataclass(frozen=True)
class PurchaseInvoiceEvent:
    document_id: object
    document_label: str
    supplier_name: str
    issue_date: date
    total: Decimal
    tax_amount: Decimal
    items: list[PurchaseItemAmount] = field(default_factory=list)
    perceptions: list[PerceptionAmount] = field(default_factory=list)


def build_purchase_invoice_lines(event: PurchaseInvoiceEvent) -> list[LinePosting]:
    label = f"{event.document_label} - {event.supplier_name}"

    payable = account_registry.resolve(AccountKey.ACCOUNTS_PAYABLE)
    postings: list[LinePosting] = [
        LinePosting.credit_line(payable, event.total, f"Proveedor {label}"),
    ]

    if money(event.tax_amount) > 0:
        vat_credit = account_registry.resolve(AccountKey.VAT_CREDIT)
        postings.append(LinePosting.debit_line(vat_credit, event.tax_amount, f"IVA CF {label}"))

    default_account = None
    for item in event.items:
        if money(item.amount) <= 0:
            continue
        account = item.account
        if account is None:
            if default_account is None:
                default_account = account_registry.resolve(AccountKey.MERCHANDISE_INVENTORY)
            account = default_account
        postings.append(
            LinePosting.debit_line(account, item.amount, item.description or f"Compra {label}")
        )

    for perception in event.perceptions:
        if money(perception.amount) <= 0:
            continue
        account = perception.account or account_registry.resolve(
            account_registry.withholding_account_key(perception.tax_type)
        )
        tax_label = TAX_TYPE_LABELS.get(perception.tax_type, perception.tax_type)
        postings.append(
            LinePosting.debit_line(account, perception.amount, f"Percepción {tax_label} {label}")
        )

    postings = merge_by_account(postings)
    assert_balanced(postings, context=label)
    return postings


def post_purchase_invoice(event: PurchaseInvoiceEvent, *, user=None):
    postings = build_purchase_invoice_lines(event)
    return post_entry(
        date=event.issue_date,
        description=f"Compra {event.document_label} - {event.supplier_name}",
        lines=postings,
        reference=make_reference(REFERENCE_TYPE, event.document_id),
        created_by=user,
    )
