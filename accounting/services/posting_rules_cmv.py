# accounting/services/posting_rules_cmv.py

"""
======================================================
PATH: accounting/services/posting_rules_cmv.py
======================================================
COST OF GOODS SOLD (CMV) POSTING RULE

For an issued sale:
    DEBIT  Costo de Mercaderías Vendidas   cost
    CREDIT Mercaderías                     cost

Rules:
- cost = sum(quantity * unit_cost) per line, in ledger currency
- unit costs expressed in another currency are converted with the rate
  valid on the sale's issue date (NoExchangeRateError if none)
- zero cost -> no entry
- idempotent via reference SALES_INVOICE_CMV:<invoice id>
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from accounting.services import account_registry
from accounting.services.account_registry import AccountKey
from accounting.services.exchange_rates import get_rate, ledger_currency
from accounting.services.journal_entry_service import make_reference, post_entry
from accounting.services.posting import ZERO, LinePosting, assert_balanced, money

REFERENCE_TYPE = "SALES_INVOICE_CMV"


@dataclass(frozen=True)
class CostLine:
    description: str
    quantity: Decimal
    unit_cost: Decimal
    currency: str = ""


@dataclass(frozen=True)
class CostOfSalesEvent:
    document_id: object
    document_number: str
    issue_date: date
    lines: list[CostLine] = field(default_factory=list)


def compute_cmv_amount(event: CostOfSalesEvent) -> Decimal:
    base = ledger_currency()
    total = ZERO
    rates: dict[str, Decimal] = {}

    for line in event.lines:
        currency = (line.currency or base).upper()
        amount = Decimal(str(line.quantity)) * Decimal(str(line.unit_cost))
        if currency != base:
            if currency not in rates:
                rates[currency] = get_rate(currency, event.issue_date, base)
            amount = amount * rates[currency]
        total += amount

    return money(total)


def build_cmv_lines(event: CostOfSalesEvent, amount: Decimal | None = None) -> list[LinePosting]:
    amount = compute_cmv_amount(event) if amount is None else money(amount)
    if amount <= 0:
        return []

    cmv = account_registry.resolve(AccountKey.COST_OF_GOODS_SOLD)
    inventory = account_registry.resolve(AccountKey.MERCHANDISE_INVENTORY)

    postings = [
        LinePosting.debit_line(cmv, amount, f"Costo de venta - Factura {event.document_number}"),
        LinePosting.credit_line(
            inventory, amount, f"Salida de mercaderías - Factura {event.document_number}"
        ),
    ]
    assert_balanced(postings, context=f"CMV {event.document_number}")
    return postings


def post_cost_of_goods_sold(event: CostOfSalesEvent, *, user=None):
    postings = build_cmv_lines(event)
    if not postings:
        return None

    return post_entry(
        date=event.issue_date,
        description=f"CMV - Factura {event.document_number}",
        lines=postings,
        reference=make_reference(REFERENCE_TYPE, event.document_id),
        created_by=user,
    )
