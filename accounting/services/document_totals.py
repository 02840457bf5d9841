# accounting/services/document_totals.py

"""
DOCUMENT TOTALS

Shared arithmetic for invoices, purchase invoices and credit notes:

    line subtotal = unit_price * quantity
    line discount = its share of the document's general discount %
    line net      = subtotal - discount
    line tax      = net * tax_rate%
    total         = sum(net) + sum(tax) [+ perceptions, added by the caller]

Every figure is rounded per line, and the document totals are the sums of
the rounded line figures, so a journal entry built from the lines always
balances against the totals to the cent.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


def q2(value) -> Decimal:
    if not isinstance(value, Decimal):
        value = Decimal(str(value or "0"))
    return value.quantize(TWOPLACES, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class LineInput:
    unit_price: Decimal
    quantity: Decimal
    tax_rate: Decimal = ZERO


@dataclass(frozen=True)
class LineTotals:
    subtotal: Decimal
    discount: Decimal
    net: Decimal
    tax: Decimal

    @property
    def total(self) -> Decimal:
        return self.net + self.tax


@dataclass(frozen=True)
class DocumentTotals:
    lines: tuple[LineTotals, ...]
    subtotal: Decimal
    discount: Decimal
    net: Decimal
    tax: Decimal

    @property
    def total(self) -> Decimal:
        return self.net + self.tax


def compute_totals(lines: list[LineInput], general_discount_pct=ZERO) -> DocumentTotals:
    pct = Decimal(str(general_discount_pct or "0"))
    if pct < 0 or pct > HUNDRED:
        raise ValueError("General discount must be between 0 and 100")

    factor = (HUNDRED - pct) / HUNDRED
    computed: list[LineTotals] = []

    for line in lines:
        subtotal = q2(Decimal(str(line.unit_price)) * Decimal(str(line.quantity)))
        net = q2(subtotal * factor)
        tax = q2(net * Decimal(str(line.tax_rate or "0")) / HUNDRED)
        computed.append(LineTotals(subtotal=subtotal, discount=subtotal - net, net=net, tax=tax))

    subtotal = sum((c.subtotal for c in computed), ZERO)
    net = sum((c.net for c in computed), ZERO)
    tax = sum((c.tax for c in computed), ZERO)

    return DocumentTotals(
        lines=tuple(computed),
        subtotal=q2(subtotal),
        discount=q2(subtotal - net),
        net=q2(net),
        tax=q2(tax),
    )
