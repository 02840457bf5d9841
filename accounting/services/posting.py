# accounting/services/posting.py

"""
======================================================
PATH: accounting/services/posting.py
======================================================
POSTING PRIMITIVES

Shared building blocks for the automatic entry generators:

- LinePosting     : one debit-or-credit line, as produced by a generator
- money()         : Decimal normalisation (2dp, ROUND_HALF_UP)
- merge_by_account: collapse same-account/same-side lines into one
- totals()        : (sum debit, sum credit)
- assert_balanced : pure balance check against the ledger tolerance

Generators are pure: they return list[LinePosting]; only
journal_entry_service touches the database.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.conf import settings

from accounting.services.exceptions import EntryValidationError, UnbalancedEntryError

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def money(value) -> Decimal:
    if value is None or value == "":
        return ZERO

    if isinstance(value, Decimal):
        amt = value
    else:
        try:
            amt = Decimal(str(value))
        except (InvalidOperation, ValueError, TypeError) as exc:
            raise EntryValidationError(f"Invalid money value: {value!r}") from exc

    return amt.quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def balance_tolerance() -> Decimal:
    return Decimal(str(settings.LEDGER.get("BALANCE_TOLERANCE", "0.01")))


@dataclass
class LinePosting:
    """
    `account` may be an Account instance, an Account pk or a dotted code;
    the journal engine resolves it.
    """

    account: object
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    description: str = ""
    meta: dict = field(default_factory=dict, compare=False)

    def __post_init__(self):
        self.debit = money(self.debit)
        self.credit = money(self.credit)
        self.description = (self.description or "").strip()[:255]

    @classmethod
    def from_dict(cls, data: dict) -> "LinePosting":
        if not isinstance(data, dict):
            raise EntryValidationError("Each posting must be an object/dict")
        return cls(
            account=data.get("account"),
            debit=data.get("debit"),
            credit=data.get("credit"),
            description=data.get("description") or "",
        )

    @classmethod
    def debit_line(cls, account, amount, description: str = "") -> "LinePosting":
        return cls(account=account, debit=amount, credit=ZERO, description=description)

    @classmethod
    def credit_line(cls, account, amount, description: str = "") -> "LinePosting":
        return cls(account=account, debit=ZERO, credit=amount, description=description)

    @property
    def is_debit(self) -> bool:
        return self.debit > 0

    def reversed(self) -> "LinePosting":
        return replace(self, debit=self.credit, credit=self.debit)


def _account_key(account) -> object:
    return getattr(account, "pk", None) or account


def merge_by_account(postings: list[LinePosting]) -> list[LinePosting]:
    """
    Merge lines hitting the same account on the same side.

    Order follows the first appearance of each (account, side) pair;
    descriptions of merged lines are joined.
    """
    merged: dict[tuple, LinePosting] = {}
    for p in postings:
        if p.debit == 0 and p.credit == 0:
            continue
        key = (_account_key(p.account), p.is_debit)
        if key not in merged:
            merged[key] = replace(p, meta=dict(p.meta))
            continue

        current = merged[key]
        current.debit = money(current.debit + p.debit)
        current.credit = money(current.credit + p.credit)
        if p.description and p.description not in current.description:
            current.description = f"{current.description} | {p.description}".strip(" |")[:255]

    return list(merged.values())


def totals(postings: list[LinePosting]) -> tuple[Decimal, Decimal]:
    total_debit = sum((p.debit for p in postings), ZERO)
    total_credit = sum((p.credit for p in postings), ZERO)
    return money(total_debit), money(total_credit)


def is_balanced(total_debit: Decimal, total_credit: Decimal) -> bool:
    return abs(money(total_debit) - money(total_credit)) <= balance_tolerance()


def assert_balanced(postings: list[LinePosting], context: str = "") -> tuple[Decimal, Decimal]:
    total_debit, total_credit = totals(postings)
    if not is_balanced(total_debit, total_credit):
        raise UnbalancedEntryError(total_debit, total_credit, context=context)
    return total_debit, total_credit
