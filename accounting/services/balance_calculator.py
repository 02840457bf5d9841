# accounting/services/balance_calculator.py

"""
======================================================
PATH: accounting/services/balance_calculator.py
======================================================
BALANCE CALCULATOR (PURE)

Converts raw debit/credit sums into an unsigned amount plus a nature tag:

- DEUDOR   : debits >= credits
- ACREEDOR : credits > debits

Rules:
- amounts are never negative; the sign lives in `nature`
- is_normal compares nature with the account type's expected nature
  (ASSET/EXPENSE -> DEUDOR, LIABILITY/EQUITY/REVENUE -> ACREEDOR)
- running balances go through a signed scalar so that folding line by
  line equals computing from cumulative sums
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

DEUDOR = "DEUDOR"
ACREEDOR = "ACREEDOR"

TWOPLACES = Decimal("0.01")

_DEBIT_NORMAL_TYPES = {"ASSET", "EXPENSE"}
_CREDIT_NORMAL_TYPES = {"LIABILITY", "EQUITY", "REVENUE"}


def _q2(value) -> Decimal:
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def expected_nature(account_type: str) -> str:
    if account_type in _DEBIT_NORMAL_TYPES:
        return DEUDOR
    if account_type in _CREDIT_NORMAL_TYPES:
        return ACREEDOR
    raise ValueError(f"Unknown account type: {account_type!r}")


@dataclass(frozen=True)
class AccountBalance:
    amount: Decimal
    nature: str
    is_normal: bool

    @property
    def signed(self) -> Decimal:
        """Debit-positive scalar (+amount for DEUDOR, -amount for ACREEDOR)."""
        return self.amount if self.nature == DEUDOR else -self.amount

    def as_dict(self) -> dict:
        return {
            "amount": str(self.amount),
            "nature": self.nature,
            "is_normal": self.is_normal,
        }


def _from_signed(account_type: str, signed: Decimal) -> AccountBalance:
    nature = DEUDOR if signed >= 0 else ACREEDOR
    return AccountBalance(
        amount=_q2(abs(signed)),
        nature=nature,
        is_normal=nature == expected_nature(account_type),
    )


def calculate_account_balance(account_type: str, debit_sum, credit_sum) -> AccountBalance:
    return _from_signed(account_type, _q2(debit_sum) - _q2(credit_sum))


def calculate_running_balance(
    account_type: str,
    prior_balance: AccountBalance | None,
    line_debit,
    line_credit,
) -> AccountBalance:
    prior = prior_balance.signed if prior_balance is not None else Decimal("0.00")
    return _from_signed(account_type, prior + _q2(line_debit) - _q2(line_credit))


def zero_balance(account_type: str) -> AccountBalance:
    return calculate_account_balance(account_type, Decimal("0.00"), Decimal("0.00"))
