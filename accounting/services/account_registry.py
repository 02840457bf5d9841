# accounting/services/account_registry.py

"""
======================================================
PATH: accounting/services/account_registry.py
======================================================
ACCOUNT REGISTRY (AUTHORITATIVE)

This module answers ONE question:
"Which ledger account should be used for this purpose?"

Generators never hard-code account codes; they ask for an AccountKey and the
registry maps it to a code of the chart of accounts.

Design goals:
- typed keys (AccountKey enum), one code table
- validated once at startup (fail fast naming every missing code)
- cached lookups with explicit invalidation (clear_registry_cache); the cache
  only memoizes code -> pk, the Account row is always re-read from the DB
- leaf-only: grouping accounts can never receive journal lines
"""

from __future__ import annotations

import enum
import logging

from accounting.models.account import Account
from accounting.services.exceptions import AccountNotLeafError, MissingAccountError

logger = logging.getLogger(__name__)


class AccountKey(str, enum.Enum):
    CASH = "CASH"
    BANK = "BANK"
    CHECKS_TO_DEPOSIT = "CHECKS_TO_DEPOSIT"
    ACCOUNTS_RECEIVABLE = "ACCOUNTS_RECEIVABLE"
    VAT_CREDIT = "VAT_CREDIT"
    WITHHOLDINGS_IIBB = "WITHHOLDINGS_IIBB"
    WITHHOLDINGS_VAT = "WITHHOLDINGS_VAT"
    WITHHOLDINGS_INCOME_TAX = "WITHHOLDINGS_INCOME_TAX"
    MERCHANDISE_INVENTORY = "MERCHANDISE_INVENTORY"
    ACCOUNTS_PAYABLE = "ACCOUNTS_PAYABLE"
    VAT_DEBIT = "VAT_DEBIT"
    WITHHOLDINGS_SUSS = "WITHHOLDINGS_SUSS"
    SALES_REVENUE = "SALES_REVENUE"
    COST_OF_GOODS_SOLD = "COST_OF_GOODS_SOLD"


ACCOUNT_CODES: dict[AccountKey, str] = {
    AccountKey.CASH: "1.1.01.001",
    AccountKey.BANK: "1.1.01.003",
    AccountKey.CHECKS_TO_DEPOSIT: "1.1.01.005",
    AccountKey.ACCOUNTS_RECEIVABLE: "1.1.03.001",
    AccountKey.VAT_CREDIT: "1.1.04.001",
    AccountKey.WITHHOLDINGS_IIBB: "1.1.04.002",
    AccountKey.WITHHOLDINGS_VAT: "1.1.04.004",
    AccountKey.WITHHOLDINGS_INCOME_TAX: "1.1.04.005",
    AccountKey.MERCHANDISE_INVENTORY: "1.1.05.001",
    AccountKey.ACCOUNTS_PAYABLE: "2.1.01.001",
    AccountKey.VAT_DEBIT: "2.1.02.001",
    AccountKey.WITHHOLDINGS_SUSS: "2.1.02.007",
    AccountKey.SALES_REVENUE: "4.1.01",
    AccountKey.COST_OF_GOODS_SOLD: "5.1.01",
}


# ------------------------------------------------------------
# WITHHOLDING / PERCEPTION TAX TYPES
# ------------------------------------------------------------
# Every IIBB jurisdiction collapses into the same ledger account; the
# jurisdiction survives only in line descriptions and withholding records.

IIBB_JURISDICTIONS: dict[str, str] = {
    "IIBB_CABA": "IIBB CABA",
    "IIBB_BUENOS_AIRES": "IIBB Buenos Aires",
    "IIBB_CORDOBA": "IIBB Córdoba",
    "IIBB_SANTA_FE": "IIBB Santa Fe",
    "IIBB_MENDOZA": "IIBB Mendoza",
    "IIBB_TUCUMAN": "IIBB Tucumán",
    "IIBB_SALTA": "IIBB Salta",
    "IIBB_ENTRE_RIOS": "IIBB Entre Ríos",
    "IIBB_OTRAS": "IIBB Otras jurisdicciones",
}

TAX_TYPE_LABELS: dict[str, str] = {
    **IIBB_JURISDICTIONS,
    "IVA": "Retención IVA",
    "GANANCIAS": "Retención Ganancias",
    "SUSS": "Retención SUSS",
}

TAX_TYPE_CHOICES = [(key, label) for key, label in TAX_TYPE_LABELS.items()]


def withholding_account_key(tax_type: str) -> AccountKey:
    tax_type = (tax_type or "").strip().upper()
    if tax_type in IIBB_JURISDICTIONS:
        return AccountKey.WITHHOLDINGS_IIBB
    if tax_type == "IVA":
        return AccountKey.WITHHOLDINGS_VAT
    if tax_type == "GANANCIAS":
        return AccountKey.WITHHOLDINGS_INCOME_TAX
    if tax_type == "SUSS":
        return AccountKey.WITHHOLDINGS_SUSS
    raise MissingAccountError(
        [tax_type or "<blank>"], detail="no ledger account mapped for this tax type"
    )


# ------------------------------------------------------------
# LOOKUPS
# ------------------------------------------------------------

_code_to_pk: dict[str, int] = {}


def clear_registry_cache() -> None:
    _code_to_pk.clear()


def get_account_by_code(code: str) -> Account:
    """
    Resolve a code to an active leaf account.

    Raises:
    - MissingAccountError if the code is not in the chart (or inactive)
    - AccountNotLeafError if the account is a grouping account
    """
    code = (code or "").strip()
    pk = _code_to_pk.get(code)

    account = None
    if pk is not None:
        account = Account.objects.filter(pk=pk, is_active=True).first()
    if account is None:
        account = Account.objects.filter(code=code, is_active=True).first()

    if account is None:
        _code_to_pk.pop(code, None)
        raise MissingAccountError([code])

    if not account.accepts_entries:
        raise AccountNotLeafError(account.code)

    _code_to_pk[code] = account.pk
    return account


def resolve(key: AccountKey) -> Account:
    try:
        code = ACCOUNT_CODES[AccountKey(key)]
    except (KeyError, ValueError) as exc:
        raise MissingAccountError([str(key)], detail="unknown account key") from exc
    return get_account_by_code(code)


def resolve_many(*keys: AccountKey) -> dict[AccountKey, Account]:
    return {key: resolve(key) for key in keys}


def validate_registry() -> None:
    """
    Fail fast unless every AccountKey maps to an active leaf account.

    The error names every offending code at once.
    """
    codes = sorted(set(ACCOUNT_CODES.values()))
    found = {
        a.code: a
        for a in Account.objects.filter(code__in=codes, is_active=True)
    }

    missing = [code for code in codes if code not in found]
    if missing:
        logger.error("account registry incomplete", extra={"missing_codes": missing})
        raise MissingAccountError(missing)

    not_leaf = [code for code in codes if not found[code].accepts_entries]
    if not_leaf:
        logger.error("account registry points at grouping accounts", extra={"codes": not_leaf})
        raise AccountNotLeafError(", ".join(not_leaf))

    clear_registry_cache()
    _code_to_pk.update({code: acc.pk for code, acc in found.items()})
