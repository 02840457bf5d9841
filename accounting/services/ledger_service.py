# accounting/services/ledger_service.py

"""
======================================================
PATH: accounting/services/ledger_service.py
======================================================
LEDGER PROJECTIONS (READ-ONLY)

- general_ledger() : Libro Mayor for one account (opening balance, movements
                     with running balance, totals, closing balance)
- account_balance(): balance of one account as of a date
- trial_balance()  : Balance de Sumas y Saldos over every leaf account

Rules:
- Only booked entries count: POSTED, plus VOIDED entries (a voided entry
  stays in the books next to its reversing entry, which nets it to zero)
- DRAFT entries never affect balances
- Movements are ordered by (date, entry_number, line position)
"""

from __future__ import annotations

from decimal import Decimal

from django.db.models import Q, Sum

from accounting.models.account import Account
from accounting.models.journal import JournalEntry, JournalEntryLine
from accounting.services.balance_calculator import (
    calculate_account_balance,
    calculate_running_balance,
    zero_balance,
)
from accounting.services.date_ranges import as_date
from accounting.services.posting import ZERO, is_balanced, money

BOOKED_STATUSES = (JournalEntry.STATUS_POSTED, JournalEntry.STATUS_VOIDED)


def booked_lines():
    return JournalEntryLine.objects.filter(entry__status__in=BOOKED_STATUSES)


def _sums(qs) -> tuple[Decimal, Decimal]:
    agg = qs.aggregate(debit=Sum("debit"), credit=Sum("credit"))
    return money(agg["debit"] or ZERO), money(agg["credit"] or ZERO)


def account_balance(account: Account, as_of=None):
    qs = booked_lines().filter(account=account)
    if as_of is not None:
        qs = qs.filter(entry__date__lte=as_date(as_of))
    debit, credit = _sums(qs)
    return calculate_account_balance(account.account_type, debit, credit)


def general_ledger(account: Account, date_from=None, date_to=None) -> dict:
    base = booked_lines().filter(account=account)

    opening = zero_balance(account.account_type)
    if date_from is not None:
        date_from = as_date(date_from)
        before_debit, before_credit = _sums(base.filter(entry__date__lt=date_from))
        opening = calculate_account_balance(account.account_type, before_debit, before_credit)

    qs = base
    if date_from is not None:
        qs = qs.filter(entry__date__gte=date_from)
    if date_to is not None:
        qs = qs.filter(entry__date__lte=as_date(date_to))

    qs = qs.select_related("entry").order_by("entry__date", "entry__entry_number", "position", "id")

    running = opening
    total_debit = ZERO
    total_credit = ZERO
    movements: list[dict] = []

    for line in qs:
        running = calculate_running_balance(account.account_type, running, line.debit, line.credit)
        total_debit += line.debit
        total_credit += line.credit
        movements.append(
            {
                "date": line.entry.date,
                "entry_id": line.entry_id,
                "entry_number": line.entry.entry_number,
                "entry_status": line.entry.status,
                "description": line.description or line.entry.description,
                "reference": line.entry.reference,
                "debit": line.debit,
                "credit": line.credit,
                "balance": running.amount,
                "nature": running.nature,
            }
        )

    return {
        "account": {
            "id": account.pk,
            "code": account.code,
            "name": account.name,
            "account_type": account.account_type,
        },
        "date_from": date_from,
        "date_to": as_date(date_to) if date_to is not None else None,
        "opening_balance": opening.as_dict(),
        "movements": movements,
        "totals": {"debit": money(total_debit), "credit": money(total_credit)},
        "closing_balance": running.as_dict(),
    }


def trial_balance(as_of=None) -> dict:
    qs = booked_lines()
    if as_of is not None:
        qs = qs.filter(entry__date__lte=as_date(as_of))

    rows = {
        r["account_id"]: r
        for r in qs.order_by().values("account_id").annotate(debit=Sum("debit"), credit=Sum("credit"))
    }

    accounts = Account.objects.filter(
        Q(accepts_entries=True) & (Q(is_active=True) | Q(pk__in=list(rows)))
    ).order_by("code")

    output: list[dict] = []
    total_debit = ZERO
    total_credit = ZERO

    for acc in accounts:
        row = rows.get(acc.pk)
        if row is None:
            continue
        debit = money(row["debit"] or ZERO)
        credit = money(row["credit"] or ZERO)
        balance = calculate_account_balance(acc.account_type, debit, credit)
        total_debit += debit
        total_credit += credit
        output.append(
            {
                "account_id": acc.pk,
                "code": acc.code,
                "name": acc.name,
                "account_type": acc.account_type,
                "debit": debit,
                "credit": credit,
                "balance": balance.amount,
                "nature": balance.nature,
                "is_normal": balance.is_normal,
            }
        )

    total_debit = money(total_debit)
    total_credit = money(total_credit)
    return {
        "as_of": as_date(as_of) if as_of is not None else None,
        "accounts": output,
        "totals": {
            "debit": total_debit,
            "credit": total_credit,
            "balanced": is_balanced(total_debit, total_credit),
        },
    }
