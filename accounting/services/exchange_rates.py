# accounting/services/exchange_rates.py

"""
EXCHANGE RATE LOOKUP

get_rate() answers "how many ledger-currency units is 1 <currency> worth on
<date>?" using the shared validity-window query. Same-currency lookups are 1.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings

from accounting.models.exchange_rate import ExchangeRate
from accounting.services.date_ranges import as_date, valid_on
from accounting.services.exceptions import NoExchangeRateError

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")


def ledger_currency() -> str:
    return settings.LEDGER.get("LEDGER_CURRENCY", "ARS")


def find_rate(currency: str, on_date, to_currency: str | None = None) -> ExchangeRate | None:
    to_currency = (to_currency or ledger_currency()).upper()
    qs = ExchangeRate.objects.filter(
        from_currency=currency.upper(),
        to_currency=to_currency,
    )
    return valid_on(qs, on_date).first()


def get_rate(currency: str, on_date, to_currency: str | None = None) -> Decimal:
    currency = (currency or "").strip().upper()
    to_currency = (to_currency or ledger_currency()).upper()

    if not currency or currency == to_currency:
        return Decimal("1")

    row = find_rate(currency, on_date, to_currency)
    if row is None:
        logger.warning(
            "exchange rate missing",
            extra={"currency": currency, "to_currency": to_currency, "on_date": str(on_date)},
        )
        raise NoExchangeRateError(currency, as_date(on_date), to_currency)

    return row.rate


def convert(amount, currency: str, on_date, rate: Decimal | None = None) -> Decimal:
    """
    Convert `amount` in `currency` to ledger currency.

    An explicit `rate` (e.g. the one frozen on the document) wins over the table.
    """
    amount = Decimal(str(amount or "0"))
    if rate is None:
        rate = get_rate(currency, on_date)
    return (amount * Decimal(str(rate))).quantize(TWOPLACES, rounding=ROUND_HALF_UP)
