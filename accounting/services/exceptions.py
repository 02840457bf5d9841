# accounting/services/exceptions.py

"""
LEDGER SERVICE ERRORS

Centralized domain errors for accounting services.

Every error here is a business/configuration failure: the API layer turns
them into HTTP 400 with the message, and any transaction in flight is
rolled back because the exception propagates out of transaction.atomic.
"""

from __future__ import annotations

from decimal import Decimal


class LedgerError(Exception):
    """Base exception for all ledger failures."""


class EntryValidationError(LedgerError):
    """Raised when a journal entry or one of its lines is malformed."""

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.errors = errors or [message]


class UnbalancedEntryError(LedgerError):
    """Raised when sum(debit) != sum(credit) beyond the ledger tolerance."""

    def __init__(self, total_debit: Decimal, total_credit: Decimal, context: str = ""):
        self.total_debit = total_debit
        self.total_credit = total_credit
        self.difference = total_debit - total_credit
        prefix = f"{context}: " if context else ""
        super().__init__(
            f"{prefix}journal entry not balanced: debits={total_debit} "
            f"credits={total_credit} difference={self.difference}"
        )


class MissingAccountError(LedgerError):
    """Raised when one or more required account codes cannot be resolved."""

    def __init__(self, codes, detail: str = ""):
        if isinstance(codes, str):
            codes = [codes]
        self.codes = list(codes)
        joined = ", ".join(self.codes)
        message = f"Missing account(s) in chart of accounts: {joined}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class AccountNotLeafError(LedgerError):
    """Raised when a journal line targets a grouping (non-leaf) account."""

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Account {code} does not accept entries (not a leaf account)")


class NoExchangeRateError(LedgerError):
    """Raised when no exchange rate covers the requested date."""

    def __init__(self, currency: str, on_date, to_currency: str = "ARS"):
        self.currency = currency
        self.on_date = on_date
        self.to_currency = to_currency
        super().__init__(
            f"No exchange rate {currency}/{to_currency} valid on {on_date}"
        )


class InvalidEntryTransitionError(LedgerError):
    """Raised when a journal entry action is not allowed in its current status."""


class IdempotencyError(LedgerError):
    """Raised on duplicate or retried accounting events."""
