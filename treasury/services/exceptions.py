# treasury/services/exceptions.py

from __future__ import annotations


class TreasuryError(Exception):
    """Base exception for collections and treasury accounts."""


class ReceiptError(TreasuryError):
    """
    A receipt failed validation. `errors` carries every problem found so the
    API can report them together.
    """

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.errors = list(errors or [])


class ReceiptStateError(TreasuryError):
    """Raised when a receipt cannot move from its current status."""
