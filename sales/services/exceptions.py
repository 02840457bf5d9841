# sales/services/exceptions.py

from __future__ import annotations

from decimal import Decimal


class SalesError(Exception):
    """Base exception for quote and invoice failures."""


class InvalidQuoteTransitionError(SalesError):
    """Raised when a quote status change is not allowed."""

    def __init__(self, from_status: str, to_status: str):
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(f"Quote cannot move from {from_status} to {to_status}")


class FulfillmentError(SalesError):
    """Raised when an invoice cannot be generated from a quote."""


class OverInvoiceError(FulfillmentError):
    """Raised when a requested quantity exceeds what is left to invoice on a quote line."""

    def __init__(self, *, item: str, requested: Decimal, remaining: Decimal):
        self.item = item
        self.requested = requested
        self.remaining = remaining
        if requested <= 0:
            message = f'Item "{item}": quantity must be greater than 0'
        else:
            message = f'Item "{item}": requested quantity ({requested}) exceeds remaining ({remaining})'
        super().__init__(message)


class InvoiceStateError(SalesError):
    """Raised when an invoice operation is not allowed in its current status."""


class QuoteInvoicedError(SalesError):
    """Raised when a change would orphan invoices generated from a quote."""
