# purchases/services/exceptions.py

from __future__ import annotations


class PurchaseError(Exception):
    """Base exception for supplier document failures."""


class PurchaseApprovalError(PurchaseError):
    """Raised when an invoice cannot be approved in its current state."""


class CreditNoteError(PurchaseError):
    """Raised when a return cannot be issued against an invoice."""


class PurchasePaymentError(PurchaseError):
    """Raised when a supplier payment cannot be registered or voided."""
