# sales/models/__init__.py

from .customer import Customer
from .invoice import Invoice, InvoiceItem
from .quote import Quote, QuoteItem, QuoteStatusHistory

__all__ = [
    "Customer",
    "Invoice",
    "InvoiceItem",
    "Quote",
    "QuoteItem",
    "QuoteStatusHistory",
]
