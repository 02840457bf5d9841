# accounting/models/__init__.py

"""
ACCOUNTING MODELS PACKAGE EXPORTS

Note:
- Keep this file *imports-only* (no business logic).
- Do NOT import services from models anywhere (models must stay pure).
"""

from accounting.models.account import Account
from accounting.models.exchange_rate import ExchangeRate
from accounting.models.journal import JournalEntry, JournalEntryLine
from accounting.models.sequence import DocumentSequence

__all__ = [
    "Account",
    "DocumentSequence",
    "ExchangeRate",
    "JournalEntry",
    "JournalEntryLine",
]
