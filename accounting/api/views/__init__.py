from .accounts import AccountViewSet
from .exchange_rates import ExchangeRateViewSet
from .journal_entries import JournalEntryViewSet
from .ledger import GeneralLedgerView, TrialBalanceView

__all__ = [
    "AccountViewSet",
    "ExchangeRateViewSet",
    "GeneralLedgerView",
    "JournalEntryViewSet",
    "TrialBalanceView",
]
