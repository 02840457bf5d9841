from .accounts import AccountBalanceSerializer, AccountListSerializer
from .exchange_rates import (
    ExchangeRateLookupQuerySerializer,
    ExchangeRateLookupSerializer,
    ExchangeRateSerializer,
)
from .journal_entries import (
    JournalEntryLineSerializer,
    JournalEntrySerializer,
    JournalEntryUpdateSerializer,
    JournalEntryWriteSerializer,
    JournalLineInputSerializer,
    VoidEntrySerializer,
)
from .ledger import (
    AsOfQuerySerializer,
    DateRangeQuerySerializer,
    GeneralLedgerSerializer,
    TrialBalanceSerializer,
)

__all__ = [
    "AccountBalanceSerializer",
    "AccountListSerializer",
    "AsOfQuerySerializer",
    "DateRangeQuerySerializer",
    "ExchangeRateLookupQuerySerializer",
    "ExchangeRateLookupSerializer",
    "ExchangeRateSerializer",
    "GeneralLedgerSerializer",
    "JournalEntryLineSerializer",
    "JournalEntrySerializer",
    "JournalEntryUpdateSerializer",
    "JournalEntryWriteSerializer",
    "JournalLineInputSerializer",
    "TrialBalanceSerializer",
    "VoidEntrySerializer",
]
