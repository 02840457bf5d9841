# accounting/api/urls.py

"""
ACCOUNTING API URLS

Mounted at /api/accounting/ by backend/urls.py.

- accounts/                     chart of accounts (read-only) + balance
- journal-entries/              manual entries lifecycle
- exchange-rates/               FX table + lookup
- ledger/<account_id>/          Libro Mayor
- trial-balance/                Balance de Sumas y Saldos
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from accounting.api.views import (
    AccountViewSet,
    ExchangeRateViewSet,
    GeneralLedgerView,
    JournalEntryViewSet,
    TrialBalanceView,
)

router = DefaultRouter()
router.register(r"accounts", AccountViewSet, basename="accounts")
router.register(r"journal-entries", JournalEntryViewSet, basename="journal-entries")
router.register(r"exchange-rates", ExchangeRateViewSet, basename="exchange-rates")

urlpatterns = [
    path("ledger/<int:account_id>/", GeneralLedgerView.as_view(), name="general-ledger"),
    path("trial-balance/", TrialBalanceView.as_view(), name="trial-balance"),
    path("", include(router.urls)),
]
