# treasury/api/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from treasury.api.views import ReceiptViewSet, TreasuryAccountViewSet

router = DefaultRouter()
router.register(r"accounts", TreasuryAccountViewSet, basename="treasury-accounts")
router.register(r"receipts", ReceiptViewSet, basename="receipts")

urlpatterns = [
    path("", include(router.urls)),
]
