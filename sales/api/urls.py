# sales/api/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from sales.api.views import CustomerViewSet, InvoiceViewSet, QuoteViewSet

router = DefaultRouter()
router.register(r"customers", CustomerViewSet, basename="customers")
router.register(r"quotes", QuoteViewSet, basename="quotes")
router.register(r"invoices", InvoiceViewSet, basename="invoices")

urlpatterns = [
    path("", include(router.urls)),
]
