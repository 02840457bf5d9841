# purchases/api/urls.py

from django.urls import path

from purchases.api.views import (
    PurchaseCreditNoteView,
    PurchaseInvoiceApproveView,
    PurchaseInvoiceDetailView,
    PurchaseInvoiceListCreateView,
    PurchaseInvoicePaymentsView,
    PurchasePaymentVoidView,
    SupplierListCreateView,
    SupplierPaymentView,
    SupplierStatementView,
)

urlpatterns = [
    path("suppliers/", SupplierListCreateView.as_view(), name="purchase-suppliers"),
    path(
        "suppliers/<uuid:supplier_id>/payments/",
        SupplierPaymentView.as_view(),
        name="purchase-supplier-payments",
    ),
    path(
        "suppliers/<uuid:supplier_id>/statement/",
        SupplierStatementView.as_view(),
        name="purchase-supplier-statement",
    ),
    path("invoices/", PurchaseInvoiceListCreateView.as_view(), name="purchase-invoices"),
    path(
        "invoices/<uuid:invoice_id>/",
        PurchaseInvoiceDetailView.as_view(),
        name="purchase-invoice-detail",
    ),
    path(
        "invoices/<uuid:invoice_id>/approve/",
        PurchaseInvoiceApproveView.as_view(),
        name="purchase-invoice-approve",
    ),
    path(
        "invoices/<uuid:invoice_id>/credit-note/",
        PurchaseCreditNoteView.as_view(),
        name="purchase-invoice-credit-note",
    ),
    path(
        "invoices/<uuid:invoice_id>/payments/",
        PurchaseInvoicePaymentsView.as_view(),
        name="purchase-invoice-payments",
    ),
    path(
        "payments/<uuid:payment_id>/void/",
        PurchasePaymentVoidView.as_view(),
        name="purchase-payment-void",
    ),
]
