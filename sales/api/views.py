# sales/api/views.py

"""
======================================================
PATH: sales/api/views.py
======================================================
SALES API

/api/sales/customers/                     customers (sales.view / sales.quote)
/api/sales/quotes/                        quotes CRUD (sales.view / sales.quote)
POST /api/sales/quotes/<id>/status/       status change (sales.quote)
GET  /api/sales/quotes/<id>/progress/     invoiced vs remaining per line
POST /api/sales/quotes/<id>/invoices/     partial invoice (sales.invoice)
GET  /api/sales/quotes/kanban/            invoicing board
/api/sales/invoices/                      list / detail (sales.view)
POST /api/sales/invoices/<id>/issue/      DRAFT -> PENDING (sales.invoice)
POST /api/sales/invoices/<id>/cancel/     (sales.invoice)

Business-rule failures answer 400 {"detail": ...}.
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounting.services.exceptions import LedgerError
from backend.exceptions import domain_error_response
from permissions.roles import (
    CAP_SALES_INVOICE,
    CAP_SALES_QUOTE,
    CAP_SALES_VIEW,
    HasCapability,
)
from products.services.exceptions import InventoryError
from sales.api.serializers import (
    CancelInvoiceSerializer,
    CustomerSerializer,
    GenerateInvoiceSerializer,
    InvoiceSerializer,
    QuoteSerializer,
    QuoteStatusChangeSerializer,
    QuoteWriteSerializer,
)
from sales.models import Customer, Invoice, Quote
from sales.services.exceptions import SalesError
from sales.services.fulfillment_service import (
    InvoiceLineRequest,
    generate_invoice_from_quote,
    quote_progress,
)
from sales.services.invoice_service import cancel_invoice, issue_invoice
from sales.services.kanban import kanban_board
from sales.services.quote_lifecycle import change_quote_status
from sales.services.quote_service import QuoteLineInput, create_quote, delete_quote, update_quote

BUSINESS_ERRORS = (SalesError, LedgerError, InventoryError)

READ_ACTIONS = {"list", "retrieve", "progress", "kanban"}


class CustomerViewSet(viewsets.ModelViewSet):
    permission_classes = [IsAuthenticated, HasCapability]
    serializer_class = CustomerSerializer
    queryset = Customer.objects.all()
    filterset_fields = ["tax_condition", "is_active"]

    @property
    def required_capability(self):
        return CAP_SALES_VIEW if self.action in READ_ACTIONS else CAP_SALES_QUOTE

    def perform_destroy(self, instance):
        # invoices and quotes keep pointing at the customer
        instance.is_active = False
        instance.save(update_fields=["is_active"])


class QuoteViewSet(viewsets.ModelViewSet):
    permission_classes = [IsAuthenticated, HasCapability]
    serializer_class = QuoteSerializer
    filterset_fields = ["status", "customer", "currency"]

    def get_queryset(self):
        return Quote.objects.select_related("customer").prefetch_related(
            "items", "items__product", "status_history"
        )

    @property
    def required_capability(self):
        if self.action in READ_ACTIONS:
            return CAP_SALES_VIEW
        if self.action == "invoices":
            return CAP_SALES_INVOICE
        return CAP_SALES_QUOTE

    def _render(self, quote, code=status.HTTP_200_OK):
        return Response(QuoteSerializer(self.get_queryset().get(pk=quote.pk)).data, status=code)

    @staticmethod
    def _lines(items):
        return [QuoteLineInput(**item) for item in items]

    @extend_schema(request=QuoteWriteSerializer, responses={201: QuoteSerializer})
    def create(self, request, *args, **kwargs):
        ser = QuoteWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data
        try:
            quote = create_quote(
                customer=data["customer_id"],
                items=self._lines(data["items"]),
                currency=data.get("currency"),
                exchange_rate=data.get("exchange_rate"),
                issue_date=data.get("issue_date"),
                valid_until=data.get("valid_until"),
                notes=data.get("notes", ""),
                user=request.user,
            )
        except BUSINESS_ERRORS as exc:
            return domain_error_response(exc)
        return self._render(quote, status.HTTP_201_CREATED)

    @extend_schema(request=QuoteWriteSerializer, responses=QuoteSerializer)
    def update(self, request, *args, **kwargs):
        quote = self.get_object()
        partial = kwargs.pop("partial", False)
        ser = QuoteWriteSerializer(data=request.data, partial=partial)
        ser.is_valid(raise_exception=True)
        data = dict(ser.validated_data)

        items = data.pop("items", None)
        if "customer_id" in data:
            data["customer"] = data.pop("customer_id")
        if data.get("issue_date") is None:
            data.pop("issue_date", None)
        try:
            quote = update_quote(
                quote.pk,
                items=self._lines(items) if items is not None else None,
                **data,
            )
        except BUSINESS_ERRORS as exc:
            return domain_error_response(exc)
        return self._render(quote)

    def destroy(self, request, *args, **kwargs):
        quote = self.get_object()
        try:
            delete_quote(quote.pk)
        except BUSINESS_ERRORS as exc:
            return domain_error_response(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(request=QuoteStatusChangeSerializer, responses=QuoteSerializer)
    @action(detail=True, methods=["post"], url_path="status")
    def change_status(self, request, pk=None):
        quote = self.get_object()
        ser = QuoteStatusChangeSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        try:
            quote = change_quote_status(
                quote.pk,
                ser.validated_data["status"],
                user=request.user,
                notes=ser.validated_data["notes"],
            )
        except BUSINESS_ERRORS as exc:
            return domain_error_response(exc)
        return self._render(quote)

    @action(detail=True, methods=["get"])
    def progress(self, request, pk=None):
        return Response(quote_progress(self.get_object()))

    @extend_schema(request=GenerateInvoiceSerializer, responses={201: InvoiceSerializer})
    @action(detail=True, methods=["post"])
    def invoices(self, request, pk=None):
        quote = self.get_object()
        ser = GenerateInvoiceSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data
        try:
            invoice = generate_invoice_from_quote(
                quote.pk,
                items=[InvoiceLineRequest(**line) for line in data["items"]],
                user=request.user,
                issue_date=data.get("issue_date"),
                export=data["export"],
                point_of_sale=data.get("point_of_sale"),
                general_discount=data["general_discount"],
                notes=data["notes"],
            )
        except BUSINESS_ERRORS as exc:
            return domain_error_response(exc)
        return Response(InvoiceSerializer(invoice).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["get"])
    def kanban(self, request):
        params = request.query_params
        customer = None
        if params.get("customer"):
            customer = Customer.objects.filter(pk=params["customer"]).first()
        board = kanban_board(
            customer=customer,
            currency=params.get("currency"),
            date_from=params.get("date_from"),
            date_to=params.get("date_to"),
        )
        return Response(board)


class InvoiceViewSet(viewsets.ReadOnlyModelViewSet):
    permission_classes = [IsAuthenticated, HasCapability]
    serializer_class = InvoiceSerializer
    filterset_fields = ["status", "customer", "quote", "invoice_type"]

    def get_queryset(self):
        return Invoice.objects.select_related("customer", "quote").prefetch_related(
            "items", "items__product"
        )

    @property
    def required_capability(self):
        return CAP_SALES_VIEW if self.action in READ_ACTIONS else CAP_SALES_INVOICE

    @extend_schema(request=None, responses=InvoiceSerializer)
    @action(detail=True, methods=["post"])
    def issue(self, request, pk=None):
        invoice = self.get_object()
        try:
            invoice = issue_invoice(invoice.pk, user=request.user)
        except BUSINESS_ERRORS as exc:
            return domain_error_response(exc)
        return Response(InvoiceSerializer(self.get_queryset().get(pk=invoice.pk)).data)

    @extend_schema(request=CancelInvoiceSerializer, responses=InvoiceSerializer)
    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        invoice = self.get_object()
        ser = CancelInvoiceSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        try:
            invoice = cancel_invoice(invoice.pk, user=request.user, reason=ser.validated_data["reason"])
        except BUSINESS_ERRORS as exc:
            return domain_error_response(exc)
        return Response(InvoiceSerializer(self.get_queryset().get(pk=invoice.pk)).data)
