# purchases/api/views.py

"""
PURCHASES API

GET/POST /api/purchases/suppliers/
GET/POST /api/purchases/invoices/                       (?status, ?supplier, ?document_type)
GET      /api/purchases/invoices/<id>/
POST     /api/purchases/invoices/<id>/approve/          (purchases.approve)
POST     /api/purchases/invoices/<id>/credit-note/      (purchases.approve)
GET/POST /api/purchases/invoices/<id>/payments/         (POST: treasury.approve)
POST     /api/purchases/suppliers/<id>/payments/        (treasury.approve, payment on account)
GET      /api/purchases/suppliers/<id>/statement/       (?date_from, ?date_to)
POST     /api/purchases/payments/<id>/void/             (treasury.approve)
"""

from django.shortcuts import get_object_or_404
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounting.services.exceptions import LedgerError
from backend.exceptions import domain_error_response
from permissions.roles import (
    CAP_PURCHASES_APPROVE,
    CAP_PURCHASES_MANAGE,
    CAP_PURCHASES_VIEW,
    CAP_TREASURY_APPROVE,
    HasCapability,
)
from products.services.exceptions import InventoryError
from purchases.api.serializers import (
    CreditNoteCreateSerializer,
    PurchaseInvoiceCreateSerializer,
    PurchaseInvoiceSerializer,
    PurchasePaymentCreateSerializer,
    PurchasePaymentSerializer,
    PurchasePaymentVoidSerializer,
    SupplierSerializer,
    SupplierStatementQuerySerializer,
)
from purchases.models import PurchaseInvoice, PurchasePayment, Supplier
from purchases.services.credit_note_service import ReturnLineInput, issue_credit_note
from purchases.services.exceptions import PurchaseError
from purchases.services.payment_service import (
    register_purchase_payment,
    register_supplier_payment,
    supplier_account_statement,
    void_purchase_payment,
)
from purchases.services.purchase_service import (
    PerceptionInput,
    PurchaseLineInput,
    approve_purchase_invoice,
    create_purchase_invoice,
)

BUSINESS_ERRORS = (PurchaseError, LedgerError, InventoryError)


def _invoice_queryset():
    return PurchaseInvoice.objects.select_related("supplier").prefetch_related(
        "items", "items__product", "items__account", "perceptions"
    )


class ReadWriteCapabilityMixin:
    """GET needs `read_capability`; other methods need `write_capability`."""

    read_capability = CAP_PURCHASES_VIEW
    write_capability = CAP_PURCHASES_MANAGE

    @property
    def required_capability(self):
        if self.request.method in ("GET", "HEAD", "OPTIONS"):
            return self.read_capability
        return self.write_capability


class SupplierListCreateView(ReadWriteCapabilityMixin, GenericAPIView):
    permission_classes = [IsAuthenticated, HasCapability]
    serializer_class = SupplierSerializer

    @extend_schema(tags=["purchases"], responses=SupplierSerializer(many=True))
    def get(self, request):
        qs = Supplier.objects.filter(is_active=True).order_by("name")
        page = self.paginate_queryset(qs)
        if page is not None:
            return self.get_paginated_response(SupplierSerializer(page, many=True).data)
        return Response(SupplierSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["purchases"], request=SupplierSerializer, responses={201: SupplierSerializer})
    def post(self, request):
        s = SupplierSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        supplier = s.save()
        return Response(SupplierSerializer(supplier).data, status=status.HTTP_201_CREATED)


class PurchaseInvoiceListCreateView(ReadWriteCapabilityMixin, GenericAPIView):
    permission_classes = [IsAuthenticated, HasCapability]
    serializer_class = PurchaseInvoiceSerializer

    @extend_schema(tags=["purchases"], responses=PurchaseInvoiceSerializer(many=True))
    def get(self, request):
        qs = _invoice_queryset().order_by("-issue_date", "-created_at")

        params = request.query_params
        if params.get("status"):
            qs = qs.filter(status=params["status"].upper())
        if params.get("supplier"):
            qs = qs.filter(supplier_id=params["supplier"])
        if params.get("document_type"):
            qs = qs.filter(document_type=params["document_type"].upper())

        page = self.paginate_queryset(qs)
        if page is not None:
            return self.get_paginated_response(PurchaseInvoiceSerializer(page, many=True).data)
        return Response(PurchaseInvoiceSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["purchases"],
        request=PurchaseInvoiceCreateSerializer,
        responses={201: PurchaseInvoiceSerializer},
    )
    def post(self, request):
        s = PurchaseInvoiceCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            supplier = Supplier.objects.get(id=data["supplier_id"], is_active=True)
        except Supplier.DoesNotExist:
            return Response({"detail": "Supplier not found"}, status=status.HTTP_400_BAD_REQUEST)

        try:
            invoice = create_purchase_invoice(
                supplier=supplier,
                number=data["number"],
                invoice_type=data["invoice_type"],
                issue_date=data["issue_date"],
                due_date=data.get("due_date"),
                currency=data["currency"],
                exchange_rate=data.get("exchange_rate"),
                general_discount=data["general_discount"],
                notes=data.get("notes", ""),
                items=[PurchaseLineInput(**line) for line in data["items"]],
                perceptions=[PerceptionInput(**p) for p in data.get("perceptions", [])],
                user=request.user,
            )
        except BUSINESS_ERRORS as exc:
            return domain_error_response(exc)

        invoice = _invoice_queryset().get(pk=invoice.pk)
        return Response(PurchaseInvoiceSerializer(invoice).data, status=status.HTTP_201_CREATED)


class PurchaseInvoiceDetailView(GenericAPIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_PURCHASES_VIEW
    serializer_class = PurchaseInvoiceSerializer

    @extend_schema(tags=["purchases"], responses=PurchaseInvoiceSerializer)
    def get(self, request, invoice_id):
        invoice = get_object_or_404(_invoice_queryset(), pk=invoice_id)
        return Response(PurchaseInvoiceSerializer(invoice).data, status=status.HTTP_200_OK)


class PurchaseInvoiceApproveView(GenericAPIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_PURCHASES_APPROVE
    serializer_class = PurchaseInvoiceSerializer

    @extend_schema(tags=["purchases"], request=None, responses=PurchaseInvoiceSerializer)
    def post(self, request, invoice_id):
        get_object_or_404(PurchaseInvoice, pk=invoice_id)

        try:
            invoice = approve_purchase_invoice(invoice_id, user=request.user)
        except BUSINESS_ERRORS as exc:
            return domain_error_response(exc)

        invoice = _invoice_queryset().get(pk=invoice.pk)
        return Response(PurchaseInvoiceSerializer(invoice).data, status=status.HTTP_200_OK)


class PurchaseCreditNoteView(GenericAPIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_PURCHASES_APPROVE
    serializer_class = CreditNoteCreateSerializer

    @extend_schema(
        tags=["purchases"],
        request=CreditNoteCreateSerializer,
        responses={201: PurchaseInvoiceSerializer},
    )
    def post(self, request, invoice_id):
        get_object_or_404(PurchaseInvoice, pk=invoice_id)

        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            credit_note = issue_credit_note(
                invoice_id,
                number=data["number"],
                issue_date=data.get("issue_date"),
                reason=data.get("reason", ""),
                items=[ReturnLineInput(**line) for line in data["items"]],
                user=request.user,
            )
        except BUSINESS_ERRORS as exc:
            return domain_error_response(exc)

        credit_note = _invoice_queryset().get(pk=credit_note.pk)
        return Response(PurchaseInvoiceSerializer(credit_note).data, status=status.HTTP_201_CREATED)


# =========================================================
# Payments
# =========================================================
def _payment_response(payment, code=status.HTTP_201_CREATED):
    payment = PurchasePayment.objects.select_related("supplier", "treasury_account").get(pk=payment.pk)
    return Response(PurchasePaymentSerializer(payment).data, status=code)


class PurchaseInvoicePaymentsView(ReadWriteCapabilityMixin, GenericAPIView):
    permission_classes = [IsAuthenticated, HasCapability]
    write_capability = CAP_TREASURY_APPROVE
    serializer_class = PurchasePaymentCreateSerializer

    @extend_schema(tags=["purchases"], responses=PurchasePaymentSerializer(many=True))
    def get(self, request, invoice_id):
        invoice = get_object_or_404(PurchaseInvoice, pk=invoice_id)
        qs = invoice.payments.select_related("supplier", "treasury_account").order_by("date", "created_at")
        return Response(PurchasePaymentSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["purchases"],
        request=PurchasePaymentCreateSerializer,
        responses={201: PurchasePaymentSerializer},
    )
    def post(self, request, invoice_id):
        get_object_or_404(PurchaseInvoice, pk=invoice_id)

        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            payment = register_purchase_payment(invoice_id, user=request.user, **s.validated_data)
        except BUSINESS_ERRORS as exc:
            return domain_error_response(exc)
        return _payment_response(payment)


class SupplierPaymentView(GenericAPIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_TREASURY_APPROVE
    serializer_class = PurchasePaymentCreateSerializer

    @extend_schema(
        tags=["purchases"],
        request=PurchasePaymentCreateSerializer,
        responses={201: PurchasePaymentSerializer},
    )
    def post(self, request, supplier_id):
        get_object_or_404(Supplier, pk=supplier_id)

        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            payment = register_supplier_payment(supplier_id, user=request.user, **s.validated_data)
        except BUSINESS_ERRORS as exc:
            return domain_error_response(exc)
        return _payment_response(payment)


class PurchasePaymentVoidView(GenericAPIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_TREASURY_APPROVE
    serializer_class = PurchasePaymentVoidSerializer

    @extend_schema(tags=["purchases"], request=PurchasePaymentVoidSerializer, responses=PurchasePaymentSerializer)
    def post(self, request, payment_id):
        get_object_or_404(PurchasePayment, pk=payment_id)

        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            payment = void_purchase_payment(payment_id, user=request.user, reason=s.validated_data["reason"])
        except BUSINESS_ERRORS as exc:
            return domain_error_response(exc)
        return _payment_response(payment, status.HTTP_200_OK)


class SupplierStatementView(GenericAPIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_PURCHASES_VIEW
    serializer_class = SupplierStatementQuerySerializer

    @extend_schema(tags=["purchases"], parameters=[SupplierStatementQuerySerializer])
    def get(self, request, supplier_id):
        supplier = get_object_or_404(Supplier, pk=supplier_id)

        s = self.get_serializer(data=request.query_params)
        s.is_valid(raise_exception=True)

        statement = supplier_account_statement(supplier, **s.validated_data)
        return Response(statement, status=status.HTTP_200_OK)
