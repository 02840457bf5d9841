# treasury/api/views.py

"""
======================================================
PATH: treasury/api/views.py
======================================================
TREASURY API

/api/treasury/accounts/                   cash boxes and banks (treasury.view / treasury.approve)
/api/treasury/receipts/                   list / detail (treasury.view), create (treasury.collect)
POST /api/treasury/receipts/<id>/approve/ BORRADOR -> APROBADO (treasury.approve)
POST /api/treasury/receipts/<id>/void/    -> ANULADO (treasury.approve)
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounting.services.exceptions import LedgerError
from backend.exceptions import domain_error_response
from permissions.roles import (
    CAP_TREASURY_APPROVE,
    CAP_TREASURY_COLLECT,
    CAP_TREASURY_VIEW,
    HasCapability,
)
from treasury.api.serializers import (
    ReceiptSerializer,
    ReceiptWriteSerializer,
    TreasuryAccountSerializer,
    VoidReceiptSerializer,
)
from treasury.models import Receipt, TreasuryAccount
from treasury.services.exceptions import TreasuryError
from treasury.services.receipt_service import (
    ApplicationInput,
    PaymentInput,
    WithholdingInput,
    approve_receipt,
    create_receipt,
    void_receipt,
)

BUSINESS_ERRORS = (TreasuryError, LedgerError)

READ_ACTIONS = {"list", "retrieve"}


class TreasuryAccountViewSet(viewsets.ModelViewSet):
    permission_classes = [IsAuthenticated, HasCapability]
    serializer_class = TreasuryAccountSerializer
    queryset = TreasuryAccount.objects.select_related("account")
    filterset_fields = ["kind", "is_active"]
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]

    @property
    def required_capability(self):
        return CAP_TREASURY_VIEW if self.action in READ_ACTIONS else CAP_TREASURY_APPROVE

    def perform_destroy(self, instance):
        instance.is_active = False
        instance.save(update_fields=["is_active"])


class ReceiptViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    viewsets.GenericViewSet,
):
    permission_classes = [IsAuthenticated, HasCapability]
    serializer_class = ReceiptSerializer
    filterset_fields = ["status", "customer"]

    def get_queryset(self):
        return Receipt.objects.select_related("customer").prefetch_related(
            "applications__invoice",
            "payments__treasury_account",
            "withholding_groups__lines",
        )

    @property
    def required_capability(self):
        if self.action in READ_ACTIONS:
            return CAP_TREASURY_VIEW
        if self.action == "create":
            return CAP_TREASURY_COLLECT
        return CAP_TREASURY_APPROVE

    def _render(self, receipt, code=status.HTTP_200_OK):
        return Response(ReceiptSerializer(self.get_queryset().get(pk=receipt.pk)).data, status=code)

    @extend_schema(request=ReceiptWriteSerializer, responses={201: ReceiptSerializer})
    def create(self, request, *args, **kwargs):
        ser = ReceiptWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data
        try:
            receipt = create_receipt(
                customer=data["customer_id"],
                date=data["date"],
                applications=[ApplicationInput(**a) for a in data["applications"]],
                payments=[PaymentInput(**p) for p in data["payments"]],
                withholdings=[WithholdingInput(**w) for w in data["withholdings"]],
                description=data["description"],
                point_of_sale=data.get("point_of_sale"),
                user=request.user,
            )
        except BUSINESS_ERRORS as exc:
            return domain_error_response(exc)
        return self._render(receipt, status.HTTP_201_CREATED)

    @extend_schema(request=None, responses=ReceiptSerializer)
    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):
        receipt = self.get_object()
        try:
            receipt = approve_receipt(receipt.pk, user=request.user)
        except BUSINESS_ERRORS as exc:
            return domain_error_response(exc)
        return self._render(receipt)

    @extend_schema(request=VoidReceiptSerializer, responses=ReceiptSerializer)
    @action(detail=True, methods=["post"])
    def void(self, request, pk=None):
        receipt = self.get_object()
        ser = VoidReceiptSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        try:
            receipt = void_receipt(receipt.pk, user=request.user, reason=ser.validated_data["reason"])
        except BUSINESS_ERRORS as exc:
            return domain_error_response(exc)
        return self._render(receipt)
