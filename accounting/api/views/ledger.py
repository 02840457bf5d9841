# accounting/api/views/ledger.py

"""
======================================================
PATH: accounting/api/views/ledger.py
======================================================
LEDGER REPORTS (READ-ONLY)

GET /api/accounting/ledger/<account_id>/?date_from=&date_to=   Libro Mayor
GET /api/accounting/trial-balance/?as_of=                      Sumas y Saldos

Requires CAP_LEDGER_VIEW.
"""

from __future__ import annotations

from django.shortcuts import get_object_or_404
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounting.api.serializers import (
    AsOfQuerySerializer,
    DateRangeQuerySerializer,
    GeneralLedgerSerializer,
    TrialBalanceSerializer,
)
from accounting.models.account import Account
from accounting.services.ledger_service import general_ledger, trial_balance
from permissions.roles import CAP_LEDGER_VIEW, HasCapability


@extend_schema(
    tags=["accounting"],
    parameters=[
        OpenApiParameter("date_from", str, OpenApiParameter.QUERY, required=False),
        OpenApiParameter("date_to", str, OpenApiParameter.QUERY, required=False),
    ],
    responses={200: GeneralLedgerSerializer},
)
class GeneralLedgerView(APIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_LEDGER_VIEW

    def get(self, request, account_id: int):
        account = get_object_or_404(Account, pk=account_id)

        query = DateRangeQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        data = general_ledger(
            account,
            date_from=query.validated_data.get("date_from"),
            date_to=query.validated_data.get("date_to"),
        )
        return Response(GeneralLedgerSerializer(data).data, status=status.HTTP_200_OK)


@extend_schema(
    tags=["accounting"],
    parameters=[OpenApiParameter("as_of", str, OpenApiParameter.QUERY, required=False)],
    responses={200: TrialBalanceSerializer},
)
class TrialBalanceView(APIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_LEDGER_VIEW

    def get(self, request):
        query = AsOfQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        data = trial_balance(as_of=query.validated_data.get("as_of"))
        return Response(TrialBalanceSerializer(data).data, status=status.HTTP_200_OK)
