# accounting/api/views/accounts.py

"""
======================================================
PATH: accounting/api/views/accounts.py
======================================================
CHART OF ACCOUNTS API (READ-ONLY)

GET /api/accounting/accounts/                 list (?account_type, ?accepts_entries, ?is_active, ?search)
GET /api/accounting/accounts/<id>/            detail
GET /api/accounting/accounts/<id>/balance/    balance as of ?as_of=YYYY-MM-DD

The chart is seeded by migration / seed_chart_of_accounts; it is not
editable over the API.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounting.api.filters import AccountFilter
from accounting.api.serializers import (
    AccountBalanceSerializer,
    AccountListSerializer,
    AsOfQuerySerializer,
)
from accounting.models.account import Account
from accounting.services.ledger_service import account_balance
from permissions.roles import CAP_LEDGER_VIEW, HasCapability


@extend_schema(tags=["accounting"])
class AccountViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = AccountListSerializer
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_LEDGER_VIEW
    filter_backends = [DjangoFilterBackend]
    filterset_class = AccountFilter

    def get_queryset(self):
        return Account.objects.select_related("parent").order_by("code")

    @extend_schema(
        parameters=[OpenApiParameter("as_of", str, OpenApiParameter.QUERY, required=False)],
        responses={200: AccountBalanceSerializer},
    )
    @action(detail=True, methods=["get"], url_path="balance")
    def balance(self, request, pk=None):
        account: Account = self.get_object()

        query = AsOfQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        as_of = query.validated_data.get("as_of")

        balance = account_balance(account, as_of=as_of)
        payload = {
            "account_id": account.pk,
            "code": account.code,
            "name": account.name,
            "as_of": as_of,
            "amount": balance.amount,
            "nature": balance.nature,
            "is_normal": balance.is_normal,
        }
        return Response(AccountBalanceSerializer(payload).data, status=status.HTTP_200_OK)
