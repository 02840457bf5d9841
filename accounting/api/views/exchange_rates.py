# accounting/api/views/exchange_rates.py

"""
EXCHANGE RATES API

GET  /api/accounting/exchange-rates/                         list (?currency=)
POST /api/accounting/exchange-rates/                         create (CAP_LEDGER_POST)
GET  /api/accounting/exchange-rates/lookup/?currency=&date=  rate valid on date
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounting.api.serializers import (
    ExchangeRateLookupQuerySerializer,
    ExchangeRateLookupSerializer,
    ExchangeRateSerializer,
)
from accounting.models.exchange_rate import ExchangeRate
from accounting.services.exceptions import NoExchangeRateError
from accounting.services.exchange_rates import get_rate, ledger_currency
from permissions.roles import CAP_LEDGER_POST, CAP_LEDGER_VIEW, HasCapability


@extend_schema(tags=["accounting"])
class ExchangeRateViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = ExchangeRateSerializer
    permission_classes = [IsAuthenticated, HasCapability]

    @property
    def required_capability(self):
        return CAP_LEDGER_POST if self.action == "create" else CAP_LEDGER_VIEW

    def get_queryset(self):
        qs = ExchangeRate.objects.all().order_by("from_currency", "-valid_from")
        currency = (self.request.query_params.get("currency") or "").strip().upper()
        if currency:
            qs = qs.filter(from_currency=currency)
        return qs

    @extend_schema(
        parameters=[
            OpenApiParameter("currency", str, OpenApiParameter.QUERY, required=True),
            OpenApiParameter("date", str, OpenApiParameter.QUERY, required=True),
            OpenApiParameter("to_currency", str, OpenApiParameter.QUERY, required=False),
        ],
        responses={200: ExchangeRateLookupSerializer},
    )
    @action(detail=False, methods=["get"], url_path="lookup")
    def lookup(self, request):
        query = ExchangeRateLookupQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        data = query.validated_data

        currency = data["currency"].upper()
        to_currency = (data.get("to_currency") or ledger_currency()).upper()

        try:
            rate = get_rate(currency, data["date"], to_currency)
        except NoExchangeRateError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)

        payload = {
            "currency": currency,
            "to_currency": to_currency,
            "date": data["date"],
            "rate": rate,
        }
        return Response(ExchangeRateLookupSerializer(payload).data, status=status.HTTP_200_OK)
