# integrations/api/views.py

"""
======================================================
PATH: integrations/api/views.py
======================================================
EXTERNAL COLLABORATORS API  (integrations.use)

GET /api/integrations/tax-id/<cuit>/              taxpayer record
GET /api/integrations/colppy/customers/<cuit>/    Colppy customer by CUIT
GET /api/integrations/colppy/records/?resource=   records since a date

400 malformed CUIT, 404 unknown taxpayer/customer, 502 collaborator failure,
503 collaborator not configured.
"""

from __future__ import annotations

from itertools import islice

from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from integrations.api.serializers import ColppyListQuerySerializer, TaxpayerSerializer
from integrations.colppy import ColppyClient, ColppyConfig
from integrations.exceptions import (
    ExternalServiceError,
    IntegrationNotConfiguredError,
    InvalidTaxIdError,
    TaxpayerNotFoundError,
)
from integrations.tax_lookup import TaxIdLookupClient
from integrations.token_cache import DjangoTokenCache
from permissions.roles import CAP_INTEGRATIONS_USE, HasCapability


def build_colppy_client() -> ColppyClient:
    return ColppyClient(ColppyConfig.from_settings(), DjangoTokenCache())


def build_tax_lookup_client() -> TaxIdLookupClient:
    return TaxIdLookupClient()


def _error(exc, code) -> Response:
    return Response({"detail": str(exc)}, status=code)


class IntegrationView(APIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_INTEGRATIONS_USE

    def handle_integration_error(self, exc) -> Response:
        if isinstance(exc, InvalidTaxIdError):
            return _error(exc, status.HTTP_400_BAD_REQUEST)
        if isinstance(exc, TaxpayerNotFoundError):
            return _error(exc, status.HTTP_404_NOT_FOUND)
        if isinstance(exc, IntegrationNotConfiguredError):
            return _error(exc, status.HTTP_503_SERVICE_UNAVAILABLE)
        return _error(exc, status.HTTP_502_BAD_GATEWAY)


class TaxpayerLookupView(IntegrationView):
    def get(self, request, cuit: str):
        try:
            client = build_tax_lookup_client()
            try:
                record = client.resolve(cuit)
            finally:
                client.close()
        except (InvalidTaxIdError, TaxpayerNotFoundError, IntegrationNotConfiguredError, ExternalServiceError) as exc:
            return self.handle_integration_error(exc)
        return Response(TaxpayerSerializer(record.as_dict()).data)


class ColppyCustomerView(IntegrationView):
    def get(self, request, cuit: str):
        try:
            with build_colppy_client() as client:
                customer = client.find_customer_by_cuit(cuit)
        except (IntegrationNotConfiguredError, ExternalServiceError) as exc:
            return self.handle_integration_error(exc)
        if customer is None:
            return Response({"detail": f"No Colppy customer with CUIT {cuit}"}, status=status.HTTP_404_NOT_FOUND)
        return Response(customer)


class ColppyRecordsView(IntegrationView):
    def get(self, request):
        query = ColppyListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        data = query.validated_data
        try:
            with build_colppy_client() as client:
                rows = list(
                    islice(
                        client.list_since(data["resource"], data.get("since"), page_size=data["page_size"]),
                        data["limit"],
                    )
                )
        except (IntegrationNotConfiguredError, ExternalServiceError) as exc:
            return self.handle_integration_error(exc)
        return Response({"resource": data["resource"], "count": len(rows), "results": rows})
