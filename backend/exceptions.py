# backend/exceptions.py

"""
PATH: backend/exceptions.py

DRF EXCEPTION HANDLER

Views catch the domain errors they expect and answer 400 themselves. This
handler is the safety net for the ones that escape:

- DRF exceptions (validation, auth, 404)      -> DRF default
- domain errors (ledger, inventory, sales,
  purchases, treasury)                        -> 400 {"detail": ...}
- Django ValidationError (model full_clean)   -> 400 {"detail": ...}
- external collaborator failures              -> 502 {"detail": ...}
- anything else                               -> logged, 500 with a generic body
"""

from __future__ import annotations

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from accounting.services.exceptions import LedgerError
from integrations.exceptions import IntegrationError
from products.services.exceptions import InventoryError
from purchases.services.exceptions import PurchaseError
from sales.services.exceptions import SalesError
from treasury.services.exceptions import TreasuryError

logger = logging.getLogger(__name__)

DOMAIN_ERRORS = (
    LedgerError,
    InventoryError,
    PurchaseError,
    SalesError,
    TreasuryError,
)


def domain_error_response(exc, code=status.HTTP_400_BAD_REQUEST) -> Response:
    """
    {"detail": "...", "errors": [...]} body for a business-rule rejection.
    """
    body = {"detail": str(exc)}
    errors = getattr(exc, "errors", None)
    if errors:
        body["errors"] = list(errors)
    return Response(body, status=code)


def _django_validation_detail(exc: DjangoValidationError):
    if hasattr(exc, "message_dict"):
        return exc.message_dict
    return "; ".join(exc.messages)


def domain_exception_handler(exc, context):
    response = exception_handler(exc, context)
    if response is not None:
        return response

    view = context.get("view")
    view_name = type(view).__name__ if view is not None else None

    if isinstance(exc, DOMAIN_ERRORS):
        logger.info(
            "domain error",
            extra={"view": view_name, "error": type(exc).__name__, "detail": str(exc)},
        )
        return domain_error_response(exc)

    if isinstance(exc, DjangoValidationError):
        return Response(
            {"detail": _django_validation_detail(exc)},
            status=status.HTTP_400_BAD_REQUEST,
        )

    if isinstance(exc, IntegrationError):
        logger.warning(
            "external service failure",
            extra={"view": view_name, "error": type(exc).__name__, "detail": str(exc)},
        )
        return Response({"detail": str(exc)}, status=status.HTTP_502_BAD_GATEWAY)

    logger.exception("unhandled API error", extra={"view": view_name})
    return Response(
        {"detail": "Internal server error."},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
