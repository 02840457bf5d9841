# backend/urls.py
"""
PROJECT URLS

Everything the back office exposes hangs from /api/:

- /api/                 index of modules (public)
- /api/health/          database + chart-of-accounts check (public)
- /api/auth/            login, JWT, current user, staff accounts
- /api/<module>/        accounting, products, purchases, sales, treasury,
                        integrations

Django admin lives under settings.ADMIN_PATH (env configurable).
"""

from __future__ import annotations

import logging

from django.conf import settings
from django.contrib import admin
from django.db import connections
from django.db.utils import OperationalError
from django.urls import include, path
from django.views.generic import RedirectView
from drf_spectacular.utils import extend_schema, inline_serializer
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView
from rest_framework import serializers, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from accounting.services import account_registry
from accounting.services.exceptions import LedgerError

logger = logging.getLogger(__name__)

MODULES = ("accounting", "products", "purchases", "sales", "treasury", "integrations")


@extend_schema(
    responses=inline_serializer(
        "ApiIndex",
        fields={
            "name": serializers.CharField(),
            "ledger_currency": serializers.CharField(),
            "auth": serializers.DictField(),
            "docs": serializers.DictField(),
            "modules": serializers.DictField(),
        },
    )
)
@api_view(["GET"])
@permission_classes([AllowAny])
def api_index(request):
    return Response(
        {
            "name": "Mayorista back office",
            "ledger_currency": settings.LEDGER["LEDGER_CURRENCY"],
            "auth": {
                "login": "/api/auth/login/",
                "me": "/api/auth/me/",
                "jwt_create": "/api/auth/jwt/create/",
                "jwt_refresh": "/api/auth/jwt/refresh/",
            },
            "docs": {"swagger": "/api/docs/", "schema": "/api/schema/"},
            "modules": {name: f"/api/{name}/" for name in MODULES},
        }
    )


@extend_schema(
    responses=inline_serializer(
        "HealthStatus",
        fields={
            "status": serializers.CharField(),
            "db": serializers.CharField(),
            "chart": serializers.CharField(),
            "error": serializers.CharField(required=False),
        },
    )
)
@api_view(["GET"])
@permission_classes([AllowAny])
def health_check(request):
    """
    200 when the database answers and every registry account exists;
    503 otherwise. Generators cannot post without the registry accounts,
    so an incomplete chart counts as degraded.
    """
    try:
        with connections["default"].cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
    except OperationalError as exc:
        logger.error("health check: database unreachable", extra={"error": str(exc)})
        return Response(
            {"status": "degraded", "db": "down", "chart": "unknown", "error": str(exc)},
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    try:
        account_registry.validate_registry()
    except LedgerError as exc:
        return Response(
            {"status": "degraded", "db": "ok", "chart": "incomplete", "error": str(exc)},
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    return Response({"status": "ok", "db": "ok", "chart": "ok"})


ADMIN_PATH = settings.ADMIN_PATH if settings.ADMIN_PATH.endswith("/") else f"{settings.ADMIN_PATH}/"

api_urlpatterns = [
    path("", api_index, name="api-index"),
    path("health/", health_check, name="health-check"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    path("docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger-ui"),
    path("auth/jwt/create/", TokenObtainPairView.as_view(), name="jwt-create"),
    path("auth/jwt/refresh/", TokenRefreshView.as_view(), name="jwt-refresh"),
    path("auth/", include("users.urls")),
    path("accounting/", include("accounting.api.urls")),
    path("products/", include("products.urls")),
    path("purchases/", include("purchases.api.urls")),
    path("sales/", include("sales.api.urls")),
    path("treasury/", include("treasury.api.urls")),
    path("integrations/", include("integrations.api.urls")),
]

urlpatterns = [
    path(ADMIN_PATH, admin.site.urls),
    path("", RedirectView.as_view(url="/api/docs/", permanent=False), name="root"),
    path("api/", include(api_urlpatterns)),
]
