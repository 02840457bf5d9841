# products/views/product.py

"""
PRODUCT VIEWSET

GET    /api/products/                   list (?search, ?is_active, ?in_stock, ?currency)
POST   /api/products/                   create            (inventory.edit)
GET    /api/products/<id>/              detail
PUT    /api/products/<id>/              update            (inventory.edit)
DELETE /api/products/<id>/              deactivate        (inventory.edit)
GET    /api/products/<id>/movements/    stock movement history
POST   /api/products/<id>/adjust/       manual stock count (inventory.adjust)

Products are never hard-deleted: movements reference them.
"""

from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from backend.exceptions import domain_error_response
from permissions.roles import (
    CAP_INVENTORY_ADJUST,
    CAP_INVENTORY_EDIT,
    CAP_INVENTORY_VIEW,
    HasCapability,
)
from products.filters import ProductFilter, StockMovementFilter
from products.models import Product
from products.serializers import (
    ProductSerializer,
    StockAdjustmentSerializer,
    StockMovementSerializer,
)
from products.services.exceptions import InventoryError
from products.services.stock_adjustments import adjust_stock

READ_ACTIONS = {"list", "retrieve", "movements"}


@extend_schema(tags=["products"])
class ProductViewSet(viewsets.ModelViewSet):
    serializer_class = ProductSerializer
    permission_classes = [IsAuthenticated, HasCapability]
    filterset_class = ProductFilter

    @property
    def required_capability(self):
        if self.action in READ_ACTIONS:
            return CAP_INVENTORY_VIEW
        if self.action == "adjust":
            return CAP_INVENTORY_ADJUST
        return CAP_INVENTORY_EDIT

    def get_queryset(self):
        return Product.objects.all().order_by("name")

    def perform_destroy(self, instance):
        instance.is_active = False
        instance.save(update_fields=["is_active", "updated_at"])

    @extend_schema(responses={200: StockMovementSerializer(many=True)})
    @action(detail=True, methods=["get"], url_path="movements")
    def movements(self, request, pk=None):
        product = self.get_object()
        qs = product.stock_movements.select_related("product", "created_by").order_by(
            "-created_at", "-id"
        )
        qs = StockMovementFilter(request.query_params, queryset=qs).qs

        page = self.paginate_queryset(qs)
        if page is not None:
            return self.get_paginated_response(StockMovementSerializer(page, many=True).data)
        return Response(StockMovementSerializer(qs, many=True).data)

    @extend_schema(request=StockAdjustmentSerializer, responses={201: StockMovementSerializer})
    @action(detail=True, methods=["post"], url_path="adjust")
    def adjust(self, request, pk=None):
        product = self.get_object()

        body = StockAdjustmentSerializer(data=request.data)
        body.is_valid(raise_exception=True)
        data = body.validated_data

        try:
            result = adjust_stock(
                product=product,
                new_quantity=data["new_quantity"],
                reason=data["reason"],
                unit_cost=data.get("unit_cost"),
                user=request.user,
            )
        except InventoryError as exc:
            return domain_error_response(exc)

        return Response(StockMovementSerializer(result.movement).data, status=status.HTTP_201_CREATED)
