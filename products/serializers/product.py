# products/serializers/product.py

"""
PRODUCT SERIALIZERS

- ProductSerializer: catalogue CRUD. `quantity` and `last_cost` are
  read-only: stock changes only through movements.
- StockMovementSerializer: read-only movement history.
- StockAdjustmentSerializer: request body of POST /products/<id>/adjust/.
"""

from decimal import Decimal

from rest_framework import serializers

from products.models import Product, StockMovement


class ProductSerializer(serializers.ModelSerializer):
    class Meta:
        model = Product
        fields = [
            "id",
            "sku",
            "name",
            "description",
            "unit",
            "quantity",
            "cost_price",
            "last_cost",
            "sale_price",
            "currency",
            "allow_negative",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "quantity",
            "last_cost",
            "created_at",
            "updated_at",
        ]

    def validate_sku(self, value):
        value = (value or "").strip().upper()
        if not value:
            raise serializers.ValidationError("SKU is required")
        return value

    def validate_sale_price(self, value):
        if value is None or value < 0:
            raise serializers.ValidationError("Sale price must be non-negative")
        return value

    def validate_cost_price(self, value):
        if value is not None and value < 0:
            raise serializers.ValidationError("Cost price must be non-negative")
        return value


class StockMovementSerializer(serializers.ModelSerializer):
    sku = serializers.CharField(source="product.sku", read_only=True)
    created_by_email = serializers.EmailField(source="created_by.email", read_only=True, default=None)

    class Meta:
        model = StockMovement
        fields = [
            "id",
            "product",
            "sku",
            "movement_type",
            "quantity",
            "unit_cost",
            "total_cost",
            "currency",
            "stock_before",
            "stock_after",
            "reference",
            "notes",
            "journal_entry",
            "created_by",
            "created_by_email",
            "created_at",
        ]
        read_only_fields = fields


class StockAdjustmentSerializer(serializers.Serializer):
    new_quantity = serializers.DecimalField(max_digits=14, decimal_places=3, min_value=Decimal("0"))
    reason = serializers.CharField(max_length=255)
    unit_cost = serializers.DecimalField(
        max_digits=14,
        decimal_places=2,
        min_value=Decimal("0"),
        required=False,
        allow_null=True,
    )
