# products/serializers/__init__.py

from .product import ProductSerializer, StockAdjustmentSerializer, StockMovementSerializer

__all__ = [
    "ProductSerializer",
    "StockMovementSerializer",
    "StockAdjustmentSerializer",
]
