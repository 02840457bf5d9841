# products/models/__init__.py

from .product import Product
from .stock_movement import StockMovement

__all__ = [
    "Product",
    "StockMovement",
]
