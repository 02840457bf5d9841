from .inventory import latest_unit_cost, record_stock_movement
from .stock_adjustments import adjust_stock

__all__ = [
    "record_stock_movement",
    "latest_unit_cost",
    "adjust_stock",
]
