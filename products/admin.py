# products/admin.py

"""
Admin rules:
- Products are editable, except their stock quantity and last cost.
- StockMovement rows are an immutable audit trail: read-only here.
"""

from django.contrib import admin

from products.models import Product, StockMovement


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("sku", "name", "unit", "quantity", "last_cost", "sale_price", "currency", "is_active")
    list_filter = ("is_active", "currency", "allow_negative")
    search_fields = ("sku", "name")
    readonly_fields = ("quantity", "last_cost", "created_at", "updated_at")


@admin.register(StockMovement)
class StockMovementAdmin(admin.ModelAdmin):
    list_display = (
        "created_at",
        "product",
        "movement_type",
        "quantity",
        "stock_before",
        "stock_after",
        "unit_cost",
        "reference",
    )
    list_filter = ("movement_type",)
    search_fields = ("product__sku", "product__name", "reference")
    ordering = ("-created_at",)

    def get_readonly_fields(self, request, obj=None):
        return [f.name for f in self.model._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
