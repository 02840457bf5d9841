# purchases/admin.py

from django.contrib import admin

from purchases.models import PurchaseInvoice, PurchaseInvoiceItem, PurchasePayment, PurchasePerception, Supplier


@admin.register(Supplier)
class SupplierAdmin(admin.ModelAdmin):
    list_display = ("name", "cuit", "balance", "is_active")
    search_fields = ("name", "cuit")
    readonly_fields = ("balance", "created_at")


class PurchaseInvoiceItemInline(admin.TabularInline):
    model = PurchaseInvoiceItem
    fk_name = "invoice"
    extra = 0
    can_delete = False
    readonly_fields = ("product", "account", "description", "quantity", "unit_price", "tax_rate", "subtotal")


class PurchasePerceptionInline(admin.TabularInline):
    model = PurchasePerception
    extra = 0
    can_delete = False
    readonly_fields = ("jurisdiction", "rate", "base_amount", "amount", "account")


@admin.register(PurchaseInvoice)
class PurchaseInvoiceAdmin(admin.ModelAdmin):
    """
    Documents change state through purchases.services only.
    """

    list_display = ("number", "document_type", "supplier", "issue_date", "status", "total", "balance")
    list_filter = ("status", "document_type", "currency")
    search_fields = ("number", "supplier__name")
    inlines = [PurchaseInvoiceItemInline, PurchasePerceptionInline]

    def has_change_permission(self, request, obj=None):
        return False


@admin.register(PurchasePayment)
class PurchasePaymentAdmin(admin.ModelAdmin):
    list_display = ("date", "supplier", "invoice", "method", "amount", "status")
    list_filter = ("status", "method")
    search_fields = ("supplier__name", "invoice__number", "reference")
    readonly_fields = [f.name for f in PurchasePayment._meta.fields]

    def has_add_permission(self, request):
        return False
