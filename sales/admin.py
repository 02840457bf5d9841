# sales/admin.py

from django.contrib import admin

from sales.models import Customer, Invoice, InvoiceItem, Quote, QuoteItem, QuoteStatusHistory


# ======================================================
# CUSTOMER
# ======================================================


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("name", "cuit", "tax_condition", "balance", "is_active")
    list_filter = ("tax_condition", "is_active")
    search_fields = ("name", "cuit")
    readonly_fields = ("balance", "created_at")


# ======================================================
# QUOTE
# ======================================================


class QuoteItemInline(admin.TabularInline):
    model = QuoteItem
    extra = 0
    fields = ("position", "product", "description", "quantity", "unit_price", "is_alternative", "delivery_time")


class QuoteStatusHistoryInline(admin.TabularInline):
    model = QuoteStatusHistory
    extra = 0
    can_delete = False
    readonly_fields = ("from_status", "to_status", "changed_by", "notes", "created_at")

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Quote)
class QuoteAdmin(admin.ModelAdmin):
    list_display = ("number", "customer", "issue_date", "status", "currency", "subtotal")
    list_filter = ("status", "currency")
    search_fields = ("number", "customer__name")
    readonly_fields = ("number", "status", "subtotal", "responded_at", "status_changed_at", "created_at")
    inlines = [QuoteItemInline, QuoteStatusHistoryInline]


# ======================================================
# INVOICE (READ-ONLY)
# ======================================================


class InvoiceItemInline(admin.TabularInline):
    model = InvoiceItem
    extra = 0
    can_delete = False
    readonly_fields = ("quote_item", "product", "description", "quantity", "unit_price", "tax_rate", "subtotal")


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    """
    Invoices change state through sales.services only.
    """

    list_display = ("number", "invoice_type", "customer", "issue_date", "status", "total", "balance")
    list_filter = ("status", "invoice_type", "currency")
    search_fields = ("number", "customer__name")
    inlines = [InvoiceItemInline]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
