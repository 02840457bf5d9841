# treasury/admin.py

from django.contrib import admin

from treasury.models import Receipt, ReceiptApplication, ReceiptPayment, TreasuryAccount, WithholdingGroup


@admin.register(TreasuryAccount)
class TreasuryAccountAdmin(admin.ModelAdmin):
    list_display = ("name", "kind", "account", "is_active")
    list_filter = ("kind", "is_active")
    search_fields = ("name", "account__code")


class ReceiptApplicationInline(admin.TabularInline):
    model = ReceiptApplication
    extra = 0
    can_delete = False
    fields = ("invoice", "invoice_total", "amount")
    readonly_fields = fields


class ReceiptPaymentInline(admin.TabularInline):
    model = ReceiptPayment
    extra = 0
    can_delete = False
    fields = ("treasury_account", "method", "amount", "check_number", "reference")
    readonly_fields = fields


class WithholdingGroupInline(admin.TabularInline):
    model = WithholdingGroup
    extra = 0
    can_delete = False
    fields = ("group_type", "total_amount")
    readonly_fields = fields


@admin.register(Receipt)
class ReceiptAdmin(admin.ModelAdmin):
    """
    Receipts are created and approved through receipt_service only.
    """

    list_display = ("number", "date", "customer", "status", "total_applied", "total_collected")
    list_filter = ("status", "date")
    search_fields = ("number", "customer__name", "customer__cuit")
    inlines = [ReceiptApplicationInline, ReceiptPaymentInline, WithholdingGroupInline]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
