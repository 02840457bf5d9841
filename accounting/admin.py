# accounting/admin.py

from django.contrib import admin

from accounting.models.account import Account
from accounting.models.exchange_rate import ExchangeRate
from accounting.models.journal import JournalEntry, JournalEntryLine

# ============================================================
# ACCOUNT
# ============================================================


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    list_display = (
        "code",
        "name",
        "account_type",
        "level",
        "accepts_entries",
        "is_active",
    )
    list_filter = ("account_type", "accepts_entries", "is_active")
    search_fields = ("code", "name")
    ordering = ("code",)
    readonly_fields = ("level", "created_at", "updated_at")

    fieldsets = (
        (
            "Account Identity",
            {
                "fields": ("code", "name", "description", "account_type", "parent", "level"),
            },
        ),
        (
            "Status",
            {
                "fields": ("accepts_entries", "is_active"),
            },
        ),
        (
            "System Fields",
            {
                "fields": ("created_at", "updated_at"),
            },
        ),
    )


# ============================================================
# EXCHANGE RATES
# ============================================================


@admin.register(ExchangeRate)
class ExchangeRateAdmin(admin.ModelAdmin):
    list_display = ("from_currency", "to_currency", "rate", "valid_from", "valid_until", "source")
    list_filter = ("from_currency", "source")
    ordering = ("from_currency", "-valid_from")


# ============================================================
# JOURNAL ENTRY (READ-ONLY)
# ============================================================


class JournalEntryLineInline(admin.TabularInline):
    model = JournalEntryLine
    extra = 0
    can_delete = False
    fields = ("position", "account", "debit", "credit", "description")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(JournalEntry)
class JournalEntryAdmin(admin.ModelAdmin):
    """
    Entries are written through journal_entry_service only.
    """

    list_display = (
        "entry_number",
        "date",
        "description",
        "reference",
        "status",
        "source",
        "posted_at",
    )
    list_filter = ("status", "source", "date")
    search_fields = ("description", "reference")
    ordering = ("-date", "-entry_number")
    inlines = [JournalEntryLineInline]

    readonly_fields = (
        "entry_number",
        "date",
        "description",
        "reference",
        "status",
        "source",
        "reversal_of",
        "created_by",
        "posted_at",
        "voided_at",
        "void_reason",
        "created_at",
    )

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
