# accounting/api/filters.py

import django_filters
from django.db.models import Q

from accounting.models.account import Account
from accounting.models.journal import JournalEntry


class AccountFilter(django_filters.FilterSet):
    account_type = django_filters.ChoiceFilter(choices=Account.ACCOUNT_TYPES)
    accepts_entries = django_filters.BooleanFilter()
    is_active = django_filters.BooleanFilter()
    search = django_filters.CharFilter(method="filter_search")

    class Meta:
        model = Account
        fields = ["account_type", "accepts_entries", "is_active", "search"]

    def filter_search(self, queryset, name, value):
        value = (value or "").strip()
        if not value:
            return queryset
        return queryset.filter(Q(code__startswith=value) | Q(name__icontains=value))


class JournalEntryFilter(django_filters.FilterSet):
    date_from = django_filters.DateFilter(field_name="date", lookup_expr="gte")
    date_to = django_filters.DateFilter(field_name="date", lookup_expr="lte")
    status = django_filters.ChoiceFilter(choices=JournalEntry.STATUS_CHOICES)
    source = django_filters.ChoiceFilter(choices=JournalEntry.SOURCE_CHOICES)
    q = django_filters.CharFilter(field_name="description", lookup_expr="icontains")
    reference = django_filters.CharFilter(field_name="reference", lookup_expr="startswith")
    account = django_filters.NumberFilter(method="filter_account")

    class Meta:
        model = JournalEntry
        fields = ["status", "source", "date_from", "date_to", "q", "reference", "account"]

    def filter_account(self, queryset, name, value):
        return queryset.filter(lines__account_id=value).distinct()
