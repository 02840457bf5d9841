# accounting/api/serializers/accounts.py

from rest_framework import serializers

from accounting.models.account import Account


class AccountListSerializer(serializers.ModelSerializer):
    """
    Read-only representation of the chart of accounts.
    """

    parent_code = serializers.CharField(source="parent.code", read_only=True, default=None)

    class Meta:
        model = Account
        fields = [
            "id",
            "code",
            "name",
            "description",
            "account_type",
            "parent",
            "parent_code",
            "level",
            "accepts_entries",
            "is_active",
        ]
        read_only_fields = fields


class AccountBalanceSerializer(serializers.Serializer):
    account_id = serializers.IntegerField()
    code = serializers.CharField()
    name = serializers.CharField()
    as_of = serializers.DateField(allow_null=True)
    amount = serializers.DecimalField(max_digits=16, decimal_places=2)
    nature = serializers.CharField()
    is_normal = serializers.BooleanField()
