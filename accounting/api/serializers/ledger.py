# accounting/api/serializers/ledger.py

"""
LEDGER REPORT SERIALIZERS (QUERY + RESPONSE)
"""

from rest_framework import serializers


class DateRangeQuerySerializer(serializers.Serializer):
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)

    def validate(self, attrs):
        date_from = attrs.get("date_from")
        date_to = attrs.get("date_to")
        if date_from and date_to and date_to < date_from:
            raise serializers.ValidationError({"date_to": "Cannot be before date_from."})
        return attrs


class AsOfQuerySerializer(serializers.Serializer):
    as_of = serializers.DateField(required=False)


class BalanceSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=16, decimal_places=2)
    nature = serializers.CharField()
    is_normal = serializers.BooleanField()


class LedgerMovementSerializer(serializers.Serializer):
    date = serializers.DateField()
    entry_id = serializers.IntegerField()
    entry_number = serializers.IntegerField()
    entry_status = serializers.CharField()
    description = serializers.CharField()
    reference = serializers.CharField(allow_null=True)
    debit = serializers.DecimalField(max_digits=16, decimal_places=2)
    credit = serializers.DecimalField(max_digits=16, decimal_places=2)
    balance = serializers.DecimalField(max_digits=16, decimal_places=2)
    nature = serializers.CharField()


class LedgerAccountSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    code = serializers.CharField()
    name = serializers.CharField()
    account_type = serializers.CharField()


class TotalsSerializer(serializers.Serializer):
    debit = serializers.DecimalField(max_digits=16, decimal_places=2)
    credit = serializers.DecimalField(max_digits=16, decimal_places=2)


class GeneralLedgerSerializer(serializers.Serializer):
    account = LedgerAccountSerializer()
    date_from = serializers.DateField(allow_null=True)
    date_to = serializers.DateField(allow_null=True)
    opening_balance = BalanceSerializer()
    movements = LedgerMovementSerializer(many=True)
    totals = TotalsSerializer()
    closing_balance = BalanceSerializer()


class TrialBalanceRowSerializer(serializers.Serializer):
    account_id = serializers.IntegerField()
    code = serializers.CharField()
    name = serializers.CharField()
    account_type = serializers.CharField()
    debit = serializers.DecimalField(max_digits=16, decimal_places=2)
    credit = serializers.DecimalField(max_digits=16, decimal_places=2)
    balance = serializers.DecimalField(max_digits=16, decimal_places=2)
    nature = serializers.CharField()
    is_normal = serializers.BooleanField()


class TrialBalanceTotalsSerializer(TotalsSerializer):
    balanced = serializers.BooleanField()


class TrialBalanceSerializer(serializers.Serializer):
    as_of = serializers.DateField(allow_null=True)
    accounts = TrialBalanceRowSerializer(many=True)
    totals = TrialBalanceTotalsSerializer()
