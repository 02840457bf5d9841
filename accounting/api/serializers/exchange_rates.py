# accounting/api/serializers/exchange_rates.py

from decimal import Decimal

from rest_framework import serializers

from accounting.models.exchange_rate import ExchangeRate


class ExchangeRateSerializer(serializers.ModelSerializer):
    rate = serializers.DecimalField(max_digits=16, decimal_places=6, min_value=Decimal("0.000001"))

    class Meta:
        model = ExchangeRate
        fields = [
            "id",
            "from_currency",
            "to_currency",
            "rate",
            "valid_from",
            "valid_until",
            "source",
            "created_at",
        ]
        read_only_fields = ["id", "created_at"]

    def validate(self, attrs):
        from_currency = (attrs.get("from_currency") or "").strip().upper()
        to_currency = (attrs.get("to_currency") or "ARS").strip().upper()
        if from_currency == to_currency:
            raise serializers.ValidationError("from_currency and to_currency must differ.")

        valid_from = attrs.get("valid_from")
        valid_until = attrs.get("valid_until")
        if valid_until and valid_from and valid_until < valid_from:
            raise serializers.ValidationError({"valid_until": "Cannot be before valid_from."})

        attrs["from_currency"] = from_currency
        attrs["to_currency"] = to_currency
        return attrs


class ExchangeRateLookupQuerySerializer(serializers.Serializer):
    currency = serializers.CharField(max_length=3)
    date = serializers.DateField()
    to_currency = serializers.CharField(max_length=3, required=False)


class ExchangeRateLookupSerializer(serializers.Serializer):
    currency = serializers.CharField()
    to_currency = serializers.CharField()
    date = serializers.DateField()
    rate = serializers.DecimalField(max_digits=16, decimal_places=6)
