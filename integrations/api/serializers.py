# integrations/api/serializers.py

from rest_framework import serializers

from integrations.colppy import RESOURCES


class TaxpayerSerializer(serializers.Serializer):
    cuit = serializers.CharField()
    name = serializers.CharField()
    legal_name = serializers.CharField()
    person_type = serializers.CharField()
    tax_condition = serializers.CharField()
    address = serializers.CharField(allow_blank=True)
    locality = serializers.CharField(allow_blank=True)
    province = serializers.CharField(allow_blank=True)
    postal_code = serializers.CharField(allow_blank=True)
    main_activity = serializers.CharField(allow_blank=True)
    is_active = serializers.BooleanField()


class ColppyListQuerySerializer(serializers.Serializer):
    resource = serializers.ChoiceField(choices=sorted(RESOURCES))
    since = serializers.DateField(required=False, allow_null=True)
    limit = serializers.IntegerField(required=False, min_value=1, max_value=1000, default=200)
    page_size = serializers.IntegerField(required=False, min_value=1, max_value=500, default=100)
