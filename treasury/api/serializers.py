# treasury/api/serializers.py

"""
TREASURY SERIALIZERS

Request serializers check shape only. Invoice ownership, balances, treasury
account status and the receipt balance rule live in
treasury.services.receipt_service.
"""

from decimal import Decimal

from rest_framework import serializers

from accounting.models.account import Account
from accounting.services.account_registry import TAX_TYPE_CHOICES
from sales.models import Customer
from treasury.models import (
    Receipt,
    ReceiptApplication,
    ReceiptPayment,
    TreasuryAccount,
    WithholdingGroup,
    WithholdingLine,
)

POSITIVE = Decimal("0.01")


# =========================================================
# Treasury accounts
# =========================================================
class TreasuryAccountSerializer(serializers.ModelSerializer):
    account_code = serializers.CharField(source="account.code", read_only=True)
    account_name = serializers.CharField(source="account.name", read_only=True)

    class Meta:
        model = TreasuryAccount
        fields = ["id", "name", "kind", "account", "account_code", "account_name", "is_active"]

    def validate_account(self, value: Account):
        if not value.accepts_entries:
            raise serializers.ValidationError(f"Account {value.code} is not a leaf account.")
        if not value.is_active:
            raise serializers.ValidationError(f"Account {value.code} is inactive.")
        return value


# =========================================================
# Request
# =========================================================
class ApplicationInputSerializer(serializers.Serializer):
    invoice_id = serializers.UUIDField()
    amount = serializers.DecimalField(max_digits=16, decimal_places=2, min_value=POSITIVE)


class PaymentInputSerializer(serializers.Serializer):
    treasury_account_id = serializers.IntegerField()
    method = serializers.ChoiceField(choices=ReceiptPayment.METHOD_CHOICES, default=ReceiptPayment.METHOD_TRANSFER)
    amount = serializers.DecimalField(max_digits=16, decimal_places=2, min_value=POSITIVE)
    reference = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    check_number = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")
    check_date = serializers.DateField(required=False, allow_null=True, default=None)
    check_bank = serializers.CharField(max_length=80, required=False, allow_blank=True, default="")
    notes = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")

    def validate(self, attrs):
        if attrs["method"] == ReceiptPayment.METHOD_CHECK and not attrs.get("check_number"):
            raise serializers.ValidationError({"check_number": "Check payments need a check number."})
        return attrs


class WithholdingInputSerializer(serializers.Serializer):
    tax_type = serializers.ChoiceField(choices=TAX_TYPE_CHOICES)
    amount = serializers.DecimalField(max_digits=16, decimal_places=2, min_value=POSITIVE)
    certificate_number = serializers.CharField(max_length=40, required=False, allow_blank=True, default="")
    jurisdiction_label = serializers.CharField(max_length=80, required=False, allow_blank=True, default="")


class ReceiptWriteSerializer(serializers.Serializer):
    customer_id = serializers.UUIDField()
    date = serializers.DateField()
    description = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    point_of_sale = serializers.RegexField(r"^\d{1,4}$", required=False, allow_null=True, default=None)
    applications = ApplicationInputSerializer(many=True, allow_empty=False)
    payments = PaymentInputSerializer(many=True, required=False, default=list)
    withholdings = WithholdingInputSerializer(many=True, required=False, default=list)

    def validate_customer_id(self, value):
        try:
            return Customer.objects.get(pk=value)
        except Customer.DoesNotExist:
            raise serializers.ValidationError(f"Customer not found: {value}")


class VoidReceiptSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")


# =========================================================
# Response
# =========================================================
class ReceiptApplicationSerializer(serializers.ModelSerializer):
    invoice_label = serializers.CharField(source="invoice.label", read_only=True)

    class Meta:
        model = ReceiptApplication
        fields = ["id", "invoice", "invoice_label", "invoice_total", "amount"]
        read_only_fields = fields


class ReceiptPaymentSerializer(serializers.ModelSerializer):
    treasury_account_name = serializers.CharField(source="treasury_account.name", read_only=True)

    class Meta:
        model = ReceiptPayment
        fields = [
            "id",
            "treasury_account",
            "treasury_account_name",
            "method",
            "amount",
            "reference",
            "check_number",
            "check_date",
            "check_bank",
            "notes",
        ]
        read_only_fields = fields


class WithholdingLineSerializer(serializers.ModelSerializer):
    class Meta:
        model = WithholdingLine
        fields = ["id", "tax_type", "jurisdiction_label", "certificate_number", "amount"]
        read_only_fields = fields


class WithholdingGroupSerializer(serializers.ModelSerializer):
    lines = WithholdingLineSerializer(many=True, read_only=True)

    class Meta:
        model = WithholdingGroup
        fields = ["id", "group_type", "total_amount", "lines"]
        read_only_fields = fields


class ReceiptSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source="customer.name", read_only=True)
    applications = ReceiptApplicationSerializer(many=True, read_only=True)
    payments = ReceiptPaymentSerializer(many=True, read_only=True)
    withholding_groups = WithholdingGroupSerializer(many=True, read_only=True)

    class Meta:
        model = Receipt
        fields = [
            "id",
            "number",
            "customer",
            "customer_name",
            "date",
            "description",
            "status",
            "total_applied",
            "total_withholdings",
            "total_to_collect",
            "total_collected",
            "journal_entry",
            "created_by",
            "approved_by",
            "approved_at",
            "voided_at",
            "applications",
            "payments",
            "withholding_groups",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
