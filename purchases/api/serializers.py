# purchases/api/serializers.py

from decimal import Decimal

from rest_framework import serializers

from accounting.models.account import Account
from accounting.services.account_registry import TAX_TYPE_CHOICES
from products.models import Product
from purchases.models import PurchaseInvoice, PurchaseInvoiceItem, PurchasePayment, PurchasePerception, Supplier


class SupplierSerializer(serializers.ModelSerializer):
    class Meta:
        model = Supplier
        fields = "__all__"
        read_only_fields = ("id", "balance", "created_at")


# =========================================================
# Request
# =========================================================
class PurchaseInvoiceItemCreateSerializer(serializers.Serializer):
    product_id = serializers.UUIDField(required=False, allow_null=True)
    account_code = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    description = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3, min_value=Decimal("0.001"))
    unit_price = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal("0"))
    tax_rate = serializers.DecimalField(
        max_digits=5, decimal_places=2, min_value=Decimal("0"), default=Decimal("21.00")
    )

    def validate(self, attrs):
        product_id = attrs.pop("product_id", None)
        attrs["product"] = None
        if product_id:
            try:
                attrs["product"] = Product.objects.get(pk=product_id)
            except Product.DoesNotExist:
                raise serializers.ValidationError({"product_id": f"Product not found: {product_id}"})

        code = (attrs.pop("account_code", None) or "").strip()
        attrs["account"] = None
        if code:
            try:
                attrs["account"] = Account.objects.get(code=code, is_active=True)
            except Account.DoesNotExist:
                raise serializers.ValidationError({"account_code": f"Account not found: {code}"})
            if not attrs["account"].accepts_entries:
                raise serializers.ValidationError({"account_code": f"Account {code} is not a leaf account"})

        if attrs["product"] is None and not attrs.get("description"):
            raise serializers.ValidationError("Lines without a product need a description")
        return attrs


class PurchasePerceptionCreateSerializer(serializers.Serializer):
    jurisdiction = serializers.ChoiceField(choices=TAX_TYPE_CHOICES)
    amount = serializers.DecimalField(
        max_digits=16, decimal_places=2, min_value=Decimal("0"), required=False, allow_null=True
    )
    rate = serializers.DecimalField(max_digits=6, decimal_places=3, min_value=Decimal("0"), default=Decimal("0"))
    base_amount = serializers.DecimalField(
        max_digits=16, decimal_places=2, min_value=Decimal("0"), default=Decimal("0")
    )
    account_code = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def validate(self, attrs):
        if attrs.get("amount") is None and not (attrs.get("rate") and attrs.get("base_amount")):
            raise serializers.ValidationError("Provide an amount or a rate with its base amount")

        code = (attrs.pop("account_code", None) or "").strip()
        attrs["account"] = None
        if code:
            try:
                attrs["account"] = Account.objects.get(code=code, is_active=True, accepts_entries=True)
            except Account.DoesNotExist:
                raise serializers.ValidationError({"account_code": f"Leaf account not found: {code}"})
        return attrs


class PurchaseInvoiceCreateSerializer(serializers.Serializer):
    supplier_id = serializers.UUIDField()
    number = serializers.CharField(max_length=32)
    invoice_type = serializers.ChoiceField(choices=PurchaseInvoice.INVOICE_TYPES, default="A")
    issue_date = serializers.DateField()
    due_date = serializers.DateField(required=False, allow_null=True)
    currency = serializers.CharField(max_length=3, default="ARS")
    exchange_rate = serializers.DecimalField(
        max_digits=16, decimal_places=6, min_value=Decimal("0.000001"), required=False, allow_null=True
    )
    general_discount = serializers.DecimalField(
        max_digits=5, decimal_places=2, min_value=Decimal("0"), max_value=Decimal("100"), default=Decimal("0")
    )
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    items = PurchaseInvoiceItemCreateSerializer(many=True)
    perceptions = PurchasePerceptionCreateSerializer(many=True, required=False, default=list)

    def validate_currency(self, value):
        return (value or "").strip().upper()

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("At least one item is required")
        return value

    def validate(self, attrs):
        due = attrs.get("due_date")
        if due and due < attrs["issue_date"]:
            raise serializers.ValidationError({"due_date": "due_date cannot be before issue_date"})
        return attrs


class CreditNoteItemSerializer(serializers.Serializer):
    original_item_id = serializers.IntegerField()
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3, min_value=Decimal("0.001"))
    reason = serializers.CharField(max_length=200, required=False, allow_blank=True, default="")


class CreditNoteCreateSerializer(serializers.Serializer):
    number = serializers.CharField(max_length=32)
    issue_date = serializers.DateField(required=False, allow_null=True)
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")
    items = CreditNoteItemSerializer(many=True)

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("Select at least one item to return")
        return value


# =========================================================
# Response
# =========================================================
class PurchaseInvoiceItemSerializer(serializers.ModelSerializer):
    sku = serializers.CharField(source="product.sku", read_only=True, default=None)
    account_code = serializers.CharField(source="account.code", read_only=True, default=None)

    class Meta:
        model = PurchaseInvoiceItem
        fields = [
            "id",
            "position",
            "product",
            "sku",
            "account",
            "account_code",
            "original_item",
            "description",
            "quantity",
            "unit_price",
            "tax_rate",
            "subtotal",
        ]
        read_only_fields = fields


class PurchasePerceptionSerializer(serializers.ModelSerializer):
    class Meta:
        model = PurchasePerception
        fields = ["id", "jurisdiction", "rate", "base_amount", "amount", "account"]
        read_only_fields = fields


class PurchaseInvoiceSerializer(serializers.ModelSerializer):
    supplier_name = serializers.CharField(source="supplier.name", read_only=True)
    items = PurchaseInvoiceItemSerializer(many=True, read_only=True)
    perceptions = PurchasePerceptionSerializer(many=True, read_only=True)

    class Meta:
        model = PurchaseInvoice
        fields = [
            "id",
            "supplier",
            "supplier_name",
            "document_type",
            "invoice_type",
            "number",
            "status",
            "issue_date",
            "due_date",
            "currency",
            "exchange_rate",
            "general_discount",
            "subtotal",
            "discount_amount",
            "net_amount",
            "tax_amount",
            "perceptions_amount",
            "total",
            "balance",
            "stock_impacted",
            "stock_impacted_at",
            "journal_entry",
            "original_invoice",
            "notes",
            "approved_at",
            "created_at",
            "items",
            "perceptions",
        ]
        read_only_fields = fields


# =========================================================
# Payments
# =========================================================
class PurchasePaymentCreateSerializer(serializers.Serializer):
    treasury_account_id = serializers.IntegerField()
    amount = serializers.DecimalField(max_digits=16, decimal_places=2, min_value=Decimal("0.01"))
    date = serializers.DateField(required=False, allow_null=True)
    method = serializers.ChoiceField(choices=PurchasePayment.METHOD_CHOICES, default=PurchasePayment.METHOD_TRANSFER)
    reference = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    notes = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")


class PurchasePaymentVoidSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")


class PurchasePaymentSerializer(serializers.ModelSerializer):
    supplier_name = serializers.CharField(source="supplier.name", read_only=True)
    treasury_account_name = serializers.CharField(source="treasury_account.name", read_only=True)

    class Meta:
        model = PurchasePayment
        fields = [
            "id",
            "supplier",
            "supplier_name",
            "invoice",
            "treasury_account",
            "treasury_account_name",
            "date",
            "method",
            "amount",
            "status",
            "reference",
            "notes",
            "journal_entry",
            "created_at",
            "voided_at",
        ]
        read_only_fields = fields


class SupplierStatementQuerySerializer(serializers.Serializer):
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)

    def validate(self, attrs):
        if attrs.get("date_from") and attrs.get("date_to") and attrs["date_to"] < attrs["date_from"]:
            raise serializers.ValidationError("date_to cannot be before date_from")
        return attrs
