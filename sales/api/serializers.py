# sales/api/serializers.py

from decimal import Decimal

from rest_framework import serializers

from products.models import Product
from sales.models import Customer, Invoice, InvoiceItem, Quote, QuoteItem, QuoteStatusHistory


class CustomerSerializer(serializers.ModelSerializer):
    class Meta:
        model = Customer
        fields = "__all__"
        read_only_fields = ("id", "balance", "created_at")


# =========================================================
# Quotes
# =========================================================
class QuoteItemInputSerializer(serializers.Serializer):
    product_id = serializers.UUIDField(required=False, allow_null=True)
    description = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3, min_value=Decimal("0.001"))
    unit_price = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal("0"))
    is_alternative = serializers.BooleanField(required=False, default=False)
    delivery_time = serializers.CharField(max_length=64, required=False, allow_blank=True, default="")

    def validate(self, attrs):
        product_id = attrs.pop("product_id", None)
        attrs["product"] = None
        if product_id:
            try:
                attrs["product"] = Product.objects.get(pk=product_id)
            except Product.DoesNotExist:
                raise serializers.ValidationError({"product_id": f"Product not found: {product_id}"})
        if attrs["product"] is None and not attrs.get("description"):
            raise serializers.ValidationError("Lines without a product need a description")
        return attrs


class QuoteWriteSerializer(serializers.Serializer):
    customer_id = serializers.UUIDField()
    currency = serializers.CharField(max_length=3, required=False, default="ARS")
    exchange_rate = serializers.DecimalField(
        max_digits=16, decimal_places=6, min_value=Decimal("0.000001"), required=False, allow_null=True
    )
    issue_date = serializers.DateField(required=False, allow_null=True)
    valid_until = serializers.DateField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    items = QuoteItemInputSerializer(many=True)

    def validate_currency(self, value):
        return (value or "").strip().upper()

    def validate_customer_id(self, value):
        try:
            return Customer.objects.get(pk=value, is_active=True)
        except Customer.DoesNotExist:
            raise serializers.ValidationError(f"Customer not found: {value}")

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("At least one item is required")
        return value


class QuoteStatusChangeSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Quote.STATUS_CHOICES)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class InvoiceLineRequestSerializer(serializers.Serializer):
    quote_item_id = serializers.IntegerField()
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3)


class GenerateInvoiceSerializer(serializers.Serializer):
    items = InvoiceLineRequestSerializer(many=True)
    issue_date = serializers.DateField(required=False, allow_null=True)
    export = serializers.BooleanField(required=False, default=False)
    point_of_sale = serializers.RegexField(r"^\d{1,4}$", required=False, allow_null=True)
    general_discount = serializers.DecimalField(
        max_digits=5, decimal_places=2, min_value=Decimal("0"), max_value=Decimal("100"), default=Decimal("0")
    )
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("Select at least one quote item")
        return value


class QuoteItemSerializer(serializers.ModelSerializer):
    sku = serializers.CharField(source="product.sku", read_only=True, default=None)

    class Meta:
        model = QuoteItem
        fields = [
            "id",
            "position",
            "product",
            "sku",
            "description",
            "quantity",
            "unit_price",
            "is_alternative",
            "delivery_time",
        ]
        read_only_fields = fields


class QuoteStatusHistorySerializer(serializers.ModelSerializer):
    class Meta:
        model = QuoteStatusHistory
        fields = ["id", "from_status", "to_status", "changed_by", "notes", "created_at"]
        read_only_fields = fields


class QuoteSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source="customer.name", read_only=True)
    items = QuoteItemSerializer(many=True, read_only=True)
    status_history = QuoteStatusHistorySerializer(many=True, read_only=True)

    class Meta:
        model = Quote
        fields = [
            "id",
            "number",
            "customer",
            "customer_name",
            "status",
            "issue_date",
            "valid_until",
            "currency",
            "exchange_rate",
            "subtotal",
            "responded_at",
            "response_notes",
            "notes",
            "status_changed_at",
            "created_at",
            "updated_at",
            "items",
            "status_history",
        ]
        read_only_fields = fields


# =========================================================
# Invoices
# =========================================================
class CancelInvoiceSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")


class InvoiceItemSerializer(serializers.ModelSerializer):
    sku = serializers.CharField(source="product.sku", read_only=True, default=None)

    class Meta:
        model = InvoiceItem
        fields = [
            "id",
            "position",
            "quote_item",
            "product",
            "sku",
            "description",
            "quantity",
            "unit_price",
            "tax_rate",
            "subtotal",
        ]
        read_only_fields = fields


class InvoiceSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source="customer.name", read_only=True)
    quote_number = serializers.CharField(source="quote.number", read_only=True, default=None)
    items = InvoiceItemSerializer(many=True, read_only=True)

    class Meta:
        model = Invoice
        fields = [
            "id",
            "number",
            "invoice_type",
            "status",
            "customer",
            "customer_name",
            "quote",
            "quote_number",
            "currency",
            "exchange_rate",
            "issue_date",
            "due_date",
            "subtotal",
            "discount_amount",
            "tax_amount",
            "total",
            "paid_amount",
            "balance",
            "journal_entry",
            "stock_impacted",
            "stock_impacted_at",
            "notes",
            "issued_at",
            "cancelled_at",
            "created_at",
            "items",
        ]
        read_only_fields = fields
