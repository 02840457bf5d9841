# accounting/api/serializers/journal_entries.py

"""
JOURNAL ENTRY SERIALIZERS

Request serializers validate shape only (description length, line count,
one side per line). Balance, leaf accounts and lifecycle rules are enforced
by accounting.services.journal_entry_service.
"""

from decimal import Decimal

from rest_framework import serializers

from accounting.models.journal import JournalEntry, JournalEntryLine
from accounting.services.journal_entry_service import DESCRIPTION_MAX, MIN_LINES

DESCRIPTION_MIN = 5


# =========================================================
# Request
# =========================================================
class JournalLineInputSerializer(serializers.Serializer):
    account = serializers.CharField(help_text="Account id or dotted code")
    debit = serializers.DecimalField(
        max_digits=16, decimal_places=2, required=False, default=Decimal("0.00"), min_value=Decimal("0")
    )
    credit = serializers.DecimalField(
        max_digits=16, decimal_places=2, required=False, default=Decimal("0.00"), min_value=Decimal("0")
    )
    description = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")

    def validate(self, attrs):
        debit = attrs.get("debit") or Decimal("0")
        credit = attrs.get("credit") or Decimal("0")
        if (debit > 0) == (credit > 0):
            raise serializers.ValidationError("Each line must carry exactly one of debit or credit.")
        return attrs


class JournalEntryWriteSerializer(serializers.Serializer):
    date = serializers.DateField()
    description = serializers.CharField(min_length=DESCRIPTION_MIN, max_length=DESCRIPTION_MAX)
    reference = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)
    lines = JournalLineInputSerializer(many=True)
    post_immediately = serializers.BooleanField(
        required=False,
        default=False,
        help_text="Post immediately instead of saving a draft",
    )

    def validate_lines(self, value):
        if len(value) < MIN_LINES:
            raise serializers.ValidationError(f"At least {MIN_LINES} lines are required.")
        return value


class JournalEntryUpdateSerializer(serializers.Serializer):
    date = serializers.DateField(required=False)
    description = serializers.CharField(
        min_length=DESCRIPTION_MIN, max_length=DESCRIPTION_MAX, required=False
    )
    lines = JournalLineInputSerializer(many=True, required=False)

    def validate_lines(self, value):
        if len(value) < MIN_LINES:
            raise serializers.ValidationError(f"At least {MIN_LINES} lines are required.")
        return value


class VoidEntrySerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    date = serializers.DateField(required=False, allow_null=True)


# =========================================================
# Response
# =========================================================
class JournalEntryLineSerializer(serializers.ModelSerializer):
    account_code = serializers.CharField(source="account.code", read_only=True)
    account_name = serializers.CharField(source="account.name", read_only=True)

    class Meta:
        model = JournalEntryLine
        fields = [
            "id",
            "position",
            "account",
            "account_code",
            "account_name",
            "debit",
            "credit",
            "description",
        ]
        read_only_fields = fields


class JournalEntrySerializer(serializers.ModelSerializer):
    lines = JournalEntryLineSerializer(many=True, read_only=True)
    total_debit = serializers.SerializerMethodField()
    total_credit = serializers.SerializerMethodField()
    reversal_of = serializers.PrimaryKeyRelatedField(read_only=True)
    reversed_by = serializers.SerializerMethodField()

    class Meta:
        model = JournalEntry
        fields = [
            "id",
            "entry_number",
            "date",
            "description",
            "reference",
            "status",
            "source",
            "reversal_of",
            "reversed_by",
            "created_by",
            "posted_at",
            "voided_at",
            "void_reason",
            "total_debit",
            "total_credit",
            "lines",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def _totals(self, obj):
        lines = list(obj.lines.all())
        return (
            sum((line.debit for line in lines), Decimal("0.00")),
            sum((line.credit for line in lines), Decimal("0.00")),
        )

    def get_total_debit(self, obj) -> str:
        return str(self._totals(obj)[0])

    def get_total_credit(self, obj) -> str:
        return str(self._totals(obj)[1])

    def get_reversed_by(self, obj) -> int | None:
        # reverse one-to-one raises RelatedObjectDoesNotExist (an AttributeError) when absent
        reversal = getattr(obj, "reversed_by", None)
        return reversal.pk if reversal else None
