# inventory/serializers.py
"""
Serializers for the inventory API.

Input serializers only check shape; the business rules (locations per
type, stock sufficiency, posting accounts) live in inventory.policies and
the recorder. The actual work happens in commands.py.
"""

from rest_framework import serializers

from accounting.posting_rules import AdjustmentDirection, Settlement, TransactionType
from .models import InventoryTransaction


class RecordTransactionSerializer(serializers.Serializer):
    transaction_type = serializers.ChoiceField(choices=TransactionType.choices)
    product_id = serializers.UUIDField()
    sku = serializers.CharField(max_length=64, required=False, allow_blank=True)
    name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    quantity = serializers.IntegerField()
    unit_cost = serializers.DecimalField(max_digits=18, decimal_places=2)
    from_location = serializers.CharField(max_length=100, required=False, allow_blank=True)
    to_location = serializers.CharField(max_length=100, required=False, allow_blank=True)
    order_id = serializers.UUIDField(required=False, allow_null=True)
    document_number = serializers.CharField(max_length=100, required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)
    adjustment_direction = serializers.ChoiceField(
        choices=AdjustmentDirection.choices,
        required=False,
        allow_blank=True,
    )
    settlement = serializers.ChoiceField(
        choices=Settlement.choices,
        required=False,
        allow_blank=True,
    )


class ReverseTransactionSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True)


class PeriodSerializer(serializers.Serializer):
    start = serializers.DateField()
    end = serializers.DateField()

    def validate(self, attrs):
        if attrs["start"] > attrs["end"]:
            raise serializers.ValidationError("start must not be after end.")
        return attrs


class InventoryTransactionSerializer(serializers.ModelSerializer):
    id = serializers.UUIDField(source="public_id", read_only=True)
    product_id = serializers.UUIDField(source="product.public_id", read_only=True)
    journal_entry_id = serializers.SerializerMethodField()
    journal_entry_number = serializers.SerializerMethodField()
    reverses_transaction_id = serializers.SerializerMethodField()

    class Meta:
        model = InventoryTransaction
        fields = [
            "id",
            "transaction_number",
            "transaction_date",
            "transaction_type",
            "adjustment_direction",
            "settlement",
            "product_id",
            "product_sku",
            "product_name",
            "from_location",
            "to_location",
            "quantity",
            "unit_cost",
            "total_cost",
            "journal_entry_id",
            "journal_entry_number",
            "reverses_transaction_id",
            "order_id",
            "document_number",
            "notes",
            "created_by",
            "created_at",
        ]
        read_only_fields = fields

    def get_journal_entry_id(self, obj):
        return str(obj.journal_entry.public_id) if obj.journal_entry_id else None

    def get_journal_entry_number(self, obj):
        return obj.journal_entry.entry_number if obj.journal_entry_id else None

    def get_reverses_transaction_id(self, obj):
        return str(obj.reverses_transaction.public_id) if obj.reverses_transaction_id else None
