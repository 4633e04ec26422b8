# accounting/serializers.py
"""
Serializers for the accounting API.

These are output serializers: the ledger is written only through the
recorder and the ledger writer, never through a serializer's save().
Identifiers exposed to clients are public_id values.
"""

from rest_framework import serializers

from .models import Account, AccountingEntry, JournalEntry
from .queries import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE


class AccountSerializer(serializers.ModelSerializer):
    id = serializers.UUIDField(source="public_id", read_only=True)
    parent_id = serializers.SerializerMethodField()
    level = serializers.IntegerField(read_only=True)

    class Meta:
        model = Account
        fields = [
            "id",
            "code",
            "name",
            "account_type",
            "normal_balance",
            "parent_id",
            "level",
            "is_analytic",
            "is_active",
            "balance",
            "debit_total",
            "credit_total",
            "description",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_parent_id(self, obj):
        return str(obj.parent.public_id) if obj.parent_id else None


class AccountingEntrySerializer(serializers.ModelSerializer):
    id = serializers.UUIDField(source="public_id", read_only=True)
    account_id = serializers.UUIDField(source="account.public_id", read_only=True)
    account_code = serializers.CharField(source="account.code", read_only=True)
    account_name = serializers.CharField(source="account.name", read_only=True)

    class Meta:
        model = AccountingEntry
        fields = [
            "id",
            "line_no",
            "account_id",
            "account_code",
            "account_name",
            "entry_type",
            "amount",
            "description",
            "cost_center",
        ]
        read_only_fields = fields


class JournalEntrySerializer(serializers.ModelSerializer):
    id = serializers.UUIDField(source="public_id", read_only=True)
    reverses_entry_id = serializers.SerializerMethodField()
    entries = AccountingEntrySerializer(source="lines", many=True, read_only=True)

    class Meta:
        model = JournalEntry
        fields = [
            "id",
            "entry_number",
            "entry_date",
            "document_type",
            "document_number",
            "narrative",
            "total_amount",
            "kind",
            "is_posted",
            "posted_at",
            "product_id",
            "inventory_transaction_id",
            "order_id",
            "reverses_entry_id",
            "created_by",
            "created_at",
            "entries",
        ]
        read_only_fields = fields

    def get_reverses_entry_id(self, obj):
        return str(obj.reverses_entry.public_id) if obj.reverses_entry_id else None


class PagingSerializer(serializers.Serializer):
    page_number = serializers.IntegerField(required=False, default=1, min_value=1)
    page_size = serializers.IntegerField(
        required=False,
        default=DEFAULT_PAGE_SIZE,
        min_value=1,
        max_value=MAX_PAGE_SIZE,
    )
