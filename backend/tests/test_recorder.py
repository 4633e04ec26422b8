# tests/test_recorder.py
"""
Tests for the inventory transaction recorder.

Each movement must leave stock, the inventory transaction row, the journal
entry and the account balances consistent with each other, or leave
nothing at all.
"""

from decimal import Decimal
import re
from uuid import uuid4

import pytest

from accounting.exceptions import ConcurrencyError, LedgerIntegrityError
from accounting.models import Account, AccountingEntry, JournalEntry
from inventory import commands
from inventory.commands import record_inventory_transaction, reverse_inventory_transaction
from inventory.models import InventoryTransaction, Product


INVENTORY = "1.1.03.001"
CASH = "1.1.01.001"
ACCOUNTS_PAYABLE = "2.1.01.001"
COGS = "3.1.01.001"
INVENTORY_LOSS = "3.2.01.001"
INVENTORY_GAIN = "4.2.01.001"

NUMBER_RE = r"^{prefix}-\d{{6}}-\d{{6}}$"


def stock_of(product) -> int:
    return Product.objects.get(pk=product.pk).stock_quantity


def assert_nothing_written(product, stock: int, entries: int = 0, transactions: int = 0):
    assert stock_of(product) == stock
    assert JournalEntry.objects.count() == entries
    assert InventoryTransaction.objects.count() == transactions


# =============================================================================
# Posting Scenarios
# =============================================================================

@pytest.mark.django_db
class TestReceiving:

    def test_receiving_posts_purchase(self, record, product, balance):
        result = record(product, "RECEIVING", 10, "100.00")

        assert result.success, result.error
        txn = result.data
        assert re.match(NUMBER_RE.format(prefix="RCV"), txn.transaction_number)
        assert txn.total_cost == Decimal("1000.00")
        assert txn.settlement == "PAYABLE"
        assert stock_of(product) == 10

        assert balance(INVENTORY) == Decimal("1000.00")
        assert balance(ACCOUNTS_PAYABLE) == Decimal("1000.00")

        entry = txn.journal_entry
        assert entry.document_type == JournalEntry.DocumentType.PURCHASE
        assert entry.total_amount == Decimal("1000.00")
        assert entry.inventory_transaction_id == txn.public_id
        assert entry.product_id == product.public_id
        assert entry.created_by == "user-1"
        assert entry.narrative == "Purchase of goods - Widget (WID-001)"
        assert entry.lines.get(line_no=1).description == "Purchase - 10 units x 100.00"
        assert entry.is_balanced

    def test_cash_receiving_credits_cash(self, record, product, balance):
        result = record(product, "RECEIVING", 2, "50.00", settlement="CASH")

        assert result.success, result.error
        assert balance(INVENTORY) == Decimal("100.00")
        assert balance(CASH) == Decimal("-100.00")
        assert balance(ACCOUNTS_PAYABLE) == Decimal("0.00")

    def test_order_and_document_are_linked(self, record, product):
        order_id = uuid4()

        result = record(product, "RECEIVING", 1, "10.00", order_id=order_id, document_number="PO-778")

        assert result.data.order_id == order_id
        assert result.data.journal_entry.order_id == order_id
        assert result.data.journal_entry.document_number == "PO-778"

    def test_zero_cost_receiving_has_no_entry(self, record, product):
        result = record(product, "RECEIVING", 5, "0.00")

        assert result.success, result.error
        assert result.data.journal_entry is None
        assert stock_of(product) == 5
        assert JournalEntry.objects.count() == 0


@pytest.mark.django_db
class TestShipping:

    def test_shipping_posts_cost_of_goods_sold(self, record, product, balance):
        record(product, "RECEIVING", 10, "100.00")

        result = record(product, "SHIPPING", 4, "100.00")

        assert result.success, result.error
        assert re.match(NUMBER_RE.format(prefix="SHP"), result.data.transaction_number)
        assert stock_of(product) == 6
        assert balance(COGS) == Decimal("400.00")
        assert balance(INVENTORY) == Decimal("600.00")
        assert result.data.journal_entry.document_type == JournalEntry.DocumentType.COGS
        assert result.data.journal_entry.narrative.startswith("Inventory withdrawal - Sale")

    def test_overshipping_writes_nothing(self, record, product, balance):
        record(product, "RECEIVING", 10, "100.00")

        result = record(product, "SHIPPING", 11, "100.00")

        assert not result.success
        assert result.error_code == "insufficient_stock"
        assert result.status_code == 409
        assert result.exception.available == 10
        assert result.exception.requested == 11
        assert_nothing_written(product, stock=10, entries=1, transactions=1)
        assert balance(INVENTORY) == Decimal("1000.00")
        assert balance(COGS) == Decimal("0.00")

    def test_shipping_entire_stock(self, record, stocked_product):
        result = record(stocked_product, "SHIPPING", 10, "7.50")

        assert result.success, result.error
        assert stock_of(stocked_product) == 0


@pytest.mark.django_db
class TestAdjustment:

    def test_gain(self, record, product, balance):
        result = record(product, "ADJUSTMENT", 2, "50.00", adjustment_direction="GAIN")

        assert result.success, result.error
        assert re.match(NUMBER_RE.format(prefix="ADJ"), result.data.transaction_number)
        assert stock_of(product) == 2
        assert balance(INVENTORY) == Decimal("100.00")
        assert balance(INVENTORY_GAIN) == Decimal("100.00")

    def test_loss(self, record, stocked_product, balance):
        result = record(stocked_product, "ADJUSTMENT", 3, "50.00", adjustment_direction="LOSS")

        assert result.success, result.error
        assert stock_of(stocked_product) == 7
        assert balance(INVENTORY_LOSS) == Decimal("150.00")
        assert balance(INVENTORY) == Decimal("-150.00")
        assert result.data.journal_entry.document_type == JournalEntry.DocumentType.LOSS

    def test_loss_beyond_stock(self, record, stocked_product):
        result = record(stocked_product, "ADJUSTMENT", 11, "50.00", adjustment_direction="LOSS")

        assert result.error_code == "insufficient_stock"
        assert_nothing_written(stocked_product, stock=10)

    def test_direction_is_required(self, record, product):
        result = record(product, "ADJUSTMENT", 2, "50.00")

        assert result.error_code == "validation_error"
        assert_nothing_written(product, stock=0)


@pytest.mark.django_db
class TestTransfer:

    def test_transfer_moves_nothing_in_the_ledger(self, record, stocked_product):
        result = record(stocked_product, "TRANSFER", 4, "100.00")

        assert result.success, result.error
        txn = result.data
        assert re.match(NUMBER_RE.format(prefix="TRF"), txn.transaction_number)
        assert txn.journal_entry is None
        assert txn.from_location == "WH-MAIN"
        assert txn.to_location == "WH-NORTH"
        assert stock_of(stocked_product) == 10
        assert JournalEntry.objects.count() == 0
        assert AccountingEntry.objects.count() == 0

    def test_transfer_to_same_location(self, record, stocked_product):
        result = record(stocked_product, "TRANSFER", 4, "100.00", to_location="WH-MAIN")

        assert result.error_code == "validation_error"
        assert InventoryTransaction.objects.count() == 0


# =============================================================================
# Numbering
# =============================================================================

@pytest.mark.django_db
class TestNumbering:

    def test_movement_types_share_a_sequence(self, record, product):
        first = record(product, "RECEIVING", 10, "100.00").data
        second = record(product, "SHIPPING", 1, "100.00").data
        third = record(product, "TRANSFER", 1, "100.00").data

        counters = [txn.transaction_number.rsplit("-", 1)[1] for txn in (first, second, third)]
        assert counters == ["000001", "000002", "000003"]

    def test_journal_entries_numbered_separately(self, record, product):
        record(product, "RECEIVING", 10, "100.00")
        shipped = record(product, "SHIPPING", 1, "100.00").data

        assert shipped.journal_entry.entry_number.startswith("JE-")
        assert shipped.journal_entry.entry_number.endswith("-000002")


# =============================================================================
# Validation
# =============================================================================

@pytest.mark.django_db
class TestValidation:

    @pytest.mark.parametrize("quantity", [0, -1, 1.5, "3", True, None])
    def test_invalid_quantity(self, record, product, quantity):
        result = record(product, "RECEIVING", quantity, "10.00")

        assert result.error_code == "validation_error"
        assert_nothing_written(product, stock=0)

    @pytest.mark.parametrize("unit_cost", ["-1.00", "abc", "1.234", None])
    def test_invalid_unit_cost(self, record, product, unit_cost):
        result = record(product, "RECEIVING", 1, unit_cost)

        assert result.error_code == "validation_error"
        assert_nothing_written(product, stock=0)

    def test_unknown_type(self, record, product):
        result = record(product, "RETURN", 1, "10.00", to_location="WH-MAIN")

        assert result.error_code == "validation_error"

    def test_type_is_case_insensitive(self, record, product):
        result = record(product, "receiving", 1, "10.00", to_location="WH-MAIN")

        assert result.success, result.error
        assert result.data.transaction_type == "RECEIVING"

    def test_receiving_requires_destination(self, record, product):
        result = record(product, "RECEIVING", 1, "10.00", to_location="")

        assert result.error_code == "validation_error"
        assert "to_location" in result.error

    def test_shipping_requires_source(self, record, stocked_product):
        result = record(stocked_product, "SHIPPING", 1, "10.00", from_location=None)

        assert result.error_code == "validation_error"

    def test_settlement_only_for_receiving(self, record, stocked_product):
        result = record(stocked_product, "SHIPPING", 1, "10.00", settlement="CASH")

        assert result.error_code == "validation_error"

    def test_actor_is_required(self, record, product):
        result = record(product, "RECEIVING", 1, "10.00", actor_id="  ")

        assert result.error_code == "validation_error"

    def test_unknown_product(self, chart):
        result = record_inventory_transaction(
            "RECEIVING", uuid4(), None, None, 1, Decimal("10.00"), "WH-MAIN", "user-1",
        )

        assert result.error_code == "not_found"
        assert result.status_code == 404

    def test_deleted_product(self, record, product):
        Product.objects.filter(pk=product.pk).update(is_deleted=True)

        result = record(product, "RECEIVING", 1, "10.00")

        assert result.error_code == "not_found"

    def test_sku_mismatch(self, record, product):
        result = record(product, "RECEIVING", 1, "10.00", sku="OTHER-SKU")

        assert result.error_code == "validation_error"
        assert_nothing_written(product, stock=0)


# =============================================================================
# Ledger Failures
# =============================================================================

@pytest.mark.django_db
class TestLedgerFailures:

    def test_missing_mapping_aborts(self, record, product, settings):
        settings.LEDGER_ACCOUNT_CODES = {**settings.LEDGER_ACCOUNT_CODES, "accounts_payable": "2.9.99.999"}

        result = record(product, "RECEIVING", 10, "100.00")

        assert result.error_code == "missing_account_mapping"
        assert result.status_code == 422
        assert_nothing_written(product, stock=0)

    def test_inactive_account_aborts(self, record, product, balance):
        Account.objects.filter(code=INVENTORY).update(is_active=False)

        result = record(product, "RECEIVING", 10, "100.00")

        assert result.error_code == "invalid_account"
        assert_nothing_written(product, stock=0)
        assert balance(ACCOUNTS_PAYABLE) == Decimal("0.00")

    def test_retries_after_lost_update(self, record, product, monkeypatch, balance):
        real_write = commands.write_journal_entry
        calls = []

        def flaky_write(*args, **kwargs):
            calls.append(1)
            if len(calls) == 1:
                raise ConcurrencyError("Account 1.1.03.001 was modified concurrently.")
            return real_write(*args, **kwargs)

        monkeypatch.setattr(commands, "write_journal_entry", flaky_write)

        result = record(product, "RECEIVING", 10, "100.00")

        assert result.success, result.error
        assert len(calls) == 2
        assert result.data.transaction_number.endswith("-000001")
        assert InventoryTransaction.objects.count() == 1
        assert stock_of(product) == 10
        assert balance(INVENTORY) == Decimal("1000.00")

    def test_gives_up_after_max_attempts(self, record, product, monkeypatch, settings):
        settings.LEDGER_POSTING_MAX_ATTEMPTS = 3
        calls = []

        def always_conflicting(*args, **kwargs):
            calls.append(1)
            raise ConcurrencyError("Account 1.1.03.001 was modified concurrently.")

        monkeypatch.setattr(commands, "write_journal_entry", always_conflicting)

        result = record(product, "RECEIVING", 10, "100.00")

        assert result.error_code == "concurrency_error"
        assert len(calls) == 3
        assert_nothing_written(product, stock=0)


# =============================================================================
# Reversal
# =============================================================================

@pytest.mark.django_db
class TestReversal:

    def test_reversal_undoes_stock_and_ledger(self, record, product, balance):
        original = record(product, "RECEIVING", 10, "100.00").data

        result = reverse_inventory_transaction(original.public_id, "user-2", notes="wrong supplier")

        assert result.success, result.error
        reversal = result.data
        assert reversal.reverses_transaction == original
        assert reversal.document_number == original.transaction_number
        assert reversal.transaction_number.startswith("RCV-")
        assert reversal.to_location == original.to_location == "WH-MAIN"
        assert reversal.from_location == ""
        assert reversal.stock_delta == -10
        assert stock_of(product) == 0
        assert balance(INVENTORY) == Decimal("0.00")
        assert balance(ACCOUNTS_PAYABLE) == Decimal("0.00")

        entry = reversal.journal_entry
        assert entry.kind == JournalEntry.Kind.REVERSAL
        assert entry.reverses_entry == original.journal_entry
        assert entry.inventory_transaction_id == reversal.public_id

    def test_transaction_reversed_only_once(self, record, product):
        original = record(product, "RECEIVING", 10, "100.00").data
        reverse_inventory_transaction(original.public_id, "user-1")

        result = reverse_inventory_transaction(original.public_id, "user-1")

        assert result.error_code == "integrity_error"
        assert InventoryTransaction.objects.count() == 2

    def test_reversal_cannot_be_reversed(self, record, product):
        original = record(product, "RECEIVING", 10, "100.00").data
        reversal = reverse_inventory_transaction(original.public_id, "user-1").data

        result = reverse_inventory_transaction(reversal.public_id, "user-1")

        assert result.error_code == "integrity_error"

    def test_reversal_needs_stock(self, record, product):
        original = record(product, "RECEIVING", 10, "100.00").data
        record(product, "SHIPPING", 4, "100.00")

        result = reverse_inventory_transaction(original.public_id, "user-1")

        assert result.error_code == "insufficient_stock"
        assert stock_of(product) == 6

    def test_transfer_reversal_has_no_entry(self, record, stocked_product):
        original = record(stocked_product, "TRANSFER", 4, "1.00").data

        result = reverse_inventory_transaction(original.public_id, "user-1")

        assert result.success, result.error
        assert result.data.journal_entry is None
        assert result.data.from_location == "WH-NORTH"
        assert result.data.to_location == "WH-MAIN"

    def test_shipping_reversal_keeps_source_location(self, record, stocked_product):
        original = record(stocked_product, "SHIPPING", 3, "10.00").data

        result = reverse_inventory_transaction(original.public_id, "user-1")

        assert result.success, result.error
        assert result.data.from_location == "WH-MAIN"
        assert result.data.to_location == ""
        assert stock_of(stocked_product) == 10

    def test_unknown_transaction(self, chart):
        result = reverse_inventory_transaction(uuid4(), "user-1")

        assert result.error_code == "not_found"

    def test_rows_are_immutable(self, record, product):
        txn = record(product, "RECEIVING", 1, "10.00").data
        txn.notes = "edited"

        with pytest.raises(LedgerIntegrityError, match="immutable"):
            txn.save()
