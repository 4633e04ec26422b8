# tests/test_queries.py
"""
Tests for the read-side queries of the ledger and inventory.
"""

from datetime import timedelta
from decimal import Decimal
from uuid import uuid4

import pytest
from django.utils import timezone

from accounting.exceptions import NotFoundError, ValidationError
from accounting.models import Account
from accounting.queries import (
    MAX_PAGE_SIZE,
    get_account_by_id,
    get_chart_of_accounts,
    get_journal_entries,
    get_journal_entries_by_product,
    get_journal_entry_by_id,
    get_trial_balance,
    validate_paging,
)
from inventory.queries import get_product_transactions, get_transaction_by_id, get_transactions_by_period


# =============================================================================
# Chart of Accounts
# =============================================================================

@pytest.mark.django_db
class TestChartQueries:

    def test_chart_ordered_by_code(self, chart):
        codes = [account.code for account in get_chart_of_accounts()]

        assert codes == sorted(codes)
        assert "1.1.03.001" in codes

    def test_inactive_accounts_can_be_excluded(self, chart):
        Account.objects.filter(code="3.2.01.002").update(is_active=False)

        codes = [account.code for account in get_chart_of_accounts(include_inactive=False)]

        assert "3.2.01.002" not in codes
        assert len(get_chart_of_accounts()) == len(chart)

    def test_account_by_id(self, chart):
        account = get_account_by_id(chart["1.1.03.001"].public_id)

        assert account.name == "Inventory"
        assert account.parent.code == "1"
        assert account.level == 2

    @pytest.mark.parametrize("account_id", [uuid4(), "not-a-uuid"])
    def test_unknown_account(self, chart, account_id):
        with pytest.raises(NotFoundError):
            get_account_by_id(account_id)


# =============================================================================
# Journal Entries
# =============================================================================

@pytest.mark.django_db
class TestJournalEntryQueries:

    def test_newest_first_with_paging(self, record, product):
        for _ in range(3):
            record(product, "RECEIVING", 1, "10.00")

        first_page = get_journal_entries(page_number=1, page_size=2)
        second_page = get_journal_entries(page_number=2, page_size=2)

        assert [entry.entry_number[-6:] for entry in first_page] == ["000003", "000002"]
        assert [entry.entry_number[-6:] for entry in second_page] == ["000001"]

    def test_lines_are_prefetched_in_order(self, record, product, django_assert_num_queries):
        record(product, "RECEIVING", 1, "10.00")
        record(product, "RECEIVING", 1, "10.00")

        with django_assert_num_queries(2):
            entries = get_journal_entries()
            lines = [[line.account.code for line in entry.lines.all()] for entry in entries]

        assert lines == [["1.1.03.001", "2.1.01.001"]] * 2

    def test_page_past_the_end_is_empty(self, chart):
        assert get_journal_entries(page_number=5, page_size=10) == []

    @pytest.mark.parametrize(
        "page_number,page_size",
        [(0, 10), (1, 0), (1, MAX_PAGE_SIZE + 1), ("x", 10)],
    )
    def test_paging_bounds(self, page_number, page_size):
        with pytest.raises(ValidationError):
            validate_paging(page_number, page_size)

    def test_max_page_size_allowed(self):
        assert validate_paging(1, MAX_PAGE_SIZE) == (1, MAX_PAGE_SIZE)

    def test_entry_by_id(self, record, product):
        txn = record(product, "RECEIVING", 1, "10.00").data

        entry = get_journal_entry_by_id(txn.journal_entry.public_id)

        assert entry.entry_number == txn.journal_entry.entry_number

    @pytest.mark.parametrize("entry_id", [uuid4(), "not-a-uuid"])
    def test_unknown_entry(self, chart, entry_id):
        with pytest.raises(NotFoundError):
            get_journal_entry_by_id(entry_id)

    def test_entries_by_product(self, record, product, other_product):
        record(product, "RECEIVING", 1, "10.00")
        record(other_product, "RECEIVING", 1, "10.00")
        record(product, "SHIPPING", 1, "10.00")

        entries = get_journal_entries_by_product(product.public_id)

        assert len(entries) == 2
        assert {entry.product_id for entry in entries} == {product.public_id}

    def test_entries_by_malformed_product_id(self, chart):
        with pytest.raises(NotFoundError):
            get_journal_entries_by_product("not-a-uuid")


# =============================================================================
# Trial Balance
# =============================================================================

@pytest.mark.django_db
class TestTrialBalance:

    def test_trial_balance_balances(self, record, product):
        record(product, "RECEIVING", 10, "100.00")
        record(product, "SHIPPING", 4, "100.00")
        record(product, "ADJUSTMENT", 1, "100.00", adjustment_direction="LOSS")

        report = get_trial_balance()

        assert report["is_balanced"]
        assert report["total_debit"] == report["total_credit"] == Decimal("1000.00")
        rows = {row["account_code"]: row for row in report["accounts"]}
        assert rows["1.1.03.001"]["debit"] == Decimal("500.00")
        assert rows["2.1.01.001"]["credit"] == Decimal("1000.00")
        assert rows["3.1.01.001"]["debit"] == Decimal("400.00")
        assert rows["3.2.01.001"]["debit"] == Decimal("100.00")

    def test_untouched_accounts_are_omitted(self, chart):
        report = get_trial_balance()

        assert report["accounts"] == []
        assert report["is_balanced"]


# =============================================================================
# Inventory Transactions
# =============================================================================

@pytest.mark.django_db
class TestInventoryQueries:

    def test_product_history_newest_first(self, record, product, other_product):
        record(product, "RECEIVING", 5, "10.00")
        record(other_product, "RECEIVING", 5, "10.00")
        record(product, "SHIPPING", 2, "10.00")

        history = get_product_transactions(product.public_id)

        assert [txn.transaction_type for txn in history] == ["SHIPPING", "RECEIVING"]

    def test_period_is_inclusive(self, record, product):
        txn = record(product, "RECEIVING", 5, "10.00").data
        today = timezone.localdate(txn.transaction_date)

        assert get_transactions_by_period(today, today) == [txn]
        assert get_transactions_by_period(today - timedelta(days=7), today) == [txn]

    def test_period_excludes_other_days(self, record, product):
        txn = record(product, "RECEIVING", 5, "10.00").data
        today = timezone.localdate(txn.transaction_date)

        assert get_transactions_by_period(today - timedelta(days=2), today - timedelta(days=1)) == []
        assert get_transactions_by_period(today + timedelta(days=1), today + timedelta(days=3)) == []

    def test_period_accepts_datetimes(self, record, product):
        txn = record(product, "RECEIVING", 5, "10.00").data

        assert get_transactions_by_period(txn.transaction_date, txn.transaction_date) == [txn]

    def test_start_after_end(self, chart):
        today = timezone.localdate()

        with pytest.raises(ValidationError):
            get_transactions_by_period(today, today - timedelta(days=1))

    def test_bounds_required(self, chart):
        with pytest.raises(ValidationError):
            get_transactions_by_period(None, timezone.localdate())

    def test_transaction_by_id(self, record, product):
        txn = record(product, "RECEIVING", 5, "10.00").data

        assert get_transaction_by_id(txn.public_id) == txn

    def test_unknown_transaction(self, chart):
        with pytest.raises(NotFoundError):
            get_transaction_by_id(uuid4())

    def test_product_history_with_malformed_id(self, chart):
        with pytest.raises(NotFoundError):
            get_product_transactions("not-a-uuid")
