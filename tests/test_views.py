"""
Tests for the read-only ledger views.
"""

import pytest
from decimal import Decimal

from dueffe.models import TransactionKind
from dueffe.queries import LedgerViews


@pytest.fixture
def views(seeded_store) -> LedgerViews:
    return LedgerViews(seeded_store)


class TestTotals:
    """Tests for derived totals."""

    def test_total_balance_skips_closed(self, seeded_store, lifecycle, views):
        """Test that closed accounts do not count."""
        lifecycle.create_account("Old", 0)
        lifecycle.close_account(seeded_store.find_account("Old"))
        seeded_store.adjust_account_balance("Old", Decimal("999"))

        assert views.total_balance() == Decimal("1200")

    def test_envelope_holdings_are_signed(self, seeded_store, processor, views):
        """Test that overdrawn envelopes reduce holdings."""
        processor.record_transaction("distribution", 100, "Checking", secondary_ref="Rainy Day")
        processor.record_transaction("expense", 30, "Checking", secondary_ref="Food")

        assert views.total_envelope_holdings() == Decimal("70")

    def test_available_balance_counts_positive_envelopes(self, seeded_store, processor, views):
        """Test the available balance definition."""
        processor.record_transaction("distribution", 100, "Checking", secondary_ref="Rainy Day")
        processor.record_transaction("expense", 30, "Checking", secondary_ref="Food")

        # accounts 1200 - 100 - 30, plus Rainy Day 100 (Food at -30 is ignored)
        assert views.available_balance() == Decimal("1170")

    def test_overdrawn_envelopes(self, seeded_store, processor, views):
        """Test the overdrawn list."""
        processor.record_transaction("expense", 1, "Checking", secondary_ref="Food")
        assert [e.name for e in views.overdrawn_envelopes()] == ["Food"]


class TestTransactionLists:
    """Tests for filtered and sorted transaction lists."""

    def test_recent_is_newest_first(self, seeded_store, processor, clock, views):
        """Test display order by timestamp, not storage order."""
        first = processor.record_transaction("income", 1, "Checking")
        clock.advance(hours=1)
        second = processor.record_transaction("income", 2, "Checking")
        backdated = processor.record_transaction(
            "income", 3, "Checking", timestamp=clock.now().replace(year=2025),
        )

        recent = views.recent_transactions()

        assert [t.id for t in recent] == [second.id, first.id, backdated.id]
        assert [t.id for t in views.recent_transactions(limit=1)] == [second.id]

    def test_hide_distributions(self, seeded_store, processor, views):
        """Test the distribution filter."""
        processor.record_transaction("salary", 100, "Checking")
        processor.record_transaction("distribution", 100, "Checking", secondary_ref="Food")

        kinds = [t.kind for t in views.recent_transactions(include_distributions=False)]

        assert kinds == [TransactionKind.SALARY]

    def test_transactions_for_account(self, seeded_store, processor, views):
        """Test that transfer destinations are included."""
        processor.record_transaction("income", 5, "Checking")
        processor.record_transaction("transfer", 5, "Checking", secondary_ref="Savings")
        processor.record_transaction("expense", 5, "Savings")

        assert len(views.transactions_for_account("Savings")) == 2
        assert len(views.transactions_for_account("Checking")) == 2

    def test_transactions_for_envelope(self, seeded_store, processor, views):
        """Test envelope history on both sides of envelope transfers."""
        processor.record_transaction("distribution", 50, "Checking", secondary_ref="Food")
        processor.record_transaction("expense", 5, "Checking", secondary_ref="Food")
        processor.record_transaction("transfer_envelope", 5, "Food", secondary_ref="Rainy Day")
        processor.record_transaction("expense", 5, "Checking")

        assert len(views.transactions_for_envelope("Food")) == 3
        assert len(views.transactions_for_envelope("Rainy Day")) == 1
