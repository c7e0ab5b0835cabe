"""
Tests for the Account Lifecycle Manager.
"""

import pytest
from decimal import Decimal

from dueffe.ledger import (
    AccountClosed,
    DuplicateName,
    InvalidAmount,
    InvalidReference,
    NoDestinationAvailable,
    TransferRequired,
)
from dueffe.models import TransactionKind


class TestCreateAccount:
    """Tests for account creation."""

    def test_opening_balance_is_not_a_transaction(self, store, lifecycle):
        """Test that the opening balance is a plain adjustment."""
        account = lifecycle.create_account("Cash", "42.10")
        assert account.balance == Decimal("42.10")
        assert store.transactions == []

    def test_negative_opening_balance(self, store, lifecycle):
        """Test that an account may open in debt."""
        account = lifecycle.create_account("Card", -50)
        assert account.balance == Decimal("-50")

    def test_invalid_opening_balance(self, store, lifecycle):
        """Test that garbage is rejected before anything is stored."""
        with pytest.raises(InvalidAmount):
            lifecycle.create_account("Cash", "lots")
        assert store.accounts == []

    def test_duplicate_name(self, store, lifecycle):
        """Test uniqueness at creation."""
        lifecycle.create_account("Cash")
        with pytest.raises(DuplicateName):
            lifecycle.create_account("Cash")

    def test_duplicate_name_override(self, store, lifecycle):
        """Test that callers can opt out of uniqueness."""
        lifecycle.create_account("Cash")
        lifecycle.create_account("Cash", enforce_unique_name=False)
        assert len(store.accounts) == 2


class TestRenameAccount:
    """Tests for rename propagation."""

    def test_rename_rewrites_history(self, seeded_store, lifecycle, processor):
        """Test that no transaction references the old name afterwards."""
        processor.record_transaction("income", 100, "Checking")
        processor.record_transaction("distribution", 50, "Checking", secondary_ref="Food")
        processor.record_transaction("transfer", 20, "Savings", secondary_ref="Checking")
        processor.record_transaction("transfer", 10, "Checking", secondary_ref="Savings")
        processor.record_transaction("expense", 5, "Savings")
        checking = seeded_store.find_account("Checking")

        rewritten = lifecycle.rename_account(checking.id, "Checking", "Main")

        assert rewritten == 4
        assert checking.name == "Main"
        for txn in seeded_store.transactions:
            assert not txn.references_account("Checking")
        assert seeded_store.transactions[0].account_name == "Main"
        assert seeded_store.transactions[2].secondary_ref == "Main"
        assert seeded_store.transactions[3].account_name == "Main"
        assert seeded_store.transactions[4].account_name == "Savings"

    def test_rename_keeps_balances_working(self, seeded_store, lifecycle, processor):
        """Test that reversing an old transaction hits the renamed account."""
        txn = processor.record_transaction("income", 100, "Checking")
        checking = seeded_store.find_account("Checking")
        lifecycle.rename_account(checking.id, "Checking", "Main")

        processor.delete_transaction(txn.id)

        assert checking.balance == Decimal("1000")

    def test_rename_updates_envelope_funding(self, seeded_store, lifecycle):
        """Test that envelopes follow their funding account's name."""
        checking = seeded_store.find_account("Checking")
        lifecycle.rename_account(checking.id, "Checking", "Main")
        assert seeded_store.find_envelope("Food").account_name == "Main"

    def test_rename_does_not_touch_envelope_transfers(self, seeded_store, lifecycle, processor):
        """Test that an envelope named like the account is left alone."""
        seeded_store.find_envelope("Food").name = "Checking"
        processor.record_transaction("transfer_envelope", 5, "Checking", secondary_ref="Rainy Day")
        checking = seeded_store.find_account("Checking")

        rewritten = lifecycle.rename_account(checking.id, "Checking", "Main")

        assert rewritten == 0
        assert seeded_store.transactions[0].account_name == "Checking"

    def test_rename_collision_with_open_account(self, seeded_store, lifecycle):
        """Test that an open account's name cannot be taken."""
        checking = seeded_store.find_account("Checking")
        with pytest.raises(DuplicateName):
            lifecycle.rename_account(checking.id, "Checking", "Savings")
        assert checking.name == "Checking"

    def test_rename_to_closed_account_name(self, seeded_store, lifecycle, processor):
        """Test that a closed account keeps its name reserved."""
        seeded_store.find_account("Savings").is_closed = True
        checking = seeded_store.find_account("Checking")

        with pytest.raises(DuplicateName):
            lifecycle.rename_account(checking.id, "Checking", "Savings")

        lifecycle.rename_account(checking.id, "Checking", "Main")
        processor.record_transaction("income", 10, "Main")

        assert checking.balance == Decimal("1010")
        assert seeded_store.find_account("Savings").balance == Decimal("200")

    def test_rename_to_closed_name_without_enforcement(self, seeded_store, lifecycle):
        """Test that opting out only protects open account names."""
        seeded_store.find_account("Savings").is_closed = True
        checking = seeded_store.find_account("Checking")

        lifecycle.rename_account(
            checking.id, "Checking", "Savings", enforce_unique_name=False,
        )

        assert checking.name == "Savings"

    def test_rename_with_stale_old_name(self, seeded_store, lifecycle):
        """Test that old_name must match the current name."""
        checking = seeded_store.find_account("Checking")
        with pytest.raises(InvalidReference):
            lifecycle.rename_account(checking.id, "Chequing", "Main")


class TestCloseAccount:
    """Tests for closing and reopening accounts."""

    def test_close_empty_account(self, store, lifecycle):
        """Test that a zero balance closes without a transfer."""
        account = lifecycle.create_account("Cash")
        assert lifecycle.close_account(account) is None
        assert account.is_closed
        assert store.transactions == []

    def test_close_invariant(self, store, lifecycle, processor):
        """Test the balance moves exactly and the account locks."""
        a = lifecycle.create_account("A", 120)
        b = lifecycle.create_account("B", 30)

        transfer = lifecycle.close_account(a, transfer_to="B")

        assert a.balance == Decimal("0")
        assert b.balance == Decimal("150")
        assert a.is_closed
        assert transfer.kind is TransactionKind.TRANSFER
        assert transfer.amount == Decimal("120")
        assert (transfer.account_name, transfer.secondary_ref) == ("A", "B")
        with pytest.raises(AccountClosed):
            processor.record_transaction("income", 1, "A")
        with pytest.raises(AccountClosed):
            processor.delete_transaction(transfer)

    def test_close_negative_balance(self, store, lifecycle):
        """Test that a debt is settled by the destination."""
        a = lifecycle.create_account("Card", -80)
        b = lifecycle.create_account("Checking", 500)

        transfer = lifecycle.close_account(a.id, transfer_to=b)

        assert a.balance == Decimal("0")
        assert b.balance == Decimal("420")
        assert (transfer.account_name, transfer.secondary_ref) == ("Checking", "Card")

    def test_transfer_required(self, seeded_store, lifecycle):
        """Test that money cannot be closed away silently."""
        checking = seeded_store.find_account("Checking")
        with pytest.raises(TransferRequired):
            lifecycle.close_account(checking)
        assert not checking.is_closed

    def test_no_destination_available(self, store, lifecycle):
        """Test closing the only open account with money in it."""
        only = lifecycle.create_account("Only", 10)
        with pytest.raises(NoDestinationAvailable):
            lifecycle.close_account(only, transfer_to="Elsewhere")

    def test_closed_destination(self, seeded_store, lifecycle):
        """Test that the destination must be open."""
        lifecycle.create_account("Third")
        seeded_store.find_account("Savings").is_closed = True
        checking = seeded_store.find_account("Checking")

        with pytest.raises(AccountClosed):
            lifecycle.close_account(checking, transfer_to="Savings")
        assert not checking.is_closed
        assert checking.balance == Decimal("1000")

    def test_destination_is_itself(self, seeded_store, lifecycle):
        """Test that an account cannot absorb its own balance."""
        checking = seeded_store.find_account("Checking")
        with pytest.raises(InvalidReference):
            lifecycle.close_account(checking, transfer_to="Checking")

    def test_close_twice(self, store, lifecycle):
        """Test that closing a closed account fails."""
        account = lifecycle.create_account("Cash")
        lifecycle.close_account(account)
        with pytest.raises(AccountClosed):
            lifecycle.close_account(account)

    def test_reopen(self, store, lifecycle, processor):
        """Test that reopening unlocks the account without moving money."""
        account = lifecycle.create_account("Cash")
        lifecycle.close_account(account)

        lifecycle.reopen_account(account.id)

        assert not account.is_closed
        assert account.balance == Decimal("0")
        processor.record_transaction("income", 5, "Cash")
        assert account.balance == Decimal("5")

    def test_reopen_name_clash(self, store, lifecycle):
        """Test that reopening cannot create two open accounts with one name."""
        old = lifecycle.create_account("Cash")
        lifecycle.close_account(old)
        lifecycle.create_account("Cash", enforce_unique_name=False)

        with pytest.raises(DuplicateName):
            lifecycle.reopen_account(old.id)
        assert old.is_closed


class TestDeleteAccount:
    """Tests for account deletion."""

    def test_delete_detaches_history(self, seeded_store, lifecycle, processor):
        """Test that history survives with empty references."""
        processor.record_transaction("income", 100, "Savings")
        processor.record_transaction("transfer", 10, "Checking", secondary_ref="Savings")
        processor.record_transaction("expense", 1, "Checking")
        savings = seeded_store.find_account("Savings")

        detached = lifecycle.delete_account(savings)

        assert detached == 2
        assert seeded_store.find_account("Savings") is None
        assert len(seeded_store.transactions) == 3
        assert seeded_store.transactions[0].account_name == ""
        assert seeded_store.transactions[1].account_name == "Checking"
        assert seeded_store.transactions[1].secondary_ref == ""

    def test_reversing_detached_transfer(self, seeded_store, lifecycle, processor):
        """Test that only the surviving side of a detached transfer moves."""
        txn = processor.record_transaction("transfer", 10, "Checking", secondary_ref="Savings")
        lifecycle.delete_account(seeded_store.find_account("Savings").id)

        processor.delete_transaction(txn.id)

        assert seeded_store.find_account("Checking").balance == Decimal("1000")
