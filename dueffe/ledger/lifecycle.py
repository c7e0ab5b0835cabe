"""
Account Lifecycle Manager

Creating, renaming, closing, reopening and deleting accounts.

DESIGN DECISION: Because transactions reference accounts by name, a rename
is a full scan-and-rewrite of the transaction list, not a live join.
Closing an account that still holds money goes through the Transaction
Processor, so the balance transfer is itself an auditable transaction.
"""

from decimal import Decimal, InvalidOperation
from typing import Optional, Union
from uuid import UUID

import structlog

from dueffe.ledger.exceptions import (
    AccountClosed,
    DuplicateName,
    InvalidAmount,
    InvalidReference,
    NoDestinationAvailable,
    TransferRequired,
)
from dueffe.ledger.processor import TransactionProcessor
from dueffe.ledger.store import LedgerStore
from dueffe.models.ledger import Account, Transaction, TransactionKind
from dueffe.utils.clock import to_money

logger = structlog.get_logger(__name__)

AccountRef = Union[Account, UUID]


class AccountLifecycleManager:
    """Account-level operations that span balances and history."""

    def __init__(self, store: LedgerStore, processor: TransactionProcessor):
        self._store = store
        self._processor = processor

    def _resolve(self, account: AccountRef) -> Account:
        account_id = account.id if isinstance(account, Account) else account
        return self._store.get_account(account_id)

    def create_account(
        self,
        name: str,
        opening_balance: Union[Decimal, int, float, str] = 0,
        enforce_unique_name: Optional[bool] = None,
    ) -> Account:
        """
        Create an account.

        The opening balance is an initial adjustment through the balance
        primitive, not a transaction.
        """
        try:
            opening = to_money(opening_balance)
        except (InvalidOperation, TypeError):
            raise InvalidAmount(f"Not a valid opening balance: {opening_balance!r}")
        if not opening.is_finite():
            raise InvalidAmount(f"Not a valid opening balance: {opening_balance!r}")
        account = Account(name=name, created_at=self._store.clock.now())
        self._store.add_account(account, enforce_unique_name=enforce_unique_name)
        if opening:
            self._store.adjust_account_balance(account.name, opening)
        return account

    def rename_account(
        self,
        account_id: UUID,
        old_name: str,
        new_name: str,
        enforce_unique_name: Optional[bool] = None,
    ) -> int:
        """
        Rename an account and rewrite every transaction that named it.

        With uniqueness enforced, closed accounts keep their name reserved:
        lookups resolve to the newest account, so sharing a name with a
        closed one would route the renamed account's money to it.

        Returns:
            Number of transactions rewritten

        Raises:
            InvalidReference: old_name is not the account's current name
            DuplicateName: new_name is taken (by any account when enforcing
                uniqueness, otherwise by an open one)
        """
        account = self._store.get_account(account_id)
        if account.name != old_name:
            raise InvalidReference(
                f"Account {account_id} is named {account.name!r}, not {old_name!r}"
            )
        new_name = new_name.strip()
        if new_name == old_name:
            return 0

        if self._store.should_enforce_unique(enforce_unique_name):
            candidates = self._store.accounts
        else:
            candidates = self._store.open_accounts
        for other in candidates:
            if other.id != account.id and other.name == new_name:
                raise DuplicateName(f"An account named {new_name!r} already exists")

        account.name = new_name

        rewrites: list[tuple[int, Transaction]] = []
        for index, txn in enumerate(self._store.transactions):
            if not txn.kind.uses_account:
                continue
            updates = {}
            if txn.account_name == old_name:
                updates["account_name"] = new_name
            if txn.kind is TransactionKind.TRANSFER and txn.secondary_ref == old_name:
                updates["secondary_ref"] = new_name
            if updates:
                rewrites.append((index, txn.model_copy(update=updates)))

        for envelope in self._store.envelopes:
            if envelope.account_name == old_name:
                envelope.account_name = new_name

        count = self._store.rewrite_transactions(rewrites)
        logger.debug("account_renamed", old_name=old_name, new_name=new_name, rewritten=count)
        return count

    def close_account(
        self,
        account: AccountRef,
        transfer_to: Optional[Union[str, Account]] = None,
        description: str = "",
    ) -> Optional[Transaction]:
        """
        Close an account, first moving any balance to transfer_to.

        A negative balance is settled the other way: the destination pays
        the debt into the closing account.

        Returns:
            The settling transfer, or None when the balance was already zero

        Raises:
            AccountClosed: already closed, or the destination is closed
            NoDestinationAvailable: money left and no other open account
            TransferRequired: money left and no destination given
        """
        account = self._resolve(account)
        if account.is_closed:
            raise AccountClosed(f"Account {account.name!r} is already closed")

        if account.balance == 0:
            account.is_closed = True
            return None

        others = [a for a in self._store.open_accounts if a.id != account.id]
        if not others:
            raise NoDestinationAvailable(
                f"Account {account.name!r} holds {account.balance} and no other open account exists"
            )
        if transfer_to is None:
            raise TransferRequired(
                f"Account {account.name!r} holds {account.balance}; choose where to move it"
            )

        destination_name = transfer_to.name if isinstance(transfer_to, Account) else transfer_to
        if destination_name == account.name:
            raise InvalidReference("Cannot transfer the balance into the account being closed")

        balance = account.balance
        text = description or f"Closing {account.name}"
        if balance > 0:
            transfer = self._processor.record_transaction(
                TransactionKind.TRANSFER,
                balance,
                account_name=account.name,
                secondary_ref=destination_name,
                description=text,
                category="Transfer",
            )
        else:
            transfer = self._processor.record_transaction(
                TransactionKind.TRANSFER,
                -balance,
                account_name=destination_name,
                secondary_ref=account.name,
                description=text,
                category="Transfer",
            )

        account.is_closed = True
        return transfer

    def reopen_account(
        self,
        account: AccountRef,
        enforce_unique_name: Optional[bool] = None,
    ) -> Account:
        """
        Clear the closed flag. No balance side effect.

        Raises:
            DuplicateName: an open account already uses this name
                (when enforcing uniqueness)
        """
        account = self._resolve(account)
        if self._store.should_enforce_unique(enforce_unique_name):
            for other in self._store.open_accounts:
                if other.id != account.id and other.name == account.name:
                    raise DuplicateName(
                        f"An open account named {account.name!r} already exists"
                    )
        account.is_closed = False
        return account

    def delete_account(self, account: AccountRef) -> int:
        """
        Remove an account, keeping its history.

        Transactions that named it get an empty (detached) reference.

        Returns:
            Number of transactions detached
        """
        account = self._resolve(account)
        name = account.name
        self._store.remove_account(account.id)

        rewrites: list[tuple[int, Transaction]] = []
        for index, txn in enumerate(self._store.transactions):
            if not txn.references_account(name):
                continue
            updates = {}
            if txn.account_name == name:
                updates["account_name"] = ""
            if txn.kind is TransactionKind.TRANSFER and txn.secondary_ref == name:
                updates["secondary_ref"] = ""
            rewrites.append((index, txn.model_copy(update=updates)))

        return self._store.rewrite_transactions(rewrites)
