"""
Transaction Processor

The single place where a transaction's existence and its balance effects
are kept together: both happen, or neither does.

DESIGN DECISION: The balance effect of each kind is written down once, as
data (EFFECTS). Recording applies it with direction +1, deleting applies
the very same table with direction -1. There is no second, hand-written
set of sign rules for reversal, so the two can never drift apart.

| kind              | primary          | secondary                 |
|-------------------|------------------|---------------------------|
| expense           | account  -amount | envelope -amount (if set) |
| income / salary   | account  +amount | -                         |
| distribution      | account  -amount | envelope +amount          |
| transfer          | account  -amount | account  +amount          |
| transfer_envelope | envelope -amount | envelope +amount          |
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Optional, Union
from uuid import UUID

import structlog

from dueffe.ledger.exceptions import (
    AccountClosed,
    InvalidAmount,
    InvalidReference,
)
from dueffe.ledger.store import LedgerStore
from dueffe.models.ledger import Transaction, TransactionKind
from dueffe.utils.clock import to_money

logger = structlog.get_logger(__name__)


class _Target(str, Enum):
    ACCOUNT = "account"
    ENVELOPE = "envelope"


class _Ref(str, Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"


EFFECTS: dict[TransactionKind, tuple[tuple[_Target, _Ref, int], ...]] = {
    TransactionKind.EXPENSE: (
        (_Target.ACCOUNT, _Ref.PRIMARY, -1),
        (_Target.ENVELOPE, _Ref.SECONDARY, -1),
    ),
    TransactionKind.INCOME: (
        (_Target.ACCOUNT, _Ref.PRIMARY, +1),
    ),
    TransactionKind.SALARY: (
        (_Target.ACCOUNT, _Ref.PRIMARY, +1),
    ),
    TransactionKind.DISTRIBUTION: (
        (_Target.ACCOUNT, _Ref.PRIMARY, -1),
        (_Target.ENVELOPE, _Ref.SECONDARY, +1),
    ),
    TransactionKind.TRANSFER: (
        (_Target.ACCOUNT, _Ref.PRIMARY, -1),
        (_Target.ACCOUNT, _Ref.SECONDARY, +1),
    ),
    TransactionKind.TRANSFER_ENVELOPE: (
        (_Target.ENVELOPE, _Ref.PRIMARY, -1),
        (_Target.ENVELOPE, _Ref.SECONDARY, +1),
    ),
}


def parse_amount(amount: Union[Decimal, int, float, str]) -> Decimal:
    """Convert and check a transaction amount. Raises InvalidAmount."""
    try:
        value = to_money(amount)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmount(f"Not a valid amount: {amount!r}")
    if not value.is_finite() or value <= 0:
        raise InvalidAmount(f"Amount must be greater than zero, got {amount}")
    return value


def parse_share(share: Union[Decimal, int, float, str]) -> Decimal:
    """
    Convert a user-entered split share. Zero and negative values pass
    through so the caller can skip or report them.

    Raises:
        InvalidAmount: not a finite number
    """
    try:
        value = to_money(share)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmount(f"Not a valid amount: {share!r}")
    if not value.is_finite():
        raise InvalidAmount(f"Not a valid amount: {share!r}")
    return value


class TransactionProcessor:
    """
    Applies and reverses transactions against a LedgerStore.
    """

    def __init__(self, store: LedgerStore):
        self._store = store

    @property
    def store(self) -> LedgerStore:
        return self._store

    # -------------------------------------------------------------------------
    # Effect application
    # -------------------------------------------------------------------------

    def _apply(self, transaction: Transaction, direction: int) -> None:
        """Apply the kind's effect table; direction -1 reverses it."""
        for target, ref, sign in EFFECTS[transaction.kind]:
            name = (
                transaction.account_name
                if ref is _Ref.PRIMARY
                else transaction.secondary_ref
            )
            if not name:
                # Optional envelope on an expense, or a detached reference
                continue
            delta = transaction.amount * sign * direction
            if target is _Target.ACCOUNT:
                self._store.adjust_account_balance(name, delta)
            else:
                self._store.adjust_envelope_balance(name, delta)

    # -------------------------------------------------------------------------
    # Reference checks
    # -------------------------------------------------------------------------

    def _require_open_account(self, name: Optional[str]) -> None:
        if not name:
            raise InvalidReference("An account reference is required")
        account = self._store.require_account(name)
        if account.is_closed:
            raise AccountClosed(f"Account {name!r} is closed")

    def _require_envelope(self, name: Optional[str]) -> None:
        if not name:
            raise InvalidReference("An envelope reference is required")
        self._store.require_envelope(name)

    def _check_references(
        self,
        kind: TransactionKind,
        account_name: str,
        secondary_ref: Optional[str],
    ) -> None:
        if kind is TransactionKind.TRANSFER_ENVELOPE:
            self._require_envelope(account_name)
            self._require_envelope(secondary_ref)
            if account_name == secondary_ref:
                raise InvalidReference("Cannot transfer an envelope into itself")
            return

        self._require_open_account(account_name)

        if kind.is_inflow:
            if secondary_ref is not None:
                raise InvalidReference(f"{kind.value} takes no secondary reference")
        elif kind is TransactionKind.TRANSFER:
            self._require_open_account(secondary_ref)
            if account_name == secondary_ref:
                raise InvalidReference("Cannot transfer an account into itself")
        elif kind is TransactionKind.DISTRIBUTION:
            self._require_envelope(secondary_ref)
        elif kind is TransactionKind.EXPENSE and secondary_ref is not None:
            self._require_envelope(secondary_ref)

    # -------------------------------------------------------------------------
    # Public operations
    # -------------------------------------------------------------------------

    def record_transaction(
        self,
        kind: Union[TransactionKind, str],
        amount: Union[Decimal, int, float, str],
        account_name: str,
        secondary_ref: Optional[str] = None,
        description: str = "",
        category: str = "",
        timestamp: Optional[datetime] = None,
    ) -> Transaction:
        """
        Create a transaction and apply its balance effect.

        Args:
            kind: Transaction kind
            amount: Positive amount
            account_name: Primary reference (source envelope for transfer_envelope)
            secondary_ref: Envelope, or destination account for transfers
            description: Free text
            category: Category label
            timestamp: Defaults to the store clock's now()

        Returns:
            The recorded Transaction

        Raises:
            InvalidAmount: amount <= 0
            InvalidReference: a reference does not resolve
            AccountClosed: an account involved is closed
        """
        kind = TransactionKind(kind)
        value = parse_amount(amount)
        self._check_references(kind, account_name, secondary_ref)

        transaction = Transaction(
            amount=value,
            description=description,
            category=category,
            kind=kind,
            timestamp=timestamp or self._store.clock.now(),
            account_name=account_name,
            secondary_ref=secondary_ref,
        )

        self._apply(transaction, +1)
        self._store.append_transaction(transaction)

        logger.debug(
            "transaction_applied",
            transaction_id=str(transaction.id),
            kind=kind.value,
            amount=str(value),
        )
        return transaction

    def delete_transaction(self, transaction: Union[Transaction, UUID]) -> Transaction:
        """
        Reverse a transaction's balance effect and remove it.

        Raises:
            InvalidReference: the transaction is not in the store
            AccountClosed: an account it moved money in or out of is closed
        """
        transaction_id = transaction.id if isinstance(transaction, Transaction) else transaction
        stored = self._store.get_transaction(transaction_id)

        if stored.kind.uses_account:
            names = [stored.account_name]
            if stored.kind is TransactionKind.TRANSFER:
                names.append(stored.secondary_ref)
            for name in names:
                account = self._store.find_account(name) if name else None
                if account is not None and account.is_closed:
                    raise AccountClosed(
                        f"Transactions of closed account {name!r} cannot be deleted"
                    )

        self._apply(stored, -1)
        self._store.remove_transaction(stored.id)

        logger.debug(
            "transaction_reversed",
            transaction_id=str(stored.id),
            kind=stored.kind.value,
            amount=str(stored.amount),
        )
        return stored
