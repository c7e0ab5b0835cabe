"""
Ledger Store

The in-memory, authoritative state of the ledger: accounts, envelopes and
transactions, plus the two balance primitives every other component uses.

DESIGN DECISION: Entities are keyed by stable UUIDs internally, but every
cross-reference between them is a NAME (that is what transactions carry).
Lookups by name scan newest-first, so if a duplicate name ever slips in
the most recently created entity wins.

DESIGN DECISION: The balance primitives are silent no-ops when a name does
not resolve. Historical transactions may name an envelope or account that
has since been deleted; reversing them must not crash, it simply has
nothing left to adjust.
"""

from decimal import Decimal
from typing import Iterable, Optional
from uuid import UUID

import structlog

from dueffe.config import LedgerSettings
from dueffe.ledger.exceptions import (
    AccountNotFound,
    DuplicateName,
    EnvelopeNotFound,
    InvalidReference,
)
from dueffe.models.ledger import (
    Account,
    EnvelopeBase,
    LedgerSnapshot,
    Transaction,
)
from dueffe.utils.clock import Clock, SystemClock

logger = structlog.get_logger(__name__)


class LedgerStore:
    """
    Owns the three collections and their balance bookkeeping.

    Single-writer: no internal locking. Callers serialize access.
    """

    def __init__(
        self,
        clock: Optional[Clock] = None,
        settings: Optional[LedgerSettings] = None,
    ):
        """
        Initialize an empty store.

        Args:
            clock: Source of "now" for timestamps. Defaults to the wall clock.
            settings: Ledger settings. Defaults to LedgerSettings().
        """
        self.clock = clock or SystemClock()
        self._settings = settings or LedgerSettings()
        self._accounts: dict[UUID, Account] = {}
        self._envelopes: dict[UUID, EnvelopeBase] = {}
        self._transactions: list[Transaction] = []
        self._categories: list[str] = list(self._settings.default_categories)

    @classmethod
    def from_snapshot(
        cls,
        snapshot: LedgerSnapshot,
        clock: Optional[Clock] = None,
        settings: Optional[LedgerSettings] = None,
    ) -> "LedgerStore":
        """Rebuild a store from a persisted snapshot (balances taken as stored)."""
        store = cls(clock=clock, settings=settings)
        for account in snapshot.accounts:
            store._accounts[account.id] = account.model_copy(deep=True)
        for envelope in snapshot.envelopes:
            store._envelopes[envelope.id] = envelope.model_copy(deep=True)
        store._transactions = list(snapshot.transactions)
        if snapshot.categories:
            store._categories = list(snapshot.categories)
        return store

    def snapshot(self) -> LedgerSnapshot:
        """Deep copy of the current state, safe to hand to other layers."""
        return LedgerSnapshot(
            accounts=[a.model_copy(deep=True) for a in self._accounts.values()],
            envelopes=[e.model_copy(deep=True) for e in self._envelopes.values()],
            transactions=list(self._transactions),
            categories=list(self._categories),
            saved_at=self.clock.now(),
        )

    @property
    def settings(self) -> LedgerSettings:
        return self._settings

    # -------------------------------------------------------------------------
    # Collections (read-only views)
    # -------------------------------------------------------------------------

    @property
    def accounts(self) -> list[Account]:
        return list(self._accounts.values())

    @property
    def open_accounts(self) -> list[Account]:
        return [a for a in self._accounts.values() if not a.is_closed]

    @property
    def envelopes(self) -> list[EnvelopeBase]:
        return list(self._envelopes.values())

    @property
    def transactions(self) -> list[Transaction]:
        """Transactions in insertion order."""
        return list(self._transactions)

    @property
    def categories(self) -> list[str]:
        return list(self._categories)

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def find_account(self, name: str) -> Optional[Account]:
        """Newest account with this name, or None."""
        for account in reversed(list(self._accounts.values())):
            if account.name == name:
                return account
        return None

    def find_envelope(self, name: str) -> Optional[EnvelopeBase]:
        """Newest envelope with this name, or None."""
        for envelope in reversed(list(self._envelopes.values())):
            if envelope.name == name:
                return envelope
        return None

    def get_account(self, account_id: UUID) -> Account:
        try:
            return self._accounts[account_id]
        except KeyError:
            raise AccountNotFound(f"No account with id {account_id}")

    def get_envelope(self, envelope_id: UUID) -> EnvelopeBase:
        try:
            return self._envelopes[envelope_id]
        except KeyError:
            raise EnvelopeNotFound(f"No envelope with id {envelope_id}")

    def require_account(self, name: str) -> Account:
        account = self.find_account(name)
        if account is None:
            raise AccountNotFound(f"Account not found: {name!r}")
        return account

    def require_envelope(self, name: str) -> EnvelopeBase:
        envelope = self.find_envelope(name)
        if envelope is None:
            raise EnvelopeNotFound(f"Envelope not found: {name!r}")
        return envelope

    def get_transaction(self, transaction_id: UUID) -> Transaction:
        for txn in self._transactions:
            if txn.id == transaction_id:
                return txn
        raise InvalidReference(f"No transaction with id {transaction_id}")

    # -------------------------------------------------------------------------
    # Entity membership
    # -------------------------------------------------------------------------

    def should_enforce_unique(self, enforce_unique_name: Optional[bool]) -> bool:
        """Per-call override, falling back to the ledger setting."""
        if enforce_unique_name is None:
            return self._settings.enforce_unique_names
        return enforce_unique_name

    def add_account(
        self,
        account: Account,
        enforce_unique_name: Optional[bool] = None,
    ) -> Account:
        if self.should_enforce_unique(enforce_unique_name) and self.find_account(account.name):
            raise DuplicateName(f"An account named {account.name!r} already exists")
        self._accounts[account.id] = account
        return account

    def add_envelope(
        self,
        envelope: EnvelopeBase,
        enforce_unique_name: Optional[bool] = None,
    ) -> EnvelopeBase:
        if self.should_enforce_unique(enforce_unique_name) and self.find_envelope(envelope.name):
            raise DuplicateName(f"An envelope named {envelope.name!r} already exists")
        self._envelopes[envelope.id] = envelope
        return envelope

    def remove_account(self, account_id: UUID) -> Account:
        account = self.get_account(account_id)
        del self._accounts[account_id]
        return account

    def replace_envelope(self, envelope: EnvelopeBase) -> None:
        """Swap in an edited copy, keeping the envelope's position."""
        self.get_envelope(envelope.id)
        self._envelopes[envelope.id] = envelope

    def remove_envelope(self, envelope_id: UUID) -> EnvelopeBase:
        envelope = self.get_envelope(envelope_id)
        del self._envelopes[envelope_id]
        return envelope

    def add_category(self, category: str) -> None:
        if category and category not in self._categories:
            self._categories.append(category)

    # -------------------------------------------------------------------------
    # Transaction list
    # -------------------------------------------------------------------------

    def append_transaction(self, transaction: Transaction) -> None:
        self._transactions.append(transaction)

    def remove_transaction(self, transaction_id: UUID) -> Transaction:
        for index, txn in enumerate(self._transactions):
            if txn.id == transaction_id:
                return self._transactions.pop(index)
        raise InvalidReference(f"No transaction with id {transaction_id}")

    def rewrite_transactions(self, rewrites: Iterable[tuple[int, Transaction]]) -> int:
        """Replace transactions in place by position. Returns how many changed."""
        count = 0
        for index, txn in rewrites:
            self._transactions[index] = txn
            count += 1
        return count

    # -------------------------------------------------------------------------
    # Balance primitives
    # -------------------------------------------------------------------------

    def adjust_account_balance(self, account_name: str, delta: Decimal) -> None:
        """
        Add delta to the named account's balance.

        No-op when the name does not resolve.
        """
        account = self.find_account(account_name)
        if account is None:
            logger.debug("stale_reference", entity="account", name=account_name, delta=str(delta))
            return
        account.balance = account.balance + delta

    def adjust_envelope_balance(self, envelope_name: str, delta: Decimal) -> None:
        """
        Add delta to the named envelope's current amount.

        No-op when the name does not resolve. Overdraw is allowed.
        """
        envelope = self.find_envelope(envelope_name)
        if envelope is None:
            logger.debug("stale_reference", entity="envelope", name=envelope_name, delta=str(delta))
            return
        envelope.current_amount = envelope.current_amount + delta
