"""
Read-only Ledger Views

DESIGN DECISION: Every figure the UI shows is derived on demand from the
store. Nothing here is cached or persisted, and nothing here mutates.

Display order of transactions is always a sort by timestamp, never the
storage order.
"""

from decimal import Decimal
from typing import Optional

from dueffe.ledger.store import LedgerStore
from dueffe.models.ledger import EnvelopeBase, Transaction, TransactionKind


class LedgerViews:
    """Derived totals and filtered transaction lists."""

    def __init__(self, store: LedgerStore):
        self._store = store

    # =========================================================================
    # TOTALS
    # =========================================================================

    def total_balance(self) -> Decimal:
        """Sum of open account balances."""
        return sum((a.balance for a in self._store.open_accounts), Decimal("0"))

    def total_envelope_holdings(self) -> Decimal:
        """Sum of all envelope amounts, overdrawn ones included."""
        return sum((e.current_amount for e in self._store.envelopes), Decimal("0"))

    def available_balance(self) -> Decimal:
        """Open-account total plus envelopes with a positive balance."""
        positive = sum(
            (e.current_amount for e in self._store.envelopes if e.current_amount > 0),
            Decimal("0"),
        )
        return self.total_balance() + positive

    # =========================================================================
    # TRANSACTION LISTS
    # =========================================================================

    def recent_transactions(
        self,
        limit: Optional[int] = None,
        include_distributions: bool = True,
    ) -> list[Transaction]:
        """Newest first. Distributions can be hidden to show only real money flow."""
        transactions = self._store.transactions
        if not include_distributions:
            transactions = [t for t in transactions if t.kind is not TransactionKind.DISTRIBUTION]
        ordered = sorted(transactions, key=lambda t: t.timestamp, reverse=True)
        return ordered[:limit] if limit is not None else ordered

    def transactions_for_account(self, name: str) -> list[Transaction]:
        """Transactions naming the account as source or transfer destination."""
        matching = [t for t in self._store.transactions if t.references_account(name)]
        return sorted(matching, key=lambda t: t.timestamp, reverse=True)

    def transactions_for_envelope(self, name: str) -> list[Transaction]:
        matching = []
        for txn in self._store.transactions:
            if txn.kind is TransactionKind.TRANSFER_ENVELOPE:
                hit = name in (txn.account_name, txn.secondary_ref)
            elif txn.kind in (TransactionKind.EXPENSE, TransactionKind.DISTRIBUTION):
                hit = txn.secondary_ref == name
            else:
                hit = False
            if hit:
                matching.append(txn)
        return sorted(matching, key=lambda t: t.timestamp, reverse=True)

    def overdrawn_envelopes(self) -> list[EnvelopeBase]:
        return [e for e in self._store.envelopes if e.is_overdrawn]
