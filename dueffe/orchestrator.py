"""
Main Orchestrator for Dueffe Ledger

This module ties together all the components and is the single entry
point the UI (or a CLI) talks to:
1. Account and envelope management
2. Recording and deleting transactions
3. Splitting a paycheck across envelopes (automatic, equal or custom)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Every mutation goes through the Transaction Processor or a manager
- Every mutation is audited, and so is every rejected one
- Every successful mutation is followed by an explicit save and an
  explicit change notification (nothing persists as a side effect of
  assigning a field)

A multi-step operation (a salary split) is all-or-nothing: if any step
fails, the steps already taken are reversed before the error propagates.
"""

from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Callable, Iterable, Iterator, Mapping, Optional, Union
from uuid import UUID

import structlog

from dueffe.allocation import AllocationEngine, custom_split, split_equally
from dueffe.audit import AuditLogger, create_correlation_id
from dueffe.config import AllocationSettings, LedgerSettings, get_settings
from dueffe.ledger import (
    AccountLifecycleManager,
    EnvelopeManager,
    InvalidDistribution,
    LedgerError,
    LedgerStore,
    TransactionProcessor,
    parse_amount,
    parse_share,
)
from dueffe.models.distribution import (
    DistributionSuggestion,
    DistributionValidation,
    ValidationResult,
)
from dueffe.models.ledger import (
    Account,
    EnvelopeBase,
    EnvelopeKind,
    LedgerSnapshot,
    Transaction,
    TransactionKind,
)
from dueffe.queries import LedgerViews
from dueffe.services.storage import (
    JsonFileLedgerStorage,
    LedgerStorageInterface,
    StorageError,
)
from dueffe.utils.clock import Clock, SystemClock
from dueffe.validation import DistributionValidator

logger = structlog.get_logger(__name__)

ChangeListener = Callable[[LedgerSnapshot], None]
Money = Union[Decimal, int, float, str]

# Labels for the lump-sum transaction of a split
INFLOW_LABELS = {
    TransactionKind.SALARY: ("Salary", "Salary"),
    TransactionKind.INCOME: ("Income", "Income"),
}


class LedgerService:
    """
    Collaborator-facing facade over the ledger engine.

    Usage:
        service = create_ledger_service(data_path="ledger.json")
        service.create_account("Checking", opening_balance=500)
        service.subscribe(lambda snapshot: refresh_ui(snapshot))
    """

    def __init__(
        self,
        store: Optional[LedgerStore] = None,
        storage: Optional[LedgerStorageInterface] = None,
        audit_logger: Optional[AuditLogger] = None,
        allocation_settings: Optional[AllocationSettings] = None,
        clock: Optional[Clock] = None,
    ):
        """
        Initialize the service.

        Args:
            store: Ledger state. Defaults to an empty store on `clock`.
            storage: Persistence adapter. If None, nothing is saved.
            audit_logger: Audit trail. Defaults to a fresh AuditLogger.
            allocation_settings: Allocation tunables.
            clock: Time source for a new store. A given store brings its own
                clock, which the allocation engine shares.

        Raises:
            ValueError: both a store and a different clock were given
        """
        if store is not None and clock is not None and clock is not store.clock:
            raise ValueError("The store already has a clock; pass one or the other")
        self._store = store if store is not None else LedgerStore(clock=clock or SystemClock())
        clock = self._store.clock

        self._storage = storage
        self._audit = audit_logger or AuditLogger()
        self._listeners: list[ChangeListener] = []

        self._processor = TransactionProcessor(self._store)
        self._lifecycle = AccountLifecycleManager(self._store, self._processor)
        self._envelopes = EnvelopeManager(self._store, self._processor)
        self._allocation = AllocationEngine(
            settings=allocation_settings,
            clock=clock,
            currency_symbol=self._store.settings.currency_symbol,
        )
        self._validator = DistributionValidator(self._store, self._allocation.settings)
        self._views = LedgerViews(self._store)

    # =========================================================================
    # PLUMBING
    # =========================================================================

    @property
    def store(self) -> LedgerStore:
        return self._store

    @property
    def views(self) -> LedgerViews:
        return self._views

    @property
    def allocation(self) -> AllocationEngine:
        return self._allocation

    @property
    def audit(self) -> AuditLogger:
        return self._audit

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """
        Register a callback receiving the new snapshot after each mutation.

        Returns:
            A function that unsubscribes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def snapshot(self) -> LedgerSnapshot:
        return self._store.snapshot()

    @contextmanager
    def _guard(self, operation: str, correlation_id: Optional[UUID] = None) -> Iterator[None]:
        """Audit a rejected operation, then let the error propagate."""
        try:
            yield
        except (LedgerError, ValueError) as e:
            self._audit.log_operation_rejected(
                operation=operation,
                error_code=getattr(e, "code", "invalid_input"),
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise

    def _commit(self, correlation_id: Optional[UUID] = None) -> None:
        """Persist and notify after a successful mutation."""
        snapshot = self._store.snapshot()
        if self._storage is not None:
            try:
                self._storage.save(snapshot)
            except StorageError as e:
                self._audit.log_storage_failed(str(e), correlation_id=correlation_id)
                raise
        for listener in list(self._listeners):
            listener(snapshot)

    # =========================================================================
    # ACCOUNTS
    # =========================================================================

    @property
    def accounts(self) -> list[Account]:
        return self._store.accounts

    def create_account(
        self,
        name: str,
        opening_balance: Money = 0,
        enforce_unique_name: Optional[bool] = None,
    ) -> Account:
        with self._guard("create_account"):
            account = self._lifecycle.create_account(
                name, opening_balance, enforce_unique_name=enforce_unique_name,
            )
        self._audit.log_account_created(account.id, account.name, account.balance)
        self._commit()
        return account

    def rename_account(
        self,
        account_id: UUID,
        old_name: str,
        new_name: str,
        enforce_unique_name: Optional[bool] = None,
    ) -> int:
        """Rename and rewrite history. Returns the number of rewritten transactions."""
        with self._guard("rename_account"):
            rewritten = self._lifecycle.rename_account(
                account_id, old_name, new_name, enforce_unique_name=enforce_unique_name,
            )
        account = self._store.get_account(account_id)
        self._audit.log_account_renamed(account_id, old_name, account.name, rewritten)
        self._commit()
        return rewritten

    def close_account(
        self,
        account_id: UUID,
        transfer_to: Optional[str] = None,
    ) -> Optional[Transaction]:
        """
        Close an account, moving any remaining balance to transfer_to.

        Returns:
            The settling transfer, if one was needed
        """
        correlation_id = create_correlation_id()
        with self._guard("close_account", correlation_id):
            account = self._store.get_account(account_id)
            transferred = abs(account.balance)
            transfer = self._lifecycle.close_account(account, transfer_to=transfer_to)

        if transfer is not None:
            self._audit.log_transaction_recorded(transfer, correlation_id=correlation_id)
        self._audit.log_account_closed(
            account.id,
            account.name,
            transferred if transfer is not None else Decimal("0"),
            transfer_to if transfer is not None else None,
            correlation_id=correlation_id,
        )
        self._commit(correlation_id)
        return transfer

    def reopen_account(
        self,
        account_id: UUID,
        enforce_unique_name: Optional[bool] = None,
    ) -> Account:
        with self._guard("reopen_account"):
            account = self._lifecycle.reopen_account(
                account_id, enforce_unique_name=enforce_unique_name,
            )
        self._audit.log_account_reopened(account.id, account.name)
        self._commit()
        return account

    def delete_account(self, account_id: UUID) -> int:
        """Remove an account. Returns the number of detached transactions."""
        with self._guard("delete_account"):
            account = self._store.get_account(account_id)
            detached = self._lifecycle.delete_account(account)
        self._audit.log_account_deleted(account.id, account.name, detached)
        self._commit()
        return detached

    # =========================================================================
    # ENVELOPES
    # =========================================================================

    @property
    def envelopes(self) -> list[EnvelopeBase]:
        return self._store.envelopes

    def create_envelope(
        self,
        kind: Union[EnvelopeKind, str],
        name: str,
        **fields,
    ) -> EnvelopeBase:
        """
        Create an envelope. See EnvelopeManager.create_envelope for fields.

        A non-zero initial_amount is recorded as a distribution transaction.
        """
        correlation_id = create_correlation_id()
        before = len(self._store.transactions)
        with self._guard("create_envelope", correlation_id):
            envelope = self._envelopes.create_envelope(kind, name, **fields)

        self._audit.log_envelope_created(
            envelope.id, envelope.name, envelope.kind, correlation_id=correlation_id,
        )
        for txn in self._store.transactions[before:]:
            self._audit.log_transaction_recorded(txn, correlation_id=correlation_id)
        self._commit(correlation_id)
        return envelope

    def update_envelope(self, envelope_id: UUID, **changes) -> EnvelopeBase:
        with self._guard("update_envelope"):
            envelope = self._envelopes.update_envelope(envelope_id, **changes)
        self._audit.log_envelope_updated(envelope.id, envelope.name, changes)
        self._commit()
        return envelope

    def delete_envelope(self, envelope_id: UUID) -> EnvelopeBase:
        with self._guard("delete_envelope"):
            envelope = self._envelopes.delete_envelope(envelope_id)
        self._audit.log_envelope_deleted(envelope.id, envelope.name)
        self._commit()
        return envelope

    # =========================================================================
    # TRANSACTIONS
    # =========================================================================

    @property
    def transactions(self) -> list[Transaction]:
        return self._store.transactions

    @property
    def categories(self) -> list[str]:
        return self._store.categories

    def add_category(self, category: str) -> None:
        self._store.add_category(category)
        self._commit()

    def record_transaction(
        self,
        kind: Union[TransactionKind, str],
        amount: Money,
        account_name: str,
        secondary_ref: Optional[str] = None,
        description: str = "",
        category: str = "",
        timestamp: Optional[datetime] = None,
    ) -> Transaction:
        with self._guard("record_transaction"):
            transaction = self._processor.record_transaction(
                kind,
                amount,
                account_name=account_name,
                secondary_ref=secondary_ref,
                description=description,
                category=category,
                timestamp=timestamp,
            )
        self._store.add_category(category)
        self._audit.log_transaction_recorded(transaction)
        self._commit()
        return transaction

    def delete_transaction(self, transaction: Union[Transaction, UUID]) -> Transaction:
        with self._guard("delete_transaction"):
            removed = self._processor.delete_transaction(transaction)
        self._audit.log_transaction_deleted(removed)
        self._commit()
        return removed

    # =========================================================================
    # DISTRIBUTION
    # =========================================================================

    def compute_automatic_distribution(
        self,
        total_amount: Money,
        envelope_names: Optional[Iterable[str]] = None,
    ) -> dict[str, Decimal]:
        """Automatic split over all envelopes, or over the named ones."""
        return self._allocation.compute_automatic_distribution(
            parse_amount(total_amount), self._select_envelopes(envelope_names),
        )

    def get_distribution_suggestions(self, amount: Money) -> list[DistributionSuggestion]:
        return self._allocation.get_distribution_suggestions(
            parse_amount(amount), self._store.envelopes,
        )

    def validate_distribution(
        self,
        distribution: Mapping[str, Money],
        total_amount: Money,
    ) -> DistributionValidation:
        return self._allocation.validate_distribution(distribution, total_amount)

    def validate_plan(
        self,
        total_amount: Money,
        allocations: Mapping[str, Money],
        account_name: Optional[str] = None,
    ) -> ValidationResult:
        """Full pre-flight check of a split, with warnings."""
        return self._validator.validate(total_amount, allocations, account_name)

    def _select_envelopes(self, names: Optional[Iterable[str]]) -> list[EnvelopeBase]:
        if names is None:
            return self._store.envelopes
        wanted = set(names)
        return [e for e in self._store.envelopes if e.name in wanted]

    def distribute_income(
        self,
        amount: Money,
        account_name: str,
        allocations: Mapping[str, Money],
        kind: Union[TransactionKind, str] = TransactionKind.SALARY,
        require_complete: bool = True,
    ) -> list[Transaction]:
        """
        Record a lump inflow and split it across envelopes.

        One income/salary transaction, then one distribution per envelope
        with a positive share, all drawn from account_name.

        Args:
            require_complete: The shares must add up to amount. When False,
                a shortfall is allowed and simply stays in the account.

        Returns:
            The recorded transactions, inflow first

        Raises:
            InvalidAmount: amount <= 0
            InvalidDistribution: the split does not validate
            InvalidReference / AccountClosed: bad account
        """
        correlation_id = create_correlation_id()
        with self._guard("distribute_income", correlation_id):
            kind = TransactionKind(kind)
            if not kind.is_inflow:
                raise InvalidDistribution(f"Cannot distribute a {kind.value} transaction")
            total = parse_amount(amount)

            result = self._validator.validate(total, allocations, account_name)
            blocking = [
                issue for issue in result.issues
                if issue.severity == "error"
                and issue.field != "account_name"
                and not (
                    issue.issue_type == "sum_mismatch"
                    and not require_complete
                    and result.allocated_amount <= total
                )
            ]
            if blocking:
                raise InvalidDistribution("; ".join(i.message for i in blocking))
            for warning in result.warnings:
                logger.warning("distribution_warning", message=warning)

            recorded = self._apply_distribution(total, account_name, allocations, kind)

        for txn in recorded:
            self._audit.log_transaction_recorded(txn, correlation_id=correlation_id)
        shares = {
            txn.secondary_ref: txn.amount
            for txn in recorded
            if txn.kind is TransactionKind.DISTRIBUTION
        }
        self._audit.log_distribution_applied(recorded[0].id, total, shares, correlation_id)
        self._commit(correlation_id)
        return recorded

    def _apply_distribution(
        self,
        total: Decimal,
        account_name: str,
        allocations: Mapping[str, Money],
        kind: TransactionKind,
    ) -> list[Transaction]:
        description, category = INFLOW_LABELS[kind]
        recorded: list[Transaction] = []
        try:
            recorded.append(self._processor.record_transaction(
                kind,
                total,
                account_name=account_name,
                description=description,
                category=category,
            ))
            for name, share in allocations.items():
                value = parse_share(share)
                if value <= 0:
                    continue
                envelope = self._store.require_envelope(name)
                recorded.append(self._processor.record_transaction(
                    TransactionKind.DISTRIBUTION,
                    value,
                    account_name=account_name,
                    secondary_ref=name,
                    description=f"Distribution: {name}",
                    category=envelope.category,
                ))
        except (LedgerError, ValueError):
            for txn in reversed(recorded):
                self._processor.delete_transaction(txn)
            raise
        return recorded

    def distribute_equally(
        self,
        amount: Money,
        account_name: str,
        envelope_names: Iterable[str],
        kind: Union[TransactionKind, str] = TransactionKind.SALARY,
    ) -> list[Transaction]:
        """Split amount in equal, cent-exact parts across the named envelopes."""
        names = list(envelope_names)
        if not names:
            error = InvalidDistribution("Select at least one envelope")
            self._audit.log_operation_rejected("distribute_equally", error.code, str(error))
            raise error
        with self._guard("distribute_equally"):
            shares = split_equally(parse_amount(amount), names)
        return self.distribute_income(amount, account_name, shares, kind=kind)

    def distribute_custom(
        self,
        amount: Money,
        account_name: str,
        amounts: Mapping[str, Money],
        envelope_names: Iterable[str],
        kind: Union[TransactionKind, str] = TransactionKind.SALARY,
    ) -> list[Transaction]:
        """Split with user-entered amounts, keeping only the selected envelopes."""
        with self._guard("distribute_custom"):
            shares = custom_split(amounts, envelope_names)
        return self.distribute_income(amount, account_name, shares, kind=kind)

    def distribute_automatically(
        self,
        amount: Money,
        account_name: str,
        kind: Union[TransactionKind, str] = TransactionKind.SALARY,
        envelope_names: Optional[Iterable[str]] = None,
    ) -> list[Transaction]:
        """
        Split with the automatic policy.

        Anything the policy leaves unallocated stays in the account.
        """
        shares = self.compute_automatic_distribution(amount, envelope_names)
        return self.distribute_income(
            amount, account_name, shares, kind=kind, require_complete=False,
        )


def create_ledger_service(
    storage: Optional[LedgerStorageInterface] = None,
    data_path: Optional[Union[str, Path]] = None,
    clock: Optional[Clock] = None,
    ledger_settings: Optional[LedgerSettings] = None,
    allocation_settings: Optional[AllocationSettings] = None,
    audit_logger: Optional[AuditLogger] = None,
) -> LedgerService:
    """
    Factory function to create a ready-to-use service.

    Args:
        storage: Persistence adapter. If None, a JSON file adapter on
                data_path (or the configured data path) is used.
        data_path: JSON file location, when no storage is given
        clock: Time source. Defaults to the wall clock.
        ledger_settings / allocation_settings: Explicit settings, so tests
                never read the environment

    Returns:
        A LedgerService whose state was loaded from storage when a saved
        snapshot exists
    """
    settings = get_settings()
    ledger_settings = ledger_settings or settings.ledger
    allocation_settings = allocation_settings or settings.allocation
    clock = clock or SystemClock()

    if storage is None:
        storage = JsonFileLedgerStorage(
            data_path or ledger_settings.data_path,
            settings=settings.storage,
            missing_ok=True,
        )

    if storage.exists():
        store = LedgerStore.from_snapshot(storage.load(), clock=clock, settings=ledger_settings)
        logger.info(
            "ledger_loaded",
            accounts=len(store.accounts),
            envelopes=len(store.envelopes),
            transactions=len(store.transactions),
        )
    else:
        store = LedgerStore(clock=clock, settings=ledger_settings)

    return LedgerService(
        store=store,
        storage=storage,
        audit_logger=audit_logger,
        allocation_settings=allocation_settings,
        clock=clock,
    )
