"""
Audit Models for Dueffe Ledger

Every mutation of the ledger is described by one event. Events feed the
structured log and the in-memory trail the UI shows as "recent activity".

DESIGN DECISION: Events are append-only. We never delete or modify them.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class LedgerEventType(str, Enum):
    """Types of events we audit."""
    # Accounts
    ACCOUNT_CREATED = "account_created"
    ACCOUNT_RENAMED = "account_renamed"
    ACCOUNT_CLOSED = "account_closed"
    ACCOUNT_REOPENED = "account_reopened"
    ACCOUNT_DELETED = "account_deleted"

    # Envelopes
    ENVELOPE_CREATED = "envelope_created"
    ENVELOPE_UPDATED = "envelope_updated"
    ENVELOPE_DELETED = "envelope_deleted"

    # Transactions
    TRANSACTION_RECORDED = "transaction_recorded"
    TRANSACTION_DELETED = "transaction_deleted"
    DISTRIBUTION_APPLIED = "distribution_applied"

    # Failures
    OPERATION_REJECTED = "operation_rejected"
    STORAGE_FAILED = "storage_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class LedgerEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    event_type: LedgerEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'account', 'envelope', 'transaction')"
    )
    entity_id: Optional[UUID] = None

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="Groups the events of one user action (e.g., a salary split)"
    )

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }


class LedgerEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = LedgerEventBuilder.account_created(account_id, "Checking", "0")
        event = LedgerEventBuilder.transaction_recorded(txn, correlation_id)
    """

    @staticmethod
    def account_created(
        account_id: UUID,
        name: str,
        opening_balance: Decimal,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.ACCOUNT_CREATED,
            entity_type="account",
            entity_id=account_id,
            description=f"Account created: {name}",
            details={
                "name": name,
                "opening_balance": str(opening_balance),
            },
        )

    @staticmethod
    def account_renamed(
        account_id: UUID,
        old_name: str,
        new_name: str,
        rewritten: int,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.ACCOUNT_RENAMED,
            entity_type="account",
            entity_id=account_id,
            description=f"Account renamed: {old_name} -> {new_name}",
            details={
                "old_name": old_name,
                "new_name": new_name,
                "transactions_rewritten": rewritten,
            },
        )

    @staticmethod
    def account_closed(
        account_id: UUID,
        name: str,
        transferred: Decimal,
        transfer_to: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.ACCOUNT_CLOSED,
            entity_type="account",
            entity_id=account_id,
            correlation_id=correlation_id,
            description=f"Account closed: {name}",
            details={
                "transferred": str(transferred),
                "transfer_to": transfer_to,
            },
        )

    @staticmethod
    def account_reopened(account_id: UUID, name: str) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.ACCOUNT_REOPENED,
            entity_type="account",
            entity_id=account_id,
            description=f"Account reopened: {name}",
        )

    @staticmethod
    def account_deleted(account_id: UUID, name: str, detached: int) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.ACCOUNT_DELETED,
            severity=AuditSeverity.WARNING,
            entity_type="account",
            entity_id=account_id,
            description=f"Account deleted: {name}",
            details={"transactions_detached": detached},
        )

    @staticmethod
    def envelope_created(
        envelope_id: UUID,
        name: str,
        kind: str,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.ENVELOPE_CREATED,
            entity_type="envelope",
            entity_id=envelope_id,
            correlation_id=correlation_id,
            description=f"Envelope created: {name} ({kind})",
            details={"name": name, "kind": kind},
        )

    @staticmethod
    def envelope_updated(
        envelope_id: UUID,
        name: str,
        changes: dict[str, Any],
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.ENVELOPE_UPDATED,
            entity_type="envelope",
            entity_id=envelope_id,
            description=f"Envelope updated: {name}",
            details={key: str(value) for key, value in changes.items()},
        )

    @staticmethod
    def envelope_deleted(envelope_id: UUID, name: str) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.ENVELOPE_DELETED,
            entity_type="envelope",
            entity_id=envelope_id,
            description=f"Envelope deleted: {name}",
        )

    @staticmethod
    def transaction_recorded(
        transaction_id: UUID,
        kind: str,
        amount: Decimal,
        account_name: str,
        secondary_ref: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.TRANSACTION_RECORDED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Transaction recorded: {kind} {amount}",
            details={
                "kind": kind,
                "amount": str(amount),
                "account_name": account_name,
                "secondary_ref": secondary_ref,
            },
        )

    @staticmethod
    def transaction_deleted(
        transaction_id: UUID,
        kind: str,
        amount: Decimal,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Transaction deleted: {kind} {amount}",
            details={"kind": kind, "amount": str(amount)},
        )

    @staticmethod
    def distribution_applied(
        income_id: UUID,
        total: Decimal,
        allocations: dict[str, Decimal],
        correlation_id: UUID,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.DISTRIBUTION_APPLIED,
            entity_type="transaction",
            entity_id=income_id,
            correlation_id=correlation_id,
            description=f"Distributed {total} across {len(allocations)} envelopes",
            details={
                "total": str(total),
                "allocations": {name: str(amount) for name, amount in allocations.items()},
            },
        )

    @staticmethod
    def operation_rejected(
        operation: str,
        error_code: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.OPERATION_REJECTED,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description=f"Operation rejected: {operation}",
            error_code=error_code,
            error_message=error_message,
            details={"operation": operation},
        )

    @staticmethod
    def storage_failed(
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.STORAGE_FAILED,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description="Saving the ledger snapshot failed",
            error_message=error_message,
        )
