"""
Audit Logger

DESIGN DECISION: Every mutation of the ledger is logged.
This provides:
1. Complete traceability of where money moved
2. Debugging capability
3. A "recent activity" trail the UI can show

The audit logger:
- Is synchronous, like the engine it observes
- Keeps a bounded in-memory trail of recent events
- Supports correlation IDs to trace related events (one salary split
  produces one income, several distributions and one summary event)
"""

import logging
from collections import deque
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID, uuid4

import structlog

from dueffe.config import LoggingSettings
from dueffe.models.audit import AuditSeverity, LedgerEvent, LedgerEventBuilder
from dueffe.models.ledger import Transaction


def configure_logging(settings: Optional[LoggingSettings] = None) -> None:
    """
    Configure structlog on top of the standard library logger.

    Called once at import with the environment's settings; call again to
    switch level or renderer.
    """
    settings = settings or LoggingSettings()
    logging.basicConfig(format="%(message)s", level=settings.level)
    logging.getLogger("dueffe").setLevel(settings.level)

    renderer = (
        structlog.processors.JSONRenderer()
        if settings.json_output
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=settings.cache_loggers,
    )


configure_logging()


class AuditLogger:
    """
    Central audit logging service.

    Logs events to:
    1. The structured log (for debugging and shipping elsewhere)
    2. A bounded in-memory trail (for the activity feed)
    """

    def __init__(self, max_events: int = 500):
        """
        Initialize audit logger.

        Args:
            max_events: How many events the in-memory trail keeps.
        """
        self._events: deque[LedgerEvent] = deque(maxlen=max_events)
        self._logger = structlog.get_logger("dueffe.audit")

    def log(self, event: LedgerEvent) -> None:
        """Log an audit event at the level matching its severity."""
        self._events.append(event)
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity is AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity is AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

    def recent_events(self, limit: int = 50) -> list[LedgerEvent]:
        """Most recent events, newest first."""
        return list(reversed(self._events))[:limit]

    def events_for(self, correlation_id: UUID) -> list[LedgerEvent]:
        """Events of one user action, in the order they happened."""
        return [e for e in self._events if e.correlation_id == correlation_id]

    # -------------------------------------------------------------------------
    # Convenience wrappers
    # -------------------------------------------------------------------------

    def log_account_created(self, account_id: UUID, name: str, opening_balance: Decimal) -> None:
        self.log(LedgerEventBuilder.account_created(account_id, name, opening_balance))

    def log_account_renamed(
        self,
        account_id: UUID,
        old_name: str,
        new_name: str,
        rewritten: int,
    ) -> None:
        self.log(LedgerEventBuilder.account_renamed(account_id, old_name, new_name, rewritten))

    def log_account_closed(
        self,
        account_id: UUID,
        name: str,
        transferred: Decimal,
        transfer_to: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(LedgerEventBuilder.account_closed(
            account_id, name, transferred, transfer_to, correlation_id=correlation_id,
        ))

    def log_account_reopened(self, account_id: UUID, name: str) -> None:
        self.log(LedgerEventBuilder.account_reopened(account_id, name))

    def log_account_deleted(self, account_id: UUID, name: str, detached: int) -> None:
        self.log(LedgerEventBuilder.account_deleted(account_id, name, detached))

    def log_envelope_created(
        self,
        envelope_id: UUID,
        name: str,
        kind: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(LedgerEventBuilder.envelope_created(
            envelope_id, name, kind, correlation_id=correlation_id,
        ))

    def log_envelope_updated(self, envelope_id: UUID, name: str, changes: dict[str, Any]) -> None:
        self.log(LedgerEventBuilder.envelope_updated(envelope_id, name, changes))

    def log_envelope_deleted(self, envelope_id: UUID, name: str) -> None:
        self.log(LedgerEventBuilder.envelope_deleted(envelope_id, name))

    def log_transaction_recorded(
        self,
        transaction: Transaction,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(LedgerEventBuilder.transaction_recorded(
            transaction_id=transaction.id,
            kind=transaction.kind.value,
            amount=transaction.amount,
            account_name=transaction.account_name,
            secondary_ref=transaction.secondary_ref,
            correlation_id=correlation_id,
        ))

    def log_transaction_deleted(
        self,
        transaction: Transaction,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(LedgerEventBuilder.transaction_deleted(
            transaction_id=transaction.id,
            kind=transaction.kind.value,
            amount=transaction.amount,
            correlation_id=correlation_id,
        ))

    def log_distribution_applied(
        self,
        income_id: UUID,
        total: Decimal,
        allocations: dict[str, Decimal],
        correlation_id: UUID,
    ) -> None:
        self.log(LedgerEventBuilder.distribution_applied(
            income_id, total, allocations, correlation_id,
        ))

    def log_operation_rejected(
        self,
        operation: str,
        error_code: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(LedgerEventBuilder.operation_rejected(
            operation, error_code, error_message, correlation_id=correlation_id,
        ))

    def log_storage_failed(
        self,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(LedgerEventBuilder.storage_failed(error_message, correlation_id=correlation_id))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a user action (e.g., splitting a paycheck).
    Pass it through all subsequent operations.
    """
    return uuid4()
