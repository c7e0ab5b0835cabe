"""
Data Models Package

This package contains all Pydantic models used by the ledger.
All data flowing through the engine must conform to these schemas.
"""

from dueffe.models.ledger import (
    Account,
    Envelope,
    EnvelopeBase,
    EnvelopeColor,
    EnvelopeKind,
    FixedTargetEnvelope,
    LedgerSnapshot,
    OpenEndedEnvelope,
    RecurringRefillEnvelope,
    Transaction,
    TransactionKind,
    parse_envelope,
)
from dueffe.models.distribution import (
    DistributionSuggestion,
    DistributionValidation,
    SuggestionPriority,
    ValidationIssue,
    ValidationResult,
)
from dueffe.models.audit import (
    AuditSeverity,
    LedgerEvent,
    LedgerEventBuilder,
    LedgerEventType,
)

__all__ = [
    # Ledger models
    "Account",
    "Envelope",
    "EnvelopeBase",
    "EnvelopeColor",
    "EnvelopeKind",
    "FixedTargetEnvelope",
    "LedgerSnapshot",
    "OpenEndedEnvelope",
    "RecurringRefillEnvelope",
    "Transaction",
    "TransactionKind",
    "parse_envelope",
    # Distribution models
    "DistributionSuggestion",
    "DistributionValidation",
    "SuggestionPriority",
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditSeverity",
    "LedgerEvent",
    "LedgerEventBuilder",
    "LedgerEventType",
]
