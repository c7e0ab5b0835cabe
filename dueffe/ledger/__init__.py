"""
Ledger package.

The Ledger Store holds the state, the Transaction Processor moves money,
and the lifecycle and envelope managers handle entity-level operations.
"""

from dueffe.ledger.envelopes import EnvelopeManager
from dueffe.ledger.exceptions import (
    AccountClosed,
    AccountNotFound,
    DuplicateName,
    EnvelopeNotFound,
    InvalidAmount,
    InvalidDistribution,
    InvalidReference,
    LedgerError,
    NoDestinationAvailable,
    TransferRequired,
)
from dueffe.ledger.lifecycle import AccountLifecycleManager
from dueffe.ledger.processor import (
    EFFECTS,
    TransactionProcessor,
    parse_amount,
    parse_share,
)
from dueffe.ledger.store import LedgerStore

__all__ = [
    # Components
    "AccountLifecycleManager",
    "EnvelopeManager",
    "LedgerStore",
    "TransactionProcessor",
    "EFFECTS",
    "parse_amount",
    "parse_share",
    # Exceptions
    "AccountClosed",
    "AccountNotFound",
    "DuplicateName",
    "EnvelopeNotFound",
    "InvalidAmount",
    "InvalidDistribution",
    "InvalidReference",
    "LedgerError",
    "NoDestinationAvailable",
    "TransferRequired",
]
