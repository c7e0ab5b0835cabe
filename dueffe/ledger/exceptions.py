"""
Custom exceptions for the ledger engine.

Every rejected operation raises one of these before any balance moves,
so a caught LedgerError always means "nothing happened".
"""


class LedgerError(Exception):
    """Base exception for ledger errors."""
    code = "ledger_error"


class InvalidReference(LedgerError):
    """A name or id does not resolve to a live account/envelope."""
    code = "invalid_reference"


class AccountNotFound(InvalidReference):
    """No account with that name or id."""
    code = "account_not_found"


class EnvelopeNotFound(InvalidReference):
    """No envelope with that name or id."""
    code = "envelope_not_found"


class AccountClosed(LedgerError):
    """Mutation attempted against a closed account."""
    code = "account_closed"


class DuplicateName(LedgerError):
    """The requested name is already taken."""
    code = "duplicate_name"


class TransferRequired(LedgerError):
    """Closing an account with money in it needs a destination."""
    code = "transfer_required"


class NoDestinationAvailable(LedgerError):
    """Closing needs a transfer but no other open account exists."""
    code = "no_destination_available"


class InvalidAmount(LedgerError):
    """Amount is zero, negative, or otherwise unusable."""
    code = "invalid_amount"


class InvalidDistribution(LedgerError):
    """A split does not add up to its total or names unknown envelopes."""
    code = "invalid_distribution"
