"""
Core Data Models for Dueffe Ledger

These models define the strict schemas for the three ledger entities:
accounts, envelopes ("salvadanai") and transactions.
They are designed to:
1. Enforce type safety at runtime
2. Make invalid variant combinations unrepresentable
3. Be serializable for storage and logging

DESIGN DECISION: Money is always Decimal. Balances are signed; transaction
amounts are always positive and the direction comes from the kind.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Annotated, Literal, Optional, Union
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    model_validator,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionKind(str, Enum):
    """
    Kinds of money movement.

    The kind alone decides which balances move and in which direction.
    """
    EXPENSE = "expense"
    INCOME = "income"
    SALARY = "salary"
    DISTRIBUTION = "distribution"            # account -> envelope
    TRANSFER = "transfer"                    # account -> account
    TRANSFER_ENVELOPE = "transfer_envelope"  # envelope -> envelope

    @property
    def is_inflow(self) -> bool:
        return self in (TransactionKind.INCOME, TransactionKind.SALARY)

    @property
    def uses_account(self) -> bool:
        """Does the primary reference name an account?"""
        return self is not TransactionKind.TRANSFER_ENVELOPE

    @property
    def requires_secondary(self) -> bool:
        return self in (
            TransactionKind.DISTRIBUTION,
            TransactionKind.TRANSFER,
            TransactionKind.TRANSFER_ENVELOPE,
        )


class EnvelopeKind(str, Enum):
    """The three envelope behaviours."""
    FIXED_TARGET = "fixed_target"
    RECURRING_REFILL = "recurring_refill"  # a.k.a. "glass"
    OPEN_ENDED = "open_ended"


class EnvelopeColor(str, Enum):
    """Color tags offered by the app."""
    BLUE = "blue"
    GREEN = "green"
    ORANGE = "orange"
    PURPLE = "purple"
    PINK = "pink"
    RED = "red"
    YELLOW = "yellow"
    INDIGO = "indigo"


# =============================================================================
# ACCOUNT
# =============================================================================

class Account(BaseModel):
    """
    A named pool of liquid money.

    The balance is only ever moved through the ledger store's balance
    primitive; it is never recomputed from the transaction list.
    """
    model_config = ConfigDict(str_strip_whitespace=True, validate_assignment=True)

    id: UUID = Field(default_factory=uuid4)
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Unique account name, used as the transaction reference"
    )
    balance: Decimal = Field(default=Decimal("0"))
    created_at: datetime = Field(default_factory=_utcnow)
    is_closed: bool = Field(
        default=False,
        description="Closed accounts reject any balance-affecting change"
    )


# =============================================================================
# ENVELOPES
# =============================================================================

class EnvelopeBase(BaseModel):
    """Fields shared by every envelope variant."""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
        extra="forbid",
    )

    id: UUID = Field(default_factory=uuid4)
    name: str = Field(..., min_length=1, max_length=100)
    category: str = Field(default="", max_length=100)
    color: EnvelopeColor = EnvelopeColor.BLUE
    current_amount: Decimal = Field(
        default=Decimal("0"),
        description="Signed: negative means overdrawn"
    )
    account_name: Optional[str] = Field(
        default=None,
        description="Account the envelope was funded from"
    )
    created_at: datetime = Field(default_factory=_utcnow)

    @property
    def is_overdrawn(self) -> bool:
        return self.current_amount < 0

    @property
    def is_infinite(self) -> bool:
        return False

    @property
    def remaining_need(self) -> Decimal:
        """How much is still missing to reach the goal (never negative)."""
        return Decimal("0")

    @property
    def progress(self) -> Optional[float]:
        """Fraction of the goal reached, capped at 1. None without a goal."""
        return None


class FixedTargetEnvelope(EnvelopeBase):
    """Save up to a target amount, optionally by a date."""

    kind: Literal["fixed_target"] = "fixed_target"
    target_amount: Decimal = Field(..., gt=0)
    target_date: Optional[date] = None

    @property
    def remaining_need(self) -> Decimal:
        return max(Decimal("0"), self.target_amount - self.current_amount)

    @property
    def is_reached(self) -> bool:
        return self.current_amount >= self.target_amount

    @property
    def progress(self) -> Optional[float]:
        return min(1.0, max(0.0, float(self.current_amount / self.target_amount)))


class RecurringRefillEnvelope(EnvelopeBase):
    """A "glass": topped up to the same amount every month."""

    kind: Literal["recurring_refill"] = "recurring_refill"
    monthly_refill: Decimal = Field(..., gt=0)

    @property
    def remaining_need(self) -> Decimal:
        return max(Decimal("0"), self.monthly_refill - self.current_amount)

    @property
    def progress(self) -> Optional[float]:
        return min(1.0, max(0.0, float(self.current_amount / self.monthly_refill)))


class OpenEndedEnvelope(EnvelopeBase):
    """Unbounded savings: no target, no deadline."""

    kind: Literal["open_ended"] = "open_ended"

    @property
    def is_infinite(self) -> bool:
        return True


Envelope = Annotated[
    Union[FixedTargetEnvelope, RecurringRefillEnvelope, OpenEndedEnvelope],
    Field(discriminator="kind"),
]

_envelope_adapter: TypeAdapter = TypeAdapter(Envelope)


def parse_envelope(data: dict) -> EnvelopeBase:
    """Build the right envelope variant from a dict carrying a 'kind' key."""
    return _envelope_adapter.validate_python(data)


# =============================================================================
# TRANSACTION
# =============================================================================

class Transaction(BaseModel):
    """
    An immutable record of one money movement.

    References are names, not ids: account_name is the primary reference
    (the source envelope for TRANSFER_ENVELOPE) and secondary_ref is the
    envelope, or the destination account for TRANSFER.

    An empty string marks a reference detached by account deletion.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: UUID = Field(default_factory=uuid4)
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Always positive; direction comes from kind"
    )
    description: str = Field(default="", max_length=200)
    category: str = Field(default="", max_length=100)
    kind: TransactionKind
    timestamp: datetime = Field(default_factory=_utcnow)
    account_name: str = Field(..., max_length=100)
    secondary_ref: Optional[str] = Field(default=None, max_length=100)

    @model_validator(mode='after')
    def validate_references(self) -> 'Transaction':
        """Each kind carries exactly the references it needs."""
        if self.kind.requires_secondary and self.secondary_ref is None:
            raise ValueError(f"{self.kind.value} transactions need a secondary reference")
        if self.kind.is_inflow and self.secondary_ref is not None:
            raise ValueError(f"{self.kind.value} transactions take no secondary reference")
        return self

    def references_account(self, name: str) -> bool:
        """Does this transaction point at the named account, either side?"""
        if not self.kind.uses_account:
            return False
        if self.account_name == name:
            return True
        return self.kind is TransactionKind.TRANSFER and self.secondary_ref == name


# =============================================================================
# SNAPSHOT
# =============================================================================

class LedgerSnapshot(BaseModel):
    """
    Full ledger state exchanged with the persistence adapter.

    Transactions keep insertion order.
    """

    accounts: list[Account] = Field(default_factory=list)
    envelopes: list[Envelope] = Field(default_factory=list)
    transactions: list[Transaction] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)
    saved_at: Optional[datetime] = None
