"""
Distribution Models

Derived, never persisted: these describe how a lump sum could be or should
be split across envelopes, and whether a proposed split is acceptable.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class SuggestionPriority(str, Enum):
    """Priority of a distribution suggestion."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def weight(self) -> int:
        return {"high": 3, "medium": 2, "low": 1}[self.value]


class DistributionSuggestion(BaseModel):
    """A recommended contribution to one envelope."""

    envelope_name: str
    amount: Decimal = Field(..., ge=0)
    reason: str
    priority: SuggestionPriority


class DistributionValidation(BaseModel):
    """
    Verdict on a split.

    difference is total minus allocated: positive means money is left
    over, negative means the split asks for more than there is.
    """

    is_valid: bool
    message: str
    difference: Decimal


# =============================================================================
# PLAN VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single problem found in a distribution plan."""

    field: str = Field(
        ...,
        description="Envelope name or plan-level field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'unknown_envelope', 'negative_amount')"
    )
    message: str
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
    )
    suggested_fix: Optional[str] = None


class ValidationResult(BaseModel):
    """
    Result of validating a distribution plan.

    Errors block the distribution; warnings (e.g. overdrawing the
    funding account) are shown but do not block.
    """

    total_amount: Decimal
    allocated_amount: Decimal
    is_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        return [i.message for i in self.issues if i.severity == "warning"]
