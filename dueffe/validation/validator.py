"""
Distribution Plan Validation

DESIGN DECISION: A split is checked in full before a single transaction
is recorded. Every problem is collected, not just the first one, so the
user can fix the whole plan in one go.

Errors (block the distribution):
- Envelope names that do not resolve
- Negative amounts (zero shares are only noted and skipped)
- Amounts that do not add up to the total
- A funding account that is missing or closed

Warnings (shown, not blocking):
- The funding account will end up negative
- An envelope receives more than it needs to reach its goal

IMPORTANT: Validation NEVER silently fixes issues.
It reports them for human review.
"""

from decimal import Decimal
from typing import Mapping, Optional

from dueffe.config import AllocationSettings
from dueffe.ledger.exceptions import InvalidAmount
from dueffe.ledger.processor import parse_share
from dueffe.ledger.store import LedgerStore
from dueffe.models.distribution import ValidationIssue, ValidationResult
from dueffe.models.ledger import OpenEndedEnvelope


class DistributionValidator:
    """Validates a proposed split of a lump amount against the ledger."""

    def __init__(
        self,
        store: LedgerStore,
        settings: Optional[AllocationSettings] = None,
    ):
        self._store = store
        self._settings = settings or AllocationSettings()

    def validate(
        self,
        total_amount: Decimal,
        allocations: Mapping[str, Decimal],
        account_name: Optional[str] = None,
        include_income: bool = True,
    ) -> ValidationResult:
        """
        Check a split before it is applied.

        Args:
            total_amount: The lump amount being split
            allocations: envelope name -> amount
            account_name: Funding account, if known
            include_income: The lump arrives in the account first (salary
                split), so only the unsplit part can overdraw it

        Returns:
            ValidationResult with every issue found
        """
        issues: list[ValidationIssue] = []
        symbol = self._store.settings.currency_symbol
        try:
            total = parse_share(total_amount)
        except InvalidAmount:
            total = Decimal("0")

        if total <= 0:
            issues.append(ValidationIssue(
                field="total_amount",
                issue_type="invalid_value",
                message="The amount to distribute must be greater than zero",
                severity="error",
            ))

        allocated = Decimal("0")
        for name, raw in allocations.items():
            try:
                amount = parse_share(raw)
            except InvalidAmount:
                issues.append(ValidationIssue(
                    field=name,
                    issue_type="invalid_value",
                    message=f"Amount for {name!r} is not a number: {raw!r}",
                    severity="error",
                ))
                continue
            allocated += amount

            envelope = self._store.find_envelope(name)
            if envelope is None:
                issues.append(ValidationIssue(
                    field=name,
                    issue_type="unknown_envelope",
                    message=f"No envelope named {name!r}",
                    severity="error",
                    suggested_fix="Pick an existing envelope or create it first",
                ))
                continue

            if amount < 0:
                issues.append(ValidationIssue(
                    field=name,
                    issue_type="negative_amount",
                    message=f"Amount for {name!r} cannot be negative",
                    severity="error",
                    suggested_fix="Remove the envelope from the split instead",
                ))
                continue
            if amount == 0:
                issues.append(ValidationIssue(
                    field=name,
                    issue_type="zero_amount",
                    message=f"{name!r} receives nothing and will be skipped",
                    severity="info",
                ))
                continue

            if not isinstance(envelope, OpenEndedEnvelope):
                need = envelope.remaining_need
                if amount > need:
                    issues.append(ValidationIssue(
                        field=name,
                        issue_type="exceeds_need",
                        message=(
                            f"{name!r} only needs {symbol}{need:.2f} "
                            f"but would receive {symbol}{amount:.2f}"
                        ),
                        severity="warning",
                    ))

        difference = total - allocated
        if abs(difference) >= self._settings.tolerance:
            if difference < 0:
                message = f"Over-allocated by {symbol}{-difference:.2f}"
                fix = "Lower some of the amounts"
            else:
                message = f"{symbol}{difference:.2f} left to distribute"
                fix = "Assign the remaining amount to an envelope"
            issues.append(ValidationIssue(
                field="allocations",
                issue_type="sum_mismatch",
                message=message,
                severity="error",
                suggested_fix=fix,
            ))

        if account_name is not None:
            issues.extend(self._check_account(account_name, total, allocated, include_income))

        return ValidationResult(
            total_amount=total,
            allocated_amount=allocated,
            is_valid=not any(i.severity == "error" for i in issues),
            issues=issues,
        )

    def _check_account(
        self,
        account_name: str,
        total: Decimal,
        allocated: Decimal,
        include_income: bool,
    ) -> list[ValidationIssue]:
        account = self._store.find_account(account_name)
        if account is None:
            return [ValidationIssue(
                field="account_name",
                issue_type="unknown_account",
                message=f"No account named {account_name!r}",
                severity="error",
            )]
        if account.is_closed:
            return [ValidationIssue(
                field="account_name",
                issue_type="account_closed",
                message=f"Account {account_name!r} is closed",
                severity="error",
                suggested_fix="Reopen it or choose another account",
            )]

        projected = account.balance - allocated
        if include_income:
            projected += total
        if projected < 0:
            symbol = self._store.settings.currency_symbol
            return [ValidationIssue(
                field="account_name",
                issue_type="account_overdraw",
                message=(
                    f"Account {account_name!r} would go negative "
                    f"({symbol}{projected:.2f})"
                ),
                severity="warning",
            )]
        return []

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """One message for the UI: ok, or the list of problems."""
        lines = []
        for issue in result.issues:
            if issue.severity == "info":
                continue
            prefix = "Error" if issue.severity == "error" else "Note"
            line = f"{prefix}: {issue.message}"
            if issue.suggested_fix:
                line += f" ({issue.suggested_fix})"
            lines.append(line)
        return "\n".join(lines) if lines else "Distribution looks good"
