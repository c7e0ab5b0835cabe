"""
Tests for the distribution plan validator.
"""

import pytest
from decimal import Decimal

from dueffe.validation import DistributionValidator


@pytest.fixture
def validator(seeded_store, allocation_settings) -> DistributionValidator:
    return DistributionValidator(seeded_store, allocation_settings)


def issue_types(result) -> list[str]:
    return [issue.issue_type for issue in result.issues]


class TestDistributionValidator:
    """Tests for plan validation."""

    def test_valid_plan(self, validator):
        """Test a clean split."""
        result = validator.validate(
            Decimal("500"),
            {"Food": Decimal("300"), "Rainy Day": Decimal("200")},
            account_name="Checking",
        )
        assert result.is_valid
        assert result.issues == []
        assert result.allocated_amount == Decimal("500")
        assert validator.get_user_friendly_summary(result) == "Distribution looks good"

    def test_unknown_envelope(self, validator):
        """Test that unknown names are errors."""
        result = validator.validate(Decimal("100"), {"Ghost": Decimal("100")})
        assert not result.is_valid
        assert issue_types(result) == ["unknown_envelope"]

    def test_sum_mismatch(self, validator):
        """Test that a short split is an error with the exact gap."""
        result = validator.validate(Decimal("100"), {"Rainy Day": Decimal("60")})
        assert not result.is_valid
        assert issue_types(result) == ["sum_mismatch"]
        assert result.issues[0].message == "€40.00 left to distribute"

    def test_negative_amount(self, validator):
        """Test that negative shares are errors."""
        result = validator.validate(
            Decimal("100"), {"Rainy Day": Decimal("150"), "Food": Decimal("-50")},
        )
        assert not result.is_valid
        assert "negative_amount" in issue_types(result)

    def test_zero_amount_is_informational(self, validator):
        """Test that a zero share does not block."""
        result = validator.validate(
            Decimal("100"), {"Rainy Day": Decimal("100"), "Food": Decimal("0")},
        )
        assert result.is_valid
        assert issue_types(result) == ["zero_amount"]
        assert validator.get_user_friendly_summary(result) == "Distribution looks good"

    def test_exceeds_need_warning(self, validator):
        """Test that overfilling a refill is flagged but allowed."""
        result = validator.validate(Decimal("400"), {"Food": Decimal("400")})
        assert result.is_valid
        assert issue_types(result) == ["exceeds_need"]
        assert result.warnings

    def test_overdraw_warning(self, validator):
        """Test that a split larger than the account is flagged."""
        result = validator.validate(
            Decimal("1200"),
            {"Rainy Day": Decimal("1200")},
            account_name="Checking",
            include_income=False,
        )
        assert result.is_valid
        assert issue_types(result) == ["account_overdraw"]
        assert "Note:" in validator.get_user_friendly_summary(result)

    def test_income_covers_split(self, validator):
        """Test that the arriving income counts toward the account."""
        result = validator.validate(
            Decimal("1200"), {"Rainy Day": Decimal("1200")}, account_name="Checking",
        )
        assert result.issues == []

    def test_closed_account(self, validator, seeded_store):
        """Test that a closed funding account is an error."""
        seeded_store.find_account("Savings").is_closed = True
        result = validator.validate(
            Decimal("10"), {"Rainy Day": Decimal("10")}, account_name="Savings",
        )
        assert not result.is_valid
        assert issue_types(result) == ["account_closed"]

    def test_non_positive_total(self, validator):
        """Test that there must be something to split."""
        result = validator.validate(Decimal("0"), {})
        assert not result.is_valid
        assert issue_types(result) == ["invalid_value"]

    def test_text_share(self, validator):
        """Test that a share that is not a number is an error, not a crash."""
        result = validator.validate(Decimal("100"), {"Food": "abc", "Rainy Day": Decimal("100")})
        assert not result.is_valid
        assert issue_types(result) == ["invalid_value"]
        assert result.issues[0].field == "Food"

    def test_all_problems_reported(self, validator):
        """Test that validation does not stop at the first problem."""
        result = validator.validate(
            Decimal("100"),
            {"Ghost": Decimal("10"), "Food": Decimal("-5")},
            account_name="Nowhere",
        )
        assert result.error_count == 4
        summary = validator.get_user_friendly_summary(result)
        assert summary.count("Error:") == 4
