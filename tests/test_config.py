"""
Tests for settings loading.
"""

import pytest
from decimal import Decimal

from dueffe.config import (
    AllocationSettings,
    LedgerSettings,
    LoggingSettings,
    validate_all_settings,
)


class TestSettings:
    """Tests for the pydantic-settings classes."""

    def test_allocation_defaults(self):
        """Test the default policy numbers."""
        settings = AllocationSettings()
        assert settings.base_allocation == Decimal("150")
        assert (settings.high_urgency_days, settings.medium_urgency_days) == (30, 90)
        assert settings.tolerance == Decimal("0.01")

    def test_env_prefix(self, monkeypatch):
        """Test that each concern reads its own prefix."""
        monkeypatch.setenv("DUEFFE_ALLOCATION_BASE_ALLOCATION", "200")
        monkeypatch.setenv("DUEFFE_CURRENCY_SYMBOL", "$")

        assert AllocationSettings().base_allocation == Decimal("200")
        assert LedgerSettings().currency_symbol == "$"

    def test_log_level_normalised(self):
        """Test that levels are upper-cased and checked."""
        assert LoggingSettings(level="debug").level == "DEBUG"
        with pytest.raises(ValueError):
            LoggingSettings(level="loud")

    def test_validate_all_settings(self, monkeypatch):
        """Test the startup check reports the broken section only."""
        monkeypatch.setenv("DUEFFE_LOG_LEVEL", "loud")

        results = validate_all_settings()

        assert results["ledger"] is True
        assert results["allocation"] is True
        assert results["logging"] is False
        assert "loud" in results["logging_error"]
