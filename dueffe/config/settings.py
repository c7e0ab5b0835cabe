"""
Configuration Management for Dueffe Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The allocation policy constants live here too, so the numbers that drive
the automatic split are visible in one place and can be tuned per
deployment without touching the engine.
"""

from decimal import Decimal
from functools import lru_cache

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerSettings(BaseSettings):
    """Core ledger behaviour."""

    model_config = SettingsConfigDict(
        env_prefix="DUEFFE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    data_path: str = Field(
        default="dueffe_ledger.json",
        description="JSON file used by the file storage adapter"
    )
    enforce_unique_names: bool = Field(
        default=True,
        description="Reject account/envelope names that are already taken"
    )
    currency_symbol: str = Field(
        default="€",
        max_length=3,
        description="Symbol used in user-facing messages"
    )
    default_categories: list[str] = Field(
        default_factory=lambda: [
            "Food", "Transport", "Entertainment", "Clothing",
            "Health", "Education", "Home", "Salary", "Other",
        ],
        description="Category labels seeded into a fresh ledger"
    )


class AllocationSettings(BaseSettings):
    """
    Tunables of the automatic distribution policy.

    The defaults reproduce the behaviour users already know from the app.
    """

    model_config = SettingsConfigDict(
        env_prefix="DUEFFE_ALLOCATION_",
        extra="ignore"
    )

    base_allocation: Decimal = Field(
        default=Decimal("150"),
        gt=0,
        description="Per-envelope cap for deadline targets before urgency"
    )
    high_urgency_days: int = Field(
        default=30,
        ge=0,
        description="Deadlines this close get the high multiplier"
    )
    medium_urgency_days: int = Field(
        default=90,
        ge=0,
        description="Deadlines this close get the medium multiplier"
    )
    high_urgency_multiplier: Decimal = Field(
        default=Decimal("1.5"),
        ge=1,
    )
    medium_urgency_multiplier: Decimal = Field(
        default=Decimal("1.2"),
        ge=1,
    )
    suggestion_window_days: int = Field(
        default=60,
        ge=0,
        description="Only targets due within this window are suggested"
    )
    suggestion_share: Decimal = Field(
        default=Decimal("0.3"),
        gt=0,
        le=1,
        description="Max share of the lump amount suggested per target"
    )
    tolerance: Decimal = Field(
        default=Decimal("0.01"),
        gt=0,
        description="Allowed difference between a split and its total"
    )

    @model_validator(mode='after')
    def validate_thresholds(self) -> 'AllocationSettings':
        """High urgency must be the tighter window."""
        if self.high_urgency_days > self.medium_urgency_days:
            raise ValueError(
                "high_urgency_days cannot exceed medium_urgency_days"
            )
        return self


class StorageSettings(BaseSettings):
    """Retry policy for the persistence adapters."""

    model_config = SettingsConfigDict(
        env_prefix="DUEFFE_STORAGE_",
        extra="ignore"
    )

    retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
    )
    retry_min_wait: float = Field(
        default=0.1,
        ge=0.0,
        description="Seconds before the first retry"
    )
    retry_max_wait: float = Field(
        default=2.0,
        ge=0.0,
    )


class LoggingSettings(BaseSettings):
    """structlog output configuration."""

    model_config = SettingsConfigDict(
        env_prefix="DUEFFE_LOG_",
        extra="ignore"
    )

    level: str = Field(
        default="INFO",
        description="Standard logging level name"
    )
    json_output: bool = Field(
        default=True,
        description="Render JSON lines instead of console output"
    )
    cache_loggers: bool = Field(
        default=True,
        description="Let structlog cache loggers on first use (off in tests)"
    )

    @field_validator('level')
    @classmethod
    def validate_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Unknown log level: {v}. Allowed: {sorted(allowed)}")
        return v.upper()


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Note: These are loaded lazily to allow partial configuration

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

    @property
    def allocation(self) -> AllocationSettings:
        return AllocationSettings()

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def logging(self) -> LoggingSettings:
        return LoggingSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("ledger", "allocation", "storage", "logging"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
