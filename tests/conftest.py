"""
Shared fixtures.

Time is pinned with FixedClock and settings are built explicitly, so no
test depends on the wall clock or the environment.
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from dueffe.allocation import AllocationEngine
from dueffe.audit import configure_logging
from dueffe.config import AllocationSettings, LedgerSettings, LoggingSettings
from dueffe.ledger import (
    AccountLifecycleManager,
    EnvelopeManager,
    LedgerStore,
    TransactionProcessor,
)
from dueffe.models import (
    FixedTargetEnvelope,
    OpenEndedEnvelope,
    RecurringRefillEnvelope,
)
from dueffe.utils import FixedClock

NOW = datetime(2026, 1, 15, 9, 30, tzinfo=timezone.utc)
TODAY = NOW.date()


def days_from_today(days: int) -> date:
    return TODAY + timedelta(days=days)


@pytest.fixture(scope="session", autouse=True)
def _uncached_logging():
    """Loggers must not cache their processors, or capture_logs misses them."""
    configure_logging(LoggingSettings(level="DEBUG", json_output=False, cache_loggers=False))


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def ledger_settings() -> LedgerSettings:
    return LedgerSettings(enforce_unique_names=True, currency_symbol="€")


@pytest.fixture
def allocation_settings() -> AllocationSettings:
    return AllocationSettings()


@pytest.fixture
def store(clock, ledger_settings) -> LedgerStore:
    return LedgerStore(clock=clock, settings=ledger_settings)


@pytest.fixture
def processor(store) -> TransactionProcessor:
    return TransactionProcessor(store)


@pytest.fixture
def lifecycle(store, processor) -> AccountLifecycleManager:
    return AccountLifecycleManager(store, processor)


@pytest.fixture
def envelope_manager(store, processor) -> EnvelopeManager:
    return EnvelopeManager(store, processor)


@pytest.fixture
def engine(allocation_settings, clock) -> AllocationEngine:
    return AllocationEngine(settings=allocation_settings, clock=clock)


@pytest.fixture
def seeded_store(store, lifecycle) -> LedgerStore:
    """
    Checking 1000, Savings 200, and one envelope of each kind:
    Food (refill 300), Vacation (target 1000 in 200 days), Rainy Day (open).
    """
    lifecycle.create_account("Checking", Decimal("1000"))
    lifecycle.create_account("Savings", Decimal("200"))
    store.add_envelope(RecurringRefillEnvelope(
        name="Food", monthly_refill=Decimal("300"), account_name="Checking",
    ))
    store.add_envelope(FixedTargetEnvelope(
        name="Vacation",
        target_amount=Decimal("1000"),
        target_date=days_from_today(200),
        account_name="Checking",
    ))
    store.add_envelope(OpenEndedEnvelope(name="Rainy Day", account_name="Savings"))
    return store


@pytest.fixture
def in_days():
    """Date helper: in_days(10) is ten days after the pinned today."""
    return days_from_today
