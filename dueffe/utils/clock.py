"""
Clock and money helpers.

The engine never calls datetime.now() directly: transaction timestamps and
deadline urgency both read an injected clock, so tests can pin "now".
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional, Protocol, Union


class Clock(Protocol):
    """Anything that can tell the current time."""

    def now(self) -> datetime:
        ...


class SystemClock:
    """Wall clock, timezone-aware UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """
    A clock that only moves when told to.

    Usage:
        clock = FixedClock(datetime(2026, 1, 15, tzinfo=timezone.utc))
        clock.advance(days=10)
    """

    def __init__(self, current: datetime):
        self._current = current

    def now(self) -> datetime:
        return self._current

    def set(self, current: datetime) -> None:
        self._current = current

    def advance(self, **kwargs) -> datetime:
        """Move forward by a timedelta built from kwargs (days=, hours=, ...)."""
        self._current = self._current + timedelta(**kwargs)
        return self._current


def days_until(target: Optional[date], now: datetime) -> Optional[int]:
    """
    Whole days from now's calendar date to target.

    Returns:
        Days remaining (negative once past due), or None when there is
        no target date.
    """
    if target is None:
        return None
    return (target - now.date()).days


def to_money(value: Union[Decimal, int, float, str]) -> Decimal:
    """
    Convert user input to Decimal.

    Floats go through str() so 0.1 stays 0.1 instead of its binary expansion.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("Booleans are not amounts")
    return Decimal(str(value))
