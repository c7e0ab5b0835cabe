"""
Utility functions for Dueffe Ledger.
"""

from dueffe.utils.clock import Clock, FixedClock, SystemClock, days_until, to_money

__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
    "days_until",
    "to_money",
]
