"""Allocation package: automatic, equal and custom lump-sum splits."""

from dueffe.allocation.engine import AllocationEngine, custom_split, split_equally

__all__ = [
    "AllocationEngine",
    "custom_split",
    "split_equally",
]
