"""Validation package."""

from dueffe.validation.validator import DistributionValidator

__all__ = ["DistributionValidator"]
