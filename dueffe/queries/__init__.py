"""Read-only query package."""

from dueffe.queries.views import LedgerViews

__all__ = ["LedgerViews"]
