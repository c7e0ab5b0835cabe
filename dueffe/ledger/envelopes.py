"""
Envelope management.

Envelopes can be created, edited and deleted freely. Edits never touch
current_amount: money only moves into or out of an envelope through
transactions.
"""

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Union
from uuid import UUID

from dueffe.ledger.exceptions import DuplicateName, InvalidAmount
from dueffe.ledger.processor import TransactionProcessor, parse_amount
from dueffe.ledger.store import LedgerStore
from dueffe.models.ledger import (
    EnvelopeBase,
    EnvelopeColor,
    EnvelopeKind,
    TransactionKind,
    parse_envelope,
)
from dueffe.utils.clock import to_money

# Fields an edit may never change
PROTECTED_FIELDS = frozenset({"id", "kind", "current_amount", "created_at"})


class EnvelopeManager:
    """Create, edit and delete envelopes."""

    def __init__(self, store: LedgerStore, processor: TransactionProcessor):
        self._store = store
        self._processor = processor

    def create_envelope(
        self,
        kind: Union[EnvelopeKind, str],
        name: str,
        category: str = "",
        color: Union[EnvelopeColor, str] = EnvelopeColor.BLUE,
        target_amount: Optional[Union[Decimal, int, float, str]] = None,
        target_date: Optional[date] = None,
        monthly_refill: Optional[Union[Decimal, int, float, str]] = None,
        account_name: Optional[str] = None,
        initial_amount: Union[Decimal, int, float, str] = 0,
        enforce_unique_name: Optional[bool] = None,
    ) -> EnvelopeBase:
        """
        Create an envelope, optionally funding it from an account.

        The initial amount is recorded as a distribution transaction from
        account_name, so the debit shows up in history and can be reversed.

        Raises:
            ValidationError: fields that do not fit the variant
            DuplicateName: name taken (when enforcement is on)
            InvalidReference / AccountClosed: bad funding account
        """
        kind = EnvelopeKind(kind)
        data: dict[str, Any] = {
            "kind": kind.value,
            "name": name,
            "category": category,
            "color": color,
            "account_name": account_name,
            "created_at": self._store.clock.now(),
        }
        # Only pass variant fields that were given, so extra="forbid"
        # rejects e.g. a target date on a recurring refill.
        if target_amount is not None:
            data["target_amount"] = target_amount
        if target_date is not None:
            data["target_date"] = target_date
        if monthly_refill is not None:
            data["monthly_refill"] = monthly_refill

        envelope = parse_envelope(data)

        funding = None
        if initial_amount is not None:
            try:
                nonzero = to_money(initial_amount) != 0
            except (InvalidOperation, TypeError):
                nonzero = True  # parse_amount reports it
        else:
            nonzero = False
        if nonzero:
            funding = parse_amount(initial_amount)
            if not account_name:
                raise InvalidAmount("An initial amount needs a funding account")

        self._store.add_envelope(envelope, enforce_unique_name=enforce_unique_name)

        if funding is not None:
            try:
                self._processor.record_transaction(
                    TransactionKind.DISTRIBUTION,
                    funding,
                    account_name=account_name,
                    secondary_ref=envelope.name,
                    description=f"Initial deposit: {envelope.name}",
                    category=category,
                )
            except Exception:
                self._store.remove_envelope(envelope.id)
                raise

        return envelope

    def update_envelope(self, envelope_id: UUID, **changes: Any) -> EnvelopeBase:
        """
        Edit name, category, color or goal fields of an envelope.

        Transactions keep the textual name they were recorded with.

        Raises:
            ValueError: a protected field was passed
            ValidationError: the edit does not fit the variant
            DuplicateName: the new name is taken
        """
        blocked = PROTECTED_FIELDS.intersection(changes)
        if blocked:
            raise ValueError(f"Cannot edit envelope fields: {sorted(blocked)}")

        envelope = self._store.get_envelope(envelope_id)
        updated = type(envelope).model_validate({**envelope.model_dump(), **changes})

        if updated.name != envelope.name and self._store.settings.enforce_unique_names:
            clash = self._store.find_envelope(updated.name)
            if clash is not None and clash.id != envelope.id:
                raise DuplicateName(f"An envelope named {updated.name!r} already exists")

        self._store.replace_envelope(updated)
        return updated

    def delete_envelope(self, envelope_id: UUID) -> EnvelopeBase:
        """Remove an envelope. Its transactions keep their textual reference."""
        return self._store.remove_envelope(envelope_id)
