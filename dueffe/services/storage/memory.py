"""
In-memory storage, for tests and throwaway sessions.
"""

from typing import Optional

from dueffe.models.ledger import LedgerSnapshot
from dueffe.services.storage.interface import LedgerStorageInterface, NotFoundError


class InMemoryLedgerStorage(LedgerStorageInterface):
    """Keeps a deep copy of the last saved snapshot."""

    def __init__(self, initial: Optional[LedgerSnapshot] = None):
        self._snapshot = initial.model_copy(deep=True) if initial else None
        self.save_count = 0

    def load(self) -> LedgerSnapshot:
        if self._snapshot is None:
            raise NotFoundError("No snapshot has been saved")
        return self._snapshot.model_copy(deep=True)

    def save(self, snapshot: LedgerSnapshot) -> bool:
        self._snapshot = snapshot.model_copy(deep=True)
        self.save_count += 1
        return True

    def exists(self) -> bool:
        return self._snapshot is not None
