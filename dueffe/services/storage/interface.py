"""
Abstract Storage Interface

DESIGN DECISION: The engine never knows how the ledger is stored. It hands
a full LedgerSnapshot to an adapter after every mutation and gets one back
on startup. This allows us to:
1. Use a JSON file on disk for the app
2. Use in-memory storage for testing
3. Swap in a database later without touching business logic

The interface is intentionally tiny: whole-snapshot load and save.
"""

from abc import ABC, abstractmethod

from dueffe.models.ledger import LedgerSnapshot


class LedgerStorageInterface(ABC):
    """
    Abstract interface for ledger persistence.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    def load(self) -> LedgerSnapshot:
        """
        Load the last saved snapshot.

        Returns:
            The stored snapshot

        Raises:
            NotFoundError: Nothing has been saved yet
            CorruptDataError: Stored data cannot be parsed
            StorageError: Any other read failure
        """
        pass

    @abstractmethod
    def save(self, snapshot: LedgerSnapshot) -> bool:
        """
        Replace the stored snapshot.

        Args:
            snapshot: Full ledger state

        Returns:
            True if saved successfully

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    def exists(self) -> bool:
        """Has a snapshot ever been saved?"""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """No stored snapshot."""
    pass


class CorruptDataError(StorageError):
    """Stored data is not a valid ledger snapshot."""
    pass
