"""
Storage Services Package

Provides the abstract persistence interface and its implementations.
The app uses the JSON file backend; tests use the in-memory one.
"""

from dueffe.services.storage.interface import (
    CorruptDataError,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)
from dueffe.services.storage.json_file import JsonFileLedgerStorage
from dueffe.services.storage.memory import InMemoryLedgerStorage

__all__ = [
    # Interface
    "LedgerStorageInterface",
    # Exceptions
    "CorruptDataError",
    "NotFoundError",
    "StorageError",
    # Implementations
    "InMemoryLedgerStorage",
    "JsonFileLedgerStorage",
]
