"""
Storage Services Package

Provides the abstract ledger storage interface and its implementations:
the spreadsheet web-app endpoint and an in-memory backend.
"""

from family_ledger.services.storage.interface import (
    ConnectionError,
    LedgerStorageInterface,
    SnapshotRejectedError,
    StorageError,
)
from family_ledger.services.storage.apps_script import AppsScriptLedgerStorage
from family_ledger.services.storage.memory import InMemoryLedgerStorage

__all__ = [
    # Interfaces
    "LedgerStorageInterface",
    # Exceptions
    "ConnectionError",
    "SnapshotRejectedError",
    "StorageError",
    # Implementations
    "AppsScriptLedgerStorage",
    "InMemoryLedgerStorage",
]
