"""Services package."""

from family_ledger.services.storage import (
    AppsScriptLedgerStorage,
    ConnectionError,
    InMemoryLedgerStorage,
    LedgerStorageInterface,
    SnapshotRejectedError,
    StorageError,
)

__all__ = [
    "AppsScriptLedgerStorage",
    "ConnectionError",
    "InMemoryLedgerStorage",
    "LedgerStorageInterface",
    "SnapshotRejectedError",
    "StorageError",
]
