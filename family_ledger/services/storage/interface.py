"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for ledger storage.
This allows us to:
1. Talk to the spreadsheet web-app endpoint in production
2. Use in-memory storage for testing and offline use
3. Keep the dashboard flow decoupled from the transport

The interface is intentionally tiny: one read that returns the whole
snapshot, one write per edited item.
"""

from abc import ABC, abstractmethod
from typing import Optional

from family_ledger.models.ledger import (
    LedgerSnapshot,
    LedgerWriteRequest,
    WriteResult,
)


class LedgerStorageInterface(ABC):
    """
    Abstract interface for ledger storage operations.
    """

    @abstractmethod
    async def fetch_snapshot(self) -> LedgerSnapshot:
        """
        Read the full ledger.

        Returns:
            Assets, plans and monthly history

        Raises:
            ConnectionError: If the backend cannot be reached
            SnapshotRejectedError: If the backend answers without success
            StorageError: If the answer cannot be understood
        """
        pass

    @abstractmethod
    async def send_update(self, request: LedgerWriteRequest) -> WriteResult:
        """
        Send one asset or plan update.

        Never raises for transport problems; the outcome is reported in
        the returned WriteResult. Writes are not retried.
        """
        pass

    async def close(self) -> None:
        """Release any held connections."""
        return None


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass


class SnapshotRejectedError(StorageError):
    """The backend answered, but not with a successful snapshot."""

    def __init__(self, status: Optional[str], message: Optional[str] = None):
        self.status = status
        super().__init__(
            f"Endpoint returned status {status!r}" + (f": {message}" if message else "")
        )
