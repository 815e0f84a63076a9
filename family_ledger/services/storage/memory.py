"""
In-Memory Storage Implementation

Used by tests and when no endpoint is configured. Writes are recorded
but not applied; like the real endpoint, the stored snapshot only changes
when someone edits the sheet (here: replaces `snapshot`).
"""

from typing import Optional

from family_ledger.models.ledger import (
    LedgerSnapshot,
    LedgerWriteRequest,
    WriteResult,
)
from family_ledger.services.storage.interface import (
    LedgerStorageInterface,
    StorageError,
)


class InMemoryLedgerStorage(LedgerStorageInterface):
    """Ledger storage holding one snapshot in memory."""

    def __init__(
        self,
        snapshot: Optional[LedgerSnapshot] = None,
        fail_reads: bool = False,
        fail_writes: bool = False,
    ):
        self.snapshot = snapshot or LedgerSnapshot.empty()
        self.fail_reads = fail_reads
        self.fail_writes = fail_writes
        self.sent: list[LedgerWriteRequest] = []

    async def fetch_snapshot(self) -> LedgerSnapshot:
        if self.fail_reads:
            raise StorageError("In-memory storage configured to fail reads")
        return self.snapshot.model_copy(deep=True)

    async def send_update(self, request: LedgerWriteRequest) -> WriteResult:
        if self.fail_writes:
            return WriteResult(
                success=False,
                action=request.action,
                error="In-memory storage configured to fail writes",
            )
        self.sent.append(request)
        return WriteResult(success=True, action=request.action)
