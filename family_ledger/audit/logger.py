"""
Audit Logger

DESIGN DECISION: Every read, edit and write is logged.
Failed writes are never shown in the UI, so this log is the only place
a diverged ledger can be diagnosed from.

The audit logger:
- Is async so callers await it the same way they await storage
- Never raises (a logging problem must not block the dashboard)
- Supports correlation IDs to tie an edit to its write
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from family_ledger.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from family_ledger.models.ledger import WriteResult


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(ensure_ascii=False)
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Events go to the structured local log. Recent events are also kept in
    memory so the settings page (and tests) can show what happened.
    """

    def __init__(self, keep_last: int = 200):
        self._logger = structlog.get_logger("family_ledger.audit")
        self._keep_last = keep_last
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> list[AuditEvent]:
        """Recent events, oldest first."""
        return list(self._events)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns False if the event could not be written to the local log.
        """
        self._events.append(event)
        if len(self._events) > self._keep_last:
            del self._events[:-self._keep_last]

        log_dict = event.to_log_dict()
        try:
            if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
                self._logger.error("audit_event", **log_dict)
            elif event.severity is AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception:
            return False
        return True

    async def log_snapshot_loaded(
        self,
        asset_count: int,
        plan_count: int,
        month_count: int,
    ) -> None:
        """Log a successful read."""
        await self.log(AuditEventBuilder.snapshot_loaded(
            asset_count=asset_count,
            plan_count=plan_count,
            month_count=month_count,
        ))

    async def log_snapshot_failed(self, error_message: str) -> None:
        """Log a failed read."""
        await self.log(AuditEventBuilder.snapshot_load_failed(error_message))

    async def log_edit_opened(
        self,
        kind: str,
        item_id: Optional[str],
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.edit_opened(
            kind=kind,
            item_id=item_id,
            correlation_id=correlation_id,
        ))

    async def log_edit_cancelled(
        self,
        kind: str,
        item_id: Optional[str],
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.edit_cancelled(
            kind=kind,
            item_id=item_id,
            correlation_id=correlation_id,
        ))

    async def log_item_saved(
        self,
        kind: str,
        item_id: str,
        name: str,
        amount: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.item_saved(
            kind=kind,
            item_id=item_id,
            name=name,
            amount=amount,
            correlation_id=correlation_id,
        ))

    async def log_item_deleted(
        self,
        kind: str,
        item_id: str,
        name: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.item_deleted(
            kind=kind,
            item_id=item_id,
            name=name,
            correlation_id=correlation_id,
        ))

    async def log_write_result(
        self,
        item_id: str,
        result: WriteResult,
        correlation_id: UUID,
    ) -> None:
        """Log the outcome of a write, success or not."""
        if result.success:
            event = AuditEventBuilder.write_sent(
                action=result.action.value,
                item_id=item_id,
                status_code=result.status_code,
                correlation_id=correlation_id,
            )
        else:
            event = AuditEventBuilder.write_failed(
                action=result.action.value,
                item_id=item_id,
                error_message=result.error or "unknown error",
                correlation_id=correlation_id,
            )
        await self.log(event)

    async def log_settings_changed(self, setting: str, value: str) -> None:
        await self.log(AuditEventBuilder.settings_changed(setting=setting, value=value))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.
    """
    return uuid4()
