"""
Audit Models for Family Ledger

Every read, edit and write is logged as an audit event.
This provides:
1. A trace of what the dashboard showed and why
2. The only record of writes that failed (the UI never surfaces them)
3. Debugging information when local and remote data diverge

DESIGN DECISION: Audit events are append-only. We never delete or modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Reads
    SNAPSHOT_LOADED = "snapshot_loaded"
    SNAPSHOT_LOAD_FAILED = "snapshot_load_failed"

    # Edit session
    EDIT_OPENED = "edit_opened"
    EDIT_CANCELLED = "edit_cancelled"
    ITEM_SAVED = "item_saved"
    ITEM_DELETED = "item_deleted"

    # Writes
    WRITE_SENT = "write_sent"
    WRITE_FAILED = "write_failed"

    # Display
    SETTINGS_CHANGED = "settings_changed"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'asset', 'plan', 'snapshot')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one edit and its write)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.snapshot_loaded(asset_count, plan_count, month_count)
        event = AuditEventBuilder.write_failed(action, item_id, error, correlation_id)
    """

    @staticmethod
    def snapshot_loaded(
        asset_count: int,
        plan_count: int,
        month_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_LOADED,
            entity_type="snapshot",
            description=(
                f"Snapshot loaded: {asset_count} assets, "
                f"{plan_count} plans, {month_count} months"
            ),
            details={
                "asset_count": asset_count,
                "plan_count": plan_count,
                "month_count": month_count,
            },
        )

    @staticmethod
    def snapshot_load_failed(error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_LOAD_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="snapshot",
            description="Snapshot could not be loaded; showing empty ledger",
            error_message=error_message,
        )

    @staticmethod
    def edit_opened(
        kind: str,
        item_id: Optional[str],
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EDIT_OPENED,
            entity_type=kind,
            entity_id=item_id,
            correlation_id=correlation_id,
            description=f"Editing {kind}" if item_id else f"Adding new {kind}",
            is_user_action=True,
        )

    @staticmethod
    def edit_cancelled(
        kind: str,
        item_id: Optional[str],
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EDIT_CANCELLED,
            entity_type=kind,
            entity_id=item_id,
            correlation_id=correlation_id,
            description=f"Edit of {kind} cancelled",
            is_user_action=True,
        )

    @staticmethod
    def item_saved(
        kind: str,
        item_id: str,
        name: str,
        amount: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ITEM_SAVED,
            entity_type=kind,
            entity_id=item_id,
            correlation_id=correlation_id,
            description=f"{kind.capitalize()} saved locally: {name} = {amount}",
            details={
                "name": name,
                "amount": amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def item_deleted(
        kind: str,
        item_id: str,
        name: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ITEM_DELETED,
            entity_type=kind,
            entity_id=item_id,
            correlation_id=correlation_id,
            description=f"{kind.capitalize()} removed locally: {name}",
            details={
                "name": name,
            },
            is_user_action=True,
        )

    @staticmethod
    def write_sent(
        action: str,
        item_id: str,
        status_code: Optional[int],
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.WRITE_SENT,
            entity_type="write",
            entity_id=item_id,
            correlation_id=correlation_id,
            description=f"Write sent: {action}",
            details={
                "action": action,
                "status_code": status_code,
            },
        )

    @staticmethod
    def write_failed(
        action: str,
        item_id: str,
        error_message: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.WRITE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="write",
            entity_id=item_id,
            correlation_id=correlation_id,
            description=f"Write failed: {action}; local and remote data may differ",
            error_message=error_message,
            details={
                "action": action,
            },
        )

    @staticmethod
    def settings_changed(
        setting: str,
        value: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTINGS_CHANGED,
            entity_type="settings",
            description=f"Display setting changed: {setting} = {value}",
            details={
                setting: value,
            },
            is_user_action=True,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
