"""
Audit Models for Ortak Kasa

Every change to the document is logged as an audit event.
This provides:
1. Traceability of every mutation of the shared pool
2. Debugging information when persistence fails
3. A record of imports and resets, which replace or clear data

DESIGN DECISION: Audit events go to the structured log only. They are
not part of the persisted document and never affect totals.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from ortak_kasa.models.ledger import utc_now


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Groups
    GROUP_ADDED = "group_added"
    GROUP_UPDATED = "group_updated"
    GROUP_DELETED = "group_deleted"

    # Pending entries and history
    PENDING_QUEUED = "pending_queued"
    PENDING_REMOVED = "pending_removed"
    PENDING_CLEARED = "pending_cleared"
    ENTRIES_COMMITTED = "entries_committed"
    HISTORY_AMENDED = "history_amended"
    LEDGER_RESET = "ledger_reset"
    INPUT_REJECTED = "input_rejected"

    # Settings
    SETTINGS_CHANGED = "settings_changed"

    # Persistence
    DOCUMENT_LOADED = "document_loaded"
    LOAD_FAILED = "load_failed"
    SAVE_FAILED = "save_failed"
    DOCUMENT_IMPORTED = "document_imported"
    IMPORT_REJECTED = "import_rejected"
    DOCUMENT_EXPORTED = "document_exported"
    AUTO_BACKUP_WRITTEN = "auto_backup_written"
    AUTO_BACKUP_FAILED = "auto_backup_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant action creates one of these.
    """

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the event occurred (UTC)"
    )

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
        description="Type of entity (e.g., 'group', 'history', 'document')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
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
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.group_added(group_id, name)
        event = AuditEventBuilder.entries_committed(group_id, 2, 185.0)
    """

    @staticmethod
    def group_added(group_id: str, name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GROUP_ADDED,
            entity_type="group",
            entity_id=group_id,
            description=f"Group added: {name}",
            details={"name": name},
            is_user_action=True,
        )

    @staticmethod
    def group_updated(group_id: str, fields: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GROUP_UPDATED,
            entity_type="group",
            entity_id=group_id,
            description=f"Group updated: {', '.join(fields) or 'no fields'}",
            details={"fields": fields},
            is_user_action=True,
        )

    @staticmethod
    def group_deleted(group_id: str, orphaned_records: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GROUP_DELETED,
            entity_type="group",
            entity_id=group_id,
            description=f"Group deleted, {orphaned_records} history records kept",
            details={"orphaned_records": orphaned_records},
            is_user_action=True,
        )

    @staticmethod
    def pending_changed(
        event_type: AuditEventType,
        group_id: str,
        pending_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=event_type,
            entity_type="group",
            entity_id=group_id,
            description=f"Pending list now holds {pending_count} entries",
            details={"pending_count": pending_count},
            is_user_action=True,
        )

    @staticmethod
    def entries_committed(
        group_id: str,
        record_count: int,
        delta_sum: float,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRIES_COMMITTED,
            entity_type="group",
            entity_id=group_id,
            description=f"{record_count} entries committed, delta {delta_sum:+g}",
            details={
                "record_count": record_count,
                "delta_sum": delta_sum,
            },
            is_user_action=True,
        )

    @staticmethod
    def history_amended(record_id: str, fields: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.HISTORY_AMENDED,
            entity_type="history",
            entity_id=record_id,
            description=f"History record amended: {', '.join(fields) or 'no fields'}",
            details={"fields": fields},
            is_user_action=True,
        )

    @staticmethod
    def ledger_reset(cleared_records: int, total_before: float) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_RESET,
            severity=AuditSeverity.WARNING,
            entity_type="document",
            description=f"Ledger reset, {cleared_records} records cleared",
            details={
                "cleared_records": cleared_records,
                "total_before": total_before,
            },
            is_user_action=True,
        )

    @staticmethod
    def input_rejected(field: str, raw_value: str, reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INPUT_REJECTED,
            severity=AuditSeverity.WARNING,
            description=f"Rejected {field}: {reason}",
            details={"field": field, "raw_value": raw_value},
            error_message=reason,
            is_user_action=True,
        )

    @staticmethod
    def settings_changed(setting: str, enabled: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTINGS_CHANGED,
            entity_type="document",
            description=f"{setting} set to {enabled}",
            details={"setting": setting, "enabled": enabled},
            is_user_action=True,
        )

    @staticmethod
    def document_loaded(group_count: int, record_count: int, from_defaults: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DOCUMENT_LOADED,
            entity_type="document",
            description=(
                "Document created from defaults"
                if from_defaults
                else f"Document loaded with {group_count} groups"
            ),
            details={
                "group_count": group_count,
                "record_count": record_count,
                "from_defaults": from_defaults,
            },
        )

    @staticmethod
    def document_imported(group_count: int, record_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DOCUMENT_IMPORTED,
            severity=AuditSeverity.WARNING,
            entity_type="document",
            description=f"Document replaced by import ({group_count} groups, {record_count} records)",
            details={
                "group_count": group_count,
                "record_count": record_count,
            },
            is_user_action=True,
        )

    @staticmethod
    def document_exported(filename: str, size_bytes: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DOCUMENT_EXPORTED,
            entity_type="document",
            description=f"Document exported: {filename}",
            details={"filename": filename, "size_bytes": size_bytes},
            is_user_action=True,
        )

    @staticmethod
    def auto_backup_written(path: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AUTO_BACKUP_WRITTEN,
            entity_type="document",
            description=f"Automatic backup written: {path}",
            details={"path": path},
        )

    @staticmethod
    def persistence_failed(
        event_type: AuditEventType,
        error_message: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=event_type,
            severity=AuditSeverity.ERROR,
            entity_type="document",
            description=f"Persistence failure: {event_type.value}",
            error_message=error_message,
            details=details or {},
        )

    @staticmethod
    def import_rejected(reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMPORT_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="document",
            description="Import rejected",
            error_message=reason,
            is_user_action=True,
        )
