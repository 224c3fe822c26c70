"""
Audit Logger

DESIGN DECISION: Every change to the document is logged.
This provides:
1. Traceability of resets and imports, which discard data
2. Visibility into swallowed persistence failures
3. A short activity feed the UI can show

The audit logger:
- Never raises into callers (logging must not break a mutation)
- Keeps the most recent events in memory
"""

from collections import deque
from typing import Optional

import structlog

from ortak_kasa.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


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
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events to the structured local log and keeps the most recent
    ones in memory for display.
    """

    def __init__(self, history_size: int = 100):
        self._logger = structlog.get_logger("ortak_kasa.audit")
        self._recent: deque[AuditEvent] = deque(maxlen=history_size)

    def log(self, event: AuditEvent) -> None:
        """Log an audit event."""
        self._recent.append(event)
        log_dict = event.to_log_dict()

        try:
            if event.severity == AuditSeverity.ERROR:
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception as e:
            # A broken log handler must not abort the mutation being logged
            self._logger.error("audit_log_failed", error=str(e))

    def recent(self, limit: int = 20) -> list[AuditEvent]:
        """Most recent events, newest first."""
        return list(reversed(self._recent))[:limit]

    def log_group_added(self, group_id: str, name: str) -> None:
        self.log(AuditEventBuilder.group_added(group_id=group_id, name=name))

    def log_group_updated(self, group_id: str, fields: list[str]) -> None:
        self.log(AuditEventBuilder.group_updated(group_id=group_id, fields=fields))

    def log_group_deleted(self, group_id: str, orphaned_records: int) -> None:
        self.log(AuditEventBuilder.group_deleted(
            group_id=group_id,
            orphaned_records=orphaned_records,
        ))

    def log_pending_changed(
        self,
        event_type: AuditEventType,
        group_id: str,
        pending_count: int,
    ) -> None:
        self.log(AuditEventBuilder.pending_changed(
            event_type=event_type,
            group_id=group_id,
            pending_count=pending_count,
        ))

    def log_entries_committed(
        self,
        group_id: str,
        record_count: int,
        delta_sum: float,
    ) -> None:
        """Log records committed to history."""
        self.log(AuditEventBuilder.entries_committed(
            group_id=group_id,
            record_count=record_count,
            delta_sum=delta_sum,
        ))

    def log_history_amended(self, record_id: str, fields: list[str]) -> None:
        self.log(AuditEventBuilder.history_amended(record_id=record_id, fields=fields))

    def log_ledger_reset(self, cleared_records: int, total_before: float) -> None:
        self.log(AuditEventBuilder.ledger_reset(
            cleared_records=cleared_records,
            total_before=total_before,
        ))

    def log_input_rejected(self, field: str, raw_value: str, reason: str) -> None:
        self.log(AuditEventBuilder.input_rejected(
            field=field,
            raw_value=raw_value,
            reason=reason,
        ))

    def log_settings_changed(self, setting: str, enabled: bool) -> None:
        self.log(AuditEventBuilder.settings_changed(setting=setting, enabled=enabled))

    def log_document_loaded(
        self,
        group_count: int,
        record_count: int,
        from_defaults: bool,
    ) -> None:
        self.log(AuditEventBuilder.document_loaded(
            group_count=group_count,
            record_count=record_count,
            from_defaults=from_defaults,
        ))

    def log_document_imported(self, group_count: int, record_count: int) -> None:
        self.log(AuditEventBuilder.document_imported(
            group_count=group_count,
            record_count=record_count,
        ))

    def log_import_rejected(self, reason: str) -> None:
        self.log(AuditEventBuilder.import_rejected(reason=reason))

    def log_document_exported(self, filename: str, size_bytes: int) -> None:
        self.log(AuditEventBuilder.document_exported(
            filename=filename,
            size_bytes=size_bytes,
        ))

    def log_auto_backup_written(self, path: str) -> None:
        self.log(AuditEventBuilder.auto_backup_written(path=path))

    def log_persistence_failed(
        self,
        event_type: AuditEventType,
        error_message: str,
        details: Optional[dict] = None,
    ) -> None:
        """Log a swallowed load, save or backup failure."""
        self.log(AuditEventBuilder.persistence_failed(
            event_type=event_type,
            error_message=error_message,
            details=details,
        ))
