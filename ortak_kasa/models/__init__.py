"""
Data Models Package

This package contains all Pydantic models used in Ortak Kasa.
The persisted document and every audit event conform to these schemas.
"""

from ortak_kasa.models.ledger import (
    Document,
    ExportedFile,
    Group,
    GroupPatch,
    HistoryPatch,
    HistoryRecord,
    NeedTag,
    PendingEntry,
    format_number,
    new_id,
    utc_now,
)
from ortak_kasa.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "Document",
    "ExportedFile",
    "Group",
    "GroupPatch",
    "HistoryPatch",
    "HistoryRecord",
    "NeedTag",
    "PendingEntry",
    "format_number",
    "new_id",
    "utc_now",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
