"""
Document Store

Moves the document between memory and the blob backend:
- load: tolerant of missing or damaged blobs, never raises
- save: best-effort, failures are logged and swallowed
- import/export: strict; a rejected import leaves nothing changed
- auto-backup: a weekly snapshot written once at startup

DESIGN DECISION: The store never mutates a document. Auto-backup returns
a new document with the backup timestamp set, like the engine does.
"""

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ValidationError

from ortak_kasa.audit import AuditLogger
from ortak_kasa.config import get_settings
from ortak_kasa.engine.ledger import default_document, mark_auto_backup
from ortak_kasa.models.audit import AuditEventType
from ortak_kasa.models.ledger import (
    Document,
    ExportedFile,
    Group,
    HistoryRecord,
    utc_now,
)
from ortak_kasa.services.storage import BlobStorageInterface, StorageError
from ortak_kasa.validation import LedgerError, parse_document


# Stored lists salvaged item by item on load
LIST_ITEM_MODELS: dict[str, type[BaseModel]] = {
    "groups": Group,
    "history": HistoryRecord,
}


class DocumentStore:
    """
    Persists the single document under one well-known key.

    Any BlobStorageInterface works as the backend.
    """

    def __init__(
        self,
        storage: BlobStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        storage_key: Optional[str] = None,
        backup_dir: Optional[Path] = None,
        backup_interval_days: Optional[int] = None,
        filename_prefix: Optional[str] = None,
    ):
        settings = get_settings().storage
        self._storage = storage
        self._audit_logger = audit_logger or AuditLogger()
        self._key = storage_key or settings.storage_key
        self._backup_dir = Path(backup_dir) if backup_dir else settings.resolved_backup_dir
        self._backup_interval = timedelta(
            days=backup_interval_days or settings.auto_backup_interval_days
        )
        self._filename_prefix = filename_prefix or settings.export_filename_prefix

    @property
    def storage_key(self) -> str:
        return self._key

    # -------------------------------------------------------------------------
    # Load / save
    # -------------------------------------------------------------------------

    @property
    def unreadable_key(self) -> str:
        """Key a damaged blob is copied to before it can be overwritten."""
        return f"{self._key}_unreadable"

    def _preserve(self, raw: str) -> Optional[str]:
        try:
            self._storage.write(self.unreadable_key, raw)
        except StorageError as e:
            self._audit_logger.log_persistence_failed(
                AuditEventType.SAVE_FAILED,
                error_message=str(e),
                details={"storage_key": self.unreadable_key},
            )
            return None
        return self.unreadable_key

    def _fallback(self, reason: str, raw: Optional[str] = None) -> Document:
        details = {"storage_key": self._key}
        if raw is not None:
            details["preserved_as"] = self._preserve(raw)
        self._audit_logger.log_persistence_failed(
            AuditEventType.LOAD_FAILED,
            error_message=reason,
            details=details,
        )
        doc = default_document()
        self._audit_logger.log_document_loaded(len(doc.groups), 0, from_defaults=True)
        return doc

    @staticmethod
    def _valid_items(model: type[BaseModel], items: list) -> tuple[list, int]:
        kept = []
        for item in items:
            try:
                model.model_validate(item)
            except ValidationError:
                continue
            kept.append(item)
        return kept, len(items) - len(kept)

    def _salvage(self, parsed: dict[str, Any]) -> tuple[Document, list[str]]:
        """
        Shallow-merge the stored keys over the defaults one key at a time.

        A key whose value does not validate keeps its default. In the
        `groups` and `history` lists only the invalid items are dropped.
        Returns the document and a description of everything discarded.
        """
        merged = default_document().model_dump(by_alias=True, mode="json")
        discarded = []
        for key, value in parsed.items():
            if key in LIST_ITEM_MODELS and isinstance(value, list):
                value, dropped = self._valid_items(LIST_ITEM_MODELS[key], value)
                if dropped:
                    discarded.append(f"{key}: {dropped} invalid item(s)")
            candidate = {**merged, key: value}
            try:
                Document.model_validate(candidate)
            except ValidationError:
                discarded.append(f"{key}: replaced by default")
                continue
            merged = candidate
        return Document.model_validate(merged), discarded

    def load(self) -> Document:
        """
        Read the persisted document.

        Missing top-level keys fall back to the defaults (a shallow merge,
        so a stored `groups` list replaces the seed groups entirely). Keys
        and list items that do not validate are discarded individually;
        whenever anything is discarded the stored blob is first copied to
        `unreadable_key`. A blob that cannot be read or decoded yields the
        default document.
        """
        try:
            raw = self._storage.read(self._key)
        except StorageError as e:
            return self._fallback(str(e))

        if raw is None:
            doc = default_document()
            self._audit_logger.log_document_loaded(len(doc.groups), 0, from_defaults=True)
            return doc

        try:
            parsed = json.loads(raw)
        except ValueError as e:
            return self._fallback(f"Stored blob is not valid JSON: {e}", raw)

        if not isinstance(parsed, dict):
            return self._fallback("Stored blob is not a JSON object", raw)

        doc, discarded = self._salvage(parsed)
        if discarded:
            self._audit_logger.log_persistence_failed(
                AuditEventType.LOAD_FAILED,
                error_message="; ".join(discarded),
                details={
                    "storage_key": self._key,
                    "preserved_as": self._preserve(raw),
                },
            )

        self._audit_logger.log_document_loaded(
            len(doc.groups), len(doc.history), from_defaults=False
        )
        return doc

    def save(self, doc: Document) -> bool:
        """
        Overwrite the persisted blob with the document.

        Returns False if the write failed. The failure is logged and the
        next mutation simply tries again.
        """
        try:
            self._storage.write(self._key, doc.to_json())
        except StorageError as e:
            self._audit_logger.log_persistence_failed(
                AuditEventType.SAVE_FAILED,
                error_message=str(e),
                details={"storage_key": self._key},
            )
            return False
        return True

    # -------------------------------------------------------------------------
    # Import / export
    # -------------------------------------------------------------------------

    def import_document(self, raw_text: str) -> Document:
        """
        Parse pasted text into a replacement document.

        Raises:
            ImportFormatError: Text is not a JSON object of the right shape
            MissingFieldsError: `groups` or `history` is not a list
        """
        try:
            doc = parse_document(raw_text)
        except LedgerError as e:
            self._audit_logger.log_import_rejected(reason=str(e))
            raise

        self._audit_logger.log_document_imported(len(doc.groups), len(doc.history))
        return doc

    def export_filename(self, now: Optional[datetime] = None) -> str:
        now = now or utc_now()
        return f"{self._filename_prefix}_{now.date().isoformat()}.json"

    def build_export(self, doc: Document, now: Optional[datetime] = None) -> ExportedFile:
        """Full snapshot, pretty-printed, named after the current date. Not audited."""
        return ExportedFile(
            filename=self.export_filename(now),
            content=doc.to_json(indent=2).encode("utf-8"),
        )

    def record_export(self, exported: ExportedFile) -> None:
        """Audit a snapshot the user actually downloaded."""
        self._audit_logger.log_document_exported(exported.filename, len(exported.content))

    def export_document(self, doc: Document, now: Optional[datetime] = None) -> ExportedFile:
        """Build a snapshot and record it as exported."""
        exported = self.build_export(doc, now)
        self.record_export(exported)
        return exported

    # -------------------------------------------------------------------------
    # Automatic backup
    # -------------------------------------------------------------------------

    def is_backup_due(self, doc: Document, now: Optional[datetime] = None) -> bool:
        if not doc.auto_backup_enabled:
            return False
        if doc.last_auto_backup_at is None:
            return True
        now = now or utc_now()
        last = doc.last_auto_backup_at
        if last.tzinfo is None:
            last = last.replace(tzinfo=timezone.utc)
        return now - last >= self._backup_interval

    def run_auto_backup(self, doc: Document, now: Optional[datetime] = None) -> Document:
        """
        Write a backup file if one is due.

        Returns the document with `last_auto_backup_at` set when a backup
        was written, otherwise the document unchanged.
        """
        now = now or utc_now()
        if not self.is_backup_due(doc, now):
            return doc

        exported = self.build_export(doc, now)
        path = self._backup_dir / exported.filename
        try:
            self._backup_dir.mkdir(parents=True, exist_ok=True)
            path.write_bytes(exported.content)
        except OSError as e:
            self._audit_logger.log_persistence_failed(
                AuditEventType.AUTO_BACKUP_FAILED,
                error_message=str(e),
                details={"path": str(path)},
            )
            return doc

        self._audit_logger.log_auto_backup_written(str(path))
        return mark_auto_backup(doc, now)
