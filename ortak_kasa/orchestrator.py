"""
Main Orchestrator for Ortak Kasa

This module ties the components together. The LedgerController is the
single owner of the document:

1. Presentation calls a hook (add_group, apply_pending, ...)
2. The hook runs the matching pure engine function
3. If the document changed, it is persisted and the change audited
4. The presentation re-renders from `controller.document`

DESIGN DECISION: The controller is the only place where state is
replaced. Engine functions stay pure; the store stays stateless.
Rejected inputs (InvalidInputError) raise to the caller and leave the
document as it was.
"""

from datetime import datetime
from typing import Any, Mapping, Optional, Union

from ortak_kasa.audit import AuditLogger
from ortak_kasa.config import get_settings
from ortak_kasa.engine import ledger
from ortak_kasa.models.audit import AuditEventType
from ortak_kasa.models.ledger import (
    Document,
    ExportedFile,
    GroupPatch,
    HistoryPatch,
    NeedTag,
)
from ortak_kasa.queries import LedgerSummary, summarize
from ortak_kasa.services.storage import BlobStorageInterface, JsonFileBlobStorage
from ortak_kasa.store import DocumentStore
from ortak_kasa.validation import InvalidInputError


class LedgerController:
    """
    Owns the document and exposes every user intent as a method.

    Flow for each mutation:
    intent -> engine mutation -> persist -> audit

    Startup runs the one-shot automatic backup check.
    """

    def __init__(
        self,
        store: DocumentStore,
        audit_logger: Optional[AuditLogger] = None,
        run_startup_checks: bool = True,
    ):
        self._store = store
        self._audit_logger = audit_logger or AuditLogger()
        self._document = store.load()

        if run_startup_checks:
            backed_up = store.run_auto_backup(self._document)
            self._commit(backed_up)

    # -------------------------------------------------------------------------
    # State access
    # -------------------------------------------------------------------------

    @property
    def document(self) -> Document:
        return self._document

    @property
    def audit_logger(self) -> AuditLogger:
        return self._audit_logger

    def total(self) -> float:
        return ledger.compute_total(self._document)

    def tag_distribution(self) -> dict[str, int]:
        return ledger.compute_tag_distribution(self._document)

    def summary(self) -> LedgerSummary:
        return summarize(self._document)

    def _commit(self, new_document: Document) -> bool:
        """Adopt and persist a new document. Returns False if nothing changed."""
        if new_document is self._document:
            return False
        self._document = new_document
        self._store.save(new_document)
        return True

    def _reject(self, error: InvalidInputError) -> None:
        self._audit_logger.log_input_rejected(
            field=error.field,
            raw_value=str(error.raw_value),
            reason=str(error),
        )

    # -------------------------------------------------------------------------
    # Groups
    # -------------------------------------------------------------------------

    def add_group(self, name: Optional[str] = None, color: Optional[str] = None) -> str:
        """Add a group and return its id."""
        self._commit(ledger.add_group(self._document, name=name, color=color))
        group = self._document.groups[-1]
        self._audit_logger.log_group_added(group_id=group.id, name=group.name)
        return group.id

    def update_group(
        self,
        group_id: str,
        patch: Union[GroupPatch, Mapping[str, Any]],
    ) -> None:
        """
        Edit a group.

        Raises:
            InvalidNumberError: The new value does not parse
        """
        if not isinstance(patch, GroupPatch):
            patch = GroupPatch.model_validate(patch)
        try:
            updated = ledger.update_group(self._document, group_id, patch)
        except InvalidInputError as e:
            self._reject(e)
            raise

        if self._commit(updated):
            self._audit_logger.log_group_updated(
                group_id=group_id,
                fields=sorted(patch.model_dump(exclude_unset=True, exclude_none=True)),
            )

    def delete_group(self, group_id: str) -> None:
        orphaned = sum(1 for r in self._document.history if r.group_id == group_id)
        if self._commit(ledger.delete_group(self._document, group_id)):
            self._audit_logger.log_group_deleted(group_id=group_id, orphaned_records=orphaned)

    # -------------------------------------------------------------------------
    # Pending entries
    # -------------------------------------------------------------------------

    def _pending_count(self, group_id: str) -> int:
        group = ledger.find_group(self._document, group_id)
        return len(group.pending) if group else 0

    def queue_pending_entry(
        self,
        group_id: str,
        amount: Union[str, int, float],
        need: Union[NeedTag, str] = NeedTag.GEREKLI,
    ) -> None:
        """
        Queue an input on a group.

        Raises:
            InvalidNumberError: The amount does not parse
            InvalidTagError: The need tag is unknown
        """
        try:
            updated = ledger.queue_pending_entry(self._document, group_id, amount, need)
        except InvalidInputError as e:
            self._reject(e)
            raise

        if self._commit(updated):
            self._audit_logger.log_pending_changed(
                AuditEventType.PENDING_QUEUED, group_id, self._pending_count(group_id)
            )

    def remove_pending_entry(self, group_id: str, pending_id: str) -> None:
        if self._commit(ledger.remove_pending_entry(self._document, group_id, pending_id)):
            self._audit_logger.log_pending_changed(
                AuditEventType.PENDING_REMOVED, group_id, self._pending_count(group_id)
            )

    def clear_pending(self, group_id: str) -> None:
        if self._commit(ledger.clear_pending(self._document, group_id)):
            self._audit_logger.log_pending_changed(
                AuditEventType.PENDING_CLEARED, group_id, 0
            )

    # -------------------------------------------------------------------------
    # Ledger
    # -------------------------------------------------------------------------

    def _log_committed(self, group_id: str, history_before: int) -> None:
        added = self._document.history[: len(self._document.history) - history_before]
        self._audit_logger.log_entries_committed(
            group_id=group_id,
            record_count=len(added),
            delta_sum=sum((r.delta for r in added), 0.0),
        )

    def apply_pending(self, group_id: str, now: Optional[datetime] = None) -> None:
        before = len(self._document.history)
        if self._commit(ledger.apply_pending(self._document, group_id, now=now)):
            self._log_committed(group_id, before)

    def commit_direct_input(
        self,
        group_id: str,
        input_value: Union[str, int, float],
        need: Union[NeedTag, str] = NeedTag.GEREKLI,
        now: Optional[datetime] = None,
    ) -> None:
        """
        Apply one input to a group immediately.

        Raises:
            InvalidNumberError: The input does not parse
            InvalidTagError: The need tag is unknown
        """
        before = len(self._document.history)
        try:
            updated = ledger.commit_direct_input(
                self._document, group_id, input_value, need, now=now
            )
        except InvalidInputError as e:
            self._reject(e)
            raise

        if self._commit(updated):
            self._log_committed(group_id, before)

    def update_history_record(
        self,
        record_id: str,
        patch: Union[HistoryPatch, Mapping[str, Any]],
    ) -> None:
        if not isinstance(patch, HistoryPatch):
            patch = HistoryPatch.model_validate(patch)
        if self._commit(ledger.update_history_record(self._document, record_id, patch)):
            self._audit_logger.log_history_amended(
                record_id=record_id,
                fields=sorted(patch.model_dump(exclude_unset=True, exclude_none=True)),
            )

    def reset_ledger(self, now: Optional[datetime] = None) -> None:
        cleared = len(self._document.history)
        total_before = self.total()
        self._commit(ledger.reset_ledger(self._document, now=now))
        self._audit_logger.log_ledger_reset(cleared_records=cleared, total_before=total_before)

    # -------------------------------------------------------------------------
    # Import / export
    # -------------------------------------------------------------------------

    def import_document(self, raw_text: str) -> None:
        """
        Replace the whole document with imported text.

        Raises:
            ImportFormatError, MissingFieldsError: The text was rejected;
            the current document is kept.
        """
        self._commit(self._store.import_document(raw_text))

    def export_document(self, now: Optional[datetime] = None) -> ExportedFile:
        return self._store.export_document(self._document, now=now)

    def export_payload(self, now: Optional[datetime] = None) -> ExportedFile:
        """Snapshot for a download button; recorded only via record_export."""
        return self._store.build_export(self._document, now=now)

    def record_export(self, exported: ExportedFile) -> None:
        self._store.record_export(exported)

    # -------------------------------------------------------------------------
    # Settings
    # -------------------------------------------------------------------------

    def set_dark_mode(self, enabled: bool) -> None:
        if self._document.dark_mode != bool(enabled):
            self._commit(ledger.set_dark_mode(self._document, enabled))
            self._audit_logger.log_settings_changed("dark_mode", bool(enabled))

    def set_auto_backup(self, enabled: bool) -> None:
        if self._document.auto_backup_enabled != bool(enabled):
            self._commit(ledger.set_auto_backup(self._document, enabled))
            self._audit_logger.log_settings_changed("auto_backup", bool(enabled))


def create_controller(
    storage: Optional[BlobStorageInterface] = None,
    run_startup_checks: bool = True,
) -> LedgerController:
    """
    Factory function to create the application controller.

    Args:
        storage: Blob backend. Defaults to a JSON file in the configured
                 data directory.
        run_startup_checks: Whether to run the automatic backup check.

    Returns:
        A controller with the persisted document loaded
    """
    audit_logger = AuditLogger()
    if storage is None:
        storage = JsonFileBlobStorage(get_settings().storage.data_dir)

    store = DocumentStore(storage, audit_logger=audit_logger)
    return LedgerController(
        store,
        audit_logger=audit_logger,
        run_startup_checks=run_startup_checks,
    )
