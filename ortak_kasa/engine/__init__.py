"""Ledger engine package."""

from ortak_kasa.engine.ledger import (
    add_group,
    apply_pending,
    clear_pending,
    commit_direct_input,
    compute_tag_distribution,
    compute_total,
    default_document,
    delete_group,
    find_group,
    mark_auto_backup,
    queue_pending_entry,
    remove_pending_entry,
    reset_ledger,
    set_auto_backup,
    set_dark_mode,
    update_group,
    update_history_record,
)

__all__ = [
    "add_group",
    "apply_pending",
    "clear_pending",
    "commit_direct_input",
    "compute_tag_distribution",
    "compute_total",
    "default_document",
    "delete_group",
    "find_group",
    "mark_auto_backup",
    "queue_pending_entry",
    "remove_pending_entry",
    "reset_ledger",
    "set_auto_backup",
    "set_dark_mode",
    "update_group",
    "update_history_record",
]
