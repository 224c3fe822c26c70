"""
Ledger Engine

DESIGN DECISION: Every mutation is a pure function Document -> Document.
Models are frozen, so the input document is never touched; callers
(the controller) decide what to keep and what to persist.

THE RULE:
Applying a number to a group credits the pool with
    delta = group value - input
and stores a HistoryRecord that snapshots the group's name and value.
The pool total is always the sum of the recorded deltas.

Operations referencing an id that no longer exists return the document
unchanged. Unparsable numbers raise InvalidNumberError and unknown need
tags raise InvalidTagError before anything is built.
"""

from collections.abc import Mapping
from datetime import datetime
from typing import Any, Optional, Union

from ortak_kasa.config import get_settings
from ortak_kasa.models.ledger import (
    Document,
    Group,
    GroupPatch,
    HistoryPatch,
    HistoryRecord,
    NeedTag,
    PendingEntry,
    format_number,
    utc_now,
)
from ortak_kasa.validation import parse_need, parse_number


# =============================================================================
# LOOKUPS
# =============================================================================

def find_group(doc: Document, group_id: str) -> Optional[Group]:
    """
    Resolve a group id.

    History keeps group ids after the group is deleted, so a miss is an
    expected outcome and returns None.
    """
    for group in doc.groups:
        if group.id == group_id:
            return group
    return None


def _replace_group(doc: Document, updated: Group) -> Document:
    groups = [updated if g.id == updated.id else g for g in doc.groups]
    return doc.model_copy(update={"groups": groups})


# =============================================================================
# DOCUMENT LIFECYCLE
# =============================================================================

def default_document(now: Optional[datetime] = None) -> Document:
    """The document created on first load, with the seed groups."""
    now = now or utc_now()
    app = get_settings().app
    groups = [
        Group(
            name=format_number(value),
            value=value,
            color=app.default_group_color,
            created_at=now,
            updated_at=now,
        )
        for value in app.seed_values_list
    ]
    return Document(groups=groups)


# =============================================================================
# GROUPS
# =============================================================================

def add_group(
    doc: Document,
    name: Optional[str] = None,
    color: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Document:
    """Append a new group with zero value and no pending entries."""
    now = now or utc_now()
    app = get_settings().app
    group = Group(
        name=name if name is not None else app.new_group_name,
        value=0.0,
        color=color or app.default_group_color,
        created_at=now,
        updated_at=now,
    )
    return doc.model_copy(update={"groups": [*doc.groups, group]})


def update_group(
    doc: Document,
    group_id: str,
    patch: Union[GroupPatch, Mapping[str, Any]],
    now: Optional[datetime] = None,
) -> Document:
    """
    Merge an edit into a group and bump `updated_at`.

    A new value must parse as a number. A name that is blank after
    trimming is replaced by the group's value, as the value is what
    identifies a group on its card.
    """
    if not isinstance(patch, GroupPatch):
        patch = GroupPatch.model_validate(patch)

    changes = patch.model_dump(exclude_unset=True, exclude_none=True)

    # Parse before the lookup so a bad number is reported even for a stale id
    if "value" in changes:
        changes["value"] = parse_number(changes["value"], "value")

    group = find_group(doc, group_id)
    if group is None:
        return doc

    if "name" in changes:
        name = changes["name"].strip()
        changes["name"] = name or format_number(changes.get("value", group.value))

    changes["updated_at"] = now or utc_now()
    return _replace_group(doc, group.model_copy(update=changes))


def delete_group(doc: Document, group_id: str) -> Document:
    """
    Remove a group.

    History records pointing at it are kept as they are; deletion never
    changes the pool total.
    """
    groups = [g for g in doc.groups if g.id != group_id]
    if len(groups) == len(doc.groups):
        return doc
    return doc.model_copy(update={"groups": groups})


# =============================================================================
# PENDING ENTRIES
# =============================================================================

def queue_pending_entry(
    doc: Document,
    group_id: str,
    amount: Union[str, int, float],
    need: Union[NeedTag, str] = NeedTag.GEREKLI,
) -> Document:
    """Queue an input on a group without touching the ledger."""
    parsed = parse_number(amount, "amount")
    need = parse_need(need)

    group = find_group(doc, group_id)
    if group is None:
        return doc

    entry = PendingEntry(amount=parsed, need=need)
    return _replace_group(
        doc, group.model_copy(update={"pending": [*group.pending, entry]})
    )


def remove_pending_entry(doc: Document, group_id: str, pending_id: str) -> Document:
    group = find_group(doc, group_id)
    if group is None:
        return doc
    pending = [e for e in group.pending if e.id != pending_id]
    if len(pending) == len(group.pending):
        return doc
    return _replace_group(doc, group.model_copy(update={"pending": pending}))


def clear_pending(doc: Document, group_id: str) -> Document:
    group = find_group(doc, group_id)
    if group is None or not group.pending:
        return doc
    return _replace_group(doc, group.model_copy(update={"pending": []}))


# =============================================================================
# COMMITTING TO HISTORY
# =============================================================================

def _build_record(
    group: Group,
    value_snapshot: float,
    amount: float,
    need: NeedTag,
    ts: datetime,
) -> HistoryRecord:
    return HistoryRecord(
        ts=ts,
        group_id=group.id,
        group_name_at_the_time=group.display_name,
        group_value_at_the_time=value_snapshot,
        input=amount,
        delta=value_snapshot - amount,
        need=need,
    )


def _prepend_history(doc: Document, committed: list[HistoryRecord]) -> list[HistoryRecord]:
    # History is stored newest first; `committed` is in commit order
    return [*reversed(committed), *doc.history]


def apply_pending(
    doc: Document,
    group_id: str,
    now: Optional[datetime] = None,
) -> Document:
    """
    Commit every pending entry of a group, then clear its pending list.

    Entries are committed in the order they were queued. All of them use
    the group's value as it is when this call starts; the value is read
    once for the whole batch.
    """
    group = find_group(doc, group_id)
    if group is None or not group.pending:
        return doc

    ts = now or utc_now()
    value_snapshot = group.value
    committed = [
        _build_record(group, value_snapshot, entry.amount, entry.need, ts)
        for entry in group.pending
    ]

    doc = _replace_group(doc, group.model_copy(update={"pending": []}))
    return doc.model_copy(update={"history": _prepend_history(doc, committed)})


def commit_direct_input(
    doc: Document,
    group_id: str,
    input_value: Union[str, int, float],
    need: Union[NeedTag, str] = NeedTag.GEREKLI,
    now: Optional[datetime] = None,
) -> Document:
    """
    Commit a single input immediately.

    Same record as queueing one entry and applying it, but the group's
    existing pending entries stay queued.
    """
    parsed = parse_number(input_value, "input")
    need = parse_need(need)

    group = find_group(doc, group_id)
    if group is None:
        return doc

    record = _build_record(group, group.value, parsed, need, now or utc_now())
    return doc.model_copy(update={"history": _prepend_history(doc, [record])})


def update_history_record(
    doc: Document,
    record_id: str,
    patch: Union[HistoryPatch, Mapping[str, Any]],
) -> Document:
    """
    Amend the note or tag of a committed record.

    Amounts and snapshots are immutable; a patch naming them fails
    validation.
    """
    if not isinstance(patch, HistoryPatch):
        patch = HistoryPatch.model_validate(patch)

    changes = patch.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        return doc

    found = False
    history = []
    for record in doc.history:
        if record.id == record_id:
            record = record.model_copy(update=changes)
            found = True
        history.append(record)

    if not found:
        return doc
    return doc.model_copy(update={"history": history})


def reset_ledger(doc: Document, now: Optional[datetime] = None) -> Document:
    """
    Clear the history and stamp `last_reset_at`.

    Groups, including their pending entries, are left alone.
    """
    return doc.model_copy(update={
        "history": [],
        "last_reset_at": now or utc_now(),
    })


# =============================================================================
# DERIVED VALUES
# =============================================================================

def compute_total(doc: Document) -> float:
    """The pool total: sum of every recorded delta."""
    return sum((record.delta for record in doc.history), 0.0)


def compute_tag_distribution(doc: Document) -> dict[str, int]:
    """
    Count history records per need tag.

    Every tag is present in the result, with zero when unused.
    """
    counts = {tag.value: 0 for tag in NeedTag}
    for record in doc.history:
        counts[NeedTag(record.need).value] += 1
    return counts


# =============================================================================
# SETTINGS
# =============================================================================

def set_dark_mode(doc: Document, enabled: bool) -> Document:
    return doc.model_copy(update={"dark_mode": bool(enabled)})


def set_auto_backup(doc: Document, enabled: bool) -> Document:
    return doc.model_copy(update={"auto_backup_enabled": bool(enabled)})


def mark_auto_backup(doc: Document, now: Optional[datetime] = None) -> Document:
    return doc.model_copy(update={"last_auto_backup_at": now or utc_now()})
