"""
Derived Views

Read-only figures computed from the document for display: the pool
total, the tag distribution, history in either order and a per-group
breakdown.

GUARANTEES:
- Nothing here mutates the document
- Figures come from recorded history only; pending entries are shown
  as a projection, never added to the total
"""

from typing import Optional

from pydantic import BaseModel, Field

from ortak_kasa.engine.ledger import (
    compute_tag_distribution,
    compute_total,
    find_group,
)
from ortak_kasa.models.ledger import Document, HistoryRecord, format_number


class GroupSummary(BaseModel):
    """Figures for one existing group."""

    group_id: str
    name: str
    value: float
    ticked: bool
    record_count: int = Field(ge=0, description="Committed records since the last reset")
    delta_sum: float = Field(description="Sum of committed deltas for this group")
    pending_count: int = Field(ge=0)
    projected_delta: float = Field(
        description="What applying the pending entries now would add to the total"
    )


class LedgerSummary(BaseModel):
    """Everything the header and the group cards display."""

    total: float
    record_count: int = Field(ge=0)
    tag_distribution: dict[str, int]
    groups: list[GroupSummary] = Field(default_factory=list)
    orphaned_delta: float = Field(
        default=0.0,
        description="Delta recorded against groups that were deleted since"
    )


def history_newest_first(doc: Document) -> list[HistoryRecord]:
    return list(doc.history)


def history_in_commit_order(doc: Document) -> list[HistoryRecord]:
    return list(reversed(doc.history))


def records_for_group(doc: Document, group_id: str) -> list[HistoryRecord]:
    """Newest-first records of one group, including after it was deleted."""
    return [r for r in doc.history if r.group_id == group_id]


def group_summaries(doc: Document) -> list[GroupSummary]:
    summaries = []
    for group in doc.groups:
        records = records_for_group(doc, group.id)
        summaries.append(GroupSummary(
            group_id=group.id,
            name=group.display_name,
            value=group.value,
            ticked=group.ticked,
            record_count=len(records),
            delta_sum=sum((r.delta for r in records), 0.0),
            pending_count=len(group.pending),
            projected_delta=sum((group.value - e.amount for e in group.pending), 0.0),
        ))
    return summaries


def orphaned_delta(doc: Document) -> float:
    return sum(
        (r.delta for r in doc.history if find_group(doc, r.group_id) is None),
        0.0,
    )


def summarize(doc: Document) -> LedgerSummary:
    """Build the full summary in one pass over the views above."""
    return LedgerSummary(
        total=compute_total(doc),
        record_count=len(doc.history),
        tag_distribution=compute_tag_distribution(doc),
        groups=group_summaries(doc),
        orphaned_delta=orphaned_delta(doc),
    )


def format_amount(value: Optional[float], signed: bool = False) -> str:
    """
    Format an amount for display, with at most two decimals.

    With `signed`, positive values get an explicit plus sign.
    """
    value = round(float(value or 0.0), 2)
    text = format_number(value)
    if signed and value > 0:
        return f"+{text}"
    return text
