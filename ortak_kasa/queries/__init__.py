"""Derived views package."""

from ortak_kasa.queries.executor import (
    GroupSummary,
    LedgerSummary,
    compute_tag_distribution,
    compute_total,
    find_group,
    format_amount,
    group_summaries,
    history_in_commit_order,
    history_newest_first,
    orphaned_delta,
    records_for_group,
    summarize,
)

__all__ = [
    "GroupSummary",
    "LedgerSummary",
    "compute_tag_distribution",
    "compute_total",
    "find_group",
    "format_amount",
    "group_summaries",
    "history_in_commit_order",
    "history_newest_first",
    "orphaned_delta",
    "records_for_group",
    "summarize",
]
