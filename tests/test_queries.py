"""
Tests for the derived views.
"""

from ortak_kasa.engine import ledger
from ortak_kasa.models.ledger import Document, Group
from ortak_kasa.queries import (
    find_group,
    format_amount,
    group_summaries,
    history_in_commit_order,
    history_newest_first,
    orphaned_delta,
    records_for_group,
    summarize,
)


def populated_document():
    doc = Document(groups=[
        Group(id="g0", name="150", value=150),
        Group(id="g1", name="300", value=300),
        Group(id="g2", name="Kira", value=1000),
    ])
    doc = ledger.commit_direct_input(doc, "g0", 70)
    doc = ledger.commit_direct_input(doc, "g1", 320, "fuzuli")
    doc = ledger.commit_direct_input(doc, "g2", 900, "zorunlu")
    doc = ledger.queue_pending_entry(doc, "g0", 100)
    doc = ledger.queue_pending_entry(doc, "g0", 140)
    return doc


class TestHistoryOrder:
    """Tests for ordering helpers."""

    def test_newest_first_and_commit_order(self):
        """Test both history orderings."""
        doc = populated_document()
        assert [r.group_id for r in history_newest_first(doc)] == ["g2", "g1", "g0"]
        assert [r.group_id for r in history_in_commit_order(doc)] == ["g0", "g1", "g2"]

    def test_records_for_group(self):
        """Test records are filtered by group id."""
        doc = populated_document()
        assert [r.input for r in records_for_group(doc, "g1")] == [320.0]
        assert records_for_group(doc, "missing") == []


class TestSummaries:
    """Tests for per-group and overall summaries."""

    def test_group_summaries(self):
        """Test per-group counts, sums and pending projections."""
        summaries = {s.group_id: s for s in group_summaries(populated_document())}
        first = summaries["g0"]
        assert first.record_count == 1
        assert first.delta_sum == 80.0
        assert first.pending_count == 2
        assert first.projected_delta == 50.0 + 10.0
        assert summaries["g1"].delta_sum == -20.0
        assert summaries["g2"].pending_count == 0
        assert summaries["g2"].projected_delta == 0.0

    def test_summary_totals(self):
        """Test the overall summary figures."""
        summary = summarize(populated_document())
        assert summary.total == 160.0
        assert summary.record_count == 3
        assert summary.tag_distribution == {"gerekli": 1, "fuzuli": 1, "zorunlu": 1}
        assert summary.orphaned_delta == 0.0

    def test_projection_is_not_in_total(self):
        """Test pending projections never reach the total."""
        doc = populated_document()
        assert summarize(doc).total == ledger.compute_total(doc)

    def test_orphaned_delta_after_delete(self):
        """Test records of deleted groups are reported as orphaned."""
        doc = ledger.delete_group(populated_document(), "g2")
        summary = summarize(doc)
        assert orphaned_delta(doc) == 100.0
        assert summary.orphaned_delta == 100.0
        assert summary.total == 160.0
        assert [s.group_id for s in summary.groups] == ["g0", "g1"]


class TestFormatAmount:
    """Tests for display formatting."""

    def test_plain(self):
        """Test amounts are rounded without trailing zeros."""
        assert format_amount(80) == "80"
        assert format_amount(12.5) == "12.5"
        assert format_amount(1.239) == "1.24"
        assert format_amount(None) == "0"

    def test_signed(self):
        """Test positive amounts get an explicit plus sign."""
        assert format_amount(80, signed=True) == "+80"
        assert format_amount(-20, signed=True) == "-20"
        assert format_amount(0, signed=True) == "0"


class TestSoftReferences:
    """Tests for lookups of possibly deleted groups."""

    def test_deleted_group_lookup_is_none(self):
        """Test a deleted group resolves to None while its records remain."""
        doc = ledger.delete_group(populated_document(), "g1")
        assert find_group(doc, "g1") is None
        assert find_group(doc, "g0").value == 150.0
        assert records_for_group(doc, "g1")[0].group_name_at_the_time == "300"
