"""
Tests for the ledger engine.

The engine is pure, so every test builds a document, applies one or more
operations and inspects the returned document.
"""

import pytest
from datetime import datetime, timezone

from pydantic import ValidationError

from ortak_kasa.engine import ledger
from ortak_kasa.models.ledger import Document, Group, GroupPatch, HistoryPatch, NeedTag
from ortak_kasa.validation import InvalidNumberError, InvalidTagError, LedgerError


NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_doc(*values):
    groups = [Group(id=f"g{i}", name=str(v), value=v) for i, v in enumerate(values)]
    return Document(groups=groups)


class TestDefaults:
    """Tests for the document created on first load."""

    def test_default_document_has_two_seed_groups(self):
        """Test first load seeds the 150 and 300 groups."""
        doc = ledger.default_document()
        assert [g.value for g in doc.groups] == [150.0, 300.0]
        assert [g.name for g in doc.groups] == ["150", "300"]
        assert doc.history == []
        assert doc.last_reset_at is None


class TestGroups:
    """Tests for adding, editing and deleting groups."""

    def test_add_group(self):
        """Test a new group starts with zero value and no pending entries."""
        doc = ledger.add_group(make_doc(150), now=NOW)
        added = doc.groups[-1]
        assert len(doc.groups) == 2
        assert added.value == 0.0
        assert added.pending == []
        assert added.color == "slate"
        assert added.name == "Yeni Grup"
        assert added.created_at == NOW
        assert added.updated_at == NOW

    def test_add_group_does_not_mutate_input(self):
        """Test the input document is left untouched."""
        doc = make_doc(150)
        ledger.add_group(doc)
        assert len(doc.groups) == 1

    def test_update_group_merges_patch(self):
        """Test a patch only changes the fields it names."""
        doc = ledger.update_group(
            make_doc(150), "g0", GroupPatch(note="telefon", color="rose"), now=NOW
        )
        group = doc.groups[0]
        assert group.note == "telefon"
        assert group.color == "rose"
        assert group.value == 150.0
        assert group.updated_at == NOW

    def test_update_group_accepts_mapping(self):
        """Test a plain mapping works as a patch."""
        doc = ledger.update_group(make_doc(150), "g0", {"ticked": True})
        assert doc.groups[0].ticked is True

    def test_update_group_parses_value(self):
        """Test a typed value is parsed to a number."""
        doc = ledger.update_group(make_doc(150), "g0", GroupPatch(value=" 175.5 "))
        assert doc.groups[0].value == 175.5

    def test_update_group_rejects_bad_value(self):
        """Test an unparsable value raises and changes nothing."""
        doc = make_doc(150)
        with pytest.raises(InvalidNumberError):
            ledger.update_group(doc, "g0", GroupPatch(value="12abc"))
        assert doc.groups[0].value == 150.0

    def test_blank_name_falls_back_to_value(self):
        """Test a blank name becomes the new value."""
        doc = ledger.update_group(make_doc(150), "g0", GroupPatch(name="   ", value="42"))
        assert doc.groups[0].name == "42"

    def test_blank_name_uses_current_value(self):
        """Test a blank name without a new value uses the current one."""
        doc = ledger.update_group(make_doc(150), "g0", GroupPatch(name=""))
        assert doc.groups[0].name == "150"

    def test_name_is_trimmed(self):
        """Test surrounding whitespace is stripped from names."""
        doc = ledger.update_group(make_doc(150), "g0", GroupPatch(name="  Market "))
        assert doc.groups[0].name == "Market"

    def test_update_unknown_group_is_noop(self):
        """Test editing a missing group returns the same document."""
        doc = make_doc(150)
        assert ledger.update_group(doc, "missing", GroupPatch(note="x")) is doc

    def test_ticked_never_affects_total(self):
        """Test ticking a group is only a marker."""
        doc = ledger.commit_direct_input(make_doc(150), "g0", 70)
        ticked = ledger.update_group(doc, "g0", GroupPatch(ticked=True))
        assert ledger.compute_total(ticked) == ledger.compute_total(doc) == 80.0

    def test_delete_group_keeps_history(self):
        """Test deleting a group leaves its records and the total."""
        doc = ledger.commit_direct_input(make_doc(150, 300), "g0", 70)
        after = ledger.delete_group(doc, "g0")
        assert [g.id for g in after.groups] == ["g1"]
        assert after.history == doc.history
        assert ledger.compute_total(after) == 80.0
        assert ledger.find_group(after, after.history[0].group_id) is None

    def test_delete_unknown_group_is_noop(self):
        """Test deleting a missing group returns the same document."""
        doc = make_doc(150)
        assert ledger.delete_group(doc, "missing") is doc


class TestPending:
    """Tests for the pending-entry queue."""

    def test_queue_appends_in_order(self):
        """Test entries queue in insertion order with their tags."""
        doc = ledger.queue_pending_entry(make_doc(100), "g0", "10", "fuzuli")
        doc = ledger.queue_pending_entry(doc, "g0", 5, NeedTag.ZORUNLU)
        pending = doc.groups[0].pending
        assert [e.amount for e in pending] == [10.0, 5.0]
        assert [e.need for e in pending] == [NeedTag.FUZULI, NeedTag.ZORUNLU]

    def test_pending_never_affects_total(self):
        """Test queued entries do not count towards the total."""
        doc = ledger.queue_pending_entry(make_doc(100), "g0", 10)
        assert ledger.compute_total(doc) == 0.0
        assert doc.history == []

    def test_queue_rejects_bad_amount(self):
        """Test unparsable amounts are never queued."""
        doc = make_doc(100)
        for bad in ["", "abc", "nan", "inf", None]:
            with pytest.raises(InvalidNumberError):
                ledger.queue_pending_entry(doc, "g0", bad)
        assert doc.groups[0].pending == []

    def test_queue_rejects_unknown_tag(self):
        """Test an unknown need tag raises a ledger error and queues nothing."""
        doc = make_doc(100)
        with pytest.raises(InvalidTagError) as exc_info:
            ledger.queue_pending_entry(doc, "g0", 10, "acil")
        assert isinstance(exc_info.value, LedgerError)
        assert exc_info.value.field == "need"
        assert doc.groups[0].pending == []

    def test_queue_on_missing_group_is_noop(self):
        """Test queueing on a missing group returns the same document."""
        doc = make_doc(100)
        assert ledger.queue_pending_entry(doc, "missing", 10) is doc

    def test_remove_pending_entry(self):
        """Test one queued entry can be removed."""
        doc = ledger.queue_pending_entry(make_doc(100), "g0", 10)
        doc = ledger.queue_pending_entry(doc, "g0", 20)
        first = doc.groups[0].pending[0]
        doc = ledger.remove_pending_entry(doc, "g0", first.id)
        assert [e.amount for e in doc.groups[0].pending] == [20.0]

    def test_remove_unknown_pending_is_noop(self):
        """Test removing a missing entry returns the same document."""
        doc = ledger.queue_pending_entry(make_doc(100), "g0", 10)
        assert ledger.remove_pending_entry(doc, "g0", "missing") is doc

    def test_clear_pending(self):
        """Test clearing drops the queue without committing it."""
        doc = ledger.queue_pending_entry(make_doc(100), "g0", 10)
        doc = ledger.clear_pending(doc, "g0")
        assert doc.groups[0].pending == []
        assert doc.history == []

    def test_apply_pending_batch(self):
        """Test a batch shares one value snapshot and commits in order."""
        doc = ledger.queue_pending_entry(make_doc(100), "g0", 10, "fuzuli")
        doc = ledger.queue_pending_entry(doc, "g0", 5, "zorunlu")
        doc = ledger.apply_pending(doc, "g0", now=NOW)

        committed = list(reversed(doc.history))
        assert len(committed) == 2
        assert [r.group_value_at_the_time for r in committed] == [100.0, 100.0]
        assert [r.delta for r in committed] == [90.0, 95.0]
        assert [r.need for r in committed] == [NeedTag.FUZULI, NeedTag.ZORUNLU]
        assert doc.groups[0].pending == []
        assert ledger.compute_total(doc) == 185.0

    def test_apply_pending_newest_first(self):
        """Test committed records are prepended to history."""
        doc = ledger.queue_pending_entry(make_doc(100), "g0", 10)
        doc = ledger.queue_pending_entry(doc, "g0", 5)
        doc = ledger.apply_pending(doc, "g0")
        assert [r.input for r in doc.history] == [5.0, 10.0]

    def test_apply_empty_pending_is_noop(self):
        """Test applying nothing returns the same document."""
        doc = make_doc(100)
        assert ledger.apply_pending(doc, "g0") is doc
        assert ledger.apply_pending(doc, "missing") is doc

    def test_apply_pending_only_touches_its_group(self):
        """Test other groups keep their queues."""
        doc = ledger.queue_pending_entry(make_doc(100, 200), "g0", 10)
        doc = ledger.queue_pending_entry(doc, "g1", 20)
        doc = ledger.apply_pending(doc, "g0")
        assert doc.groups[0].pending == []
        assert len(doc.groups[1].pending) == 1


class TestDirectInput:
    """Tests for committing a single input."""

    def test_examples(self):
        """Test 150/70 gives +80 and 300/320 brings the total to 60."""
        doc = make_doc(150, 300)
        doc = ledger.commit_direct_input(doc, "g0", 70)
        assert doc.history[0].delta == 80.0
        assert ledger.compute_total(doc) == 80.0

        doc = ledger.commit_direct_input(doc, "g1", "320")
        assert doc.history[0].delta == -20.0
        assert ledger.compute_total(doc) == 60.0

    def test_record_snapshots_group(self):
        """Test a record snapshots the group's name and value."""
        doc = ledger.commit_direct_input(make_doc(150), "g0", 70, now=NOW)
        record = doc.history[0]
        assert record.group_id == "g0"
        assert record.group_name_at_the_time == "150"
        assert record.group_value_at_the_time == 150.0
        assert record.input == 70.0
        assert record.need == NeedTag.GEREKLI
        assert record.ts == NOW

    def test_later_group_edits_do_not_change_history(self):
        """Test editing a group never rewrites past records."""
        doc = ledger.commit_direct_input(make_doc(150), "g0", 70)
        doc = ledger.update_group(doc, "g0", GroupPatch(name="Yeni", value=999))
        record = doc.history[0]
        assert record.group_value_at_the_time == 150.0
        assert record.group_name_at_the_time == "150"
        assert record.delta == record.group_value_at_the_time - record.input

    def test_direct_input_leaves_pending_queued(self):
        """Test a direct input does not flush the queue."""
        doc = ledger.queue_pending_entry(make_doc(150), "g0", 10)
        doc = ledger.commit_direct_input(doc, "g0", 70)
        assert len(doc.history) == 1
        assert len(doc.groups[0].pending) == 1

    def test_zero_input_is_a_real_entry(self):
        """Test zero is a valid input, not a missing one."""
        doc = ledger.commit_direct_input(make_doc(150), "g0", "0")
        assert doc.history[0].delta == 150.0

    def test_bad_input_rejected(self):
        """Test an unparsable input raises and commits nothing."""
        doc = make_doc(150)
        with pytest.raises(InvalidNumberError):
            ledger.commit_direct_input(doc, "g0", "yüz")
        assert doc.history == []

    def test_unknown_tag_rejected(self):
        """Test an unknown need tag raises a ledger error and commits nothing."""
        doc = make_doc(150)
        with pytest.raises(InvalidTagError):
            ledger.commit_direct_input(doc, "g0", 70, "acil")
        assert doc.history == []


class TestHistoryEdits:
    """Tests for amending committed records."""

    def test_update_note_and_need(self):
        """Test note and tag can be amended."""
        doc = ledger.commit_direct_input(make_doc(150), "g0", 70)
        record_id = doc.history[0].id
        doc = ledger.update_history_record(
            doc, record_id, HistoryPatch(note="market", need="fuzuli")
        )
        assert doc.history[0].note == "market"
        assert doc.history[0].need == NeedTag.FUZULI
        assert doc.history[0].delta == 80.0

    def test_amounts_cannot_be_patched(self):
        """Test amounts and snapshots are not amendable."""
        doc = ledger.commit_direct_input(make_doc(150), "g0", 70)
        with pytest.raises(ValidationError):
            ledger.update_history_record(doc, doc.history[0].id, {"delta": 0})

    def test_unknown_record_is_noop(self):
        """Test amending a missing record returns the same document."""
        doc = ledger.commit_direct_input(make_doc(150), "g0", 70)
        assert ledger.update_history_record(doc, "missing", HistoryPatch(note="x")) is doc


class TestReset:
    """Tests for clearing the ledger."""

    def test_reset_clears_history_only(self):
        """Test reset empties history and keeps groups and queues."""
        doc = ledger.queue_pending_entry(make_doc(150, 300), "g1", 10)
        doc = ledger.commit_direct_input(doc, "g0", 70)
        after = ledger.reset_ledger(doc, now=NOW)
        assert after.history == []
        assert ledger.compute_total(after) == 0.0
        assert after.groups == doc.groups
        assert len(after.groups[1].pending) == 1
        assert after.last_reset_at == NOW


class TestDerived:
    """Tests for totals and tag counts."""

    def test_total_of_empty_history(self):
        """Test the total of no records is zero."""
        assert ledger.compute_total(Document()) == 0.0

    def test_total_equals_sum_of_deltas(self):
        """Test the total is the sum of recorded deltas."""
        doc = make_doc(150, 300, 45)
        for group_id, amount in [("g0", 70), ("g1", 320), ("g2", 45), ("g0", 12.5)]:
            doc = ledger.commit_direct_input(doc, group_id, amount)
        doc = ledger.queue_pending_entry(doc, "g1", 100)
        doc = ledger.apply_pending(doc, "g1")
        assert ledger.compute_total(doc) == sum(r.delta for r in doc.history)
        assert ledger.compute_total(doc) == 80 - 20 + 0 + 137.5 + 200

    def test_tag_distribution(self):
        """Test every tag is counted, including unused ones."""
        doc = make_doc(150)
        for need in ["gerekli", "fuzuli", "gerekli"]:
            doc = ledger.commit_direct_input(doc, "g0", 10, need)
        assert ledger.compute_tag_distribution(doc) == {
            "gerekli": 2,
            "fuzuli": 1,
            "zorunlu": 0,
        }

    def test_tag_distribution_of_empty_history(self):
        """Test all three tags appear with zero counts."""
        assert ledger.compute_tag_distribution(Document()) == {
            "gerekli": 0,
            "fuzuli": 0,
            "zorunlu": 0,
        }


class TestSettingsToggles:
    """Tests for the document-level settings."""

    def test_dark_mode(self):
        """Test the dark mode flag is stored."""
        assert ledger.set_dark_mode(Document(), True).dark_mode is True

    def test_auto_backup(self):
        """Test the backup flag and timestamp are stored."""
        doc = ledger.set_auto_backup(Document(), True)
        assert doc.auto_backup_enabled is True
        assert ledger.mark_auto_backup(doc, now=NOW).last_auto_backup_at == NOW
