"""Tests for Snapshot and HistoryLedger."""
import pytest

from schemastate import HistoryLedger, Snapshot


def _snap(n):
    return Snapshot.create({"counter": {"n": n}}, label=f"set counter.n={n}", triggering_field="counter")


class TestSnapshot:
    """Snapshot construction and export."""

    def test_create_copies_values(self):
        live = {"counter": {"n": 1, "items": [1]}}
        snapshot = Snapshot.create(live, label="x")

        live["counter"]["n"] = 2
        live["counter"]["items"].append(2)

        assert snapshot.values == {"counter": {"n": 1, "items": [1]}}
        assert snapshot.fields == frozenset({"counter"})

    def test_ids_are_unique(self):
        assert _snap(1).id != _snap(1).id

    def test_dict_round_trip(self):
        snapshot = _snap(3)
        restored = Snapshot.from_dict(snapshot.to_dict())
        assert restored == snapshot

    def test_frozen(self):
        with pytest.raises(AttributeError):
            _snap(1).label = "other"


class TestLedger:
    """Bounded undo/redo stacks."""

    def test_push_and_pop_order(self):
        ledger = HistoryLedger(5)
        for n in range(3):
            ledger.push_undo(_snap(n))

        assert ledger.pop_undo().values["counter"]["n"] == 2
        assert ledger.pop_undo().values["counter"]["n"] == 1
        assert len(ledger.undo) == 1

    def test_eviction_drops_oldest(self):
        ledger = HistoryLedger(2)
        for n in range(3):
            ledger.push_undo(_snap(n))

        assert [s.values["counter"]["n"] for s in ledger.undo] == [1, 2]

    def test_redo_eviction(self):
        ledger = HistoryLedger(1)
        ledger.push_redo(_snap(1))
        ledger.push_redo(_snap(2))
        assert [s.values["counter"]["n"] for s in ledger.redo] == [2]

    def test_pop_empty_returns_none(self):
        ledger = HistoryLedger(3)
        assert ledger.pop_undo() is None
        assert ledger.pop_redo() is None
        assert ledger.peek_undo() is None
        assert ledger.peek_redo() is None
        assert not ledger.can_undo
        assert not ledger.can_redo

    def test_peek_does_not_remove(self):
        ledger = HistoryLedger(3)
        snapshot = _snap(1)
        ledger.push_undo(snapshot)
        assert ledger.peek_undo() is snapshot
        assert len(ledger.undo) == 1

    def test_clear(self):
        ledger = HistoryLedger(3)
        ledger.push_undo(_snap(1))
        ledger.push_redo(_snap(2))

        ledger.clear_redo()
        assert ledger.redo == ()
        assert ledger.can_undo

        ledger.clear()
        assert ledger.undo == ()

    def test_stack_views_are_snapshots_of_the_stack(self):
        ledger = HistoryLedger(3)
        view = ledger.undo
        ledger.push_undo(_snap(1))
        assert view == ()
        assert len(ledger.undo) == 1

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            HistoryLedger(0)

    def test_export_and_load(self):
        ledger = HistoryLedger(3)
        ledger.push_undo(_snap(1))
        ledger.push_undo(_snap(2))
        ledger.push_redo(_snap(3))

        other = HistoryLedger(3)
        other.load_dict(ledger.to_dict())

        assert other.undo == ledger.undo
        assert other.redo == ledger.redo

    def test_load_respects_capacity(self):
        ledger = HistoryLedger(3)
        for n in range(3):
            ledger.push_undo(_snap(n))

        smaller = HistoryLedger(2)
        smaller.load_dict(ledger.to_dict())

        assert [s.values["counter"]["n"] for s in smaller.undo] == [1, 2]
