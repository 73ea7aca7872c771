"""
Tests for undo/redo history.

Covers:
- HistoryManager as a standalone state stack
- Capacity eviction and redo-branch truncation
- Live staging: single live snapshot, undo/redo gated while live
- Listener notifications
- Descriptions
"""
import pytest

from canvas_composer.utils.history_manager import HistoryManager


# ══════════════════════════════════════════════════════════════════════════
# Committed stack
# ══════════════════════════════════════════════════════════════════════════

class TestHistoryStack:

    @pytest.fixture
    def hm(self):
        return HistoryManager()

    # ── basic operations ────────────────────────────────────────────

    def test_initial_state_empty(self, hm):
        assert not hm.can_undo()
        assert not hm.can_redo()
        assert hm.current_index == -1
        assert hm.current is None

    def test_single_commit_no_undo(self, hm):
        hm.commit({"v": 1}, "first")
        assert not hm.can_undo()
        assert hm.undo() is None

    def test_undo_redo_walk(self, hm):
        hm.commit({"v": 1}, "first")
        hm.commit({"v": 2}, "second")
        assert hm.undo() == {"v": 1}
        assert hm.redo() == {"v": 2}
        assert hm.redo() is None

    def test_commit_truncates_redo_branch(self, hm):
        for v in range(3):
            hm.commit({"v": v}, f"state {v}")
        hm.undo()
        hm.undo()
        hm.commit({"v": 99}, "branch")
        assert not hm.can_redo()
        assert [entry['data']['v'] for entry in hm.history] == [0, 99]

    # ── capacity ────────────────────────────────────────────────────

    def test_default_capacity_is_twenty(self, hm):
        for v in range(25):
            hm.commit({"v": v}, f"state {v}")
        assert len(hm.history) == 20
        assert hm.current_index == 19
        assert hm.history[0]['data'] == {"v": 5}
        assert hm.current == {"v": 24}

    def test_undo_stops_at_oldest_kept(self, hm):
        for v in range(25):
            hm.commit({"v": v})
        undone = 0
        while hm.undo() is not None:
            undone += 1
        assert undone == 19
        assert hm.current == {"v": 5}

    def test_custom_capacity(self):
        hm = HistoryManager(max_history=3)
        for v in range(5):
            hm.commit(v)
        assert [entry['data'] for entry in hm.history] == [2, 3, 4]

    def test_clear(self, hm):
        hm.commit(1)
        hm.begin_live(2)
        hm.clear()
        assert hm.history == []
        assert not hm.is_live


# ══════════════════════════════════════════════════════════════════════════
# Live staging
# ══════════════════════════════════════════════════════════════════════════

class TestLiveStaging:

    @pytest.fixture
    def hm(self):
        hm = HistoryManager()
        hm.commit("a", "first")
        hm.commit("b", "second")
        return hm

    def test_live_snapshot_is_invisible_to_history(self, hm):
        hm.begin_live("b*")
        hm.update_live("b**")
        assert hm.live == "b**"
        assert hm.current == "b"
        assert len(hm.history) == 2

    def test_undo_redo_disabled_while_live(self, hm):
        hm.undo()
        hm.begin_live("x")
        assert not hm.can_undo()
        assert not hm.can_redo()
        assert hm.undo() is None
        assert hm.redo() is None
        assert hm.current == "a"

    def test_only_one_live_snapshot(self, hm):
        hm.begin_live("x")
        with pytest.raises(RuntimeError):
            hm.begin_live("y")

    def test_update_without_begin_raises(self, hm):
        with pytest.raises(RuntimeError):
            hm.update_live("x")

    def test_end_live_commit(self, hm):
        hm.begin_live("c")
        assert hm.end_live(True, "gesture") == "c"
        assert hm.current == "c"
        assert hm.get_current_description() == "gesture"
        assert hm.can_undo()

    def test_end_live_discard(self, hm):
        hm.begin_live("c")
        assert hm.end_live(False) is None
        assert hm.current == "b"
        assert len(hm.history) == 2
        assert hm.can_undo()

    def test_end_live_when_idle(self, hm):
        assert hm.end_live(True) is None


# ══════════════════════════════════════════════════════════════════════════
# Listeners & descriptions
# ══════════════════════════════════════════════════════════════════════════

class TestListeners:

    def test_listener_receives_flags(self):
        hm = HistoryManager()
        calls = []
        hm.add_listener(lambda can_undo, can_redo: calls.append((can_undo, can_redo)))
        hm.commit(1)
        hm.commit(2)
        hm.undo()
        assert calls == [(False, False), (True, False), (False, True)]

    def test_listener_notified_on_live_transitions(self):
        hm = HistoryManager()
        hm.commit(1)
        hm.commit(2)
        calls = []
        hm.add_listener(lambda can_undo, can_redo: calls.append(can_undo))
        hm.begin_live(3)
        hm.end_live(False)
        assert calls == [False, True]

    def test_failing_listener_does_not_break_commit(self):
        hm = HistoryManager()

        def broken(can_undo, can_redo):
            raise RuntimeError("boom")

        hm.add_listener(broken)
        hm.commit(1)
        assert hm.current == 1

    def test_remove_listener(self):
        hm = HistoryManager()
        calls = []
        listener = lambda *flags: calls.append(flags)  # noqa: E731
        hm.add_listener(listener)
        hm.remove_listener(listener)
        hm.commit(1)
        assert calls == []

    def test_descriptions(self):
        hm = HistoryManager()
        hm.commit(1, "one")
        hm.commit(2, "two")
        assert hm.get_undo_description() == "one"
        hm.undo()
        assert hm.get_redo_description() == "two"
        assert hm.get_current_description() == "one"
