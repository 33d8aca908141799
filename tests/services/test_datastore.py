"""Tests for the DataStore facade."""

from __future__ import annotations

import os
from datetime import timedelta

import pytest

from rivet_cli.models.exceptions import (
    DependencyCycleError,
    TaskNotFoundError,
    TaskValidationError,
)
from rivet_cli.models.task import Task
from rivet_cli.services.datastore import MAX_UNDO_SNAPSHOTS, DataStore
from rivet_cli.utils.filter_parser import Filter


# ---------------------------------------------------------------------------
# End to end
# ---------------------------------------------------------------------------


def test_add_filter_complete_flow(store_dir, now):
    """Add a task, find it by tag, complete it and see it leave pending."""
    store = DataStore.open(store_dir)

    task = Task.new_pending("Write parity harness", now)
    task.tags = ["core", "urgent"]
    task.project = "rivet"
    store.add_task([], task)

    pending = store.load_pending()
    assert len(pending) == 1
    assert pending[0].description == "Write parity harness"
    assert Filter.parse(["+urgent"], now).matches(pending[0], now)

    done = pending[0]
    done.mark_done(now)
    store.save_completed([done])

    completed = store.load_completed()
    assert len(completed) == 1
    assert completed[0].status == "completed"
    assert completed[0].end is not None
    assert store.load_pending() == []


def test_reopened_store_sees_saved_tasks(store_dir, now):
    DataStore.open(store_dir).add_task([], Task.new_pending("persisted", now))
    assert [t.description for t in DataStore.open(store_dir).load_pending()] == ["persisted"]


# ---------------------------------------------------------------------------
# add_task
# ---------------------------------------------------------------------------


class TestAddTask:
    """DataStore.add_task validation and numbering."""

    def test_numbers_assigned_in_sequence(self, store, now):
        first = store.add_task([], Task.new_pending("a", now))
        second = store.add_task([], Task.new_pending("b", now))
        assert (first.number, second.number) == (1, 2)

    def test_explicit_number_kept(self, store, now):
        assert store.add_task([], Task.new_pending("a", now, 42)).number == 42
        assert store.next_number() == 43

    def test_returns_copy(self, store, now):
        added = store.add_task([], Task.new_pending("a", now))
        added.description = "changed"
        assert store.load_pending()[0].description == "a"

    def test_dependencies_recorded(self, store, now):
        blocker = store.add_task([], Task.new_pending("blocker", now))
        blocked = store.add_task([blocker.id], Task.new_pending("blocked", now))
        assert blocked.depends_on == [blocker.id]
        assert store.find(blocked.id).is_blocked

    def test_dependency_on_completed_task_allowed(self, store, now):
        blocker = store.add_task([], Task.new_pending("blocker", now))
        blocker.mark_done(now)
        store.save_completed([blocker])
        task = store.add_task([blocker.id], Task.new_pending("after", now))
        assert task.depends_on == [blocker.id]

    def test_unknown_dependency_leaves_store_untouched(self, store, store_dir, now):
        store.add_task([], Task.new_pending("existing", now))
        pending_file = store_dir / "pending.data"
        before = pending_file.read_bytes()
        mtime = os.stat(pending_file).st_mtime_ns

        with pytest.raises(TaskNotFoundError) as exc_info:
            store.add_task(["no-such-id"], Task.new_pending("orphan", now))

        assert exc_info.value.task_id == "no-such-id"
        assert pending_file.read_bytes() == before
        assert os.stat(pending_file).st_mtime_ns == mtime
        assert [t.description for t in store.load_pending()] == ["existing"]

    def test_self_dependency_rejected(self, store, now):
        task = Task.new_pending("loop", now)
        with pytest.raises(TaskValidationError):
            store.add_task([task.id], task)

    def test_duplicate_id_rejected(self, store, now):
        task = store.add_task([], Task.new_pending("a", now))
        with pytest.raises(TaskValidationError, match="already exists"):
            store.add_task([], task)

    def test_terminal_task_rejected(self, store, now):
        task = Task.new_pending("a", now)
        task.mark_done(now)
        with pytest.raises(TaskValidationError):
            store.add_task([], task)

    def test_empty_description_rejected(self, store, now):
        task = Task.new_pending("a", now)
        task.description = "   "
        with pytest.raises(TaskValidationError):
            store.add_task([], task)
        assert store.load_pending() == []


class TestDependencyCycles:
    """Cycles are rejected before anything is written."""

    def test_cycle_through_existing_edges(self, store, now):
        # Stored data may already point at a task that does not exist yet
        a = Task.new_pending("a", now)
        b = Task.new_pending("b", now)
        b.depends_on = [a.id]
        store.save_pending([b])

        a.depends_on = [b.id]
        with pytest.raises(DependencyCycleError, match="dependency cycle"):
            store.add_task([], a)
        assert [t.id for t in store.load_pending()] == [b.id]

    def test_check_dependencies_detects_cycle(self, store, now):
        a = store.add_task([], Task.new_pending("a", now))
        b = store.add_task([a.id], Task.new_pending("b", now))
        c = store.add_task([b.id], Task.new_pending("c", now))
        with pytest.raises(DependencyCycleError):
            store.check_dependencies(a.id, [c.id])

    def test_check_dependencies_accepts_dag(self, store, now):
        a = store.add_task([], Task.new_pending("a", now))
        b = store.add_task([a.id], Task.new_pending("b", now))
        c = store.add_task([], Task.new_pending("c", now))
        store.check_dependencies(c.id, [a.id, b.id])


# ---------------------------------------------------------------------------
# Partition saves
# ---------------------------------------------------------------------------


class TestSaves:
    """save_pending / save_completed / save_deleted."""

    def test_save_pending_rejects_terminal(self, store, now):
        task = Task.new_pending("a", now)
        task.mark_deleted(now)
        with pytest.raises(TaskValidationError):
            store.save_pending([task])

    def test_save_completed_rejects_pending(self, store, now):
        with pytest.raises(TaskValidationError):
            store.save_completed([Task.new_pending("a", now)])

    def test_save_deleted_moves_task(self, store, now):
        keep = store.add_task([], Task.new_pending("keep", now))
        drop = store.add_task([], Task.new_pending("drop", now))
        drop.mark_deleted(now)
        store.save_deleted([drop])

        assert [t.id for t in store.load_pending()] == [keep.id]
        assert [t.id for t in store.load_deleted()] == [drop.id]

    def test_load_all_order(self, store, now):
        a = store.add_task([], Task.new_pending("a", now))
        b = store.add_task([], Task.new_pending("b", now))
        b.mark_done(now)
        store.save_completed([b])
        assert [t.id for t in store.load_all()] == [a.id, b.id]

    def test_loaded_tasks_are_copies(self, store, now):
        store.add_task([], Task.new_pending("a", now))
        store.load_pending()[0].tags.append("mutated")
        assert store.load_pending()[0].tags == []

    def test_find(self, store, now):
        task = store.add_task([], Task.new_pending("a", now))
        assert store.find(task.id).description == "a"
        with pytest.raises(TaskNotFoundError):
            store.find("missing")


class TestReconcile:
    """Crash between the two writes of a move leaves a duplicate."""

    def test_duplicate_removed(self, store, now):
        task = store.add_task([], Task.new_pending("a", now))
        other = store.add_task([], Task.new_pending("b", now))
        task.mark_done(now)
        # Simulate a crash after the completed write but before pending was rewritten
        store.records.save("completed", [task])
        assert len(store.load_pending()) == 2

        assert store.reconcile() == 1
        assert [t.id for t in store.load_pending()] == [other.id]
        assert [t.id for t in store.load_completed()] == [task.id]

    def test_nothing_to_do(self, store, now):
        store.add_task([], Task.new_pending("a", now))
        assert store.reconcile() == 0


class TestUndo:
    """Undo journal push/pop."""

    def test_pop_restores_previous_state(self, store, now):
        task = store.add_task([], Task.new_pending("a", now))
        store.push_undo_snapshot()
        task.mark_done(now)
        store.save_completed([task])

        assert store.pop_undo_snapshot() is True
        assert [t.id for t in store.load_pending()] == [task.id]
        assert store.load_completed() == []

    def test_pop_empty_journal(self, store):
        assert store.pop_undo_snapshot() is False

    def test_journal_is_bounded(self, store, now):
        store.add_task([], Task.new_pending("a", now))
        for _ in range(MAX_UNDO_SNAPSHOTS + 5):
            store.push_undo_snapshot()
        assert len(store.records.load_snapshots()) == MAX_UNDO_SNAPSHOTS


def test_next_number_skips_to_highest(store, now):
    store.add_task([], Task.new_pending("a", now, 7))
    store.add_task([], Task.new_pending("b", now + timedelta(seconds=1), 3))
    assert store.next_number() == 8


class TestPurge:
    def test_purge_drops_deleted_tasks_only(self, store, now):
        keep = store.add_task([], Task.new_pending("keep", now))
        gone = store.add_task([], Task.new_pending("gone", now))
        gone.mark_deleted(now)
        store.save_deleted([gone])

        assert store.purge_deleted() == 1
        assert store.load_deleted() == []
        assert [t.id for t in store.load_pending()] == [keep.id]

    def test_purge_empty(self, store):
        assert store.purge_deleted() == 0


class TestActiveContext:
    def test_set_and_clear(self, store):
        assert store.get_active_context() is None
        store.set_active_context("work")
        assert store.get_active_context() == "work"
        store.set_active_context(None)
        assert store.get_active_context() is None
