"""Tests for TaskService: references, requests and undo."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from rivet_cli.models.exceptions import (
    ContextNotFoundError,
    FilterParseError,
    InvalidTransitionError,
    TaskNotFoundError,
    TaskValidationError,
)
from rivet_cli.models.requests import TaskCreate, TaskListQuery, TaskUpdate
from rivet_cli.models.task import Task
from rivet_cli.services.datastore import DataStore
from rivet_cli.services.task_service import TaskService


@pytest.fixture()
def service(store) -> TaskService:
    return TaskService(store)


def _add(service, now, description="task", **fields):
    return service.add_task(TaskCreate(description=description, **fields), now)


# ---------------------------------------------------------------------------
# add_task
# ---------------------------------------------------------------------------


class TestAddTask:
    def test_fields_applied(self, service, now):
        task = _add(
            service,
            now,
            "Write report",
            project="work",
            tags=["a", "b", "a"],
            priority="high",
            due="tomorrow",
        )
        assert task.number == 1
        assert task.project == "work"
        assert task.tags == ["a", "b"]
        assert task.priority == "H"
        assert task.due == datetime(2026, 2, 17, tzinfo=UTC)

    def test_future_wait_creates_waiting_task(self, service, now):
        task = _add(service, now, wait="+2d")
        assert task.status == "waiting"

    def test_bad_date_rejected(self, service, now):
        with pytest.raises(TaskValidationError, match="unrecognized date"):
            _add(service, now, due="someday")
        assert service.datastore.load_pending() == []

    def test_empty_description_rejected(self, service, now):
        with pytest.raises(TaskValidationError):
            _add(service, now, "  ")

    def test_dependencies_by_number(self, service, now):
        blocker = _add(service, now, "blocker")
        task = _add(service, now, "blocked", depends_on=["1"])
        assert task.depends_on == [blocker.id]

    def test_unknown_dependency(self, service, now):
        with pytest.raises(TaskNotFoundError):
            _add(service, now, depends_on=["999"])


# ---------------------------------------------------------------------------
# References
# ---------------------------------------------------------------------------


class TestReferences:
    """Task references: number, full id or unique id prefix."""

    def test_by_number(self, service, now):
        _add(service, now, "first")
        second = _add(service, now, "second")
        assert service.get_task("2").id == second.id

    def test_by_full_id(self, service, now):
        task = _add(service, now)
        assert service.get_task(task.id).id == task.id

    def test_by_prefix(self, service, now):
        task = _add(service, now)
        assert service.get_task(task.id[:8]).id == task.id

    def test_ambiguous_prefix(self, service, now):
        for suffix in ("1", "2"):
            task = Task.new_pending(f"task {suffix}", now)
            task = task.model_copy(update={"id": f"abc-{suffix}"})
            service.datastore.add_task([], task)
        with pytest.raises(TaskNotFoundError, match="ambiguous"):
            service.get_task("abc")

    @pytest.mark.parametrize("ref", ["", "   ", "zzzz"])
    def test_unknown_reference(self, service, now, ref):
        _add(service, now)
        with pytest.raises(TaskNotFoundError):
            service.get_task(ref)

    def test_numbers_ignore_finished_tasks(self, service, now):
        task = Task.new_pending("task", now).model_copy(update={"id": "task-a"})
        service.datastore.add_task([], task)
        service.complete_task("1", now)
        with pytest.raises(TaskNotFoundError):
            service.get_task("1")
        assert service.get_task(task.id).status == "completed"


# ---------------------------------------------------------------------------
# list_tasks
# ---------------------------------------------------------------------------


class TestListTasks:
    def test_filter_tokens(self, service, now):
        _add(service, now, "urgent one", tags=["urgent"])
        _add(service, now, "calm one")
        tasks = service.list_tasks(TaskListQuery(filter=["+urgent"]), now)
        assert [t.description for t in tasks] == ["urgent one"]

    def test_completed_included_deleted_excluded(self, service, now):
        _add(service, now, "done")
        _add(service, now, "gone")
        _add(service, now, "open")
        service.complete_task("1", now)
        service.delete_task("2", now)

        assert {t.description for t in service.list_tasks(now=now)} == {"open", "done"}
        everything = service.list_tasks(TaskListQuery(include_deleted=True), now)
        assert {t.description for t in everything} == {"open", "done", "gone"}

    def test_deleted_selected_by_status(self, service, now):
        _add(service, now, "gone")
        service.delete_task("1", now)
        assert len(service.list_tasks(TaskListQuery(status="deleted"), now)) == 1
        assert len(service.list_tasks(TaskListQuery(filter=["+DELETED"]), now)) == 1

    def test_waiting_hidden_by_default(self, service, now):
        _add(service, now, "later", wait="+2d")
        _add(service, now, "now")
        assert [t.description for t in service.list_tasks(now=now)] == ["now"]
        waiting = service.list_tasks(TaskListQuery(status="waiting"), now)
        assert [t.description for t in waiting] == ["later"]

    def test_waiting_task_reappears_after_wait(self, service, now):
        _add(service, now, "later", wait="+1d")
        tasks = service.list_tasks(now=now + timedelta(days=2))
        assert [t.description for t in tasks] == ["later"]

    def test_shortcuts(self, service, now):
        _add(service, now, "Buy milk", project="home", tags=["errand"])
        _add(service, now, "Fix bug", project="work")
        assert len(service.list_tasks(TaskListQuery(project="home"), now)) == 1
        assert len(service.list_tasks(TaskListQuery(tag="errand"), now)) == 1
        assert len(service.list_tasks(TaskListQuery(search="BUG"), now)) == 1

    def test_bad_filter(self, service, now):
        with pytest.raises(FilterParseError):
            service.list_tasks(TaskListQuery(filter=["color:red"]), now)


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


class TestUpdateTask:
    def test_only_set_fields_change(self, service, now):
        _add(service, now, "original", project="home", priority="L")
        task = service.update_task("1", TaskUpdate(priority="H"), now + timedelta(hours=1))
        assert task.priority == "H"
        assert task.project == "home"
        assert task.description == "original"
        assert task.modified == now + timedelta(hours=1)

    def test_none_clears_field(self, service, now):
        _add(service, now, project="home", due="tomorrow")
        task = service.update_task("1", TaskUpdate(project=None, due=None), now)
        assert task.project is None
        assert task.due is None

    def test_add_and_remove_tags(self, service, now):
        _add(service, now, tags=["a", "b"])
        task = service.update_task("1", TaskUpdate(add_tags=["c"], remove_tags=["a"]), now)
        assert task.tags == ["b", "c"]

    def test_wait_moves_task_to_waiting(self, service, now):
        _add(service, now)
        task = service.update_task("1", TaskUpdate(wait="+3d"), now)
        assert task.status == "waiting"

    def test_dependency_cycle_rejected(self, service, now):
        _add(service, now, "a")
        _add(service, now, "b", depends_on=["1"])
        with pytest.raises(TaskValidationError, match="cycle"):
            service.update_task("1", TaskUpdate(depends_on=["2"]), now)

    def test_empty_description_rejected(self, service, now):
        _add(service, now)
        with pytest.raises(TaskValidationError):
            service.update_task("1", TaskUpdate(description=""), now)

    def test_finished_task_cannot_be_updated(self, service, now):
        task = _add(service, now)
        service.complete_task(task.id, now)
        with pytest.raises(TaskNotFoundError):
            service.update_task(task.id, TaskUpdate(priority="H"), now)


class TestCompleteAndDelete:
    def test_complete_moves_task(self, service, now):
        _add(service, now)
        task = service.complete_task("1", now)
        assert task.status == "completed"
        assert task.end == now
        assert service.datastore.load_pending() == []
        assert [t.id for t in service.datastore.load_completed()] == [task.id]

    def test_complete_is_idempotent(self, service, now):
        task = _add(service, now)
        service.complete_task(task.id, now)
        again = service.complete_task(task.id, now + timedelta(days=1))
        assert again.end == now
        assert len(service.datastore.load_completed()) == 1

    def test_completing_deleted_task_fails(self, service, now):
        task = _add(service, now)
        service.delete_task(task.id, now)
        with pytest.raises(InvalidTransitionError):
            service.complete_task(task.id, now)

    def test_delete_moves_task(self, service, now):
        task = _add(service, now)
        service.delete_task("1", now)
        assert service.datastore.load_pending() == []
        assert [t.id for t in service.datastore.load_deleted()] == [task.id]


class TestUndo:
    def test_undo_reverts_completion(self, service, now):
        task = _add(service, now)
        service.complete_task(task.id, now)
        assert service.undo() is True
        assert [t.id for t in service.datastore.load_pending()] == [task.id]
        assert service.datastore.load_completed() == []

    def test_undo_reverts_add(self, service, now):
        _add(service, now)
        assert service.undo() is True
        assert service.datastore.load_pending() == []
        assert service.undo() is False

    def test_undo_disabled(self, store, now):
        service = TaskService(store, undo=False)
        _add(service, now)
        assert service.undo() is False


# ---------------------------------------------------------------------------
# start / stop
# ---------------------------------------------------------------------------


class TestStartStop:
    def test_start_marks_active(self, service, now):
        _add(service, now)
        task = service.start_task("1", now)
        assert task.start == now
        assert [t.id for t in service.list_tasks(TaskListQuery(filter=["+ACTIVE"]), now)] == [
            task.id
        ]

    def test_start_twice_keeps_first_timestamp(self, service, now):
        _add(service, now)
        service.start_task("1", now)
        assert service.start_task("1", now + timedelta(hours=1)).start == now

    def test_stop(self, service, now):
        _add(service, now)
        service.start_task("1", now)
        assert service.stop_task("1", now).start is None
        assert service.get_task("1").start is None

    def test_completion_clears_start(self, service, now):
        task = _add(service, now)
        service.start_task("1", now)
        service.complete_task("1", now)
        assert service.get_task(task.id).start is None

    def test_waiting_task_cannot_start(self, service, now):
        _add(service, now, wait="+2d")
        with pytest.raises(InvalidTransitionError):
            service.start_task("1", now)


# ---------------------------------------------------------------------------
# annotations
# ---------------------------------------------------------------------------


class TestAnnotations:
    def test_annotate_pending_and_completed(self, service, now):
        task = _add(service, now)
        service.annotate_task("1", "first note", now)
        service.complete_task("1", now)
        service.annotate_task(task.id, "after the fact", now)
        stored = service.get_task(task.id)
        assert stored.status == "completed"
        assert [n.description for n in stored.annotations] == ["first note", "after the fact"]

    def test_deleted_task_cannot_be_annotated(self, service, now):
        task = _add(service, now)
        service.delete_task("1", now)
        with pytest.raises(InvalidTransitionError):
            service.annotate_task(task.id, "note", now)

    def test_denotate(self, service, now):
        _add(service, now)
        service.annotate_task("1", "call Bob", now)
        service.annotate_task("1", "email Alice", now)
        assert [n.description for n in service.denotate_task("1", "bob", now).annotations] == [
            "email Alice"
        ]

    def test_denotate_without_match(self, service, now):
        _add(service, now)
        service.annotate_task("1", "note", now)
        with pytest.raises(TaskNotFoundError, match="no annotation matches"):
            service.denotate_task("1", "missing", now)


# ---------------------------------------------------------------------------
# scheduled and identity tokens
# ---------------------------------------------------------------------------


class TestScheduled:
    def test_add_and_clear(self, service, now):
        task = _add(service, now, scheduled="tomorrow")
        assert task.scheduled == datetime(2026, 2, 17, tzinfo=UTC)
        assert service.update_task("1", TaskUpdate(scheduled=None), now).scheduled is None


def test_bare_number_shows_waiting_task(service, now):
    _add(service, now, "later", wait="+2d")
    assert service.list_tasks(TaskListQuery(), now) == []
    assert [t.description for t in service.list_tasks(TaskListQuery(filter=["1"]), now)] == [
        "later"
    ]


# ---------------------------------------------------------------------------
# contexts
# ---------------------------------------------------------------------------


class TestContexts:
    @pytest.fixture()
    def service(self, store):
        return TaskService(store, contexts={"work": "project:work", "home": "project:home"})

    def test_active_context_narrows_list(self, service, now):
        _add(service, now, "report", project="work")
        _add(service, now, "dishes", project="home")
        service.use_context("work")

        assert [t.description for t in service.list_tasks(TaskListQuery(), now)] == ["report"]
        everything = service.list_tasks(TaskListQuery(ignore_context=True), now)
        assert len(everything) == 2

    def test_export_ignores_context(self, service, now):
        _add(service, now, "report", project="work")
        _add(service, now, "dishes", project="home")
        service.use_context("home")
        assert len(service.export_tasks([], now)) == 2

    def test_unknown_context_rejected(self, service):
        with pytest.raises(ContextNotFoundError):
            service.use_context("gym")
        assert service.active_context() is None

    def test_clear(self, service):
        service.use_context("home")
        service.clear_context()
        assert service.active_context() is None

    def test_undefined_active_context_is_ignored(self, store, now):
        store.set_active_context("gone")
        service = TaskService(store)
        _add(service, now)
        assert len(service.list_tasks(TaskListQuery(), now)) == 1


# ---------------------------------------------------------------------------
# export / import / purge
# ---------------------------------------------------------------------------


class TestExport:
    def test_includes_waiting_and_completed(self, service, now):
        _add(service, now, "waiting", wait="+2d")
        _add(service, now, "done")
        _add(service, now, "gone")
        service.complete_task("2", now)
        service.delete_task("3", now)
        exported = service.export_tasks([], now)
        assert sorted(t.description for t in exported) == ["done", "waiting"]

    def test_filter_applies(self, service, now):
        _add(service, now, "a", tags=["x"])
        _add(service, now, "b")
        assert [t.description for t in service.export_tasks(["+x"], now)] == ["a"]


class TestImport:
    def test_adds_new_tasks(self, service, now):
        result = service.import_tasks(
            [
                {"description": "first"},
                {"uuid": "8f9a1c2e-0000-4000-8000-000000000000", "description": "second"},
            ],
            now,
        )
        assert (result.added, result.updated) == (2, 0)
        pending = service.datastore.load_pending()
        assert [t.number for t in pending] == [1, 2]
        assert pending[1].id == "8f9a1c2e-0000-4000-8000-000000000000"

    def test_updates_by_id_and_keeps_number(self, service, now):
        _add(service, now, "other")
        task = _add(service, now, "old")
        result = service.import_tasks([{"id": task.id, "description": "new", "tags": ["x"]}], now)
        assert (result.added, result.updated) == (0, 1)
        stored = service.get_task(task.id)
        assert stored.description == "new"
        assert stored.number == 2

    def test_round_trip_with_export(self, service, tmp_path, now):
        _add(service, now, "keep", project="home")
        service.annotate_task("1", "note", now)
        exported = [t.model_dump(mode="json") for t in service.export_tasks([], now)]

        other = TaskService(DataStore.open(tmp_path / "copy"))
        other.import_tasks(exported, now)
        assert other.export_tasks([], now) == service.export_tasks([], now)

    def test_taskwarrior_fields(self, service, now):
        service.import_tasks(
            [
                {
                    "id": 4,
                    "uuid": "8f9a1c2e-0000-4000-8000-000000000001",
                    "description": "dep",
                },
                {
                    "uuid": "8f9a1c2e-0000-4000-8000-000000000002",
                    "description": "blocked",
                    "depends": "8f9a1c2e-0000-4000-8000-000000000001",
                },
            ],
            now,
        )
        blocked = service.get_task("8f9a1c2e-0000-4000-8000-000000000002")
        assert blocked.depends_on == ["8f9a1c2e-0000-4000-8000-000000000001"]

    def test_waiting_status_recomputed(self, service, now):
        service.import_tasks(
            [
                {"description": "later", "status": "waiting", "wait": "20260301T000000Z"},
                {"description": "elapsed", "status": "waiting", "wait": "20260201T000000Z"},
            ],
            now,
        )
        statuses = {t.description: t.status for t in service.datastore.load_pending()}
        assert statuses == {"later": "waiting", "elapsed": "pending"}

    def test_terminal_without_end_uses_modified(self, service, now):
        service.import_tasks(
            [{"description": "done", "status": "completed", "modified": "20260210T080000Z"}],
            now,
        )
        [done] = service.datastore.load_completed()
        assert done.end == datetime(2026, 2, 10, 8, tzinfo=UTC)
        assert done.number is None

    def test_pending_import_moves_nothing_out_of_terminal(self, service, now):
        task = _add(service, now)
        service.complete_task("1", now)
        with pytest.raises(InvalidTransitionError):
            service.import_tasks([{"id": task.id, "description": "again"}], now)
        assert service.get_task(task.id).status == "completed"

    def test_invalid_record_writes_nothing(self, service, now):
        with pytest.raises(TaskValidationError, match="import item 2"):
            service.import_tasks([{"description": "ok"}, {"description": ""}], now)
        assert service.datastore.load_pending() == []

    def test_non_object_rejected(self, service, now):
        with pytest.raises(TaskValidationError, match="expected an object"):
            service.import_tasks(["nope"], now)


class TestPurge:
    def test_purge_is_undoable(self, service, now):
        _add(service, now)
        service.delete_task("1", now)
        assert service.purge_deleted() == 1
        assert service.datastore.load_deleted() == []
        assert service.undo() is True
        assert len(service.datastore.load_deleted()) == 1

    def test_nothing_to_purge(self, service):
        assert service.purge_deleted() == 0
