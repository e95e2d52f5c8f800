# tests/test_task_store.py

from __future__ import annotations

from datetime import timedelta

import pytest

from momentum_spark.core.dates import iso_timestamp, parse_iso
from momentum_spark.errors import TaskNotFoundError, TaskValidationError
from momentum_spark.tasks.database import Database
from momentum_spark.tasks.task_models import MessageType
from momentum_spark.tasks.task_store import TaskStore

from .fakes import FakeClock


def _payload(clock: FakeClock, **overrides):
    data = {
        "title": "Write report",
        "description": "Quarterly numbers",
        "weight": 6,
        "dueDate": iso_timestamp(clock() + timedelta(days=2)),
    }
    data.update(overrides)
    return data


def test_create_get_update_delete(store: TaskStore, clock: FakeClock) -> None:
    task = store.create_task(_payload(clock))
    assert task.id > 0
    assert task.title == "Write report"
    assert task.is_completed is False
    assert task.is_recurring is False
    assert task.message_type == MessageType.TEXT
    assert task.completed_at is None
    assert task.created_at == task.updated_at

    assert store.get_task(task.id) == task

    clock.advance(timedelta(minutes=5))
    updated = store.update_task(task.id, {"title": "Write final report", "weight": 7})
    assert updated.title == "Write final report"
    assert updated.weight == 7
    assert updated.description == "Quarterly numbers"
    assert updated.updated_at != task.updated_at
    assert updated.created_at == task.created_at

    store.delete_task(task.id)
    with pytest.raises(TaskNotFoundError):
        store.get_task(task.id)
    with pytest.raises(TaskNotFoundError):
        store.delete_task(task.id)


def test_booleans_are_returned_as_bool(store: TaskStore, clock: FakeClock, database: Database) -> None:
    task = store.create_task(_payload(clock, isRecurring=True, isCompleted=True, messageType="audio"))
    raw = database.acquire_connection().execute(
        "SELECT isCompleted, isRecurring FROM tasks WHERE id = ?", (task.id,)
    ).fetchone()
    assert (raw["isCompleted"], raw["isRecurring"]) == (1, 1)

    for t in (task, store.get_task(task.id), store.list_tasks()[0]):
        assert t.is_completed is True
        assert t.is_recurring is True
        assert t.message_type == MessageType.AUDIO


def test_created_completed_task_gets_completed_at(store: TaskStore, clock: FakeClock) -> None:
    task = store.create_task(_payload(clock, isCompleted=True))
    assert task.completed_at == iso_timestamp(clock())


def test_completed_at_follows_transitions(store: TaskStore, clock: FakeClock) -> None:
    task = store.create_task(_payload(clock))

    clock.advance(timedelta(hours=1))
    done = store.update_task(task.id, {"isCompleted": True})
    assert done.is_completed is True
    assert done.completed_at == iso_timestamp(clock())

    clock.advance(timedelta(hours=1))
    again = store.update_task(task.id, {"isCompleted": True, "weight": 2})
    assert again.completed_at == done.completed_at
    assert again.updated_at != done.updated_at

    clock.advance(timedelta(hours=1))
    undone = store.update_task(task.id, {"isCompleted": False})
    assert undone.is_completed is False
    assert undone.completed_at is None


@pytest.mark.parametrize("body", [{}, {"id": 99, "createdAt": "x", "updatedAt": "y"}])
def test_empty_update_returns_row_without_writing(
    store: TaskStore, clock: FakeClock, database: Database, body
) -> None:
    task = store.create_task(_payload(clock))

    statements: list[str] = []
    conn = database.acquire_connection()
    conn.set_trace_callback(statements.append)
    try:
        clock.advance(timedelta(minutes=1))
        same = store.update_task(task.id, body)
    finally:
        conn.set_trace_callback(None)

    assert same == task
    assert not [s for s in statements if s.lstrip().upper().startswith(("UPDATE", "INSERT", "DELETE"))]


def test_update_unknown_task(store: TaskStore) -> None:
    with pytest.raises(TaskNotFoundError):
        store.update_task(404, {"title": "x"})


def test_validation_messages(store: TaskStore, clock: FakeClock) -> None:
    with pytest.raises(TaskValidationError) as exc:
        store.create_task({"weight": 11, "dueDate": "not a date", "colour": "red"})
    by_field = {e.field: e.message for e in exc.value.errors}
    assert by_field["title"] == "Title is required."
    assert by_field["weight"] == "Weight must be at most 10."
    assert by_field["dueDate"] == "Invalid due date."
    assert by_field["colour"] == "Unknown field."


def test_partial_update_validates_only_provided_fields(store: TaskStore, clock: FakeClock) -> None:
    task = store.create_task(_payload(clock))

    with pytest.raises(TaskValidationError) as exc:
        store.update_task(task.id, {"weight": 0})
    assert [e.field for e in exc.value.errors] == ["weight"]

    with pytest.raises(TaskValidationError):
        store.update_task(task.id, {"title": ""})

    with pytest.raises(TaskValidationError):
        store.update_task(task.id, {"title": None})

    cleared = store.update_task(task.id, {"description": None})
    assert cleared.description is None
    assert store.get_task(task.id).title == "Write report"


def test_non_mapping_body_is_rejected(store: TaskStore) -> None:
    with pytest.raises(TaskValidationError):
        store.create_task(["not", "a", "dict"])  # type: ignore[arg-type]


def test_list_seeds_empty_table_once(database: Database, clock: FakeClock) -> None:
    store = TaskStore(database, clock=clock, seed=True)

    tasks = store.list_tasks()
    assert len(tasks) == 5
    assert [t.title for t in tasks] == [
        "Morning Review",
        "Evening Wind-Down",
        "Submit Monthly Report",
        "Review Project Proposal",
        "Schedule Team Meeting",
    ]
    dues = [parse_iso(t.due_date) for t in tasks]
    assert dues == sorted(dues)
    assert sum(1 for t in tasks if t.is_recurring) == 2
    assert [t.title for t in tasks if t.is_completed] == ["Submit Monthly Report"]

    assert len(store.list_tasks()) == 5
    assert store.count_tasks() == 5


def test_list_without_seeding_stays_empty(store: TaskStore) -> None:
    assert store.list_tasks() == []
    assert store.count_tasks() == 0


def test_list_resets_recurring_completed_on_earlier_day(store: TaskStore, clock: FakeClock) -> None:
    daily = store.create_task(_payload(clock, title="Stretch", isRecurring=True))
    store.update_task(daily.id, {"isCompleted": True})

    clock.advance(timedelta(hours=2))
    (same_day,) = store.list_tasks()
    assert same_day.is_completed is True

    clock.advance(timedelta(days=1))
    (next_day,) = store.list_tasks()
    assert next_day.is_completed is False
    assert next_day.completed_at is None
    assert next_day.updated_at == iso_timestamp(clock())


def test_list_leaves_one_time_tasks_completed(store: TaskStore, clock: FakeClock) -> None:
    task = store.create_task(_payload(clock, isCompleted=True))
    clock.advance(timedelta(days=3))
    (listed,) = store.list_tasks()
    assert listed.id == task.id
    assert listed.is_completed is True


def test_recurring_reset_can_be_disabled(database: Database, clock: FakeClock) -> None:
    store = TaskStore(database, clock=clock, seed=False, reset_recurring=False)
    store.create_task(_payload(clock, isRecurring=True, isCompleted=True))
    clock.advance(timedelta(days=2))
    (listed,) = store.list_tasks()
    assert listed.is_completed is True
