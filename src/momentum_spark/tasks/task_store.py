# src/momentum_spark/tasks/task_store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
from collections.abc import Iterator, Mapping
from datetime import datetime
from typing import Any

from ..core.dates import Clock, iso_timestamp, local_now, parse_iso, same_day
from ..errors import StorageError, TaskNotFoundError
from .database import Database
from .seed import default_seed_tasks
from .task_models import MessageType, Task, validate_create, validate_update

logger = logging.getLogger(__name__)

_BOOL_COLUMNS = ("isCompleted", "isRecurring")

_INSERT_SQL = """
    INSERT INTO tasks(
        title, description, weight, dueDate,
        isCompleted, isRecurring, messageType,
        createdAt, updatedAt, completedAt
    )
    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
"""


@contextlib.contextmanager
def _storage_errors(action: str) -> Iterator[None]:
    try:
        yield
    except sqlite3.Error as e:
        logger.exception("TaskStore %s failed", action)
        raise StorageError(f"Failed to {action}") from e


class TaskStore:
    """
    SQLite task repository.

    Translates between the JSON wire shape and storage rows:
    - booleans are written as 0/1 and read back as bool on every path
    - partial updates touch only the provided columns
    - updatedAt is refreshed by every mutation, completedAt only by
      completion transitions

    The list operation doubles as the daily reconciliation point: recurring tasks
    completed on an earlier day are reset to pending inside the same transaction
    that reads them, and an empty table is seeded with example tasks.
    """

    def __init__(
        self,
        database: Database,
        *,
        clock: Clock | None = None,
        seed: bool = True,
        reset_recurring: bool = True,
    ) -> None:
        self._db = database
        self._clock: Clock = clock or local_now
        self._seed = seed
        self._reset_recurring = reset_recurring

    # ---- low-level helpers ----

    def _now(self) -> datetime:
        return self._clock()

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=int(row["id"]),
            title=str(row["title"]),
            description=row["description"],
            weight=int(row["weight"]),
            due_date=str(row["dueDate"]),
            is_completed=bool(row["isCompleted"]),
            is_recurring=bool(row["isRecurring"]),
            message_type=MessageType.from_db(row["messageType"]),
            created_at=str(row["createdAt"] or ""),
            updated_at=str(row["updatedAt"] or ""),
            completed_at=row["completedAt"],
        )

    @staticmethod
    def _to_db_values(fields: Mapping[str, Any]) -> dict[str, Any]:
        out = dict(fields)
        for col in _BOOL_COLUMNS:
            if col in out and out[col] is not None:
                out[col] = 1 if out[col] else 0
        if "messageType" in out and out["messageType"] is not None:
            out["messageType"] = str(MessageType(out["messageType"]))
        return out

    @staticmethod
    def _fetch_row(conn: sqlite3.Connection, task_id: int) -> sqlite3.Row | None:
        return conn.execute("SELECT * FROM tasks WHERE id = ?", (int(task_id),)).fetchone()

    @staticmethod
    def _fetch_all(conn: sqlite3.Connection) -> list[sqlite3.Row]:
        return conn.execute("SELECT * FROM tasks ORDER BY dueDate ASC, id ASC").fetchall()

    def _insert(self, conn: sqlite3.Connection, fields: Mapping[str, Any], now: datetime) -> int:
        values = self._to_db_values(fields)
        ts = iso_timestamp(now)
        cur = conn.execute(
            _INSERT_SQL,
            (
                values["title"],
                values.get("description"),
                int(values["weight"]),
                values["dueDate"],
                values["isCompleted"],
                values["isRecurring"],
                values["messageType"],
                ts,
                ts,
                ts if values["isCompleted"] else None,
            ),
        )
        rowid = cur.lastrowid
        if rowid is None:
            raise StorageError("SQLite did not return lastrowid for tasks insert")
        return int(rowid)

    def _seed_defaults(self, conn: sqlite3.Connection, now: datetime) -> int:
        payloads = default_seed_tasks(now)
        for payload in payloads:
            self._insert(conn, validate_create(payload), now)
        logger.info("TaskStore seeded %d default tasks", len(payloads))
        return len(payloads)

    def _reset_stale_recurring(self, conn: sqlite3.Connection, now: datetime) -> int:
        rows = conn.execute(
            "SELECT id, updatedAt, completedAt FROM tasks WHERE isRecurring = 1 AND isCompleted = 1"
        ).fetchall()
        stale: list[int] = []
        for row in rows:
            completed = parse_iso(row["completedAt"] or row["updatedAt"])
            if completed is None or not same_day(completed, now):
                stale.append(int(row["id"]))
        if not stale:
            return 0
        ts = iso_timestamp(now)
        conn.executemany(
            "UPDATE tasks SET isCompleted = 0, completedAt = NULL, updatedAt = ? WHERE id = ?",
            [(ts, task_id) for task_id in stale],
        )
        logger.info("TaskStore reset %d recurring task(s) for a new day: %s", len(stale), stale)
        return len(stale)

    # ---- public API ----

    def count_tasks(self) -> int:
        with self._db.lock, _storage_errors("count tasks"):
            conn = self._db.acquire_connection()
            (n,) = conn.execute("SELECT COUNT(*) FROM tasks").fetchone()
            return int(n)

    def list_tasks(self) -> list[Task]:
        """All tasks ordered by due date; seeds an empty table once."""
        now = self._now()
        with _storage_errors("list tasks"), self._db.transaction() as conn:
            if self._reset_recurring:
                self._reset_stale_recurring(conn, now)
            rows = self._fetch_all(conn)
            logger.debug("TaskStore found %d tasks", len(rows))
            if not rows and self._seed:
                self._seed_defaults(conn, now)
                rows = self._fetch_all(conn)
        return [self._row_to_task(r) for r in rows]

    def get_task(self, task_id: int) -> Task:
        with self._db.lock, _storage_errors("fetch task"):
            row = self._fetch_row(self._db.acquire_connection(), task_id)
        if row is None:
            raise TaskNotFoundError(task_id)
        return self._row_to_task(row)

    def create_task(self, data: Mapping[str, Any]) -> Task:
        fields = validate_create(data)
        now = self._now()
        with self._db.lock, _storage_errors("create task"):
            conn = self._db.acquire_connection()
            task_id = self._insert(conn, fields, now)
            row = self._fetch_row(conn, task_id)
        if row is None:
            logger.error("TaskStore could not re-read created task id=%s", task_id)
            raise StorageError("Failed to retrieve newly created task.")
        logger.info("Task created id=%s title=%r weight=%s", task_id, fields["title"], fields["weight"])
        return self._row_to_task(row)

    def update_task(self, task_id: int, data: Mapping[str, Any]) -> Task:
        fields = validate_update(data)
        now = self._now()
        with self._db.lock, _storage_errors("update task"):
            conn = self._db.acquire_connection()
            existing = self._fetch_row(conn, task_id)
            if existing is None:
                raise TaskNotFoundError(task_id)
            if not fields:
                logger.debug("Task %s: no fields to update", task_id)
                return self._row_to_task(existing)

            values = self._to_db_values(fields)
            ts = iso_timestamp(now)
            if "isCompleted" in values:
                was_completed = bool(existing["isCompleted"])
                if values["isCompleted"] and not was_completed:
                    values["completedAt"] = ts
                elif not values["isCompleted"]:
                    values["completedAt"] = None
            values["updatedAt"] = ts

            set_clause = ", ".join(f"{col} = ?" for col in values)
            conn.execute(
                f"UPDATE tasks SET {set_clause} WHERE id = ?",
                (*values.values(), int(task_id)),
            )
            row = self._fetch_row(conn, task_id)
        if row is None:
            logger.error("TaskStore could not re-read updated task id=%s", task_id)
            raise StorageError("Failed to retrieve updated task.")
        logger.info("Task updated id=%s fields=%s", task_id, sorted(fields))
        return self._row_to_task(row)

    def delete_task(self, task_id: int) -> None:
        with self._db.lock, _storage_errors("delete task"):
            cur = self._db.acquire_connection().execute(
                "DELETE FROM tasks WHERE id = ?", (int(task_id),)
            )
        if cur.rowcount == 0:
            raise TaskNotFoundError(task_id)
        logger.info("Task deleted id=%s", task_id)
