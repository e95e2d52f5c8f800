# src/momentum_spark/tasks/database.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
import threading
from collections.abc import Iterator
from pathlib import Path

from ..errors import StorageError

logger = logging.getLogger(__name__)

# UTC with an explicit "Z" so readers never mistake trigger timestamps for local time.
_SQL_NOW = "strftime('%Y-%m-%dT%H:%M:%fZ', 'now')"

_SCHEMA = f"""
CREATE TABLE IF NOT EXISTS tasks (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    description TEXT,
    weight INTEGER NOT NULL DEFAULT 5,
    dueDate TEXT NOT NULL,
    isCompleted INTEGER NOT NULL DEFAULT 0,
    isRecurring INTEGER NOT NULL DEFAULT 0,
    messageType TEXT NOT NULL DEFAULT 'text',
    createdAt TEXT DEFAULT ({_SQL_NOW}),
    updatedAt TEXT DEFAULT ({_SQL_NOW}),
    completedAt TEXT
);

CREATE TABLE IF NOT EXISTS settings (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    userName TEXT,
    enableNotifications INTEGER,
    enableBluetoothAudio INTEGER,
    soundVolume INTEGER,
    updatedAt TEXT DEFAULT ({_SQL_NOW})
);

-- Backstop: refresh updatedAt when a statement forgot to.
CREATE TRIGGER IF NOT EXISTS update_task_updatedAt
AFTER UPDATE ON tasks
FOR EACH ROW
WHEN NEW.updatedAt IS OLD.updatedAt
BEGIN
    UPDATE tasks SET updatedAt = {_SQL_NOW} WHERE id = OLD.id;
END;

CREATE TRIGGER IF NOT EXISTS update_setting_updatedAt
AFTER UPDATE ON settings
FOR EACH ROW
WHEN NEW.updatedAt IS OLD.updatedAt
BEGIN
    UPDATE settings SET updatedAt = {_SQL_NOW} WHERE id = OLD.id;
END;
"""


class Database:
    """
    Process-wide SQLite resource.

    Constructed once by the composition root and passed to the repository.
    The connection is opened lazily on first use and shared by every caller;
    a lock serializes statements issued from different server threads.
    """

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = Path(db_path)
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.RLock()

    @property
    def path(self) -> Path:
        return self._db_path

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def acquire_connection(self) -> sqlite3.Connection:
        """Return the shared connection, opening and initializing it on first call."""
        with self._lock:
            if self._conn is not None:
                return self._conn
            logger.info("Opening database at %s", self._db_path)
            try:
                self._db_path.parent.mkdir(parents=True, exist_ok=True)
                conn = sqlite3.connect(
                    str(self._db_path),
                    timeout=30.0,
                    check_same_thread=False,
                    isolation_level=None,
                )
                conn.row_factory = sqlite3.Row
                with contextlib.suppress(sqlite3.DatabaseError):
                    conn.execute("PRAGMA journal_mode=WAL")
                self._ensure_schema(conn)
            except (OSError, sqlite3.Error) as e:
                logger.exception("Failed to open or initialize database at %s", self._db_path)
                raise StorageError(f"Failed to open/initialize database: {e}") from e
            self._conn = conn
            return conn

    def close(self) -> None:
        with self._lock:
            if self._conn is None:
                return
            try:
                self._conn.close()
            finally:
                self._conn = None
            logger.info("Database closed %s", self._db_path)

    @contextlib.contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run a block inside BEGIN IMMEDIATE ... COMMIT (ROLLBACK on error)."""
        with self._lock:
            conn = self.acquire_connection()
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            else:
                conn.execute("COMMIT")

    @staticmethod
    def _ensure_schema(conn: sqlite3.Connection) -> None:
        logger.debug("Initializing database schema...")
        conn.executescript(_SCHEMA)

        # Migrations (safe): add missing columns to databases created by older versions.
        cols = {row["name"] for row in conn.execute("PRAGMA table_info(tasks)").fetchall()}

        def add_col(name: str, decl: str) -> None:
            if name in cols:
                return
            conn.execute(f"ALTER TABLE tasks ADD COLUMN {name} {decl}")
            logger.info("Database migration: added column tasks.%s", name)

        add_col("isRecurring", "INTEGER NOT NULL DEFAULT 0")
        add_col("messageType", "TEXT NOT NULL DEFAULT 'text'")
        add_col("completedAt", "TEXT")

        conn.execute("CREATE INDEX IF NOT EXISTS idx_tasks_due ON tasks(dueDate)")
        logger.debug("Database schema initialized (or already existed).")
