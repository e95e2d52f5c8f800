# tests/conftest.py

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from types import SimpleNamespace

import pytest
from flask import Flask
from flask.testing import FlaskClient

from momentum_spark.tasks.database import Database
from momentum_spark.tasks.task_store import TaskStore
from momentum_spark.web.app import create_app

from .fakes import FakeClock


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with the app factory and the console.

    We intentionally use a SimpleNamespace rather than reading the environment,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="momentum-spark-test",
        log_level="DEBUG",
        # Paths (tmp per test run)
        data_dir=tmp_path,
        db_path=tmp_path / "momentumspark.sqlite",
        preferences_path=tmp_path / "preferences.json",
        # Server
        host="127.0.0.1",
        port=9002,
        seed_on_empty=False,
        reset_recurring_on_list=True,
        # Client
        api_url="http://testserver",
        api_timeout_seconds=5.0,
        reminder_window_days=1,
        # LLM (no key -> offline templates)
        openai_api_key=None,
        openai_base_url=None,
        llm_model="gpt-4o-mini",
        llm_timeout_seconds=5.0,
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def database(settings: SimpleNamespace) -> Iterator[Database]:
    db = Database(settings.db_path)
    yield db
    db.close()


@pytest.fixture()
def store(database: Database, clock: FakeClock) -> TaskStore:
    """Real SQLite repository without seeding, driven by the fake clock."""
    return TaskStore(database, clock=clock, seed=False)


@pytest.fixture()
def app(settings: SimpleNamespace, database: Database, store: TaskStore) -> Flask:
    app = create_app(settings, database=database, task_store=store)
    app.config.update(TESTING=True)
    return app


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    return app.test_client()
