# src/momentum_spark/web/app.py

"""
Flask application factory.

The factory is the server's composition root: it builds the Database and the
TaskStore once and keeps them on app.extensions so every request shares them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from ..config import Settings, get_settings
from ..errors import StorageError, TaskNotFoundError, TaskValidationError
from ..tasks.database import Database
from ..tasks.task_store import TaskStore
from .routes import EXTENSION_KEY, bp

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ServerState:
    settings: Settings
    database: Database
    task_store: TaskStore


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(TaskValidationError)
    def _validation(err: TaskValidationError):
        logger.info("Validation failed: %s", err)
        return jsonify({"message": "Validation failed", "errors": [e.to_dict() for e in err.errors]}), 400

    @app.errorhandler(TaskNotFoundError)
    def _not_found(err: TaskNotFoundError):
        logger.info("Task not found id=%s", err.task_id)
        return jsonify({"message": "Task not found"}), 404

    @app.errorhandler(StorageError)
    def _storage(err: StorageError):
        logger.error("Storage error: %s", err)
        return jsonify({"message": "Internal server error"}), 500

    @app.errorhandler(HTTPException)
    def _http(err: HTTPException):
        return jsonify({"message": err.description or err.name}), err.code or 500

    @app.errorhandler(Exception)
    def _unexpected(err: Exception):
        logger.exception("Unhandled error while serving request")
        return jsonify({"message": "Internal server error"}), 500


def create_app(
    settings: Settings | None = None,
    *,
    database: Database | None = None,
    task_store: TaskStore | None = None,
) -> Flask:
    """
    Build the API app.

    Everything is injectable for tests; by default the database lives at
    settings.db_path and the store follows settings' seeding/reset switches.
    """
    if settings is None:
        settings = get_settings()
    if database is None:
        database = Database(settings.db_path)
    if task_store is None:
        task_store = TaskStore(
            database,
            seed=settings.seed_on_empty,
            reset_recurring=settings.reset_recurring_on_list,
        )

    app = Flask(__name__)
    app.json.sort_keys = False
    app.extensions[EXTENSION_KEY] = ServerState(
        settings=settings, database=database, task_store=task_store
    )

    app.register_blueprint(bp)
    app.register_blueprint(bp, url_prefix="/api", name="api_tasks")
    _register_error_handlers(app)

    logger.info("API app ready db=%s", database.path)
    return app
