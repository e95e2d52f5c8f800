# src/momentum_spark/web/routes.py

from __future__ import annotations

import logging
from typing import Any

from flask import Blueprint, current_app, jsonify, request

from ..errors import FieldError, TaskValidationError
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)

bp = Blueprint("tasks", __name__)

EXTENSION_KEY = "momentum_spark"


def _store() -> TaskStore:
    return current_app.extensions[EXTENSION_KEY].task_store


def _json_body() -> dict[str, Any]:
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise TaskValidationError([FieldError("body", "Expected a JSON object.")])
    return body


SQLITE_INT_MIN = -(2**63)
SQLITE_INT_MAX = 2**63 - 1


def _parse_id(raw: str) -> int | None:
    try:
        task_id = int(raw)
    except ValueError:
        return None
    # SQLite INTEGER is 64-bit signed; anything wider cannot be bound.
    if not SQLITE_INT_MIN <= task_id <= SQLITE_INT_MAX:
        return None
    return task_id


def _invalid_id():
    return jsonify({"message": "Invalid task ID"}), 400


@bp.get("/tasks")
def list_tasks():
    logger.debug("GET /tasks")
    tasks = _store().list_tasks()
    return jsonify([t.to_dict() for t in tasks])


@bp.post("/tasks")
def create_task():
    logger.debug("POST /tasks")
    task = _store().create_task(_json_body())
    return jsonify(task.to_dict()), 201


@bp.get("/tasks/<raw_id>")
def get_task(raw_id: str):
    task_id = _parse_id(raw_id)
    if task_id is None:
        return _invalid_id()
    return jsonify(_store().get_task(task_id).to_dict())


@bp.put("/tasks/<raw_id>")
def update_task(raw_id: str):
    task_id = _parse_id(raw_id)
    if task_id is None:
        return _invalid_id()
    task = _store().update_task(task_id, _json_body())
    return jsonify(task.to_dict())


@bp.delete("/tasks/<raw_id>")
def delete_task(raw_id: str):
    task_id = _parse_id(raw_id)
    if task_id is None:
        return _invalid_id()
    _store().delete_task(task_id)
    return jsonify({"message": "Task deleted successfully"})


@bp.get("/health")
def health_check():
    return jsonify({"status": "healthy", "tasks": _store().count_tasks()})
