# src/momentum_spark/client/sync.py

"""
Client-side task synchronization.

TaskSync owns the in-memory task collection of one UI session and keeps it in
line with the API:
- load() fetches everything and reconciles the daily reset of recurring tasks,
- toggle_completion() is optimistic and rolls back the whole collection on failure,
- create/update/delete are applied locally only after the server confirms.

Failures never raise out of these methods; they are logged and reported through
the notify callback (a transient user-facing message).
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from datetime import datetime
from typing import Any

from ..core.dates import Clock, iso_timestamp, local_now, parse_iso, same_day
from ..core.ports import NotifyFn, TaskApi
from ..errors import TaskApiError
from ..tasks.task_models import Task

logger = logging.getLogger(__name__)


def _log_notify(title: str, description: str) -> None:
    logger.warning("%s: %s", title, description)


def needs_daily_reset(task: Task, now: datetime) -> bool:
    """True for a recurring task still marked completed from an earlier day."""
    if not (task.is_recurring and task.is_completed):
        return False
    stamp = task.completion_timestamp
    if not stamp:
        return False
    completed = parse_iso(stamp)
    if completed is None:
        return True
    return not same_day(completed, now)


class TaskSync:
    def __init__(
        self,
        api: TaskApi,
        *,
        notify: NotifyFn | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._api = api
        self._notify: NotifyFn = notify or _log_notify
        self._clock: Clock = clock or local_now
        self._locks: dict[int, asyncio.Lock] = {}

        self.tasks: list[Task] = []
        self.loading = False
        self.error: str | None = None

    def _lock_for(self, task_id: int) -> asyncio.Lock:
        # Single-flight per task: a second toggle waits for the first round trip.
        lock = self._locks.get(task_id)
        if lock is None:
            lock = self._locks[task_id] = asyncio.Lock()
        return lock

    def _report(self, err: Exception) -> None:
        self._notify("Error", str(err))

    def get_task(self, task_id: int) -> Task | None:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    async def _reset_one(self, task: Task) -> bool:
        try:
            await self._api.update_task(task.id, {"isCompleted": False})
        except TaskApiError as e:
            logger.error("Failed to reset recurring task %s: %s", task.id, e)
            return False
        logger.info("Recurring task %s reset for a new day", task.id)
        return True

    async def load(self) -> list[Task]:
        """
        Fetch all tasks, resetting recurring tasks completed on an earlier day.

        Resets are issued concurrently; the list is fetched again only when at least
        one reset succeeded. A failed reset leaves that task completed until the
        next load.
        """
        self.loading = True
        self.error = None
        try:
            data = await self._api.list_tasks()

            now = self._clock()
            stale = [t for t in data if needs_daily_reset(t, now)]
            if stale:
                results = await asyncio.gather(
                    *(self._reset_one(t) for t in stale), return_exceptions=True
                )
                for task, result in zip(stale, results):
                    if isinstance(result, BaseException):
                        logger.error(
                            "Failed to reset recurring task %s",
                            task.id,
                            exc_info=(type(result), result, result.__traceback__),
                        )
                if any(r is True for r in results):
                    data = await self._api.list_tasks()

            self.tasks = data
        except TaskApiError as e:
            logger.error("Failed to load tasks: %s", e)
            self.error = str(e)
            self._report(e)
        finally:
            self.loading = False
        return self.tasks

    async def toggle_completion(self, task_id: int, completed: bool) -> Task | None:
        async with self._lock_for(task_id):
            snapshot = list(self.tasks)
            stamp = iso_timestamp(self._clock())
            self.tasks = [
                replace(
                    t,
                    is_completed=completed,
                    updated_at=stamp,
                    completed_at=stamp if completed else None,
                )
                if t.id == task_id
                else t
                for t in self.tasks
            ]

            try:
                server_task = await self._api.update_task(task_id, {"isCompleted": completed})
            except TaskApiError as e:
                logger.error("Toggle failed for task %s, rolling back: %s", task_id, e)
                self.tasks = snapshot
                self._report(e)
                return None

            self.tasks = [server_task if t.id == task_id else t for t in self.tasks]
            return server_task

    async def create_task(self, data: dict[str, Any]) -> Task | None:
        try:
            task = await self._api.create_task(data)
        except TaskApiError as e:
            logger.error("Failed to create task: %s", e)
            self._report(e)
            return None
        self.tasks = [*self.tasks, task]
        return task

    async def update_task(self, task_id: int, data: dict[str, Any]) -> Task | None:
        async with self._lock_for(task_id):
            try:
                task = await self._api.update_task(task_id, data)
            except TaskApiError as e:
                logger.error("Failed to update task %s: %s", task_id, e)
                self._report(e)
                return None
            self.tasks = [task if t.id == task_id else t for t in self.tasks]
            return task

    async def delete_task(self, task_id: int) -> bool:
        try:
            await self._api.delete_task(task_id)
        except TaskApiError as e:
            logger.error("Failed to delete task %s: %s", task_id, e)
            self._report(e)
            return False
        self.tasks = [t for t in self.tasks if t.id != task_id]
        self._locks.pop(task_id, None)
        return True
