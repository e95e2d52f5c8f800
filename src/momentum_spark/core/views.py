# src/momentum_spark/core/views.py

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum

from ..tasks.task_models import Task
from .dates import is_date_this_month, local_now, parse_iso


class TaskFilter(StrEnum):
    ALL = "all"
    PENDING = "pending"
    COMPLETED = "completed"


class TaskSort(StrEnum):
    DUE_DATE = "dueDate"
    WEIGHT = "weight"
    TITLE = "title"
    STATUS = "status"


@dataclass(slots=True)
class TaskGroups:
    """Daily goals, open milestones, and milestones finished this month."""

    daily: list[Task] = field(default_factory=list)
    long_term: list[Task] = field(default_factory=list)
    completed_this_month: list[Task] = field(default_factory=list)


def _completed_when(task: Task) -> datetime | None:
    return parse_iso(task.completion_timestamp) if task.is_completed else None


def _matches(task: Task, term: str) -> bool:
    if not term:
        return True
    term = term.lower()
    if term in task.title.lower():
        return True
    return bool(task.description) and term in (task.description or "").lower()


def _sort_key(sort: TaskSort):
    if sort == TaskSort.WEIGHT:
        return lambda t: -t.weight
    if sort == TaskSort.TITLE:
        return lambda t: t.title.lower()
    if sort == TaskSort.STATUS:
        return lambda t: 1 if t.is_completed else 0

    def by_due(t: Task) -> tuple[int, float]:
        due = parse_iso(t.due_date)
        # Unparsable dates sort last.
        return (0, due.timestamp()) if due is not None else (1, 0.0)

    return by_due


def group_tasks(
    tasks: Iterable[Task],
    *,
    search: str = "",
    filter: TaskFilter | str = TaskFilter.PENDING,
    sort: TaskSort | str = TaskSort.DUE_DATE,
    now: datetime | None = None,
) -> TaskGroups:
    """
    Split tasks the way the dashboard shows them.

    Search, filter and sort apply to the long-term list only.
    """
    now = now or local_now()
    task_filter = TaskFilter(filter)
    task_sort = TaskSort(sort)
    groups = TaskGroups()

    for task in tasks:
        if task.is_recurring:
            groups.daily.append(task)
            continue
        when = _completed_when(task)
        if when is not None and is_date_this_month(when, now):
            groups.completed_this_month.append(task)
        else:
            groups.long_term.append(task)

    others = [t for t in groups.long_term if _matches(t, search.strip())]
    if task_filter == TaskFilter.COMPLETED:
        others = [t for t in others if t.is_completed]
    elif task_filter == TaskFilter.PENDING:
        others = [t for t in others if not t.is_completed]
    others.sort(key=_sort_key(task_sort))

    groups.long_term = others
    groups.daily.sort(key=lambda t: t.title.lower())
    groups.completed_this_month.sort(
        key=lambda t: (_completed_when(t) or now).timestamp(), reverse=True
    )
    return groups
