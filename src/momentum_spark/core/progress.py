# src/momentum_spark/core/progress.py

"""
Progress aggregation over an in-memory task collection (no I/O).

Weight is a purely linear contribution: a task of weight 8 counts four times as
much as a task of weight 2 toward a percentage, nothing more.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime

from ..tasks.task_models import Task
from .dates import (
    days_in_month,
    end_of_day,
    is_due_this_month,
    is_due_today,
    local_now,
    parse_iso,
    to_local,
)

UNBOUNDED = math.inf


@dataclass(frozen=True, slots=True)
class TrendPoint:
    day: int
    # None marks a day that has not happened yet; 0 means "no progress".
    progress: int | None

    @property
    def name(self) -> str:
        return str(self.day)


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def weighted_completion_ratio(tasks: Iterable[Task]) -> float:
    total = 0
    completed = 0
    for task in tasks:
        total += task.weight
        if task.is_completed:
            completed += task.weight
    if total <= 0:
        return 0.0
    return completed / total * 100


def daily_scope(tasks: Iterable[Task], now: datetime | None = None) -> list[Task]:
    """Recurring tasks plus anything due today."""
    now = now or local_now()
    return [t for t in tasks if t.is_recurring or is_due_today(t.due_date, now)]


def monthly_scope(tasks: Iterable[Task], now: datetime | None = None) -> list[Task]:
    """One-time tasks due this month plus all recurring tasks."""
    now = now or local_now()
    tasks = list(tasks)
    one_time = [t for t in tasks if not t.is_recurring and is_due_this_month(t.due_date, now)]
    recurring = [t for t in tasks if t.is_recurring]
    return one_time + recurring


def daily_progress(tasks: Iterable[Task], now: datetime | None = None) -> float:
    return weighted_completion_ratio(daily_scope(tasks, now))


def monthly_progress(tasks: Iterable[Task], now: datetime | None = None) -> float:
    return weighted_completion_ratio(monthly_scope(tasks, now))


def monthly_trend(tasks: Sequence[Task], now: datetime | None = None) -> list[TrendPoint]:
    """
    Cumulative weighted completion for each day of the current month.

    A task counts toward day D when it is completed and its completion timestamp
    is at or before the end of day D. Days after today are gaps (progress=None).
    """
    now = to_local(now or local_now())
    today = now.date()

    relevant = [t for t in tasks if t.is_recurring or is_due_this_month(t.due_date, now)]
    total_weight = sum(t.weight for t in relevant)

    completions: list[tuple[datetime, int]] = []
    for t in relevant:
        if not t.is_completed:
            continue
        when = parse_iso(t.completion_timestamp)
        if when is not None:
            completions.append((when, t.weight))

    points: list[TrendPoint] = []
    for day in range(1, days_in_month(now) + 1):
        if day > today.day:
            points.append(TrendPoint(day=day, progress=None))
            continue
        cutoff = end_of_day(today.replace(day=day))
        done = sum(w for when, w in completions if when <= cutoff)
        pct = done / total_weight * 100 if total_weight > 0 else 0.0
        points.append(TrendPoint(day=day, progress=_round_half_up(pct)))
    return points


def days_until_due(task_or_due: Task | str | None, now: datetime | None = None) -> float:
    """
    Whole calendar days from today until the due date, floored at 0.

    Returns UNBOUNDED (math.inf) when the due date does not parse; treat it as
    "never due soon".
    """
    due_raw = task_or_due.due_date if isinstance(task_or_due, Task) else task_or_due
    due = parse_iso(due_raw)
    if due is None:
        return UNBOUNDED
    now = now or local_now()
    days = (due.date() - to_local(now).date()).days
    return max(0, days)
