# tests/test_views.py

from __future__ import annotations

from datetime import datetime, timedelta

from momentum_spark.core.dates import iso_timestamp
from momentum_spark.core.views import TaskFilter, TaskSort, group_tasks

from .fakes import FIXED_NOW, make_task


def _at(days: int) -> str:
    return iso_timestamp(FIXED_NOW + timedelta(days=days))


def _tasks():
    last_month = iso_timestamp(datetime(2024, 4, 20, 12, 0).astimezone())
    return [
        make_task(1, title="Walk", is_recurring=True),
        make_task(2, title="Read", is_recurring=True),
        make_task(3, title="Taxes", weight=9, due_date=_at(10), description="Federal forms"),
        make_task(4, title="Dentist", weight=2, due_date=_at(2)),
        make_task(5, title="Report", is_completed=True, completed_at=_at(-2)),
        make_task(6, title="Old goal", is_completed=True, completed_at=last_month),
        make_task(7, title="Slides", is_completed=True, completed_at=_at(-1)),
    ]


def test_default_grouping() -> None:
    groups = group_tasks(_tasks(), now=FIXED_NOW)
    assert [t.title for t in groups.daily] == ["Read", "Walk"]
    assert [t.title for t in groups.long_term] == ["Dentist", "Taxes"]
    # Most recently completed first.
    assert [t.title for t in groups.completed_this_month] == ["Slides", "Report"]


def test_completed_filter_shows_older_completions() -> None:
    groups = group_tasks(_tasks(), filter=TaskFilter.COMPLETED, now=FIXED_NOW)
    assert [t.title for t in groups.long_term] == ["Old goal"]


def test_all_filter_sorted_by_weight() -> None:
    groups = group_tasks(_tasks(), filter="all", sort=TaskSort.WEIGHT, now=FIXED_NOW)
    assert [t.title for t in groups.long_term][0] == "Taxes"
    assert {t.title for t in groups.long_term} == {"Taxes", "Dentist", "Old goal"}


def test_search_matches_title_or_description_case_insensitive() -> None:
    assert [t.title for t in group_tasks(_tasks(), search="FEDERAL", now=FIXED_NOW).long_term] == ["Taxes"]
    assert [t.title for t in group_tasks(_tasks(), search="dent", now=FIXED_NOW).long_term] == ["Dentist"]
    # Search only narrows the long-term list.
    assert len(group_tasks(_tasks(), search="nothing", now=FIXED_NOW).daily) == 2


def test_sort_by_title_and_status() -> None:
    by_title = group_tasks(_tasks(), filter="all", sort="title", now=FIXED_NOW).long_term
    assert [t.title for t in by_title] == ["Dentist", "Old goal", "Taxes"]

    by_status = group_tasks(_tasks(), filter="all", sort="status", now=FIXED_NOW).long_term
    assert by_status[-1].title == "Old goal"
