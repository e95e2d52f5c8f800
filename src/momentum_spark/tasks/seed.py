# src/momentum_spark/tasks/seed.py

"""Example tasks inserted once when a list call observes an empty table."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from ..core.dates import iso_timestamp

# (title, description, weight, due in days, completed, recurring)
_SEED_ROWS: tuple[tuple[str, str, int, int, bool, bool], ...] = (
    ("Morning Review", "Plan your day.", 3, 0, False, True),
    ("Evening Wind-Down", "Reflect on the day and prepare for tomorrow.", 2, 0, False, True),
    ("Review Project Proposal", "Go over the new proposal and provide feedback.", 8, 3, False, False),
    ("Schedule Team Meeting", "Coordinate with team members to find a suitable time.", 5, 7, False, False),
    ("Submit Monthly Report", "Compile and submit the report for last month's activities.", 10, 1, True, False),
)


def default_seed_tasks(now: datetime) -> list[dict[str, Any]]:
    """Seed payloads (wire shape) with due dates relative to `now`."""
    return [
        {
            "title": title,
            "description": description,
            "weight": weight,
            "dueDate": iso_timestamp(now + timedelta(days=days)),
            "isCompleted": completed,
            "isRecurring": recurring,
            "messageType": "text",
        }
        for title, description, weight, days, completed, recurring in _SEED_ROWS
    ]
