# src/momentum_spark/llm/offline.py

from __future__ import annotations

from .motivation import MotivationalMessageInput, MotivationalMessageOutput, render_template


def choose_template(data: MotivationalMessageInput, *, reminder_window_days: int = 1) -> str:
    """
    Pick one of the four fixed templates.

    - completed close to the deadline -> urgency
    - completed                       -> completion
    - pending and due within the window -> approaching
    - anything else                   -> encouragement
    """
    days = data.daysUntilDueDate
    if data.taskCompletionStatus:
        return "urgency" if days <= 1 else "completion"
    if days <= reminder_window_days:
        return "approaching"
    return "encouragement"


class OfflineMotivator:
    """
    Offline deterministic motivator used when no external API is configured.

    Fills the same templates the hosted model chooses from, without any network.
    """

    def __init__(self, *, reminder_window_days: int = 1) -> None:
        self._window = reminder_window_days

    async def generate(self, data: MotivationalMessageInput) -> MotivationalMessageOutput:
        key = choose_template(data, reminder_window_days=self._window)
        return MotivationalMessageOutput(message=render_template(key, data))
