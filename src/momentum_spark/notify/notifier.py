# src/momentum_spark/notify/notifier.py

from __future__ import annotations

import logging
from collections.abc import Iterable

from ..client.preferences import AppSettings
from ..core.dates import Clock, local_now
from ..core.ports import Motivator, NotifyFn
from ..core.progress import days_until_due
from ..errors import MotivationError
from ..llm.motivation import MotivationalMessageInput
from ..tasks.task_models import MessageType, Task

logger = logging.getLogger(__name__)


class Notifier:
    """
    Motivational messages around task events.

    - on_toggled: a one-time task was just completed -> success message
    - check_upcoming: a pending one-time task is due within the reminder window
      -> reminder, at most once per task id until the upcoming task changes
    """

    def __init__(
        self,
        motivator: Motivator,
        notify: NotifyFn,
        *,
        clock: Clock | None = None,
        reminder_window_days: int = 1,
    ) -> None:
        self._motivator = motivator
        self._notify = notify
        self._clock: Clock = clock or local_now
        self._window = reminder_window_days
        self.last_notified_id: int | None = None

    async def on_toggled(
        self, task: Task, completed: bool, settings: AppSettings
    ) -> tuple[str, MessageType] | None:
        if not completed or task.is_recurring:
            return None

        data = MotivationalMessageInput(
            taskName=task.title,
            userName=settings.userName,
            taskCompletionStatus=True,
            daysUntilDueDate=days_until_due(task, self._clock()),
        )
        try:
            out = await self._motivator.generate(data)
        except MotivationError as e:
            logger.error("Failed to generate motivational message for task %s: %s", task.id, e)
            self._notify("AI Message Error", "Could not generate motivational message.")
            return None
        return out.message, task.message_type

    def _find_upcoming(self, tasks: Iterable[Task]) -> Task | None:
        now = self._clock()
        for task in tasks:
            if task.is_completed or task.is_recurring:
                continue
            if 0 <= days_until_due(task, now) <= self._window:
                return task
        return None

    async def check_upcoming(self, tasks: Iterable[Task], settings: AppSettings) -> str | None:
        if not settings.enableNotifications:
            self.last_notified_id = None
            return None

        upcoming = self._find_upcoming(tasks)
        if upcoming is None:
            self.last_notified_id = None
            return None
        if upcoming.id == self.last_notified_id:
            return None

        data = MotivationalMessageInput(
            taskName=upcoming.title,
            userName=settings.userName,
            taskCompletionStatus=False,
            daysUntilDueDate=days_until_due(upcoming, self._clock()),
        )
        try:
            out = await self._motivator.generate(data)
        except MotivationError as e:
            # Not remembered, so the next check tries again.
            logger.error("Failed to generate due date reminder for task %s: %s", upcoming.id, e)
            return None

        self._notify(f"Reminder: {upcoming.title}", out.message)
        self.last_notified_id = upcoming.id
        return out.message
