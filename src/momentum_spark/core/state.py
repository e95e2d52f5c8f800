# src/momentum_spark/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..client.preferences import AppSettings, PreferencesStore
from ..client.sync import TaskSync
from ..notify.notifier import Notifier
from .ports import Motivator, TaskApi


@dataclass
class ConsoleState:
    # Store Settings on the state for easy access in commands.
    settings: Any

    api: TaskApi
    sync: TaskSync
    preferences: PreferencesStore
    app_settings: AppSettings
    motivator: Motivator
    notifier: Notifier

    # Transient notifications (title, description) waiting to be printed.
    notices: list[tuple[str, str]] = field(default_factory=list)

    def notify(self, title: str, description: str) -> None:
        self.notices.append((title, description))

    def drain_notices(self) -> list[tuple[str, str]]:
        # Cleared in place: the notify callback wired at bootstrap appends to this list.
        out = list(self.notices)
        self.notices.clear()
        return out
