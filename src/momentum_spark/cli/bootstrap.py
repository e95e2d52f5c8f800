# src/momentum_spark/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root" of the console client:
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the HTTP task API, sync hook, preferences and motivator into ConsoleState.
"""

from __future__ import annotations

import logging

from ..client.api import HttpTaskApi
from ..client.preferences import PreferencesStore
from ..client.sync import TaskSync
from ..config import get_settings
from ..core.ports import Motivator
from ..core.state import ConsoleState
from ..errors import MotivationError
from ..llm.motivation import OpenAIMotivator
from ..llm.offline import OfflineMotivator
from ..notify.notifier import Notifier

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.preferences_path.parent.mkdir(parents=True, exist_ok=True)


def create_motivator(settings) -> Motivator:
    try:
        return OpenAIMotivator(settings)
    except MotivationError as e:
        # Local runs without an API key use the fixed templates.
        logger.info("Using offline motivator: %s", e)
        return OfflineMotivator(reminder_window_days=settings.reminder_window_days)


def create_initial_state(*, settings=None, api=None) -> ConsoleState:
    """
    Create ConsoleState from the provided settings.

    Settings and the task API are injectable for tests; by default the API talks
    HTTP to settings.api_url.
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    notices: list[tuple[str, str]] = []

    def notify(title: str, description: str) -> None:
        notices.append((title, description))

    if api is None:
        api = HttpTaskApi(settings.api_url, timeout=settings.api_timeout_seconds)

    preferences = PreferencesStore(settings.preferences_path)
    motivator = create_motivator(settings)

    return ConsoleState(
        settings=settings,
        api=api,
        sync=TaskSync(api, notify=notify),
        preferences=preferences,
        app_settings=preferences.load(),
        motivator=motivator,
        notifier=Notifier(
            motivator,
            notify,
            reminder_window_days=settings.reminder_window_days,
        ),
        notices=notices,
    )


async def close_state(state: ConsoleState) -> None:
    """Best-effort shutdown of network clients."""
    for resource in (state.api, state.motivator):
        aclose = getattr(resource, "aclose", None)
        if aclose is None:
            continue
        try:
            await aclose()
        except Exception:
            logger.debug("Closing %s failed.", type(resource).__name__, exc_info=True)
