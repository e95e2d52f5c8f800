# src/momentum_spark/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the client side.

The synchronization layer and the notifier depend on Protocols instead of the
concrete httpx / OpenAI implementations. This keeps the transport swappable and
makes testing easier.
"""

from collections.abc import Callable
from typing import Any, Protocol

from ..tasks.task_models import Task

NotifyFn = Callable[[str, str], None]
# Transient user-facing notification: notify(title, description).


class TaskApi(Protocol):
    """Remote task repository (the HTTP API seen from the client)."""

    async def list_tasks(self) -> list[Task]: ...
    async def get_task(self, task_id: int) -> Task: ...
    async def create_task(self, data: dict[str, Any]) -> Task: ...
    async def update_task(self, task_id: int, data: dict[str, Any]) -> Task: ...
    async def delete_task(self, task_id: int) -> None: ...


class Motivator(Protocol):
    """Fills a motivational message template for a task."""

    async def generate(self, data: Any) -> Any: ...
