# src/momentum_spark/client/api.py

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..errors import TaskApiError
from ..tasks.task_models import Task

logger = logging.getLogger(__name__)


class HttpTaskApi:
    """
    TaskApi over HTTP (httpx.AsyncClient).

    No retries: every transport, HTTP or decoding failure surfaces as
    TaskApiError carrying the server's message when there is one.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> HttpTaskApi:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _request(self, method: str, path: str, fallback: str, **kwargs: Any) -> Any:
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise TaskApiError(f"{fallback}: {e.__class__.__name__}") from e

        if resp.is_error:
            message = fallback
            try:
                body = resp.json()
                if isinstance(body, dict) and body.get("message"):
                    message = str(body["message"])
            except ValueError:
                pass
            logger.info("%s %s -> %s %s", method, path, resp.status_code, message)
            raise TaskApiError(message, status=resp.status_code)

        try:
            return resp.json()
        except ValueError as e:
            raise TaskApiError(f"{fallback}: invalid JSON response", status=resp.status_code) from e

    @staticmethod
    def _to_task(data: Any, fallback: str) -> Task:
        try:
            return Task.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise TaskApiError(f"{fallback}: malformed task") from e

    async def list_tasks(self) -> list[Task]:
        data = await self._request("GET", "/tasks", "Failed to fetch tasks")
        if not isinstance(data, list):
            raise TaskApiError("Failed to fetch tasks: expected a list")
        return [self._to_task(item, "Failed to fetch tasks") for item in data]

    async def get_task(self, task_id: int) -> Task:
        data = await self._request("GET", f"/tasks/{int(task_id)}", "Failed to fetch task")
        return self._to_task(data, "Failed to fetch task")

    async def create_task(self, data: dict[str, Any]) -> Task:
        body = await self._request("POST", "/tasks", "Failed to create task", json=data)
        return self._to_task(body, "Failed to create task")

    async def update_task(self, task_id: int, data: dict[str, Any]) -> Task:
        body = await self._request("PUT", f"/tasks/{int(task_id)}", "Failed to update task", json=data)
        return self._to_task(body, "Failed to update task")

    async def delete_task(self, task_id: int) -> None:
        await self._request("DELETE", f"/tasks/{int(task_id)}", "Failed to delete task")
