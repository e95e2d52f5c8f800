# tests/test_api_client.py

from __future__ import annotations

import json

import httpx
import pytest

from momentum_spark.client.api import HttpTaskApi
from momentum_spark.errors import TaskApiError

from .fakes import make_task


def _api(handler) -> HttpTaskApi:
    return HttpTaskApi("http://testserver/api/", transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_list_and_get_decode_tasks() -> None:
    seen: list[tuple[str, str]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.path))
        if request.url.path == "/api/tasks":
            return httpx.Response(200, json=[make_task(1).to_dict(), make_task(2).to_dict()])
        return httpx.Response(200, json=make_task(2, title="Second").to_dict())

    async with _api(handler) as api:
        tasks = await api.list_tasks()
        task = await api.get_task(2)

    assert [t.id for t in tasks] == [1, 2]
    assert task.title == "Second"
    assert seen == [("GET", "/api/tasks"), ("GET", "/api/tasks/2")]


@pytest.mark.asyncio
async def test_create_and_update_send_json_bodies() -> None:
    bodies: list[tuple[str, dict]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        bodies.append((request.method, body))
        if request.method == "POST":
            return httpx.Response(201, json=make_task(5).to_dict())
        return httpx.Response(200, json=make_task(5, is_completed=True).to_dict())

    async with _api(handler) as api:
        created = await api.create_task({"title": "x", "weight": 2, "dueDate": "2024-05-20"})
        updated = await api.update_task(5, {"isCompleted": True})

    assert created.id == 5
    assert updated.is_completed is True
    assert bodies == [
        ("POST", {"title": "x", "weight": 2, "dueDate": "2024-05-20"}),
        ("PUT", {"isCompleted": True}),
    ]


@pytest.mark.asyncio
async def test_error_status_uses_server_message() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"message": "Task not found"})

    async with _api(handler) as api:
        with pytest.raises(TaskApiError) as exc:
            await api.update_task(9, {"title": "y"})

    assert str(exc.value) == "Task not found"
    assert exc.value.status == 404


@pytest.mark.asyncio
async def test_error_status_without_body_uses_fallback() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="oops")

    async with _api(handler) as api:
        with pytest.raises(TaskApiError) as exc:
            await api.delete_task(1)

    assert str(exc.value) == "Failed to delete task"
    assert exc.value.status == 500


@pytest.mark.asyncio
async def test_transport_error_becomes_task_api_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    async with _api(handler) as api:
        with pytest.raises(TaskApiError) as exc:
            await api.list_tasks()

    assert str(exc.value).startswith("Failed to fetch tasks")
    assert exc.value.status is None


@pytest.mark.asyncio
async def test_malformed_payloads_are_rejected() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/tasks"):
            return httpx.Response(200, json={"not": "a list"})
        return httpx.Response(200, text="<html>")

    async with _api(handler) as api:
        with pytest.raises(TaskApiError):
            await api.list_tasks()
        with pytest.raises(TaskApiError):
            await api.get_task(1)
