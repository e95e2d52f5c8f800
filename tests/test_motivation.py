# tests/test_motivation.py

from __future__ import annotations

import math
from types import SimpleNamespace

import httpx
import openai
import pytest

from momentum_spark.errors import MotivationError
from momentum_spark.llm.motivation import (
    TEMPLATES,
    MotivationalMessageInput,
    OpenAIMotivator,
    build_prompt,
    format_days,
    parse_output,
)
from momentum_spark.llm.offline import OfflineMotivator, choose_template


def _input(completed: bool, days: float) -> MotivationalMessageInput:
    return MotivationalMessageInput(
        taskName="Report", userName="Ana", taskCompletionStatus=completed, daysUntilDueDate=days
    )


@pytest.mark.parametrize(
    ("completed", "days", "expected"),
    [
        (True, 0, "urgency"),
        (True, 1, "urgency"),
        (True, 5, "completion"),
        (True, math.inf, "completion"),
        (False, 1, "approaching"),
        (False, 4, "encouragement"),
        (False, math.inf, "encouragement"),
    ],
)
def test_choose_template(completed, days, expected) -> None:
    assert choose_template(_input(completed, days)) == expected


def test_reminder_window_widens_approaching() -> None:
    assert choose_template(_input(False, 3), reminder_window_days=3) == "approaching"


@pytest.mark.asyncio
async def test_offline_motivator_fills_template() -> None:
    motivator = OfflineMotivator()

    done = await motivator.generate(_input(True, 5))
    assert done.message == "Great job, Ana! You've completed Report. Keep up the momentum!"

    soon = await motivator.generate(_input(False, 1))
    assert soon.message == "Hey Ana, Report is due in 1 days. You've got this!"


def test_input_accepts_infinity() -> None:
    data = _input(False, math.inf)
    assert math.isinf(data.daysUntilDueDate)
    assert format_days(data.daysUntilDueDate) == "an unknown number of"
    assert format_days(2.0) == "2"


def test_build_prompt_mentions_inputs_and_templates() -> None:
    prompt = build_prompt(_input(True, 2))
    assert "User Name: Ana" in prompt
    assert "Task Name: Report" in prompt
    assert "Task Completion Status: true" in prompt
    assert "Days Until Due Date: 2" in prompt
    for text in TEMPLATES.values():
        assert text in prompt


def test_parse_output() -> None:
    assert parse_output('{"message": "Nice work"}').message == "Nice work"
    assert parse_output('"Quoted"').message == "Quoted"
    assert parse_output("  Plain text  ").message == "Plain text"
    with pytest.raises(MotivationError):
        parse_output("   ")


def _settings(**overrides) -> SimpleNamespace:
    data = {
        "openai_api_key": "sk-test",
        "openai_base_url": None,
        "llm_model": "gpt-4o-mini",
        "llm_timeout_seconds": 5.0,
    }
    data.update(overrides)
    return SimpleNamespace(**data)


class _FakeCompletions:
    def __init__(self, *, content: str | None = None, error: Exception | None = None) -> None:
        self.content = content
        self.error = error
        self.calls: list[dict] = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _motivator_with(completions: _FakeCompletions) -> OpenAIMotivator:
    motivator = OpenAIMotivator(_settings())
    motivator._client = SimpleNamespace(chat=SimpleNamespace(completions=completions))  # type: ignore[assignment]
    return motivator


def test_missing_key_is_a_motivation_error() -> None:
    with pytest.raises(MotivationError):
        OpenAIMotivator(_settings(openai_api_key=None))
    with pytest.raises(MotivationError):
        OpenAIMotivator(_settings(llm_model=" "))


@pytest.mark.asyncio
async def test_openai_motivator_single_request() -> None:
    completions = _FakeCompletions(content='{"message": "You did it, Ana!"}')
    out = await _motivator_with(completions).generate(_input(True, 0))

    assert out.message == "You did it, Ana!"
    (call,) = completions.calls
    assert call["model"] == "gpt-4o-mini"
    assert "Task Name: Report" in call["messages"][0]["content"]


@pytest.mark.asyncio
async def test_openai_motivator_maps_provider_errors() -> None:
    request = httpx.Request("POST", "https://api.example.test/v1/chat/completions")

    connection = _FakeCompletions(error=openai.APIConnectionError(request=request))
    with pytest.raises(MotivationError, match="network"):
        await _motivator_with(connection).generate(_input(True, 0))

    unexpected = _FakeCompletions(error=RuntimeError("boom"))
    with pytest.raises(MotivationError, match="RuntimeError"):
        await _motivator_with(unexpected).generate(_input(True, 0))

    empty = _FakeCompletions(content="")
    with pytest.raises(MotivationError):
        await _motivator_with(empty).generate(_input(True, 0))
