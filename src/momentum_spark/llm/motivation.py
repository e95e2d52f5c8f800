# src/momentum_spark/llm/motivation.py

from __future__ import annotations

import json
import logging
import math
from typing import Any

import openai
from openai import AsyncOpenAI
from pydantic import BaseModel, Field, ValidationError

from ..errors import MotivationError

logger = logging.getLogger(__name__)


class MotivationalMessageInput(BaseModel):
    taskName: str = Field(description="The name of the task.")
    userName: str = Field(description="The name of the user.")
    taskCompletionStatus: bool = Field(description="Whether the task is completed or not.")
    daysUntilDueDate: float = Field(description="The number of days until the task due date.")


class MotivationalMessageOutput(BaseModel):
    message: str = Field(description="The personalized motivational message.")


TEMPLATES: dict[str, str] = {
    "completion": "Great job, {userName}! You've completed {taskName}. Keep up the momentum!",
    "approaching": "Hey {userName}, {taskName} is due in {daysUntilDueDate} days. You've got this!",
    "urgency": "Excellent! Finishing {taskName} brings you closer to your goals. What's next, {userName}?",
    "encouragement": (
        "Just a reminder, {userName}, {taskName} is on your list. "
        "A little progress each day adds up to big results!"
    ),
}

_TEMPLATE_TITLES = {
    "completion": "Task Completion",
    "approaching": "Approaching Due Date",
    "urgency": "Task Completion with Urgency",
    "encouragement": "Encouragement",
}


def format_days(days: float) -> str:
    if math.isinf(days) or math.isnan(days):
        return "an unknown number of"
    return str(int(days))


def render_template(key: str, data: MotivationalMessageInput) -> str:
    return TEMPLATES[key].format(
        userName=data.userName,
        taskName=data.taskName,
        daysUntilDueDate=format_days(data.daysUntilDueDate),
    )


def build_prompt(data: MotivationalMessageInput) -> str:
    templates = "\n".join(
        f'  - {_TEMPLATE_TITLES[key]}: "{text}"' for key, text in TEMPLATES.items()
    )
    return (
        "You are a motivational assistant that provides personalized messages to users "
        "based on their task completion status and due dates.\n\n"
        "Here are some message templates:\n"
        f"{templates}\n\n"
        "Based on the following information, select the best message template and personalize it:\n"
        f"  User Name: {data.userName}\n"
        f"  Task Name: {data.taskName}\n"
        f"  Task Completion Status: {str(data.taskCompletionStatus).lower()}\n"
        f"  Days Until Due Date: {format_days(data.daysUntilDueDate)}\n\n"
        "Ensure the message is concise and encouraging. "
        'Reply with a JSON object of the form {"message": "..."}.'
    )


def _is_auth_error(exc: Exception) -> bool:
    return isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError))


def _is_rate_limit_error(exc: Exception) -> bool:
    return isinstance(exc, openai.RateLimitError)


def _is_connection_error(exc: Exception) -> bool:
    return isinstance(exc, (openai.APIConnectionError, openai.APITimeoutError))


def parse_output(content: str) -> MotivationalMessageOutput:
    """Accept the requested JSON object; fall back to treating content as the message."""
    text = (content or "").strip()
    if not text:
        raise MotivationError("Model returned no content.")
    try:
        return MotivationalMessageOutput.model_validate_json(text)
    except ValidationError:
        pass
    try:
        decoded: Any = json.loads(text)
    except ValueError:
        decoded = None
    if isinstance(decoded, str) and decoded.strip():
        return MotivationalMessageOutput(message=decoded.strip())
    return MotivationalMessageOutput(message=text.strip('"').strip())


class OpenAIMotivator:
    """
    Motivational messages from an OpenAI-compatible chat completion.

    One request per message; automatic retries are disabled so a provider
    failure surfaces immediately as MotivationError.
    """

    def __init__(self, settings: Any) -> None:
        api_key = getattr(settings, "openai_api_key", None)
        if not api_key or not str(api_key).strip():
            raise MotivationError("LLM API key is not set. Set MOMENTUM_OPENAI_API_KEY in your .env.")

        self._model = str(getattr(settings, "llm_model", "") or "").strip()
        if not self._model:
            raise MotivationError("LLM model is not set. Set MOMENTUM_LLM_MODEL in your .env.")

        self._timeout = float(getattr(settings, "llm_timeout_seconds", 20.0))
        self._api_key = str(api_key)
        self._base_url = getattr(settings, "openai_base_url", None) or None
        self._client: AsyncOpenAI | None = None

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self._api_key,
                base_url=self._base_url,
                timeout=self._timeout,
                max_retries=0,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None

    async def generate(self, data: MotivationalMessageInput) -> MotivationalMessageOutput:
        client = self._get_client()
        logger.info("LLM: requesting motivational message model=%s task=%r", self._model, data.taskName)
        try:
            resp = await client.chat.completions.create(
                model=self._model,
                messages=[{"role": "user", "content": build_prompt(data)}],
                response_format={"type": "json_object"},
            )
        except Exception as e:
            if _is_auth_error(e):
                raise MotivationError(
                    "LLM authentication failed. Check your API key (MOMENTUM_OPENAI_API_KEY)."
                ) from e
            if _is_rate_limit_error(e):
                raise MotivationError("LLM is rate-limited. Try again later.") from e
            if _is_connection_error(e):
                raise MotivationError("LLM network/timeout error. Try again later.") from e
            logger.info("LLM: error on model=%s (%s)", self._model, e.__class__.__name__)
            raise MotivationError(f"LLM request failed: {e.__class__.__name__}") from e

        try:
            content = resp.choices[0].message.content or ""
        except (IndexError, AttributeError) as e:
            raise MotivationError("Model returned no choices.") from e
        return parse_output(content)
