# src/momentum_spark/tasks/task_models.py

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictBool, ValidationError, field_validator

from ..core.dates import is_valid_iso
from ..errors import FieldError, TaskValidationError

TITLE_MAX = 100
DESCRIPTION_MAX = 500
WEIGHT_MIN = 1
WEIGHT_MAX = 10

# Wire fields a client may send but never sets directly.
READ_ONLY_FIELDS = frozenset({"id", "createdAt", "updatedAt", "completedAt"})


class MessageType(StrEnum):
    """How a motivational message for the task is presented."""

    TEXT = "text"
    AUDIO = "audio"

    @classmethod
    def from_db(cls, raw: str | None) -> MessageType:
        if not raw:
            return cls.TEXT
        try:
            return cls(raw)
        except ValueError:
            return cls.TEXT


@dataclass(slots=True)
class Task:
    id: int
    title: str
    description: str | None
    weight: int
    due_date: str

    is_completed: bool
    is_recurring: bool
    message_type: MessageType

    created_at: str
    updated_at: str
    completed_at: str | None = None

    @property
    def completion_timestamp(self) -> str | None:
        """
        When the task became completed.

        Rows written before completedAt existed only carry updatedAt; callers must
        still check is_completed.
        """
        return self.completed_at or self.updated_at

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "weight": self.weight,
            "dueDate": self.due_date,
            "isCompleted": self.is_completed,
            "isRecurring": self.is_recurring,
            "messageType": self.message_type.value,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "completedAt": self.completed_at,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Task:
        """Build a Task from the JSON wire shape (as returned by the API)."""
        return cls(
            id=int(data["id"]),
            title=str(data["title"]),
            description=data.get("description"),
            weight=int(data["weight"]),
            due_date=str(data["dueDate"]),
            is_completed=bool(data.get("isCompleted", False)),
            is_recurring=bool(data.get("isRecurring", False)),
            message_type=MessageType.from_db(data.get("messageType")),
            created_at=str(data.get("createdAt") or ""),
            updated_at=str(data.get("updatedAt") or ""),
            completed_at=data.get("completedAt"),
        )


class TaskCreate(BaseModel):
    """Payload for creating a task: every mutable field, defaults applied."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True, use_enum_values=True)

    title: str = Field(min_length=1, max_length=TITLE_MAX)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX)
    weight: int = Field(ge=WEIGHT_MIN, le=WEIGHT_MAX)
    due_date: str = Field(alias="dueDate")
    is_completed: StrictBool = Field(default=False, alias="isCompleted")
    is_recurring: StrictBool = Field(default=False, alias="isRecurring")
    message_type: MessageType = Field(default=MessageType.TEXT, alias="messageType")

    @field_validator("due_date")
    @classmethod
    def _due_date_parses(cls, v: str) -> str:
        if not is_valid_iso(v):
            raise ValueError("Invalid due date.")
        return v


class TaskUpdate(BaseModel):
    """
    Partial update payload.

    Defaults are not validated, so an omitted field stays unset while an explicit
    null for a required field is rejected.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True, use_enum_values=True)

    title: str = Field(default=None, min_length=1, max_length=TITLE_MAX)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX)
    weight: int = Field(default=None, ge=WEIGHT_MIN, le=WEIGHT_MAX)
    due_date: str = Field(default=None, alias="dueDate")
    is_completed: StrictBool = Field(default=None, alias="isCompleted")
    is_recurring: StrictBool = Field(default=None, alias="isRecurring")
    message_type: MessageType = Field(default=None, alias="messageType")

    @field_validator("due_date")
    @classmethod
    def _due_date_parses(cls, v: str) -> str:
        if not is_valid_iso(v):
            raise ValueError("Invalid due date.")
        return v


_FRIENDLY_MESSAGES: dict[tuple[str, str], str] = {
    ("title", "string_too_short"): "Title is required.",
    ("title", "missing"): "Title is required.",
    ("title", "string_too_long"): f"Title must be {TITLE_MAX} characters or less.",
    ("description", "string_too_long"): f"Description must be {DESCRIPTION_MAX} characters or less.",
    ("weight", "greater_than_equal"): f"Weight must be at least {WEIGHT_MIN}.",
    ("weight", "less_than_equal"): f"Weight must be at most {WEIGHT_MAX}.",
    ("weight", "missing"): "Weight is required.",
    ("dueDate", "missing"): "Due date is required.",
    ("messageType", "enum"): "Message type must be 'text' or 'audio'.",
    ("isCompleted", "bool_type"): "isCompleted must be true or false.",
    ("isRecurring", "bool_type"): "isRecurring must be true or false.",
}


def _field_errors(exc: ValidationError) -> list[FieldError]:
    out: list[FieldError] = []
    for err in exc.errors():
        loc = err.get("loc") or ()
        field = ".".join(str(p) for p in loc) or "body"
        kind = str(err.get("type", ""))
        if kind == "extra_forbidden":
            message = "Unknown field."
        elif kind == "value_error":
            message = str(err.get("ctx", {}).get("error") or err.get("msg", "Invalid value."))
        else:
            message = _FRIENDLY_MESSAGES.get((field, kind), str(err.get("msg", "Invalid value.")))
        out.append(FieldError(field=field, message=message))
    return out


def validate_create(data: Mapping[str, Any]) -> dict[str, Any]:
    """
    Validate a create payload; returns column -> value with defaults applied.

    Raises TaskValidationError with field-level messages.
    """
    if not isinstance(data, Mapping):
        raise TaskValidationError([FieldError("body", "Expected a JSON object.")])
    payload = {k: v for k, v in data.items() if k not in READ_ONLY_FIELDS}
    try:
        model = TaskCreate.model_validate(payload)
    except ValidationError as e:
        raise TaskValidationError(_field_errors(e)) from e
    return model.model_dump(by_alias=True)


def validate_update(data: Mapping[str, Any]) -> dict[str, Any]:
    """
    Validate only the provided subset of a partial update.

    Returns column -> value for the fields actually present (possibly empty).
    """
    if not isinstance(data, Mapping):
        raise TaskValidationError([FieldError("body", "Expected a JSON object.")])
    payload = {k: v for k, v in data.items() if k not in READ_ONLY_FIELDS}
    try:
        model = TaskUpdate.model_validate(payload)
    except ValidationError as e:
        raise TaskValidationError(_field_errors(e)) from e
    return model.model_dump(by_alias=True, exclude_unset=True)
