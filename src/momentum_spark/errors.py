# src/momentum_spark/errors.py

"""
Exception taxonomy shared by the server and the client.

Server side (mapped to HTTP status codes by the web layer):
- TaskValidationError -> 400
- TaskNotFoundError   -> 404
- StorageError        -> 500

Client side:
- TaskApiError: transport / HTTP / decoding failure talking to the API
- MotivationError: the message provider failed
"""

from __future__ import annotations

from dataclasses import dataclass


class MomentumError(Exception):
    """Base class for all application errors."""


@dataclass(frozen=True, slots=True)
class FieldError:
    field: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message}


class TaskValidationError(MomentumError):
    def __init__(self, errors: list[FieldError]) -> None:
        self.errors = list(errors)
        summary = "; ".join(f"{e.field}: {e.message}" for e in self.errors) or "invalid input"
        super().__init__(f"Validation failed: {summary}")


class TaskNotFoundError(MomentumError):
    def __init__(self, task_id: int) -> None:
        self.task_id = task_id
        super().__init__(f"Task not found: {task_id}")


class StorageError(MomentumError):
    """Database open/initialize failure or an inconsistent read-back."""


class TaskApiError(MomentumError):
    def __init__(self, message: str, status: int | None = None) -> None:
        self.status = status
        super().__init__(message)


class MotivationError(MomentumError):
    """The motivational message provider failed (transport, auth, empty output)."""
