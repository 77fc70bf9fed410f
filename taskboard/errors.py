# PURPOSE: typed failures raised by the auth gate and the task engine.
# The HTTP layer (api/errors.py) maps each one to a status code and a safe message.

from typing import Any


class TaskboardError(Exception):
    """Base class for domain failures; `message` is safe to show to clients."""

    status_code: int = 500
    message: str = "Internal server error"

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class Unauthenticated(TaskboardError):
    status_code = 401
    message = "Could not validate credentials"


class ValidationError(TaskboardError):
    status_code = 400
    message = "ValidationError"

    def __init__(self, details: list[dict[str, Any]] | str):
        if isinstance(details, str):
            details = [{"loc": [], "msg": details}]
        self.details = details
        super().__init__()

    @classmethod
    def for_field(cls, field: str, msg: str, *, loc: str = "body") -> "ValidationError":
        return cls([{"loc": [loc, field], "msg": msg}])

    @classmethod
    def from_errors(cls, errors: list[dict[str, Any]], *, loc: str | None = "body") -> "ValidationError":
        """Build from pydantic's `errors()`, keeping only JSON-safe keys."""
        prefix = [loc] if loc else []
        details = [
            {"type": e.get("type"), "loc": [*prefix, *e.get("loc", ())], "msg": e.get("msg")}
            for e in errors
        ]
        return cls(details)


class NotFound(TaskboardError):
    # Same message whether the task is missing or owned by someone else
    status_code = 404
    message = "Task not found"


class NoData(TaskboardError):
    status_code = 404
    message = "No tasks to export"


class StoreUnavailable(TaskboardError):
    status_code = 500
    message = "Internal server error"
