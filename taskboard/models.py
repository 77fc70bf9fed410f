# PURPOSE: pydantic request/response schemas for tasks and users.

from datetime import UTC, datetime
from typing import Annotated, Literal

from pydantic import AfterValidator, AliasChoices, BaseModel, ConfigDict, EmailStr, Field

Priority = Literal["low", "medium", "high"]
Status = Literal["pending", "completed"]

PRIORITIES: tuple[str, ...] = ("low", "medium", "high")
STATUSES: tuple[str, ...] = ("pending", "completed")

# the dashboard sends camelCase dueDate
DUE_DATE_ALIASES = AliasChoices("due_date", "dueDate")


def to_naive_utc(value: datetime | None) -> datetime | None:
    """Due dates are stored as naive UTC so ordering follows the actual instant."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


DueDate = Annotated[datetime | None, AfterValidator(to_naive_utc)]


class TaskCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    priority: Priority = "low"
    status: Status = "pending"
    # legacy mirror of status; accepted so older clients keep working
    completed: bool | None = None
    due_date: DueDate = Field(default=None, validation_alias=DUE_DATE_ALIASES)
    # owner_id / userId / id in the body are dropped here

    model_config = ConfigDict(
        extra="ignore",
        str_strip_whitespace=True,
        json_schema_extra={
            "examples": [
                {"title": "Buy milk", "priority": "medium"},
                {"title": "Plan trip", "description": "Book flights", "priority": "high", "due_date": "2025-12-31T18:00:00Z"},
            ]
        },
    )


class TaskUpdate(BaseModel):
    """Partial update: only fields present in the body are applied."""

    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    priority: Priority | None = None
    status: Status | None = None
    completed: bool | None = None
    due_date: DueDate = Field(default=None, validation_alias=DUE_DATE_ALIASES)

    model_config = ConfigDict(
        extra="ignore",
        str_strip_whitespace=True,
        json_schema_extra={
            "examples": [
                {"status": "completed"},
                {"priority": "high"},
                {"title": "New title", "due_date": None},
            ]
        },
    )


class TaskStatusUpdate(BaseModel):
    status: Status
    model_config = ConfigDict(extra="ignore")


class Task(BaseModel):
    id: int
    title: str
    description: str | None
    priority: Priority
    status: Status
    completed: bool
    due_date: datetime | None
    owner_id: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)  # ORM -> schema


class TaskExportRow(BaseModel):
    """Flat projection of a task for CSV export."""

    title: str
    description: str | None
    priority: Priority
    due_date: datetime | None
    status: Status
    completed: bool

    model_config = ConfigDict(from_attributes=True)


class TaskSummary(BaseModel):
    total: int
    completed: int
    pending: int
    high_priority_pending: int


class Message(BaseModel):
    message: str


# --- User / Auth schemas ---


class UserBase(BaseModel):
    email: EmailStr
    username: str = Field(min_length=3, max_length=50)


class UserCreate(UserBase):
    # Raw password only in create request
    password: str = Field(min_length=6, max_length=72)


class UserIdentity(UserBase):
    """Verified identity of the caller, resolved from the bearer token only."""

    id: int
    model_config = ConfigDict(from_attributes=True)  # allow ORM -> schema


class TokenResponse(BaseModel):
    access_token: str
    token_type: Literal["bearer"] = "bearer"
    model_config = ConfigDict(
        json_schema_extra={"examples": [{"access_token": "<jwt>", "token_type": "bearer"}]}
    )
