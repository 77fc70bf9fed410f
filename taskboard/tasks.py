"""Task query engine: every task operation, scoped to a verified identity.

All lookups go through the repository's owner-scoped queries. A task that
does not exist and a task that belongs to someone else both raise the same
NotFound, so callers cannot probe for other users' ids.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, List, Optional, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .db_models import TaskDB, now_utc
from .errors import NoData, NotFound, ValidationError
from .models import TaskCreate, TaskExportRow, TaskSummary, TaskUpdate, UserIdentity
from .query import TaskFilters, build_task_query
from .store_db import TaskRepository

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

# fields a partial update may clear with an explicit null
_NULLABLE = ("description", "due_date")
_NOT_NULLABLE = ("title", "priority", "status", "completed")


def _validate(model: type[M], fields: M | Mapping[str, Any] | None) -> M:
    if isinstance(fields, model):
        return fields
    try:
        return model.model_validate(dict(fields or {}))
    except PydanticValidationError as exc:
        raise ValidationError.from_errors(exc.errors()) from exc


def resolve_status(
    status: Optional[str],
    completed: Optional[bool],
    *,
    current: str = "pending",
) -> str:
    """Reconcile status and its boolean mirror into one status value.

    Either may be given alone; if both are given they have to agree.
    """
    if status is None and completed is None:
        return current
    if status is None:
        return "completed" if completed else "pending"
    if completed is not None and completed != (status == "completed"):
        raise ValidationError.for_field("completed", "completed must match status")
    return status


class TaskQueryEngine:
    def __init__(self, repo: TaskRepository):
        self.repo = repo

    def _get_owned(self, identity: UserIdentity, task_id: int) -> TaskDB:
        row = self.repo.get_owned(identity, task_id)
        if row is None:
            raise NotFound()
        return row

    def create(self, identity: UserIdentity, fields: TaskCreate | Mapping[str, Any]) -> TaskDB:
        data = _validate(TaskCreate, fields)
        explicit_status = data.status if "status" in data.model_fields_set else None
        status = resolve_status(explicit_status, data.completed)
        now = now_utc()
        row = TaskDB(
            title=data.title,
            description=data.description,
            priority=data.priority,
            status=status,
            completed=status == "completed",
            due_date=data.due_date,
            owner_id=identity.id,  # never from the request body
            created_at=now,
            updated_at=now,
        )
        row = self.repo.add(row)
        logger.info("task created id=%s owner_id=%s", row.id, identity.id)
        return row

    def list(self, identity: UserIdentity, filters: Optional[TaskFilters] = None) -> List[TaskDB]:
        return self.repo.find(build_task_query(identity, filters))

    def get(self, identity: UserIdentity, task_id: int) -> TaskDB:
        return self._get_owned(identity, task_id)

    def update(
        self,
        identity: UserIdentity,
        task_id: int,
        fields: TaskUpdate | Mapping[str, Any],
    ) -> TaskDB:
        data = _validate(TaskUpdate, fields)
        changes = data.model_dump(exclude_unset=True)
        for name in _NOT_NULLABLE:
            if name in changes and changes[name] is None:
                raise ValidationError.for_field(name, f"{name} may not be null")

        row = self._get_owned(identity, task_id)
        status = resolve_status(changes.get("status"), changes.get("completed"), current=row.status)
        if "title" in changes:
            row.title = changes["title"]
        if "priority" in changes:
            row.priority = changes["priority"]
        for name in _NULLABLE:
            if name in changes:
                setattr(row, name, changes[name])
        row.status = status
        row.completed = status == "completed"
        return self.repo.save(row)

    def set_status(self, identity: UserIdentity, task_id: int, status: str) -> TaskDB:
        return self.update(identity, task_id, {"status": status})

    def delete(self, identity: UserIdentity, task_id: int) -> None:
        row = self._get_owned(identity, task_id)
        self.repo.delete(row)
        logger.info("task deleted id=%s owner_id=%s", task_id, identity.id)

    def export_all(self, identity: UserIdentity) -> List[TaskExportRow]:
        rows = self.repo.all_owned(identity)
        if not rows:
            raise NoData()
        return [TaskExportRow.model_validate(row) for row in rows]

    def summary(self, identity: UserIdentity) -> TaskSummary:
        return TaskSummary(**self.repo.counts(identity))
