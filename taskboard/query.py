"""Task predicate builder.

Turns the caller's optional filters into a scoped query over the tasks table.
The owner predicate is always first and comes from the verified identity,
never from the filters, so no combination of filters can widen the result
beyond the caller's own tasks.

Everything here is pure: `build_task_query` only builds SQLAlchemy
expressions, it never touches a session.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy import ColumnElement, Select, and_, case, or_, select

from .db_models import TaskDB
from .errors import Unauthenticated, ValidationError
from .models import PRIORITIES, STATUSES, UserIdentity

# values the dashboard sends for "no filter"
_NO_FILTER = ("", "all")

# due_date ascending with undated tasks first, then insertion order
DUE_DATE_ORDER = (
    case((TaskDB.due_date.is_(None), 0), else_=1),
    TaskDB.due_date.asc(),
    TaskDB.id.asc(),
)


def _normalize(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    if value.lower() in _NO_FILTER:
        return None
    return value


@dataclass(frozen=True)
class TaskFilters:
    status: str | None = None
    priority: str | None = None
    search: str | None = None

    @classmethod
    def parse(
        cls,
        status: str | None = None,
        priority: str | None = None,
        search: str | None = None,
    ) -> TaskFilters:
        """Validate raw query-string values; blank or "all" means no filter."""
        status = _normalize(status)
        priority = _normalize(priority)
        if status is not None:
            status = status.lower()
            if status not in STATUSES:
                raise ValidationError.for_field(
                    "status", "status must be one of: pending, completed", loc="query"
                )
        if priority is not None:
            priority = priority.lower()
            if priority not in PRIORITIES:
                raise ValidationError.for_field(
                    "priority", "priority must be one of: low, medium, high", loc="query"
                )
        if search is not None:
            search = search.strip() or None
        return cls(status=status, priority=priority, search=search)


@dataclass(frozen=True)
class TaskQuery:
    """Ordered, named predicates; all of them are ANDed together."""

    owner_id: int
    predicates: tuple[tuple[str, ColumnElement[Any]], ...]

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self.predicates)

    def where_clause(self) -> ColumnElement[Any]:
        return and_(*(expr for _, expr in self.predicates))

    def statement(self) -> Select:
        return select(TaskDB).where(self.where_clause()).order_by(*DUE_DATE_ORDER)


def owner_predicate(identity: UserIdentity) -> ColumnElement[Any]:
    if identity is None or identity.id is None:
        raise Unauthenticated()
    return TaskDB.owner_id == identity.id


def build_task_query(identity: UserIdentity, filters: TaskFilters | None = None) -> TaskQuery:
    filters = filters or TaskFilters()
    predicates: list[tuple[str, ColumnElement[Any]]] = [("owner", owner_predicate(identity))]

    if filters.status == "completed":
        predicates.append(("status", TaskDB.completed.is_(True)))
    elif filters.status == "pending":
        predicates.append(("status", TaskDB.completed.is_(False)))

    if filters.priority:
        predicates.append(("priority", TaskDB.priority == filters.priority))

    if filters.search:
        # literal, case-insensitive containment: % and _ in the text are escaped
        predicates.append(
            (
                "search",
                or_(
                    TaskDB.title.icontains(filters.search, autoescape=True),
                    TaskDB.description.icontains(filters.search, autoescape=True),
                ),
            )
        )

    return TaskQuery(owner_id=identity.id, predicates=tuple(predicates))
