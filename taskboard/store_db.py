# PURPOSE: SQLAlchemy access for tasks and users.
# Every task lookup goes through owner_predicate(); there is no unscoped read.
# Driver errors are logged here and surface as StoreUnavailable.

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import List, Optional

from fastapi import Request
from sqlalchemy import case, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .db_models import TaskDB, UserDB, now_utc
from .errors import StoreUnavailable
from .models import UserIdentity
from .query import TaskQuery, owner_predicate

logger = logging.getLogger(__name__)


# --- Session dependency ----------------------------------------------------


def get_db(request: Request):
    """Yield a SQLAlchemy session from the app's Database (FastAPI dependency)."""
    db = request.app.state.database.new_session()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def _store_call(db: Session, op: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        logger.exception("store failure op=%s", op)
        try:
            db.rollback()
        except SQLAlchemyError:
            logger.warning("rollback failed op=%s", op)
        raise StoreUnavailable() from exc


# --- Tasks -----------------------------------------------------------------


class TaskRepository:
    """Task rows for one request-scoped Session."""

    def __init__(self, db: Session):
        self.db = db

    def find(self, query: TaskQuery) -> List[TaskDB]:
        with _store_call(self.db, "tasks.find"):
            return list(self.db.scalars(query.statement()).all())

    def get_owned(self, identity: UserIdentity, task_id: int) -> Optional[TaskDB]:
        stmt = select(TaskDB).where(owner_predicate(identity), TaskDB.id == task_id)
        with _store_call(self.db, "tasks.get_owned"):
            return self.db.scalars(stmt).one_or_none()

    def all_owned(self, identity: UserIdentity) -> List[TaskDB]:
        stmt = select(TaskDB).where(owner_predicate(identity)).order_by(TaskDB.id.asc())
        with _store_call(self.db, "tasks.all_owned"):
            return list(self.db.scalars(stmt).all())

    def counts(self, identity: UserIdentity) -> dict[str, int]:
        stmt = select(
            func.count(TaskDB.id),
            func.sum(case((TaskDB.completed.is_(True), 1), else_=0)),
            func.sum(
                case(((TaskDB.completed.is_(False)) & (TaskDB.priority == "high"), 1), else_=0)
            ),
        ).where(owner_predicate(identity))
        with _store_call(self.db, "tasks.counts"):
            total, completed, high_pending = self.db.execute(stmt).one()
        total = int(total or 0)
        completed = int(completed or 0)
        return {
            "total": total,
            "completed": completed,
            "pending": total - completed,
            "high_priority_pending": int(high_pending or 0),
        }

    def add(self, row: TaskDB) -> TaskDB:
        with _store_call(self.db, "tasks.add"):
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
        return row

    def save(self, row: TaskDB) -> TaskDB:
        row.updated_at = now_utc()
        return self.add(row)

    def delete(self, row: TaskDB) -> None:
        with _store_call(self.db, "tasks.delete"):
            self.db.delete(row)
            self.db.commit()


# --- Users -----------------------------------------------------------------


class UserRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: int) -> Optional[UserDB]:
        with _store_call(self.db, "users.get"):
            return self.db.get(UserDB, user_id)

    def get_by_email(self, email: str) -> Optional[UserDB]:
        stmt = select(UserDB).where(func.lower(UserDB.email) == email.lower())
        with _store_call(self.db, "users.get_by_email"):
            return self.db.scalars(stmt).first()

    def add(self, *, email: str, username: str, password_hash: str) -> UserDB:
        row = UserDB(email=email, username=username, password_hash=password_hash)
        with _store_call(self.db, "users.add"):
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
        return row
