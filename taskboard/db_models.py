# PURPOSE: define how User and Task rows look in the database.

from datetime import UTC, datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .db import Base


def now_utc():
    """Return timezone-aware UTC datetime (stored in DB)."""
    return datetime.now(UTC)


class TaskDB(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    priority = Column(String(10), nullable=False, default="low")  # low | medium | high
    status = Column(String(10), nullable=False, default="pending")  # pending | completed
    completed = Column(Boolean, nullable=False, default=False)  # mirror of status
    due_date = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=now_utc)
    updated_at = Column(DateTime, default=now_utc)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False)  # task owner


class UserDB(Base):
    __tablename__ = "users"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    email: Mapped[str] = mapped_column(String, unique=True, index=True, nullable=False)
    username: Mapped[str] = mapped_column(String(50), nullable=False)
    password_hash: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=now_utc)
    # relationship to tasks
    tasks = relationship("TaskDB", backref="owner")


# Helpful indexes for filtering/sorting; every task query starts with owner_id
Index("ix_tasks_owner_due_date", TaskDB.owner_id, TaskDB.due_date)
Index("ix_tasks_owner_completed", TaskDB.owner_id, TaskDB.completed)
Index("ix_tasks_priority", TaskDB.priority)
