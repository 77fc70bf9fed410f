from typing import Optional

from fastapi import Depends, Query
from sqlalchemy.orm import Session

from ..query import TaskFilters
from ..store_db import TaskRepository, get_db
from ..tasks import TaskQueryEngine


def parse_task_filters(
    status: Optional[str] = Query(None, description="pending | completed | all"),
    priority: Optional[str] = Query(None, description="low | medium | high | all"),
    search: Optional[str] = Query(None, description="case-insensitive text in title or description"),
) -> TaskFilters:
    # Invalid values raise ValidationError (400) from TaskFilters.parse
    return TaskFilters.parse(status=status, priority=priority, search=search)


def get_task_engine(db: Session = Depends(get_db)) -> TaskQueryEngine:
    return TaskQueryEngine(TaskRepository(db))
