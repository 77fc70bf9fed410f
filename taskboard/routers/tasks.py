# PURPOSE: /tasks routes. Each route resolves the caller via get_current_user
# and hands that identity to the task engine; nothing here reads an owner
# from the request.

from typing import List

from fastapi import APIRouter, Depends, Response, status

from ..api.deps import get_task_engine, parse_task_filters
from ..auth import get_current_user
from ..export import render_csv
from ..models import Message, Task, TaskCreate, TaskStatusUpdate, TaskSummary, TaskUpdate, UserIdentity
from ..query import TaskFilters
from ..tasks import TaskQueryEngine

# get_current_user is the first dependency of every route: a bad token is a
# 401 even when filters or body are invalid too
router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.post("", response_model=Task, status_code=status.HTTP_201_CREATED)
def create_task(
    item: TaskCreate,
    response: Response,
    user: UserIdentity = Depends(get_current_user),
    engine: TaskQueryEngine = Depends(get_task_engine),
):
    task = engine.create(user, item)
    response.headers["Location"] = f"/tasks/{task.id}"
    return task


@router.get("", response_model=List[Task])
def list_tasks(
    user: UserIdentity = Depends(get_current_user),
    filters: TaskFilters = Depends(parse_task_filters),
    engine: TaskQueryEngine = Depends(get_task_engine),
):
    """All of the caller's tasks matching the filters, by due date (undated first)."""
    return engine.list(user, filters)


@router.get("/summary", response_model=TaskSummary)
def task_summary(
    user: UserIdentity = Depends(get_current_user),
    engine: TaskQueryEngine = Depends(get_task_engine),
):
    return engine.summary(user)


@router.get("/export/csv", response_class=Response)
def export_tasks_csv(
    user: UserIdentity = Depends(get_current_user),
    engine: TaskQueryEngine = Depends(get_task_engine),
):
    rows = engine.export_all(user)
    return Response(
        content=render_csv(rows),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=tasks.csv"},
    )


@router.get("/{task_id}", response_model=Task)
def get_task(
    task_id: int,
    user: UserIdentity = Depends(get_current_user),
    engine: TaskQueryEngine = Depends(get_task_engine),
):
    return engine.get(user, task_id)


@router.put("/{task_id}", response_model=Task)
def update_task(
    task_id: int,
    item: TaskUpdate,
    user: UserIdentity = Depends(get_current_user),
    engine: TaskQueryEngine = Depends(get_task_engine),
):
    return engine.update(user, task_id, item)


@router.patch("/{task_id}/status", response_model=Task)
def set_task_status(
    task_id: int,
    item: TaskStatusUpdate,
    user: UserIdentity = Depends(get_current_user),
    engine: TaskQueryEngine = Depends(get_task_engine),
):
    return engine.set_status(user, task_id, item.status)


@router.delete("/{task_id}", response_model=Message)
def delete_task(
    task_id: int,
    user: UserIdentity = Depends(get_current_user),
    engine: TaskQueryEngine = Depends(get_task_engine),
):
    engine.delete(user, task_id)
    return Message(message="Task deleted successfully")
