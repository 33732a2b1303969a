"""
Tasks: CRUD plus per-task session aggregates.
"""
import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from auth import get_owner
from db import get_owned_task, get_session, scoped
from durations import isoformat, seconds_to_string, to_storage, utcnow
from errors import ValidationError
from models import RunningTask, Task, TaskSession, TaskStatus, dump

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["tasks"])


class CreateTaskRequest(BaseModel):
    title: str | None = None
    description: str | None = None


class UpdateTaskRequest(BaseModel):
    title: str | None = None
    description: str | None = None
    status: TaskStatus | None = None


def _require_title(title: str | None) -> str:
    if not title or not title.strip():
        raise ValidationError("title required")
    return title.strip()


def _empty_aggregates() -> dict:
    return {
        "total_duration": 0,
        "total_duration_readable": seconds_to_string(0),
        "first_start": None,
        "last_end": None,
        "sessions_count": 0,
    }


def _aggregates(db: Session, task_id: int, owner: str | None) -> dict:
    total, first_start, last_end, count = db.exec(
        scoped(
            select(
                func.coalesce(func.sum(TaskSession.duration), 0),
                func.min(TaskSession.start_time),
                func.max(TaskSession.end_time),
                func.count(TaskSession.id),
            ).where(TaskSession.task_id == task_id),
            TaskSession,
            owner,
        )
    ).one()
    return {
        "total_duration": total,
        "total_duration_readable": seconds_to_string(total),
        "first_start": isoformat(first_start),
        "last_end": isoformat(last_end),
        "sessions_count": count,
    }


@router.get("/tasks")
def list_tasks(
    db: Session = Depends(get_session),
    owner: str | None = Depends(get_owner),
):
    """All tasks with session totals; active first, newest first."""
    statement = scoped(
        select(Task).order_by(Task.status.asc(), Task.created_at.desc()), Task, owner
    )
    # Dump first: a rollback below expires every loaded Task.
    rows = [dump(task) for task in db.exec(statement).all()]
    for row in rows:
        try:
            row.update(_aggregates(db, row["id"], owner))
        except SQLAlchemyError:
            logger.warning("Session aggregates failed for task %s", row["id"], exc_info=True)
            db.rollback()
            row.update(_empty_aggregates())
    return rows


@router.get("/tasks/{task_id}")
def get_task(
    task_id: int,
    db: Session = Depends(get_session),
    owner: str | None = Depends(get_owner),
):
    """Task detail with its sessions in chronological order."""
    task = get_owned_task(db, task_id, owner)
    sessions = db.exec(
        scoped(
            select(TaskSession)
            .where(TaskSession.task_id == task.id)
            .order_by(TaskSession.start_time.asc()),
            TaskSession,
            owner,
        )
    ).all()
    return {"task": dump(task), "sessions": [dump(s) for s in sessions]}


@router.post("/tasks", status_code=201)
def create_task(
    req: CreateTaskRequest,
    db: Session = Depends(get_session),
    owner: str | None = Depends(get_owner),
):
    task = Task(
        owner=owner,
        title=_require_title(req.title),
        description=req.description or None,
    )
    db.add(task)
    db.commit()
    db.refresh(task)
    logger.info("Created task %s owner=%r", task.id, owner)
    return dump(task)


@router.put("/tasks/{task_id}")
def update_task(
    task_id: int,
    req: UpdateTaskRequest,
    db: Session = Depends(get_session),
    owner: str | None = Depends(get_owner),
):
    """Update title/description; a status change keeps completed_at in step."""
    title = _require_title(req.title)
    task = get_owned_task(db, task_id, owner)
    task.title = title
    task.description = req.description or None
    if req.status is not None:
        if req.status == TaskStatus.completed:
            if task.status != TaskStatus.completed or task.completed_at is None:
                task.completed_at = to_storage(utcnow())
        else:
            task.completed_at = None
        task.status = req.status
    db.add(task)
    db.commit()
    db.refresh(task)
    return dump(task)


@router.delete("/tasks/{task_id}")
def delete_task(
    task_id: int,
    db: Session = Depends(get_session),
    owner: str | None = Depends(get_owner),
):
    """Delete a task together with its sessions and running marker."""
    task = get_owned_task(db, task_id, owner)
    for row in db.exec(select(TaskSession).where(TaskSession.task_id == task.id)).all():
        db.delete(row)
    for row in db.exec(select(RunningTask).where(RunningTask.task_id == task.id)).all():
        db.delete(row)
    db.delete(task)
    db.commit()
    logger.info("Deleted task %s owner=%r", task_id, owner)
    return {"ok": True}
