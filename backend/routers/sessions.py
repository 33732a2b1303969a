"""
Task sessions: record, edit and delete timed intervals of work on a task.
Duration is always recomputed from start/end.
"""
import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session, select

from auth import get_owner
from db import get_owned_task, get_session, scoped
from durations import duration_seconds, parse_timestamp, to_storage
from errors import NotFoundError, ValidationError
from models import TaskSession, dump

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["sessions"])


class CreateSessionRequest(BaseModel):
    start_time: str | None = None
    end_time: str | None = None
    keterangan: str | None = None


class UpdateSessionRequest(BaseModel):
    start_time: str | None = None
    end_time: str | None = None
    keterangan: str | None = None


def _get_owned_session(db: Session, task_id: int, session_id: int, owner: str | None) -> TaskSession:
    statement = select(TaskSession).where(
        TaskSession.id == session_id, TaskSession.task_id == task_id
    )
    row = db.exec(scoped(statement, TaskSession, owner)).first()
    if row is None:
        raise NotFoundError("session not found")
    return row


@router.post("/tasks/{task_id}/sessions")
def create_session(
    task_id: int,
    req: CreateSessionRequest,
    db: Session = Depends(get_session),
    owner: str | None = Depends(get_owner),
):
    """Record a finished session (ISO-8601 start_time/end_time)."""
    if not req.start_time or not req.end_time:
        raise ValidationError("start_time and end_time required (ISO string)")
    start = parse_timestamp(req.start_time)
    end = parse_timestamp(req.end_time)
    task = get_owned_task(db, task_id, owner)

    row = TaskSession(
        task_id=task.id,
        owner=owner,
        start_time=to_storage(start),
        end_time=to_storage(end),
        duration=duration_seconds(start, end),
        keterangan=req.keterangan or None,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("Recorded session %s on task %s (%ss)", row.id, task.id, row.duration)
    return {"ok": True, "id": row.id, "duration": row.duration}


@router.put("/tasks/{task_id}/sessions/{session_id}")
def update_session(
    task_id: int,
    session_id: int,
    req: UpdateSessionRequest,
    db: Session = Depends(get_session),
    owner: str | None = Depends(get_owner),
):
    """
    Edit a session's times and/or keterangan.
    start_time and end_time must be sent together.
    """
    row = _get_owned_session(db, task_id, session_id, owner)
    changed = False

    if req.start_time and req.end_time:
        start = parse_timestamp(req.start_time)
        end = parse_timestamp(req.end_time)
        row.start_time = to_storage(start)
        row.end_time = to_storage(end)
        row.duration = duration_seconds(start, end)
        changed = True
    elif req.start_time or req.end_time:
        raise ValidationError("both start_time and end_time required when updating time")

    if "keterangan" in req.model_fields_set:
        row.keterangan = req.keterangan or None
        changed = True

    if not changed:
        raise ValidationError("no fields to update")

    db.add(row)
    db.commit()
    db.refresh(row)
    return dump(row)


@router.delete("/tasks/{task_id}/sessions/{session_id}")
def delete_session(
    task_id: int,
    session_id: int,
    db: Session = Depends(get_session),
    owner: str | None = Depends(get_owner),
):
    row = _get_owned_session(db, task_id, session_id, owner)
    db.delete(row)
    db.commit()
    return {"ok": True}
