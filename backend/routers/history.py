from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlmodel import Session, select

from auth import get_owner
from db import get_session, scoped
from durations import utcnow
from history import group_history
from models import Task, TaskSession, dump

router = APIRouter(prefix="/api", tags=["history"])


@router.get("/history")
def get_history(
    db: Session = Depends(get_session),
    owner: str | None = Depends(get_owner),
):
    """Completed tasks grouped by creation date, with per-date progress."""
    tasks = db.exec(scoped(select(Task).order_by(Task.created_at.desc()), Task, owner)).all()
    totals = dict(
        db.exec(
            scoped(
                select(TaskSession.task_id, func.sum(TaskSession.duration)).group_by(TaskSession.task_id),
                TaskSession,
                owner,
            )
        ).all()
    )
    rows = [{**dump(t), "total_duration": totals.get(t.id, 0) or 0} for t in tasks]
    return group_history(rows, utcnow().date())
