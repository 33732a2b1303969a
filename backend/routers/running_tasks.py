"""
Start/stop timing a task and read the caller's running task.
"""
from fastapi import APIRouter, Depends
from sqlmodel import Session

from auth import get_owner
from db import get_session
import tracker

router = APIRouter(prefix="/api", tags=["running-tasks"])


@router.post("/tasks/{task_id}/start")
def start_task(
    task_id: int,
    db: Session = Depends(get_session),
    owner: str | None = Depends(get_owner),
):
    """
    Start timing a task. A task already running for this owner is stopped
    and returned as `superseded` so the client can save that session.
    """
    result = tracker.start(db, task_id, owner)
    return {"ok": True, **result}


@router.post("/tasks/{task_id}/stop")
def stop_task(
    task_id: int,
    db: Session = Depends(get_session),
    owner: str | None = Depends(get_owner),
):
    """Stop timing a task. Succeeds even if it was not running."""
    return {"ok": True, "stopped": tracker.stop(db, task_id, owner)}


@router.get("/running-tasks")
def list_running_tasks(
    db: Session = Depends(get_session),
    owner: str | None = Depends(get_owner),
):
    return tracker.list_running(db, owner)


@router.get("/running-tasks/count")
def count_running_tasks(
    db: Session = Depends(get_session),
    owner: str | None = Depends(get_owner),
):
    return {"count": tracker.count_running(db, owner)}
