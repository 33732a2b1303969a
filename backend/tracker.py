"""
Running-task tracker.

An owner is either idle (no marker) or running exactly one task. The
`running_tasks.owner` unique index is what guarantees this across processes;
starting a new task deletes the previous marker and inserts the new one in a
single transaction.
"""
from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError
from sqlmodel import Session, select

from db import get_owned_task
from durations import duration_seconds, isoformat, to_storage, utcnow
from errors import ConflictError
from models import RunningTask, Task, dump

logger = logging.getLogger(__name__)


def marker_owner(owner: str | None) -> str:
    return owner or ""


def _finish(marker: RunningTask, now) -> dict[str, Any]:
    data = dump(marker)
    data["end_time"] = isoformat(now)
    data["duration"] = duration_seconds(marker.start_time, now)
    return data


def start(db: Session, task_id: int, owner: str | None) -> dict[str, Any]:
    """
    Start timing task_id for owner, superseding any task already running.

    Returns {"running": marker, "superseded": previous marker or None}.
    The superseded interval is not persisted here.
    """
    get_owned_task(db, task_id, owner)
    key = marker_owner(owner)
    now = utcnow()

    previous = db.exec(select(RunningTask).where(RunningTask.owner == key)).first()
    superseded = _finish(previous, now) if previous is not None else None

    marker = RunningTask(task_id=task_id, owner=key, start_time=to_storage(now))
    # A concurrent start shows up as a duplicate owner on insert or as a
    # previous marker that is already gone on delete.
    try:
        if previous is not None:
            logger.info("Superseding running task %s for owner=%r", previous.task_id, key)
            db.delete(previous)
            db.flush()
        db.add(marker)
        db.commit()
    except (IntegrityError, StaleDataError) as exc:
        db.rollback()
        raise ConflictError("Task is already running") from exc
    db.refresh(marker)
    logger.info("Started task %s for owner=%r", task_id, key)
    return {"running": dump(marker), "superseded": superseded}


def stop(db: Session, task_id: int, owner: str | None) -> dict[str, Any] | None:
    """
    Remove the marker for (task_id, owner). Idempotent.

    Returns the removed marker with end_time and duration filled in, or None
    when nothing was running. The caller persists the session.
    """
    key = marker_owner(owner)
    marker = db.exec(
        select(RunningTask).where(RunningTask.task_id == task_id, RunningTask.owner == key)
    ).first()
    if marker is None:
        return None
    stopped = _finish(marker, utcnow())
    db.delete(marker)
    db.commit()
    logger.info("Stopped task %s for owner=%r after %ss", task_id, key, stopped["duration"])
    return stopped


def list_running(db: Session, owner: str | None) -> list[dict[str, Any]]:
    markers = db.exec(
        select(RunningTask)
        .where(RunningTask.owner == marker_owner(owner))
        .order_by(RunningTask.created_at.desc())
    ).all()
    out = []
    for marker in markers:
        data = dump(marker)
        task = db.get(Task, marker.task_id)
        if task is not None:
            data["task_title"] = task.title
            data["task_description"] = task.description
        else:
            data["task_title"] = "Unknown Task"
            data["task_description"] = ""
        out.append(data)
    return out


def count_running(db: Session, owner: str | None) -> int:
    return db.exec(
        select(func.count()).select_from(RunningTask).where(RunningTask.owner == marker_owner(owner))
    ).one()
