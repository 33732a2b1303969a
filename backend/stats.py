"""
Dashboard statistics: today's sessions, all-time total, tasks touched this
week, and the running-task indicator. Each figure is its own query.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from sqlalchemy import distinct, func
from sqlmodel import Session, select

from db import scoped
from durations import seconds_to_string, to_storage
from models import TaskSession
import tracker


def day_window(now: datetime, tz: ZoneInfo) -> tuple[datetime, datetime]:
    """[local midnight today, next local midnight) as aware UTC datetimes."""
    local = now.astimezone(tz)
    start = local.replace(hour=0, minute=0, second=0, microsecond=0)
    end = start + timedelta(days=1)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def week_window(now: datetime, tz: ZoneInfo) -> tuple[datetime, datetime]:
    """[most recent Sunday 00:00 local, now] as aware UTC datetimes."""
    local = now.astimezone(tz)
    # isoweekday() is 7 on Sunday, so % 7 counts days since Sunday.
    days_back = local.isoweekday() % 7
    sunday = (local - timedelta(days=days_back)).replace(hour=0, minute=0, second=0, microsecond=0)
    return sunday.astimezone(timezone.utc), now.astimezone(timezone.utc)


def compute_stats(db: Session, owner: str | None, now: datetime, tz: ZoneInfo) -> dict:
    day_start, day_end = day_window(now, tz)
    today_count, today_duration = db.exec(
        scoped(
            select(func.count(TaskSession.id), func.coalesce(func.sum(TaskSession.duration), 0))
            .where(TaskSession.start_time >= to_storage(day_start))
            .where(TaskSession.start_time < to_storage(day_end)),
            TaskSession,
            owner,
        )
    ).one()

    total_accumulated = db.exec(
        scoped(select(func.coalesce(func.sum(TaskSession.duration), 0)), TaskSession, owner)
    ).one()

    week_start, week_end = week_window(now, tz)
    week_count = db.exec(
        scoped(
            select(func.count(distinct(TaskSession.task_id)))
            .where(TaskSession.start_time >= to_storage(week_start))
            .where(TaskSession.start_time <= to_storage(week_end)),
            TaskSession,
            owner,
        )
    ).one()

    return {
        "today": {
            "count": today_count,
            "duration": today_duration,
            "duration_readable": seconds_to_string(today_duration),
            "total_accumulated": total_accumulated,
            "total_accumulated_readable": seconds_to_string(total_accumulated),
        },
        "week": {"count": week_count},
        "running": {"count": tracker.count_running(db, owner)},
    }
