from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from sqlmodel import Field, SQLModel

from durations import isoformat, utcnow


def _now() -> datetime:
    return utcnow()


class TaskStatus(str, Enum):
    active = "active"
    completed = "completed"


class Task(SQLModel, table=True):
    __tablename__ = "tasks"

    id: Optional[int] = Field(default=None, primary_key=True)
    owner: Optional[str] = Field(default=None, index=True)
    title: str
    description: Optional[str] = None
    status: TaskStatus = Field(default=TaskStatus.active, index=True)
    created_at: datetime = Field(default_factory=_now)
    completed_at: Optional[datetime] = None


class TaskSession(SQLModel, table=True):
    __tablename__ = "task_sessions"

    id: Optional[int] = Field(default=None, primary_key=True)
    task_id: int = Field(foreign_key="tasks.id", ondelete="CASCADE", index=True)
    owner: Optional[str] = Field(default=None, index=True)
    start_time: datetime = Field(index=True)
    end_time: datetime
    duration: int = 0
    keterangan: Optional[str] = None
    created_at: datetime = Field(default_factory=_now)


class RunningTask(SQLModel, table=True):
    __tablename__ = "running_tasks"

    id: Optional[int] = Field(default=None, primary_key=True)
    task_id: int = Field(foreign_key="tasks.id", ondelete="CASCADE", index=True)
    # "" in single-tenant mode; the unique index still allows one marker.
    owner: str = Field(default="", unique=True)
    start_time: datetime = Field(default_factory=_now)
    created_at: datetime = Field(default_factory=_now)


class Profile(SQLModel, table=True):
    __tablename__ = "profiles"

    id: str = Field(primary_key=True)
    email: str = Field(unique=True, index=True)
    username: str = Field(unique=True, index=True)
    nama_lengkap: str
    alamat: Optional[str] = None
    password_hash: str
    created_at: datetime = Field(default_factory=_now)
    updated_at: Optional[datetime] = None


class AuthToken(SQLModel, table=True):
    __tablename__ = "auth_tokens"

    token: str = Field(primary_key=True)
    profile_id: str = Field(foreign_key="profiles.id", ondelete="CASCADE", index=True)
    created_at: datetime = Field(default_factory=_now)


def dump(obj: SQLModel, *, exclude: set[str] | None = None) -> dict[str, Any]:
    """model_dump() with datetimes rendered as ISO-8601 UTC and enums as values."""
    data = obj.model_dump(exclude=exclude)
    for key, value in data.items():
        if isinstance(value, datetime):
            data[key] = isoformat(value)
        elif isinstance(value, Enum):
            data[key] = value.value
    return data
