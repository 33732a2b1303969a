from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Any, Iterable

from durations import from_storage, parse_timestamp

TODAY_LABEL = "Hari Ini"

# Indonesian short month names, as in "5 Okt 2025".
MONTHS_ID = ("Jan", "Feb", "Mar", "Apr", "Mei", "Jun", "Jul", "Agu", "Sep", "Okt", "Nov", "Des")


def date_label(day: date, today: date) -> str:
    if day == today:
        return TODAY_LABEL
    return f"{day.day} {MONTHS_ID[day.month - 1]} {day.year}"


def creation_date(task: dict[str, Any]) -> date:
    created = task["created_at"]
    if isinstance(created, str):
        created = parse_timestamp(created)
    return from_storage(created).date()


def group_history(tasks: Iterable[dict[str, Any]], today: date) -> list[dict[str, Any]]:
    """
    Group tasks by the UTC date they were created on.

    Only dates with at least one completed task are returned. `progress` is
    completed/total for that date and `tasks` lists the completed ones,
    most recent date first.
    """
    totals: dict[date, int] = defaultdict(int)
    completed: dict[date, list[dict[str, Any]]] = defaultdict(list)
    for task in tasks:
        day = creation_date(task)
        totals[day] += 1
        if task.get("status") == "completed" and task.get("completed_at"):
            completed[day].append(task)

    out = []
    for day in sorted(completed, reverse=True):
        done = completed[day]
        out.append({
            "date": day.isoformat(),
            "dateLabel": date_label(day, today),
            "progress": f"{len(done)}/{totals[day]}",
            "tasks": done,
        })
    return out
