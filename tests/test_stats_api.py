# tests/test_stats_api.py

from __future__ import annotations

from datetime import timedelta
from zoneinfo import ZoneInfo

from durations import utcnow
from stats import day_window


def _post_session(client, headers, task_id, start, seconds) -> None:
    resp = client.post(
        f"/api/tasks/{task_id}/sessions",
        json={"start_time": start.isoformat(), "end_time": (start + timedelta(seconds=seconds)).isoformat()},
        headers=headers,
    )
    assert resp.status_code == 200, resp.text


def test_empty_stats(client, auth_headers) -> None:
    assert client.get("/api/stats", headers=auth_headers).json() == {
        "today": {
            "count": 0,
            "duration": 0,
            "duration_readable": "0s",
            "total_accumulated": 0,
            "total_accumulated_readable": "0s",
        },
        "week": {"count": 0},
        "running": {"count": 0},
    }


def test_today_total_and_week_counts(client, auth_headers, other_headers, make_task) -> None:
    midnight, _ = day_window(utcnow(), ZoneInfo("UTC"))
    a = make_task("a")
    b = make_task("b")
    old = make_task("old")

    _post_session(client, auth_headers, a["id"], midnight, 600)
    _post_session(client, auth_headers, a["id"], midnight + timedelta(seconds=1), 61)
    _post_session(client, auth_headers, b["id"], midnight, 3000)
    _post_session(client, auth_headers, old["id"], midnight - timedelta(days=30), 7200)

    # Another owner's work is never counted.
    foreign = make_task("foreign", headers=other_headers)
    _post_session(client, other_headers, foreign["id"], midnight, 999)

    client.post(f"/api/tasks/{a['id']}/start", headers=auth_headers)

    stats = client.get("/api/stats", headers=auth_headers).json()
    assert stats["today"]["count"] == 3
    assert stats["today"]["duration"] == 3661
    assert stats["today"]["duration_readable"] == "1h 1m 1s"
    assert stats["today"]["total_accumulated"] == 3661 + 7200
    assert stats["today"]["total_accumulated_readable"] == "3h 1m 1s"
    # Distinct tasks, not sessions.
    assert stats["week"]["count"] == 2
    assert stats["running"]["count"] == 1
