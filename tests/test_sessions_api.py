# tests/test_sessions_api.py

from __future__ import annotations


def _sessions_url(task_id: int) -> str:
    return f"/api/tasks/{task_id}/sessions"


def test_create_session_computes_duration(client, auth_headers, make_task) -> None:
    task = make_task()
    resp = client.post(
        _sessions_url(task["id"]),
        json={"start_time": "2025-03-01T10:00:00.000Z", "end_time": "2025-03-01T10:25:30.900Z"},
        headers=auth_headers,
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["ok"] is True
    assert body["duration"] == 1530

    detail = client.get(f"/api/tasks/{task['id']}", headers=auth_headers).json()
    [session] = detail["sessions"]
    assert session["id"] == body["id"]
    assert session["duration"] == 1530
    assert session["start_time"] == "2025-03-01T10:00:00+00:00"


def test_create_session_clamps_negative_interval(client, auth_headers, make_task) -> None:
    task = make_task()
    resp = client.post(
        _sessions_url(task["id"]),
        json={"start_time": "2025-03-01T10:00:00Z", "end_time": "2025-03-01T09:00:00Z"},
        headers=auth_headers,
    )
    assert resp.json()["duration"] == 0


def test_client_duration_is_ignored(client, auth_headers, make_task) -> None:
    task = make_task()
    resp = client.post(
        _sessions_url(task["id"]),
        json={"start_time": "2025-03-01T10:00:00Z", "end_time": "2025-03-01T10:00:10Z", "duration": 9999},
        headers=auth_headers,
    )
    assert resp.json()["duration"] == 10


def test_create_session_validation(client, auth_headers, make_task) -> None:
    task = make_task()
    url = _sessions_url(task["id"])
    resp = client.post(url, json={"start_time": "2025-03-01T10:00:00Z"}, headers=auth_headers)
    assert resp.status_code == 400
    assert resp.json()["error"] == "start_time and end_time required (ISO string)"

    resp = client.post(url, json={"start_time": "nope", "end_time": "2025-03-01T10:00:00Z"},
                       headers=auth_headers)
    assert resp.status_code == 400
    assert resp.json()["error"] == "invalid date format"

    resp = client.post(_sessions_url(9999),
                       json={"start_time": "2025-03-01T10:00:00Z", "end_time": "2025-03-01T11:00:00Z"},
                       headers=auth_headers)
    assert resp.status_code == 404


def test_sessions_listed_in_start_order(client, auth_headers, make_task) -> None:
    task = make_task()
    url = _sessions_url(task["id"])
    for start, end in [
        ("2025-03-03T10:00:00Z", "2025-03-03T10:10:00Z"),
        ("2025-03-01T10:00:00Z", "2025-03-01T10:10:00Z"),
        ("2025-03-02T10:00:00Z", "2025-03-02T10:10:00Z"),
    ]:
        client.post(url, json={"start_time": start, "end_time": end}, headers=auth_headers)

    sessions = client.get(f"/api/tasks/{task['id']}", headers=auth_headers).json()["sessions"]
    assert [s["start_time"][:10] for s in sessions] == ["2025-03-01", "2025-03-02", "2025-03-03"]


def test_update_session_times_and_keterangan(client, auth_headers, make_task) -> None:
    task = make_task()
    created = client.post(
        _sessions_url(task["id"]),
        json={"start_time": "2025-03-01T10:00:00Z", "end_time": "2025-03-01T10:10:00Z"},
        headers=auth_headers,
    ).json()
    url = f"{_sessions_url(task['id'])}/{created['id']}"

    updated = client.put(
        url,
        json={"start_time": "2025-03-01T10:00:00Z", "end_time": "2025-03-01T12:00:00Z"},
        headers=auth_headers,
    ).json()
    assert updated["duration"] == 7200
    assert updated["keterangan"] is None

    noted = client.put(url, json={"keterangan": "rapat tim"}, headers=auth_headers).json()
    assert noted["keterangan"] == "rapat tim"
    assert noted["duration"] == 7200

    cleared = client.put(url, json={"keterangan": ""}, headers=auth_headers).json()
    assert cleared["keterangan"] is None


def test_update_session_validation(client, auth_headers, make_task) -> None:
    task = make_task()
    created = client.post(
        _sessions_url(task["id"]),
        json={"start_time": "2025-03-01T10:00:00Z", "end_time": "2025-03-01T10:10:00Z"},
        headers=auth_headers,
    ).json()
    url = f"{_sessions_url(task['id'])}/{created['id']}"

    resp = client.put(url, json={"start_time": "2025-03-01T09:00:00Z"}, headers=auth_headers)
    assert resp.status_code == 400
    assert resp.json()["error"] == "both start_time and end_time required when updating time"

    resp = client.put(url, json={}, headers=auth_headers)
    assert resp.status_code == 400
    assert resp.json()["error"] == "no fields to update"

    resp = client.put(f"{_sessions_url(task['id'])}/9999", json={"keterangan": "x"}, headers=auth_headers)
    assert resp.status_code == 404


def test_delete_session(client, auth_headers, other_headers, make_task) -> None:
    task = make_task()
    created = client.post(
        _sessions_url(task["id"]),
        json={"start_time": "2025-03-01T10:00:00Z", "end_time": "2025-03-01T10:10:00Z"},
        headers=auth_headers,
    ).json()
    url = f"{_sessions_url(task['id'])}/{created['id']}"

    assert client.delete(url, headers=other_headers).status_code == 404
    assert client.delete(url, headers=auth_headers).json() == {"ok": True}
    assert client.get(f"/api/tasks/{task['id']}", headers=auth_headers).json()["sessions"] == []
