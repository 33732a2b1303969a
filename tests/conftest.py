# tests/conftest.py

from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from application import create_app
from config import Settings

PASSWORD = "Secret123"


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """Multi-tenant settings against a throwaway SQLite file."""
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'timetracker.db'}",
        multi_tenant=True,
        auth_backend="local",
        timezone="UTC",
    )


@pytest.fixture()
def app(settings: Settings):
    return create_app(settings)


@pytest.fixture()
def client(app) -> TestClient:
    with TestClient(app) as c:
        yield c


def register_and_login(client: TestClient, username: str) -> dict[str, str]:
    resp = client.post(
        "/auth/register",
        json={
            "email": f"{username}@example.com",
            "nama_lengkap": username.title(),
            "username": username,
            "password": PASSWORD,
        },
    )
    assert resp.status_code == 201, resp.text
    resp = client.post("/auth/login", json={"email_or_username": username, "password": PASSWORD})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


@pytest.fixture()
def auth_headers(client: TestClient) -> dict[str, str]:
    return register_and_login(client, "alice")


@pytest.fixture()
def other_headers(client: TestClient) -> dict[str, str]:
    return register_and_login(client, "bob")


@pytest.fixture()
def make_task(client: TestClient, auth_headers: dict[str, str]):
    def _make(title: str = "Write report", headers: dict[str, str] | None = None, **extra) -> dict:
        resp = client.post("/api/tasks", json={"title": title, **extra}, headers=headers or auth_headers)
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _make
