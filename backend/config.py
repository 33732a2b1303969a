"""
Settings loaded from environment variables (+ optional .env).

One frozen Settings object is built per application. Nothing here opens a
connection or requires secrets at import time.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache

from dotenv import load_dotenv

ENV_PREFIX = "TIMETRACKER"


def _k(suffix: str) -> str:
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_list(name: str, default: list[str]) -> list[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    return [p.strip() for p in raw.replace(",", " ").split() if p.strip()]


@dataclass(frozen=True)
class Settings:
    app_name: str = "Time Tracker API"
    log_level: str = "INFO"
    log_dir: str = ""

    database_url: str = "sqlite:///timetracker.db"
    sql_echo: bool = False

    # False: single-tenant, tokens ignored and every row is visible.
    multi_tenant: bool = True
    auth_backend: str = "local"
    supabase_url: str | None = None
    supabase_key: str | None = None

    timezone: str = "UTC"
    cors_origins: list[str] = field(default_factory=lambda: ["http://localhost:3000"])


def load_settings() -> Settings:
    """Build Settings from the process environment."""
    load_dotenv(override=False)
    return Settings(
        app_name=_env(_k("APP_NAME"), "Time Tracker API"),
        log_level=_env(_k("LOG_LEVEL"), "INFO").upper(),
        log_dir=_env(_k("LOG_DIR"), ""),
        database_url=_env(_k("DATABASE_URL"), "sqlite:///timetracker.db"),
        sql_echo=_env_bool(_k("SQL_ECHO"), False),
        multi_tenant=_env_bool(_k("MULTI_TENANT"), True),
        auth_backend=_env(_k("AUTH_BACKEND"), "local").strip().lower(),
        supabase_url=_first_env("SUPABASE_URL", "NEXT_PUBLIC_SUPABASE_URL"),
        supabase_key=_first_env("SUPABASE_SERVICE_ROLE_KEY", "SUPABASE_KEY"),
        timezone=_env(_k("TIMEZONE"), "UTC"),
        cors_origins=_env_list(_k("CORS_ORIGINS"), ["http://localhost:3000"]),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
