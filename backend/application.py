"""
Application factory: settings, engine and identity provider are built per
app and exposed to handlers through app.state.
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.engine import Engine

from config import Settings, get_settings
from db import build_engine, init_db
from errors import register_error_handlers
from identity import IdentityProvider, build_identity_provider
from routers import auth, history, running_tasks, sessions, stats, tasks

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    *,
    engine: Engine | None = None,
    identity: IdentityProvider | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    engine = engine or build_engine(settings.database_url, echo=settings.sql_echo)
    init_db(engine)

    app = FastAPI(
        title=settings.app_name,
        description="Task and time tracking API",
        version="0.1.0",
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.identity = identity or build_identity_provider(settings, engine)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    @app.get("/health")
    def health():
        """Liveness probe; touches neither the database nor the identity provider."""
        return {"status": "ok", "message": f"{settings.app_name} is running"}

    @app.get("/")
    def root():
        return {"app": settings.app_name, "docs": "/docs"}

    @app.get("/api/ping")
    def ping():
        return {"ok": True, "db": engine.dialect.name}

    app.include_router(auth.router)
    app.include_router(tasks.router)
    app.include_router(sessions.router)
    app.include_router(running_tasks.router)
    app.include_router(stats.router)
    app.include_router(history.router)

    logger.info(
        "%s ready multi_tenant=%s auth=%s tz=%s",
        settings.app_name, settings.multi_tenant, settings.auth_backend, settings.timezone,
    )
    return app
