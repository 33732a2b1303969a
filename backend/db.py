import logging

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine, select

import models
from errors import NotFoundError

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(database_url: str, *, echo: bool = False) -> Engine:
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(database_url, echo=echo, connect_args=connect_args)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def init_db(engine: Engine) -> None:
    SQLModel.metadata.create_all(engine)
    logger.info("Database ready url=%s", engine.url.render_as_string(hide_password=True))


def scoped(statement, model, owner: str | None):
    """Restrict a select/delete to one owner; None means single-tenant."""
    if owner is None:
        return statement
    return statement.where(model.owner == owner)


def get_session(request: Request):
    with Session(request.app.state.engine) as session:
        yield session


def get_owned_task(db: Session, task_id: int, owner: str | None) -> models.Task:
    statement = select(models.Task).where(models.Task.id == task_id)
    task = db.exec(scoped(statement, models.Task, owner)).first()
    if task is None:
        raise NotFoundError("not found")
    return task
