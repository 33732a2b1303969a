from __future__ import annotations

import logging
import sys
from pathlib import Path

# Top-level modules of this service; everything else is third-party.
APP_LOGGERS = (
    "application",
    "auth",
    "db",
    "errors",
    "history",
    "identity",
    "main",
    "routers",
    "stats",
    "tracker",
)


class _ConsoleNoiseFilter(logging.Filter):
    """
    Keep the console readable:
    - app logs pass through
    - uvicorn access/error logs pass through
    - other third-party noise (sqlalchemy, httpx, supabase) only at WARNING+
    """

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        root_name = name.split(".", 1)[0]
        if root_name in APP_LOGGERS or root_name == "uvicorn":
            return True
        if name == "py.warnings":
            return record.levelno >= logging.ERROR
        return record.levelno >= logging.WARNING


def setup_logging(
    *,
    level: str | int = logging.INFO,
    log_dir: str | Path | None = None,
    file_level: int = logging.DEBUG,
) -> None:
    """
    Configure the root logger with a filtered console handler and, when
    log_dir is given, a file handler that keeps everything.

    Call once, before the app starts serving.
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(level)
    ch.setFormatter(fmt)
    ch.addFilter(_ConsoleNoiseFilter())
    root.addHandler(ch)

    if log_dir:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(log_dir / "timetracker.log"), encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(fmt)
        root.addHandler(fh)

    logging.captureWarnings(True)
