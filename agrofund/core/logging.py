"""
Logging configuration.

Three root handlers are installed by :func:`setup_logging`:

- console: coloured, one line per record, for local development;
- ``logs/agrofund.log``: rotating JSON lines for log shipping;
- ``logs/agrofund-error.log``: rotating JSON lines, ERROR and above.

Every record is stamped by :class:`ContextFilter` with the request id
(published by ``RequestIDMiddleware``) and, once the bearer token has been
resolved, the acting user's id and role.  That makes "who approved / funded
what" answerable from the JSON log alone.

Modules simply use ``logging.getLogger(__name__)``.
"""

import json
import logging
import os
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional, Tuple

from agrofund.core.config import settings

LOG_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), "logs")
LOG_FILE = "agrofund.log"
ERROR_LOG_FILE = "agrofund-error.log"

request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
# (user_id, role) of the authenticated caller
actor_ctx: ContextVar[Optional[Tuple[str, str]]] = ContextVar("actor", default=None)

# ``extra=`` keys copied verbatim into JSON lines.
EXTRA_FIELDS = ("method", "path", "status_code", "elapsed_ms", "campaign_id", "amount")


def bind_actor(user_id: Any, role: Any) -> None:
    """Attach the authenticated caller to every later record of this request."""
    actor_ctx.set((str(user_id), getattr(role, "value", str(role))))


class ContextFilter(logging.Filter):
    """Copy request id and actor from context variables onto the record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = request_id_ctx.get()
        actor = actor_ctx.get()
        record.user_id, record.role = actor if actor else (None, None)
        return True


def _utc_timestamp(record: logging.LogRecord) -> datetime:
    return datetime.fromtimestamp(record.created, tz=timezone.utc)


class JSONFormatter(logging.Formatter):
    """
    One JSON object per line::

        {"timestamp": "2026-03-01T10:30:00.123+00:00", "level": "INFO",
         "logger": "agrofund.services.campaign_service",
         "message": "Campaign … approved", "request_id": "…",
         "user_id": "…", "role": "admin"}
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": _utc_timestamp(record).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
        }
        for key in ("request_id", "user_id", "role", *EXTRA_FIELDS):
            value = getattr(record, key, None)
            if value is not None:
                entry[key] = value
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """``time | LEVEL | logger [rid user] | message`` with a coloured level."""

    LEVEL_COLOURS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        colour = self.LEVEL_COLOURS.get(record.levelname, self.RESET)
        tags = []
        if getattr(record, "request_id", None):
            tags.append(record.request_id[:8])
        if getattr(record, "role", None):
            tags.append(f"{record.role}:{record.user_id[:8]}")
        context = f" [{' '.join(tags)}]" if tags else ""

        line = (
            f"{_utc_timestamp(record):%Y-%m-%d %H:%M:%S} | "
            f"{colour}{record.levelname:<8}{self.RESET} | "
            f"{record.name}{context} | {record.getMessage()}"
        )
        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _rotating_json_handler(filename: str, level: int, context: logging.Filter) -> logging.Handler:
    handler = RotatingFileHandler(
        filename=os.path.join(LOG_DIR, filename),
        maxBytes=settings.LOG_FILE_MAX_BYTES,
        backupCount=settings.LOG_FILE_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter())
    handler.addFilter(context)
    return handler


def setup_logging() -> None:
    """
    Install the console and rotating file handlers on the root logger.

    Does nothing if the root logger already has handlers.  The level is
    DEBUG when ``DEBUG`` is set, otherwise ``LOG_LEVEL``; SQLAlchemy's
    engine logger only speaks up in DEBUG mode.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    if settings.DEBUG:
        level = logging.DEBUG
    else:
        level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    root.setLevel(level)
    context = ContextFilter()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(ConsoleFormatter())
    console.addFilter(context)
    root.addHandler(console)

    os.makedirs(LOG_DIR, exist_ok=True)
    root.addHandler(_rotating_json_handler(LOG_FILE, level, context))
    root.addHandler(_rotating_json_handler(ERROR_LOG_FILE, logging.ERROR, context))

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.DEBUG if settings.DEBUG else logging.WARNING
    )

    root.info(
        "Logging to %s at %s (rotate at %d bytes, keep %d)",
        os.path.join(LOG_DIR, LOG_FILE),
        logging.getLevelName(level),
        settings.LOG_FILE_MAX_BYTES,
        settings.LOG_FILE_BACKUP_COUNT,
    )
