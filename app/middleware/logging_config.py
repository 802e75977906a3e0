"""
Structured logging configuration.

- Development: one coloured line per record, with the request id and
  acting user appended when the record was emitted inside a request
- Production (or LOG_FORMAT=json): one JSON object per record
- Log level: LOG_LEVEL config value, overridable by the LOG_LEVEL env var

``RequestContextFilter`` stamps ``request_id`` and ``actor_id`` onto every
record logged while a request is active, so a service-layer line such as
"Site CLC-004 created" can be traced back to the request and user behind it
without the service knowing about Flask.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone

from flask import g, has_request_context

# Attributes copied from the record into JSON output when set
CONTEXT_FIELDS = (
    "request_id",
    "actor_id",
    "method",
    "path",
    "status",
    "duration_ms",
    "remote_addr",
    "entity_type",
    "entity_id",
)

_QUIET_LOGGERS = ("urllib3", "werkzeug", "sqlalchemy.engine", "flask_limiter")


class RequestContextFilter(logging.Filter):
    """Attach the current request id and actor id to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not has_request_context():
            return True
        if getattr(record, "request_id", None) is None:
            record.request_id = g.get("request_id")
        if getattr(record, "actor_id", None) is None:
            actor = g.get("actor")
            record.actor_id = actor["id"] if actor else None
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line for log shipping."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "line": record.lineno,
        }
        entry.update(
            (key, getattr(record, key))
            for key in CONTEXT_FIELDS
            if getattr(record, key, None) is not None
        )
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ReadableFormatter(logging.Formatter):
    """Coloured single-line format for local development."""

    LEVEL_COLOURS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        colour = self.LEVEL_COLOURS.get(record.levelname, "")
        clock = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        line = f"{colour}{clock} {record.levelname:<8}{self.RESET} {record.name}: {record.getMessage()}"

        tags = []
        duration = getattr(record, "duration_ms", None)
        if duration is not None:
            tags.append(f"{duration:.0f}ms")
        request_id = getattr(record, "request_id", None)
        if request_id:
            tags.append(f"req={request_id}")
        actor_id = getattr(record, "actor_id", None)
        if actor_id is not None:
            tags.append(f"user={actor_id}")
        if tags:
            line += f" [{' '.join(tags)}]"

        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(app):
    """
    Install a single stderr handler on the root logger.

    Called first in ``create_app`` so extension setup is logged with the
    final format. Re-running it (tests build several apps) replaces the
    handler instead of stacking another.
    """
    testing = app.config.get("TESTING", False)
    production = not app.config.get("DEBUG", False) and not testing

    level_name = os.getenv("LOG_LEVEL") or app.config.get("LOG_LEVEL") or (
        "INFO" if production else "DEBUG"
    )
    level = getattr(logging, level_name.upper(), logging.INFO)
    as_json = production or app.config.get("LOG_FORMAT") == "json"

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if as_json else ReadableFormatter())
    handler.addFilter(RequestContextFilter())
    handler.setLevel(level)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    app.logger.setLevel(level)

    if not testing:
        app.logger.info("Logging configured: level=%s format=%s",
                        level_name, "json" if as_json else "readable")
