"""Stdout logging setup for processes that call remote capabilities."""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any, TextIO

from packages.function_mesh.config.models import LoggingSettings

from . import fields
from .context import bind_context, get_context

# httpx logs every request at INFO; capability logs already cover each call.
_TRANSPORT_LOGGERS = ("httpx", "httpcore")


class ContextFilter(logging.Filter):
    """Attach the bound capability fields to each record as ``mesh_context``."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.mesh_context = get_context()
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line: core fields first, then capability fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            fields.TIMESTAMP: datetime.fromtimestamp(record.created, UTC).isoformat(),
            fields.LEVEL: record.levelname,
            fields.LOGGER: record.name,
            fields.MESSAGE: record.getMessage(),
        }
        payload.update(getattr(record, "mesh_context", {}))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, separators=(",", ":"))


class PlainFormatter(logging.Formatter):
    """``<time> <level> <logger> <message> key=value ...`` for terminals."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = getattr(record, "mesh_context", {})
        if not context:
            return line
        pairs = " ".join(f"{key}={context[key]}" for key in sorted(context))
        return f"{line} {pairs}"


def configure_logging(
    settings: LoggingSettings | None = None, *, stream: TextIO | None = None
) -> logging.Handler:
    """Install one root handler for ``settings`` and return it.

    Calling again replaces the previous handler. ``service`` and
    ``environment`` are bound into the log context of the calling thread.
    """
    settings = settings or LoggingSettings()

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.addFilter(ContextFilter())
    handler.setFormatter(JsonFormatter() if settings.json_output else PlainFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(settings.level)

    transport_level = logging.DEBUG if settings.level == "DEBUG" else logging.WARNING
    for name in _TRANSPORT_LOGGERS:
        logging.getLogger(name).setLevel(transport_level)

    bind_context(
        **{fields.SERVICE: settings.service, fields.ENVIRONMENT: settings.environment}
    )
    return handler
