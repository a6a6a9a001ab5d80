"""Structured Logging — per-request log records for dispatch observability.

Invariants:
    - Every record carries timestamp, level, logger name, and message
    - Dispatch extras (request_id, procedure, kind, error_code, status,
      duration_ms) are emitted when present and skipped when absent
    - "json" format for production log shipping, "text" for local development
    - setup_logging is idempotent: a second call replaces the handler it installed

Design Decisions:
    - Formatters on stdlib logging; modules log through logging.getLogger(__name__)
    - Configured once from the lifespan, never at import time
"""

import json
import logging
from datetime import datetime, timezone

EXTRA_FIELDS = (
    "request_id", "procedure", "kind", "error_code", "status", "duration_ms",
)

# Chatty at INFO; only their warnings are worth keeping
_QUIET_LOGGERS = ("sqlalchemy.engine", "uvicorn.access")


def _extras(record: logging.LogRecord) -> dict:
    return {
        key: record.__dict__[key]
        for key in EXTRA_FIELDS
        if record.__dict__.get(key) is not None
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per line, dispatch extras as top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_extras(record),
        }
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False, default=str)


class RequestTextFormatter(logging.Formatter):
    """Readable line with request id and procedure appended in brackets."""

    def __init__(self):
        super().__init__("%(asctime)s %(levelname)s %(name)s - %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extras = _extras(record)
        if not extras:
            return line
        tags = " ".join(f"{k}={v}" for k, v in extras.items())
        first, sep, rest = line.partition("\n")
        return f"{first} [{tags}]{sep}{rest}"


_handler: logging.Handler | None = None


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    """Install the switchyard handler on the root logger."""
    global _handler
    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter() if fmt == "json" else RequestTextFormatter())
    if _handler is not None:
        logging.root.removeHandler(_handler)
    logging.root.addHandler(handler)
    root_level = getattr(logging, level.upper(), logging.INFO)
    logging.root.setLevel(root_level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(root_level, logging.WARNING))
    _handler = handler
