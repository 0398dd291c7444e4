"""Structured Logging: JSON formatter and setup for startup and runtime logs.

Invariants:
    - All logs include timestamp, level, logger name, and message
    - Extra fields (env_var, error_code, stage) surfaced when present
    - setup_logging installs exactly one handler no matter how often it runs

Design Decisions:
    - JSONFormatter over third-party libs: zero dependencies, full control
    - Human-readable format by default: startup output is read on a console
"""

import logging
import json
from datetime import datetime, timezone

_EXTRA_FIELDS = ("env_var", "error_code", "stage", "port")

_handler: logging.Handler | None = None


class JSONFormatter(logging.Formatter):
    """Format logs as JSON for structured logging in production."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _EXTRA_FIELDS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False)


def setup_logging(level: str = "INFO", fmt: str = "text") -> logging.Handler:
    """Configure root logging, replacing any handler a previous call installed."""
    global _handler
    handler = logging.StreamHandler()
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
        ))
    if _handler is not None:
        logging.root.removeHandler(_handler)
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
    _handler = handler
    return handler
