"""
Logging setup for the chat backend.

One stderr handler on the root logger. Every record passing through it is
stamped with the current request id and has credential-bearing ``extra``
fields masked, then rendered as a JSON line in production or a plain
pipe-separated line otherwise.

Usage:
    from chatapp.logging_config import get_logger
    logger = get_logger(__name__)
    logger.info("Session issued", extra={"user_id": str(uid)})
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Optional

# Set by the request-id middleware for the duration of a request
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

NO_REQUEST = "-"

REDACTED_KEYS = frozenset({
    "password",
    "new_password",
    "current_password",
    "password_hash",
    "access_token",
    "refresh_token",
    "token",
    "otp",
    "secret",
})

DEV_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(request_id)s | %(message)s"

# Attributes every LogRecord carries; anything else arrived through ``extra``
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "request_id"}

_QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "aiosqlite")


class RequestIdFilter(logging.Filter):

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or NO_REQUEST  # type: ignore[attr-defined]
        return True


class RedactSecretsFilter(logging.Filter):
    """Mask credential fields passed via ``extra``."""

    def filter(self, record: logging.LogRecord) -> bool:
        fields = vars(record)
        for key in REDACTED_KEYS.intersection(fields):
            if fields[key] is not None:
                fields[key] = "***"
        return True


def extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _RECORD_ATTRS and value is not None
    }


class JsonFormatter(logging.Formatter):
    """One JSON object per record; values that JSON cannot hold become strings."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        request_id = getattr(record, "request_id", NO_REQUEST)
        if request_id != NO_REQUEST:
            entry["request_id"] = request_id
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        entry.update(extra_fields(record))
        return json.dumps(entry, default=str)


def build_handler(json_output: bool, level: int = logging.INFO) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.addFilter(RequestIdFilter())
    handler.addFilter(RedactSecretsFilter())
    if json_output:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(DEV_FORMAT, datefmt="%H:%M:%S"))
    return handler


def configure_logging(
    *,
    log_level: str = "INFO",
    environment: str = "development",
    debug: bool = False,
) -> None:
    """
    Replace the root handlers with a single stderr handler.

    Args:
        log_level: Level name; unknown names fall back to INFO
        environment: 'production' selects JSON output
        debug: Forces DEBUG
    """
    level = logging.DEBUG if debug else logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.setLevel(level)
    root.addHandler(build_handler(environment == "production", level))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
