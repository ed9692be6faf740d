"""
Structured logging.

Loggers returned by get_logger accept keyword fields next to the message:

    logger.info("Reservation created", reservation_id=12, venue_id=3)

Production writes one JSON object per line; development renders through
rich with the fields appended as key=value pairs. Both carry the request
correlation id.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from rich.logging import RichHandler

from tablebook_shared.config.settings import settings


def _fields(record: logging.LogRecord) -> dict[str, Any]:
    return getattr(record, "fields", None) or {}


def _request_id(record: logging.LogRecord) -> str | None:
    request_id = getattr(record, "request_id", None)
    return None if request_id in (None, "", "-") else request_id


class StructuredFormatter(logging.Formatter):
    """One JSON document per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if request_id := _request_id(record):
            entry["request_id"] = request_id
        if fields := _fields(record):
            entry["data"] = fields
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        if settings.debug:
            entry["source"] = f"{record.pathname}:{record.lineno}"
        return json.dumps(entry, default=str)


class DevelopmentFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        text = f"{record.name}: {record.getMessage()}"
        if request_id := _request_id(record):
            text = f"[{request_id[:8]}] {text}"
        if fields := _fields(record):
            text += " (" + ", ".join(f"{key}={value}" for key, value in fields.items()) + ")"
        return text


class StructuredLogger(logging.Logger):
    def _log(
        self,
        level,
        msg,
        args,
        exc_info=None,
        extra=None,
        stack_info=False,
        stacklevel=1,
        **fields: Any,
    ):
        extra = dict(extra or {})
        extra["fields"] = fields
        super()._log(
            level,
            msg,
            args,
            exc_info=exc_info,
            extra=extra,
            stack_info=stack_info,
            stacklevel=stacklevel + 1,
        )


logging.setLoggerClass(StructuredLogger)


def setup_logging() -> None:
    """Install the root handler. Safe to call more than once."""
    from tablebook_shared.infrastructure.correlation import CorrelationIdFilter

    level = logging.DEBUG if settings.debug else logging.INFO

    if settings.is_production:
        handler: logging.Handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(StructuredFormatter())
    else:
        handler = RichHandler(rich_tracebacks=True, show_path=False)
        handler.setFormatter(DevelopmentFormatter())
    handler.setLevel(level)
    handler.addFilter(CorrelationIdFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for noisy in ("uvicorn.access", "httpx", "httpcore", "sqlalchemy.engine"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> StructuredLogger:
    return logging.getLogger(name)  # type: ignore[return-value]


def mask_email(email: str | None) -> str:
    """"jane.doe@example.com" -> "ja***@example.com"."""
    if not email or "@" not in email:
        return "<no-email>" if not email else "***@invalid"
    local, _, domain = email.partition("@")
    return f"{local[:2] or '*'}***@{domain}"


rest_api_logger = get_logger("tablebook_api")
auth_logger = get_logger("tablebook_api.auth")
reservation_logger = get_logger("tablebook_api.reservations")
payment_logger = get_logger("tablebook_api.payments")
