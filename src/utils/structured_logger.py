"""
Structured JSON logging with request and account tracing.

Every log line carries the current request ID (set by RequestIdMiddleware)
and, once the auth gate has resolved the caller, the account ID. Both live in
contextvars so they follow the request across awaits and worker threads;
LogContextFilter copies them onto each record as it is emitted.

Extra fields whose names look like credentials are replaced with
"[REDACTED]" before they are written.

Usage:
    from src.utils.structured_logger import setup_structured_logging, get_logger

    setup_structured_logging(level="INFO", json_output=True)
    logger = get_logger(__name__)
    logger.info("Connection request sent", extra={"notification_id": "..."})
"""

import logging
import json
import sys
from datetime import datetime, timezone
from contextvars import ContextVar
from typing import Optional, Any, Dict

SERVICE_NAME = "lawwise-directory"

request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
account_id_var: ContextVar[Optional[str]] = ContextVar('account_id', default=None)

REDACTED = "[REDACTED]"
_SENSITIVE_KEYS = {"password", "password_hash", "token", "authorization", "session_secret", "secret"}


def set_request_id(request_id: str) -> None:
    """Set request ID for current context."""
    request_id_var.set(request_id)


def get_request_id() -> Optional[str]:
    return request_id_var.get()


def clear_request_id() -> None:
    request_id_var.set(None)


def set_account_id(account_id: str) -> None:
    """Set the authenticated account ID for current context."""
    account_id_var.set(account_id)


def get_account_id() -> Optional[str]:
    return account_id_var.get()


def clear_account_id() -> None:
    account_id_var.set(None)


# LogRecord attributes that are not user-supplied extras
_RESERVED_ATTRS = {
    'name', 'msg', 'args', 'created', 'filename', 'funcName',
    'levelname', 'levelno', 'lineno', 'module', 'msecs',
    'pathname', 'process', 'processName', 'relativeCreated',
    'stack_info', 'exc_info', 'exc_text', 'thread', 'threadName',
    'message', 'taskName', 'request_id', 'account_id',
}


class LogContextFilter(logging.Filter):
    """Stamps request_id and account_id from the current context onto records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = get_request_id()
        if getattr(record, "account_id", None) is None:
            record.account_id = get_account_id()
        return True


def _record_context(record: logging.LogRecord) -> Dict[str, Optional[str]]:
    # Formatters may be used without the filter (tests, ad-hoc handlers)
    return {
        "request_id": getattr(record, "request_id", None) or get_request_id(),
        "account_id": getattr(record, "account_id", None) or get_account_id(),
    }


def _record_time(record: logging.LogRecord) -> datetime:
    return datetime.fromtimestamp(record.created, tz=timezone.utc)


def redact_extras(record: logging.LogRecord) -> Dict[str, Any]:
    """User-supplied extras of a record, JSON-safe, with credentials masked."""
    extras = {}
    for key, value in record.__dict__.items():
        if key in _RESERVED_ATTRS or key.startswith('_'):
            continue
        if key.lower() in _SENSITIVE_KEYS:
            extras[key] = REDACTED
            continue
        try:
            json.dumps(value)
            extras[key] = value
        except (TypeError, ValueError):
            extras[key] = str(value)
    return extras


class JSONFormatter(logging.Formatter):
    """One JSON object per line.

    {
        "timestamp": "2026-01-21T15:30:00.123456Z",
        "level": "WARNING",
        "logger": "src.services.login_throttle",
        "message": "Account ... locked after 5 failed logins ...",
        "request_id": "abc-123",
        "account_id": null,
        "service": "lawwise-directory",
        "source": {"file": ..., "line": ..., "function": ...},
        "extra": {...}
    }
    """

    def __init__(self, service_name: str = SERVICE_NAME):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": _record_time(record).isoformat().replace('+00:00', 'Z'),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_record_context(record),
            "service": self.service_name,
            "source": {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            },
        }

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, _ = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "traceback": self.formatException(record.exc_info),
            }

        extras = redact_extras(record)
        if extras:
            entry["extra"] = extras

        return json.dumps(entry, default=str)


class PlainFormatter(logging.Formatter):
    """Human-readable single line for local development.

    Format: 2026-01-21 15:30:00 WARNING src.services.login_throttle [req=abc acct=123] message
    """

    def format(self, record: logging.LogRecord) -> str:
        context = _record_context(record)
        tags = " ".join(
            f"{label}={context[key]}"
            for label, key in (("req", "request_id"), ("acct", "account_id"))
            if context[key]
        )
        prefix = f"[{tags}] " if tags else ""

        line = (
            f"{_record_time(record):%Y-%m-%d %H:%M:%S} {record.levelname} "
            f"{record.name} {prefix}{record.getMessage()}"
        )
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_structured_logging(
    level: str = "INFO",
    json_output: bool = True,
    service_name: str = SERVICE_NAME
) -> None:
    """Configure root logging once at application startup.

    Args:
        level: Log level name, case-insensitive
        json_output: JSON lines when True, plain text otherwise
        service_name: Service name included in JSON entries
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(LogContextFilter())
    handler.setFormatter(JSONFormatter(service_name=service_name) if json_output else PlainFormatter())
    root_logger.addHandler(handler)

    # Client libraries log every HTTP call to Supabase at INFO
    for noisy in ("uvicorn.access", "httpx", "httpcore", "hpack"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
