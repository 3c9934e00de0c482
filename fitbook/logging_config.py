"""
Logging for FitBook.

Every record is stamped with the context of the request that produced it:
the request id set by the middleware, the user and role once the access
token has been checked, and the backend operation while a Supabase call is
in flight. Production emits one JSON object per line; development gets a
colored single line.
"""

import json
import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import Any, Dict, Iterator, Mapping

_log_context: ContextVar[Mapping[str, Any]] = ContextVar("fitbook_log_context", default={})


def current_log_context() -> Dict[str, Any]:
    """Fields bound to the current task."""
    return dict(_log_context.get())


def bind_log_context(**fields: Any) -> Token:
    """
    Add fields to the log context of the current task.

    Fields set to None are ignored. The returned token undoes the binding
    through ``reset_log_context``; bindings made without a reset last until
    the task ends.
    """
    context = dict(_log_context.get())
    context.update({key: value for key, value in fields.items() if value is not None})
    return _log_context.set(context)


def reset_log_context(token: Token) -> None:
    _log_context.reset(token)


@contextmanager
def log_context(**fields: Any) -> Iterator[Dict[str, Any]]:
    """Bind fields for the duration of a block."""
    token = bind_log_context(**fields)
    try:
        yield current_log_context()
    finally:
        reset_log_context(token)


class ContextFilter(logging.Filter):
    """Copies the task's log context onto each record as ``record.context``."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.context = current_log_context()
        return True


def _record_context(record: logging.LogRecord) -> Dict[str, Any]:
    # records created before the filter ran (e.g. in tests) have no context yet
    context = getattr(record, "context", None)
    return dict(context) if context is not None else current_log_context()


class StructuredFormatter(logging.Formatter):
    """JSON lines with context and ``extra_fields`` merged at the top level."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "service": "fitbook",
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(_record_context(record))
        entry.update(getattr(record, "extra_fields", None) or {})

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class HumanReadableFormatter(logging.Formatter):
    """
    Colored single-line output for development.

    The context is shown as a short tag, for example
    ``[1a2b3c4d user:5e6f7a8b trainer op:sessions.create]``.
    """

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    @staticmethod
    def context_tag(context: Mapping[str, Any]) -> str:
        parts = []
        if context.get("request_id"):
            parts.append(str(context["request_id"])[:8])
        if context.get("user_id"):
            parts.append(f"user:{str(context['user_id'])[:8]}")
        if context.get("role"):
            parts.append(str(context["role"]))
        if context.get("operation"):
            parts.append(f"op:{context['operation']}")
        return f"[{' '.join(parts)}]" if parts else ""

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        parts = [f"{color}{record.levelname:8}{self.RESET}", f"[{record.name}]"]

        tag = self.context_tag(_record_context(record))
        if tag:
            parts.append(tag)

        parts.append(record.getMessage())

        extra_fields = getattr(record, "extra_fields", None)
        if extra_fields:
            parts.append(" ".join(f"{key}={value}" for key, value in extra_fields.items()))

        message = " ".join(parts)
        if record.exc_info:
            message += f"\n{self.formatException(record.exc_info)}"
        return message


def setup_logging(log_level: str = "INFO", use_json: bool = False) -> None:
    """
    Configure the root logger.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        use_json: Emit JSON lines instead of colored text
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    handler.addFilter(ContextFilter())
    handler.setFormatter(
        StructuredFormatter(datefmt="%Y-%m-%d %H:%M:%S")
        if use_json
        else HumanReadableFormatter(datefmt="%H:%M:%S")
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    # supabase-py logs every HTTP request at INFO through httpx
    for noisy in ("httpx", "httpcore", "hpack", "uvicorn.access"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
