"""
Clarifai Client Logging
-----------------------
Structured logging with call_id propagation for request traceability.

Design:
- Every logical API call gets a unique call_id
- call_id is shared by the first attempt, the token refresh and the retry
- Console output through Rich, file output as JSON lines
- Clear severity discipline: DEBUG=wire, INFO=state, WARNING=recoverable, ERROR=abort
- Credentials and tokens are never logged

Usage:
    from infra.logging import get_logger, CallContext

    logger = get_logger("api.client")

    with CallContext() as call_id:
        logger.info("Dispatching tag request")
"""

import contextvars
import json
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from rich.logging import RichHandler

# Context variable for call_id - thread-safe and async-safe
_call_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "call_id", default=None
)

ROOT_LOGGER_NAME = "clarifai"


def generate_call_id() -> str:
    """Generate a unique call ID."""
    return f"call_{uuid.uuid4().hex[:12]}"


def get_call_id() -> Optional[str]:
    """Get the current call ID from context."""
    return _call_id_var.get()


class CallContext:
    """
    Context manager for call scoping.

    Nested contexts reuse the outer call_id, so a retry issued from
    inside a call is logged under the same id as the original attempt.
    """

    def __init__(self, call_id: Optional[str] = None):
        self._call_id = call_id or get_call_id() or generate_call_id()
        self._token: Optional[contextvars.Token] = None

    def __enter__(self) -> str:
        self._token = _call_id_var.set(self._call_id)
        return self._call_id

    def __exit__(self, *args) -> None:
        if self._token is not None:
            _call_id_var.reset(self._token)


class CallIdFilter(logging.Filter):
    """Logging filter that adds call_id to every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "call_id", None) is None:
            record.call_id = get_call_id() or "-"
        return True


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured file logging."""

    EXTRA_FIELDS = ("endpoint", "status_code", "attempt", "file_count")

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "call_id": getattr(record, "call_id", "-"),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        for key in self.EXTRA_FIELDS:
            if hasattr(record, key):
                log_entry[key] = getattr(record, key)

        return json.dumps(log_entry)


# Global configuration state
_logging_initialized = False


def configure_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    console: bool = True,
) -> None:
    """
    Configure the client logging system.

    Nothing is configured on import; applications call this once.

    Args:
        level: Logging level (default INFO)
        log_file: Path for JSON log output (disabled when None)
        console: Enable Rich console output
    """
    global _logging_initialized

    if _logging_initialized:
        return

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    call_filter = CallIdFilter()

    if console:
        console_handler = RichHandler(show_path=False, rich_tracebacks=True)
        console_handler.setLevel(level)
        console_handler.setFormatter(logging.Formatter("[%(call_id)s] %(name)s: %(message)s"))
        console_handler.addFilter(call_filter)
        root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(str(log_path), mode="a", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)  # File gets everything
        file_handler.setFormatter(JSONFormatter())
        file_handler.addFilter(call_filter)
        root_logger.addHandler(file_handler)

    _logging_initialized = True


def reset_logging() -> None:
    """Drop configured handlers so configure_logging() can run again."""
    global _logging_initialized

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()
    _logging_initialized = False


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the clarifai namespace.

    Args:
        name: Logger name (will be prefixed with 'clarifai.' if not already)

    Returns:
        Logger that carries call_id on its records
    """
    if not name.startswith(ROOT_LOGGER_NAME):
        name = f"{ROOT_LOGGER_NAME}.{name}"

    logger = logging.getLogger(name)
    if not any(isinstance(f, CallIdFilter) for f in logger.filters):
        logger.addFilter(CallIdFilter())
    return logger
