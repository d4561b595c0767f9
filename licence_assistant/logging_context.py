"""Session ID logging context for tracing one caller's dialogue.

Provides a session-aware logger that attaches a correlation ID to every
log message, so a single conversation can be followed through the
dialogue engine and the memory store.

Usage:
    from licence_assistant.logging_context import get_session_logger, set_session_id

    set_session_id("session_1718000000")
    logger = get_session_logger(__name__)
    logger.info("Processing turn")  # record.session_id == "session_1718000000"
"""

import logging
from contextvars import ContextVar
from typing import IO, Optional

LOG_FORMAT = "%(asctime)s [%(name)s] [%(session_id)s] %(levelname)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_session_id: ContextVar[str] = ContextVar("session_id", default="NO_SESSION")


def set_session_id(session_id: str) -> None:
    """Set the correlation ID for the current context."""
    _session_id.set(session_id)


def get_session_id() -> str:
    """Retrieve the current correlation ID."""
    return _session_id.get()


class SessionIdFilter(logging.Filter):
    """Injects session_id into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.session_id = _session_id.get()  # type: ignore[attr-defined]
        return True


def get_session_logger(name: str) -> logging.Logger:
    """Return a logger with the SessionIdFilter attached.

    The filter adds ``session_id`` to each record so formatters can
    include ``%(session_id)s`` in their format string.
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, SessionIdFilter) for f in logger.filters):
        logger.addFilter(SessionIdFilter())
    return logger


def build_log_handler(stream: Optional[IO[str]] = None) -> logging.Handler:
    """Return a stream handler that prints the session id on every line.

    The filter sits on the handler, so records from loggers that never
    went through get_session_logger still carry ``session_id``.
    """
    handler = logging.StreamHandler(stream)
    handler.addFilter(SessionIdFilter())
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    return handler
