"""Booking session ID on log records.

A customer's path through slot lookups, step changes and the final
submission is tagged with the ``BOOK-xxxxxx`` id of their
``BookingSession``. Two sources feed the tag:

* ``BookingSession`` passes its own id in ``extra`` on every record it
  logs, so its records are right even when several sessions share one
  task.
* Everything else (the resolver, the slot refresh client) reads the
  ContextVar, which the session sets whenever it acts. Polling tasks
  created afterwards copy the context and keep the id.

Usage:
    from eleganza_booking.logging_context import get_session_logger, set_session_id

    set_session_id("BOOK-3F9A1C")
    logger = get_session_logger(__name__)
    logger.info("Slots refreshed")  # record.session_id == "BOOK-3F9A1C"
"""

import logging
from contextvars import ContextVar

NO_SESSION = "NO_SESSION"

_session_id: ContextVar[str] = ContextVar("session_id", default=NO_SESSION)


def set_session_id(session_id: str) -> None:
    """Set the booking session ID for the current async context."""
    _session_id.set(session_id)


def get_session_id() -> str:
    """Retrieve the current booking session ID."""
    return _session_id.get()


def session_extra(session_id: str) -> dict[str, str]:
    """``extra`` mapping that pins a record to one booking session."""
    return {"session_id": session_id}


class SessionIdFilter(logging.Filter):
    """Fills in session_id from the context unless the record already names one."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "session_id", None):
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
