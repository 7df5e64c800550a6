"""Error taxonomy for the scheduling engine.

    InvalidDateError  -- malformed calendar/time input. Local, not retryable.
    DataUnavailable   -- the backing store could not be read. Retry the read.
    ConflictError     -- booking creation lost a race for the time window.
                         Re-resolve availability before trying again.
    ValidationError   -- a draft or request is incomplete or malformed.
"""


class SchedulingError(Exception):
    """Base class for all scheduling engine errors."""


class InvalidDateError(SchedulingError, ValueError):
    """Raised when a date, time or timestamp string cannot be parsed."""


class DataUnavailable(SchedulingError):
    """Raised when appointment, hours or blocked-time data cannot be fetched."""


class ConflictError(SchedulingError):
    """Raised when the requested window is no longer free at insert time."""


class ValidationError(SchedulingError):
    """Raised when a booking request does not satisfy the workflow guards."""
