"""
Fixed-offset date and time helpers.

The salon operates at a single UTC offset with no daylight saving, so
every timestamp the engine produces carries that explicit offset
(``2025-02-14T14:30:00-06:00``) and the store interprets it correctly
regardless of its own server timezone.

Day, week, month and range arithmetic always steps whole days on ``date``
values rather than adding seconds to a timestamp, so the same code stays
correct if the business offset ever changes to a zone with DST.

Clock times are plain ints: minutes since local midnight.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import NamedTuple, Optional, Union

from eleganza_booking.config import settings
from eleganza_booking.errors import InvalidDateError

DateLike = Union[date, str]
TimeLike = Union[int, str]
TimestampLike = Union[datetime, str]

MINUTES_PER_DAY = 24 * 60

# es-GT abbreviations, Sunday first to match day_of_week()
WEEKDAY_SHORT = ["dom", "lun", "mar", "mié", "jue", "vie", "sáb"]
MONTH_SHORT = [
    "ene", "feb", "mar", "abr", "may", "jun",
    "jul", "ago", "sept", "oct", "nov", "dic",
]


def _parse_offset(raw: str) -> timezone:
    sign = -1 if raw.startswith("-") else 1
    hours, minutes = raw[1:].split(":")
    return timezone(sign * timedelta(hours=int(hours), minutes=int(minutes)))


BUSINESS_OFFSET = settings.business.utc_offset
BUSINESS_TZ = _parse_offset(BUSINESS_OFFSET)


class Boundaries(NamedTuple):
    """Half-open ``[start, end)`` range of offset-tagged timestamps."""

    start: str
    end: str


# ------------------------------------------------------------------ #
# Parsing
# ------------------------------------------------------------------ #

def parse_date(value: DateLike) -> date:
    """Parse ``YYYY-MM-DD`` into a date. ``date`` values pass through."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except (ValueError, AttributeError, TypeError):
        raise InvalidDateError(f"Invalid date: {value!r} (expected YYYY-MM-DD)") from None


def parse_clock(value: TimeLike) -> int:
    """Parse ``HH:MM`` (or ``HH:MM:SS``) into minutes since midnight."""
    if isinstance(value, bool):
        raise InvalidDateError(f"Invalid time: {value!r}")
    if isinstance(value, int):
        if not 0 <= value <= MINUTES_PER_DAY:
            raise InvalidDateError(f"Clock time out of range: {value}")
        return value
    if isinstance(value, str) and value.strip() in ("24:00", "24:00:00"):
        return MINUTES_PER_DAY
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            parsed = datetime.strptime(value.strip(), fmt)
        except (ValueError, AttributeError, TypeError):
            continue
        return parsed.hour * 60 + parsed.minute
    raise InvalidDateError(f"Invalid time: {value!r} (expected HH:MM)")


# Booking flow name for the same parser
parse_time = parse_clock


def format_clock(minutes: int) -> str:
    """Format minutes since midnight as ``HH:MM``.

    ``1440`` renders as ``24:00`` so a closing time at midnight stays
    readable.
    """
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def parse_timestamp(value: TimestampLike) -> datetime:
    """Parse an offset-tagged ISO timestamp into business-local time.

    Naive timestamps are rejected: without an offset the instant is
    ambiguous.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError:
            raise InvalidDateError(f"Invalid timestamp: {value!r}") from None
    else:
        raise InvalidDateError(f"Invalid timestamp: {value!r}")
    if parsed.tzinfo is None:
        raise InvalidDateError(f"Timestamp has no UTC offset: {value!r}")
    return parsed.astimezone(BUSINESS_TZ)


def format_timestamp(value: datetime) -> str:
    """Render an aware datetime as ``YYYY-MM-DDTHH:MM:SS`` plus the business offset."""
    local = parse_timestamp(value)
    return local.strftime("%Y-%m-%dT%H:%M:%S") + BUSINESS_OFFSET


# ------------------------------------------------------------------ #
# Timestamp construction
# ------------------------------------------------------------------ #

def build_timestamp(day: DateLike, clock: TimeLike) -> str:
    """Build ``YYYY-MM-DDTHH:MM:00-06:00`` for a local date and clock time."""
    d = parse_date(day)
    minutes = parse_clock(clock)
    if minutes == MINUTES_PER_DAY:
        return f"{add_days(d, 1).isoformat()}T00:00:00{BUSINESS_OFFSET}"
    return f"{d.isoformat()}T{format_clock(minutes)}:00{BUSINESS_OFFSET}"


def to_datetime(day: DateLike, clock: TimeLike) -> datetime:
    """Aware datetime for a local date and clock time."""
    d = parse_date(day)
    minutes = parse_clock(clock)
    return datetime.combine(d, time(0, 0), tzinfo=BUSINESS_TZ) + timedelta(minutes=minutes)


def build_end_timestamp(day: DateLike, clock: TimeLike, duration_minutes: int) -> str:
    """Timestamp of ``clock + duration`` on ``day``; may roll into the next day."""
    end = to_datetime(day, clock) + timedelta(minutes=duration_minutes)
    return format_timestamp(end)


def local_input_to_timestamp(value: str) -> str:
    """Convert a wall-clock input value (``YYYY-MM-DDTHH:MM``) to a timestamp."""
    try:
        parsed = datetime.strptime(value.strip(), "%Y-%m-%dT%H:%M")
    except (ValueError, AttributeError, TypeError):
        raise InvalidDateError(
            f"Invalid local input: {value!r} (expected YYYY-MM-DDTHH:MM)"
        ) from None
    return parsed.strftime("%Y-%m-%dT%H:%M") + ":00" + BUSINESS_OFFSET


def timestamp_to_local_input(value: TimestampLike) -> str:
    """Inverse of :func:`local_input_to_timestamp`."""
    return parse_timestamp(value).strftime("%Y-%m-%dT%H:%M")


# ------------------------------------------------------------------ #
# Extraction
# ------------------------------------------------------------------ #

def date_of(value: TimestampLike) -> str:
    """Business-local calendar date of a timestamp, as ``YYYY-MM-DD``."""
    return parse_timestamp(value).date().isoformat()


def time_of(value: TimestampLike) -> str:
    """Business-local clock time of a timestamp, as ``HH:MM``."""
    return parse_timestamp(value).strftime("%H:%M")


def clock_of(value: TimestampLike) -> int:
    """Business-local clock time of a timestamp, as minutes since midnight."""
    local = parse_timestamp(value)
    return local.hour * 60 + local.minute


def hour_decimal(value: TimestampLike) -> float:
    """Business-local hour as a decimal, e.g. 14:30 -> 14.5."""
    local = parse_timestamp(value)
    return local.hour + local.minute / 60


# ------------------------------------------------------------------ #
# Calendar arithmetic
# ------------------------------------------------------------------ #

def today_local() -> date:
    """Today's date at the business offset."""
    return datetime.now(BUSINESS_TZ).date()


def add_days(day: DateLike, days: int) -> date:
    """Add whole calendar days to a date."""
    return parse_date(day) + timedelta(days=days)


def date_range(start: DateLike, count: int) -> list[date]:
    """``count`` consecutive dates beginning at ``start``."""
    first = parse_date(start)
    return [add_days(first, i) for i in range(count)]


def day_of_week(day: DateLike) -> int:
    """Day of week with Sunday=0 .. Saturday=6."""
    return (parse_date(day).weekday() + 1) % 7


def week_start(day: DateLike) -> date:
    """Sunday of the week containing ``day``."""
    d = parse_date(day)
    return add_days(d, -day_of_week(d))


def _midnight(day: date) -> str:
    return f"{day.isoformat()}T00:00:00{BUSINESS_OFFSET}"


def day_boundaries(day: DateLike) -> Boundaries:
    """Local midnight of ``day`` to local midnight of the next day."""
    d = parse_date(day)
    return Boundaries(_midnight(d), _midnight(add_days(d, 1)))


def week_boundaries(today: Optional[DateLike] = None) -> Boundaries:
    """Sunday-start week containing ``today`` (defaults to the current date)."""
    start = week_start(today if today is not None else today_local())
    return Boundaries(_midnight(start), _midnight(add_days(start, 7)))


def month_boundaries(today: Optional[DateLike] = None) -> Boundaries:
    """Calendar month containing ``today`` (defaults to the current date)."""
    d = parse_date(today if today is not None else today_local())
    first = d.replace(day=1)
    if first.month == 12:
        next_first = first.replace(year=first.year + 1, month=1)
    else:
        next_first = first.replace(month=first.month + 1)
    return Boundaries(_midnight(first), _midnight(next_first))


def range_boundaries(day: DateLike, days: int) -> Boundaries:
    """Midnight of ``day`` to midnight of ``day + days``."""
    d = parse_date(day)
    return Boundaries(_midnight(d), _midnight(add_days(d, days)))


# ------------------------------------------------------------------ #
# Display (es-GT)
# ------------------------------------------------------------------ #

def format_display_datetime(value: TimestampLike) -> str:
    """e.g. ``vie, 14 de feb de 2025, 14:30``"""
    local = parse_timestamp(value)
    weekday = WEEKDAY_SHORT[day_of_week(local.date())]
    month = MONTH_SHORT[local.month - 1]
    return f"{weekday}, {local.day} de {month} de {local.year}, {local:%H:%M}"


def format_short_datetime(value: TimestampLike) -> str:
    """e.g. ``14 feb, 14:30``"""
    local = parse_timestamp(value)
    return f"{local.day} {MONTH_SHORT[local.month - 1]}, {local:%H:%M}"


def format_display_date(value: TimestampLike) -> str:
    """e.g. ``14 de feb de 2025``"""
    local = parse_timestamp(value)
    return f"{local.day} de {MONTH_SHORT[local.month - 1]} de {local.year}"


def format_day_header(day: DateLike) -> str:
    """Short column header for the timeline, e.g. ``vie 14``."""
    d = parse_date(day)
    return f"{WEEKDAY_SHORT[day_of_week(d)]} {d.day}"


def format_hour_label(hour: int) -> str:
    """12-hour axis label, e.g. 14 -> ``2 p. m.`` (non-breaking space)."""
    h = 12 if hour % 12 == 0 else hour % 12
    suffix = "a.\u00a0m." if hour % 24 < 12 else "p.\u00a0m."
    return f"{h} {suffix}"
