"""
Timeline layout for the admin calendar view.

Places appointments for one or more days on a shared hour axis. Each day
is a column; within a column, an appointment's vertical position and height
are percentages of the visible window, and overlapping appointments are
fanned out into lanes.

Lane assignment is greedy in start-time order: an appointment's lane is the
number of earlier appointments in its column it overlaps. This is not an
optimal interval colouring, and that is fine for a salon where one staff
member is rarely double-booked.

Malformed records (end at or before start) still get a visible block of
``min_duration_hours``; layout never raises for bad data.

Usage:
    layout = layout_timeline(appointments, date_range("2025-02-10", 3))
    for day, items in layout.columns.items():
        for item in items:
            draw(item.top_percent, item.height_percent, item.lane_index)
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional, Sequence

from eleganza_booking.calendar.timeutil import (
    DateLike,
    format_day_header,
    format_hour_label,
    hour_decimal,
    parse_date,
    parse_timestamp,
)
from eleganza_booking.config import settings
from eleganza_booking.schemas.scheduling import Appointment, AppointmentStatus

logger = logging.getLogger(__name__)

# Rendering constants
MIN_BLOCK_HEIGHT_PX = 22
LANE_OFFSET_PX = 8
HOUR_HEIGHT_3DAY = 60
HOUR_HEIGHT_WEEK = 48
COMPACT_COLUMN_THRESHOLD = 3


@dataclass(frozen=True)
class PositionedAppointment:
    """An appointment with its computed place in a timeline column."""
    appointment: Appointment
    start_hour: float
    end_hour: float
    top_percent: float
    height_percent: float
    lane_index: int
    is_filtered: bool = False

    @property
    def duration_hours(self) -> float:
        return max(self.end_hour - self.start_hour, settings.timeline.min_duration_hours)

    def height_px(self, hour_height: int) -> float:
        return max(self.duration_hours * hour_height, MIN_BLOCK_HEIGHT_PX)

    @property
    def lane_offset_px(self) -> int:
        return self.lane_index * LANE_OFFSET_PX


@dataclass
class TimelineLayout:
    """Visible hour window plus positioned appointments per day column."""
    window_start: int
    window_end: int
    columns: dict[date, list[PositionedAppointment]] = field(default_factory=dict)

    @property
    def span(self) -> int:
        return self.window_end - self.window_start

    @property
    def dates(self) -> list[date]:
        return list(self.columns)

    @property
    def is_compact(self) -> bool:
        return len(self.columns) > COMPACT_COLUMN_THRESHOLD

    @property
    def hour_height(self) -> int:
        """Pixel height of one hour: week views are drawn tighter than 3-day views."""
        return HOUR_HEIGHT_WEEK if self.is_compact else HOUR_HEIGHT_3DAY

    def hours(self) -> list[int]:
        return list(range(self.window_start, self.window_end))

    def hour_labels(self) -> list[str]:
        return [format_hour_label(hour) for hour in self.hours()]

    def column_headers(self) -> list[str]:
        return [format_day_header(day) for day in self.columns]

    def height_px(self, hour_height: Optional[int] = None) -> int:
        return self.span * (hour_height if hour_height is not None else self.hour_height)


def _hours_of(appointment: Appointment) -> tuple[float, float]:
    """Start and end as decimal hours on the start's local day.

    The end is measured from the start, so an appointment running past
    midnight ends after 24 rather than wrapping to the small hours.
    """
    start = hour_decimal(appointment.starts_at)
    elapsed = (
        parse_timestamp(appointment.ends_at) - parse_timestamp(appointment.starts_at)
    ).total_seconds() / 3600
    return start, start + elapsed


def visible_window(hour_ranges: Iterable[tuple[float, float]]) -> tuple[int, int]:
    """Hour window covering every range plus padding, clamped to ``[0, 24]``."""
    cfg = settings.timeline
    ranges = list(hour_ranges)
    if not ranges:
        return cfg.default_start_hour, cfg.default_end_hour

    earliest = min(start for start, _ in ranges)
    latest = max(max(start, end) for start, end in ranges)
    window_start = max(0, math.floor(earliest) - cfg.padding_hours)
    window_end = min(24, math.ceil(latest) + cfg.padding_hours)
    if window_end <= window_start:
        # Zero-length records on the hour with no padding.
        window_end = min(24, window_start + 1)
        window_start = window_end - 1
    return window_start, window_end


def layout_timeline(
    appointments: Iterable[Appointment],
    dates: Sequence[DateLike],
    status_filter: Optional[AppointmentStatus] = None,
) -> TimelineLayout:
    """Lay out ``appointments`` in one column per entry of ``dates``.

    Args:
        appointments: Appointments for the visible days, any order. All of
            them size the hour window; ones falling on other days get no
            column.
        dates: Column dates, left to right.
        status_filter: When set, appointments with a different status are
            still placed but flagged ``is_filtered`` so they can be dimmed.

    Returns:
        The computed layout. Columns with no appointments are empty lists.
    """
    column_dates = [parse_date(d) for d in dates]
    buckets: dict[date, list[tuple[Appointment, float, float]]] = {d: [] for d in column_dates}

    hour_ranges: list[tuple[float, float]] = []
    dropped = 0
    for appointment in appointments:
        start, end = _hours_of(appointment)
        hour_ranges.append((start, end))
        day = parse_timestamp(appointment.starts_at).date()
        if day not in buckets:
            dropped += 1
            continue
        buckets[day].append((appointment, start, end))
    if dropped:
        logger.debug("Skipped %d appointment(s) outside the visible dates", dropped)

    window_start, window_end = visible_window(hour_ranges)
    span = window_end - window_start
    min_duration = settings.timeline.min_duration_hours

    layout = TimelineLayout(window_start=window_start, window_end=window_end)
    for day, items in buckets.items():
        items.sort(key=lambda item: item[1])
        placed: list[PositionedAppointment] = []
        for appointment, start, end in items:
            lane = sum(1 for prev in placed if prev.start_hour < end and prev.end_hour > start)
            duration = max(end - start, min_duration)
            placed.append(PositionedAppointment(
                appointment=appointment,
                start_hour=start,
                end_hour=end,
                top_percent=(start - window_start) / span * 100,
                height_percent=duration / span * 100,
                lane_index=lane,
                is_filtered=status_filter is not None and appointment.status != status_filter,
            ))
        layout.columns[day] = placed
    return layout
