"""
Availability resolution: working hours + bookings + blocked time -> slots.

A staff member's day is cut into fixed slots (30 minutes by default) from
opening to closing. A slot is available unless a non-cancelled appointment
or a blocked window overlaps it. When the customer's services need more
than one slot, a slot is only selectable as a start if it and the next
``N - 1`` slots are all free and the block ends by closing time.

The resolver never prevents double-booking on its own: the store's insert
is the authority. Callers that lose that race re-resolve and ask the
customer to pick again.

Usage:
    resolver = AvailabilityResolver(store)
    day = await resolver.resolve(staff_id=3, day="2025-03-18", required_duration_minutes=90)
    day.selectable_starts()  # ["09:00", "09:30", ...]
"""

import logging
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from eleganza_booking.calendar.timeutil import (
    MINUTES_PER_DAY,
    DateLike,
    TimeLike,
    add_days,
    date_range,
    format_clock,
    parse_clock,
    parse_date,
    range_boundaries,
    to_datetime,
    today_local,
)
from eleganza_booking.config import settings
from eleganza_booking.errors import DataUnavailable, ValidationError
from eleganza_booking.gateway import SchedulingGateway
from eleganza_booking.schemas.scheduling import (
    Appointment,
    BlockedWindow,
    Conflict,
    DayAvailability,
    DayHours,
    Slot,
)
from eleganza_booking.utils import slots_needed

logger = logging.getLogger(__name__)


def _busy_ranges(
    appointments: Iterable[Appointment],
    blocked_windows: Iterable[BlockedWindow],
    staff_id: Optional[int],
) -> list[tuple[datetime, datetime]]:
    ranges = [
        (a.starts_at, a.ends_at)
        for a in appointments
        if a.occupies_time and (staff_id is None or a.staff_id == staff_id)
    ]
    ranges.extend(
        (w.starts_at, w.ends_at)
        for w in blocked_windows
        if staff_id is None or w.staff_id == staff_id
    )
    return ranges


def compute_slots(
    hours: Optional[DayHours],
    day: DateLike,
    appointments: Iterable[Appointment],
    blocked_windows: Iterable[BlockedWindow],
    required_duration_minutes: int = 0,
    slot_minutes: Optional[int] = None,
    staff_id: Optional[int] = None,
) -> list[Slot]:
    """Build the ordered slot list for one day.

    Args:
        hours: The day's opening window, or None when the staff member is off.
        day: Calendar date the slots belong to.
        appointments: Existing bookings; cancelled ones are ignored.
        blocked_windows: Vacation / personal time; fully opaque.
        required_duration_minutes: Total service time. 0 means browsing, so
            every available slot is a valid start.
        slot_minutes: Granularity; defaults to the configured slot size.
        staff_id: When given, records for other staff members are ignored.

    Returns:
        Slots from opening to closing, earliest first. Empty if closed.
    """
    if hours is None:
        return []
    step = slot_minutes or settings.scheduling.slot_minutes
    midnight = to_datetime(day, 0)
    busy = _busy_ranges(appointments, blocked_windows, staff_id)

    free: list[bool] = []
    starts = list(range(hours.start, hours.end, step))
    for start in starts:
        slot_start = midnight + timedelta(minutes=start)
        slot_end = slot_start + timedelta(minutes=step)
        free.append(not any(b_start < slot_end and b_end > slot_start for b_start, b_end in busy))

    # Starts are generated back to back, so any run of indices is contiguous.
    needed = max(1, slots_needed(required_duration_minutes, step))
    slots = []
    for i, start in enumerate(starts):
        block_end = start + needed * step
        can_start = (
            i + needed <= len(starts)
            and block_end <= hours.end
            and all(free[i:i + needed])
        )
        slots.append(Slot(
            start=start,
            end=start + step,
            is_available=free[i],
            can_start_block=can_start,
        ))
    return slots


class AvailabilityResolver:
    """Reads schedule data through a gateway and resolves bookable slots."""

    def __init__(self, gateway: SchedulingGateway, slot_minutes: Optional[int] = None) -> None:
        self._gateway = gateway
        self._slot_minutes = slot_minutes or settings.scheduling.slot_minutes

    @property
    def slot_minutes(self) -> int:
        return self._slot_minutes

    async def _load_day(
        self, staff_id: int, day: date, include_closed: bool = False, days: int = 1
    ) -> tuple[Optional[DayHours], list[Appointment], list[BlockedWindow]]:
        """Fetch everything needed for one day, or raise DataUnavailable.

        Bookings are not fetched for a closed day unless ``include_closed``.
        ``days > 1`` widens the booking fetch past midnight; hours stay those
        of ``day``.
        """
        try:
            weekly = await self._gateway.get_working_hours(staff_id)
            hours = weekly.for_date(day)
            if hours is None and not include_closed:
                return None, [], []
            bounds = range_boundaries(day, days)
            appointments = await self._gateway.list_appointments(staff_id, bounds.start, bounds.end)
            blocked = await self._gateway.list_blocked_windows(staff_id, bounds.start, bounds.end)
        except DataUnavailable:
            raise
        except Exception as exc:
            logger.debug("Failed to load schedule for staff %s on %s: %s", staff_id, day, exc)
            raise DataUnavailable(
                f"Could not load schedule for staff {staff_id} on {day.isoformat()}."
            ) from exc
        return hours, appointments, blocked

    async def resolve(
        self, staff_id: int, day: DateLike, required_duration_minutes: int = 0
    ) -> DayAvailability:
        """Resolve the slot list for ``staff_id`` on ``day``.

        Raises:
            InvalidDateError: ``day`` is malformed.
            DataUnavailable: the store could not be read. No slots are
                returned in that case, never a partial list.
        """
        d = parse_date(day)
        hours, appointments, blocked = await self._load_day(staff_id, d)
        slots = compute_slots(
            hours, d, appointments, blocked,
            required_duration_minutes=required_duration_minutes,
            slot_minutes=self._slot_minutes,
            staff_id=staff_id,
        )
        logger.debug(
            "Resolved %d slots (%d selectable) for staff %s on %s, duration %d",
            len(slots), sum(s.can_start_block for s in slots),
            staff_id, d, required_duration_minutes,
        )
        return DayAvailability(
            staff_id=staff_id,
            date=d,
            required_duration_minutes=required_duration_minutes,
            slot_minutes=self._slot_minutes,
            slots=slots,
        )

    async def find_conflicts(
        self,
        staff_id: int,
        day: DateLike,
        clock: TimeLike,
        duration_minutes: int,
        ignore_appointment_id: Optional[int] = None,
    ) -> list[Conflict]:
        """Everything standing in the way of booking ``[clock, clock + duration)``.

        Used by the admin manual-appointment form, which may place bookings
        at any minute rather than on slot boundaries.

        Raises:
            ValidationError: ``duration_minutes`` is zero or negative.
            DataUnavailable: the store could not be read.
        """
        d = parse_date(day)
        start_min = parse_clock(clock)
        if duration_minutes <= 0:
            raise ValidationError(f"Duration must be positive, got {duration_minutes} minutes.")
        end_min = start_min + duration_minutes
        start = to_datetime(d, start_min)
        end = start + timedelta(minutes=duration_minutes)

        hours, appointments, blocked = await self._load_day(
            staff_id, d, include_closed=True, days=2 if end_min > MINUTES_PER_DAY else 1,
        )
        conflicts: list[Conflict] = []

        if hours is None:
            conflicts.append(Conflict(
                kind="outside_hours",
                message=f"Staff {staff_id} does not work on {d.isoformat()}.",
            ))
        elif start_min < hours.start or end_min > hours.end:
            conflicts.append(Conflict(
                kind="outside_hours",
                message=(
                    f"{format_clock(start_min)}-{format_clock(end_min)} is outside working hours "
                    f"{format_clock(hours.start)}-{format_clock(hours.end)}."
                ),
            ))

        for appointment in appointments:
            if (
                appointment.id == ignore_appointment_id
                or appointment.staff_id != staff_id
                or not appointment.occupies_time
                or not appointment.overlaps(start, end)
            ):
                continue
            conflicts.append(Conflict(
                kind="appointment",
                message=f"Overlaps appointment {appointment.id}.",
                reference_id=appointment.id,
                starts_at=appointment.starts_at,
                ends_at=appointment.ends_at,
            ))
        for window in blocked:
            if window.staff_id != staff_id or not window.overlaps(start, end):
                continue
            conflicts.append(Conflict(
                kind="blocked",
                message=f"Overlaps blocked time{': ' + window.reason if window.reason else ''}.",
                reference_id=window.id,
                starts_at=window.starts_at,
                ends_at=window.ends_at,
            ))
        return conflicts

    async def bookable_dates(
        self,
        staff_id: int,
        today: Optional[DateLike] = None,
        horizon_days: Optional[int] = None,
    ) -> list[date]:
        """Dates from tomorrow through the booking horizon on which the staff member works."""
        horizon = horizon_days or settings.scheduling.booking_horizon_days
        first = add_days(today if today is not None else today_local(), 1)
        try:
            weekly = await self._gateway.get_working_hours(staff_id)
        except DataUnavailable:
            raise
        except Exception as exc:
            raise DataUnavailable(f"Could not load working hours for staff {staff_id}.") from exc
        return [d for d in date_range(first, horizon) if weekly.for_date(d) is not None]
