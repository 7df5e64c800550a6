"""Working hours, appointments, blocked time and slot data models."""

from datetime import date, datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from eleganza_booking.calendar.timeutil import (
    day_of_week,
    format_clock,
    parse_clock,
    parse_timestamp,
)
from eleganza_booking.utils import slots_needed

DAY_NAMES = ["sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday"]


def _aware(value):
    # Strings and aware datetimes are normalized to the business offset.
    if isinstance(value, (str, datetime)):
        return parse_timestamp(value)
    return value


class DayHours(BaseModel):
    """Opening window for one weekday, in minutes since midnight."""
    model_config = ConfigDict(frozen=True)

    start: int
    end: int

    @field_validator("start", "end", mode="before")
    @classmethod
    def _parse_clock(cls, value):
        return parse_clock(value)

    @model_validator(mode="after")
    def _check_order(self) -> "DayHours":
        if self.start >= self.end:
            raise ValueError(
                f"Working hours must start before they end: "
                f"{format_clock(self.start)}-{format_clock(self.end)}"
            )
        return self


class WorkingHours(BaseModel):
    """Weekly schedule for one staff member, indexed Sunday=0..Saturday=6.

    ``None`` marks a closed day.
    """
    model_config = ConfigDict(frozen=True)

    days: tuple[Optional[DayHours], ...] = Field(default=(None,) * 7)

    @field_validator("days")
    @classmethod
    def _seven_days(cls, value: tuple) -> tuple:
        if len(value) != 7:
            raise ValueError(f"Working hours need 7 entries (Sunday..Saturday), got {len(value)}")
        return value

    def for_day(self, weekday: int) -> Optional[DayHours]:
        return self.days[weekday]

    def for_date(self, day) -> Optional[DayHours]:
        """Hours for the weekday ``day`` falls on, or None if closed."""
        return self.days[day_of_week(day)]

    @classmethod
    def from_weekly_schedule(cls, schedule: dict) -> "WorkingHours":
        """Build from the admin editor format keyed by lowercase day name.

        ``{"monday": {"start": "09:00", "end": "18:00"},
           "sunday": {"start": None, "end": None}}``

        Days that are missing, or have a null start or end, are closed.
        """
        unknown = set(schedule) - set(DAY_NAMES)
        if unknown:
            raise ValueError(f"Unknown day names in schedule: {sorted(unknown)}")
        days = []
        for name in DAY_NAMES:
            entry = schedule.get(name) or {}
            if entry.get("start") is None or entry.get("end") is None:
                days.append(None)
            else:
                days.append(DayHours(start=entry["start"], end=entry["end"]))
        return cls(days=tuple(days))

    def to_weekly_schedule(self) -> dict:
        """Inverse of :meth:`from_weekly_schedule`."""
        return {
            name: (
                {"start": format_clock(hours.start), "end": format_clock(hours.end)}
                if hours is not None
                else {"start": None, "end": None}
            )
            for name, hours in zip(DAY_NAMES, self.days)
        }


class AppointmentStatus(str, Enum):
    """Lifecycle status of a stored appointment."""
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"

    @property
    def occupies_time(self) -> bool:
        """Cancelled appointments free their slot; every other status holds it."""
        return self is not AppointmentStatus.CANCELLED


class Appointment(BaseModel):
    """Scheduling-relevant view of a stored appointment.

    ``starts_at < ends_at`` is not enforced here: the timeline still has to
    draw malformed records. Use ``is_well_formed`` to check.
    """
    id: int
    staff_id: int
    starts_at: datetime
    ends_at: datetime
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    client_name: Optional[str] = None
    service_names: list[str] = Field(default_factory=list)

    @field_validator("starts_at", "ends_at", mode="before")
    @classmethod
    def _normalize_timestamps(cls, value):
        return _aware(value)

    @property
    def occupies_time(self) -> bool:
        return self.status.occupies_time

    @property
    def is_well_formed(self) -> bool:
        return self.starts_at < self.ends_at

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return self.starts_at < end and self.ends_at > start


class BlockedWindow(BaseModel):
    """Staff unavailability (vacation, personal time). Opaque to availability."""
    id: Optional[int] = None
    staff_id: int
    starts_at: datetime
    ends_at: datetime
    reason: Optional[str] = None

    @field_validator("starts_at", "ends_at", mode="before")
    @classmethod
    def _normalize_timestamps(cls, value):
        return _aware(value)

    @model_validator(mode="after")
    def _check_order(self) -> "BlockedWindow":
        if self.starts_at >= self.ends_at:
            raise ValueError("Blocked window must start before it ends")
        return self

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return self.starts_at < end and self.ends_at > start


class Slot(BaseModel):
    """One fixed-granularity unit of the staff member's day."""
    start: int
    end: int
    is_available: bool
    can_start_block: bool = False

    @property
    def label(self) -> str:
        return format_clock(self.start)


class SlotBlock(BaseModel):
    """A contiguous run of available slots long enough for the booking."""
    start: int
    end: int
    slot_count: int

    @property
    def label(self) -> str:
        return format_clock(self.start)


class DayAvailability(BaseModel):
    """Resolver output for one staff member on one date."""
    staff_id: int
    date: date
    required_duration_minutes: int = 0
    slot_minutes: int = 30
    slots: list[Slot] = Field(default_factory=list)

    @property
    def is_closed(self) -> bool:
        return not self.slots

    def slot_at(self, label: str) -> Optional[Slot]:
        start = parse_clock(label)
        for slot in self.slots:
            if slot.start == start:
                return slot
        return None

    def is_selectable(self, label: str) -> bool:
        slot = self.slot_at(label)
        return slot is not None and slot.can_start_block

    def selectable_starts(self) -> list[str]:
        return [slot.label for slot in self.slots if slot.can_start_block]

    def blocks(self) -> list[SlotBlock]:
        """Every selectable block, earliest first."""
        count = max(1, slots_needed(self.required_duration_minutes, self.slot_minutes))
        return [
            SlotBlock(
                start=slot.start,
                end=slot.start + count * self.slot_minutes,
                slot_count=count,
            )
            for slot in self.slots
            if slot.can_start_block
        ]


class Conflict(BaseModel):
    """A reason a proposed appointment window cannot be booked."""
    kind: Literal["appointment", "blocked", "outside_hours"]
    message: str
    reference_id: Optional[int] = None
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
