"""
Persistence contract consumed by the engine, plus an in-memory store.

In production the gateway is backed by the salon's hosted database; the
engine only depends on the four coroutines of ``SchedulingGateway``.
``InMemoryScheduleStore`` implements the same contract for tests and
local development, including the overlap check the real insert enforces.
"""

import logging
from datetime import datetime
from typing import Optional, Protocol

from eleganza_booking.calendar.timeutil import TimestampLike, parse_timestamp
from eleganza_booking.errors import ConflictError, DataUnavailable, ValidationError
from eleganza_booking.schemas.booking import AppointmentCreated, AppointmentRequest
from eleganza_booking.schemas.scheduling import (
    Appointment,
    AppointmentStatus,
    BlockedWindow,
    WorkingHours,
)
from eleganza_booking.utils import normalize_phone

logger = logging.getLogger(__name__)


class SchedulingGateway(Protocol):
    """Operations the engine needs from its persistence collaborator."""

    async def get_working_hours(self, staff_id: int) -> WorkingHours: ...

    async def list_appointments(
        self, staff_id: int, range_start: str, range_end: str
    ) -> list[Appointment]: ...

    async def list_blocked_windows(
        self, staff_id: int, range_start: str, range_end: str
    ) -> list[BlockedWindow]: ...

    async def create_appointment(self, request: AppointmentRequest) -> AppointmentCreated:
        """Insert an appointment.

        Raises:
            ConflictError: the window is no longer free.
            ValidationError: the request is malformed.
            DataUnavailable: the store could not be reached.
        """
        ...


class InMemoryScheduleStore:
    """Dict-backed gateway. ``fail_reads`` simulates a transport outage."""

    def __init__(self) -> None:
        self._hours: dict[int, WorkingHours] = {}
        self._appointments: dict[int, Appointment] = {}
        self._blocked: list[BlockedWindow] = []
        self._clients: dict[str, int] = {}
        self._next_appointment_id = 1
        self._next_blocked_id = 1
        self.fail_reads = False
        self.fail_writes = False

    # ------------------------------------------------------------------ #
    # Seeding and admin operations
    # ------------------------------------------------------------------ #

    def set_working_hours(self, staff_id: int, hours: WorkingHours) -> None:
        self._hours[staff_id] = hours

    def add_appointment(
        self,
        staff_id: int,
        starts_at: TimestampLike,
        ends_at: TimestampLike,
        status: AppointmentStatus = AppointmentStatus.SCHEDULED,
        client_name: Optional[str] = None,
        service_names: Optional[list[str]] = None,
    ) -> Appointment:
        """Store an appointment as-is, without the overlap check."""
        appointment = Appointment(
            id=self._next_appointment_id,
            staff_id=staff_id,
            starts_at=starts_at,
            ends_at=ends_at,
            status=status,
            client_name=client_name,
            service_names=service_names or [],
        )
        self._appointments[appointment.id] = appointment
        self._next_appointment_id += 1
        return appointment

    def add_blocked_window(
        self,
        staff_id: int,
        starts_at: TimestampLike,
        ends_at: TimestampLike,
        reason: Optional[str] = None,
    ) -> BlockedWindow:
        window = BlockedWindow(
            id=self._next_blocked_id,
            staff_id=staff_id,
            starts_at=starts_at,
            ends_at=ends_at,
            reason=reason,
        )
        self._blocked.append(window)
        self._next_blocked_id += 1
        return window

    def update_status(self, appointment_id: int, status: AppointmentStatus) -> Appointment:
        """Change an appointment's status, e.g. cancel it to free the slot."""
        if appointment_id not in self._appointments:
            raise ValidationError(f"Appointment {appointment_id} not found.")
        updated = self._appointments[appointment_id].model_copy(update={"status": status})
        self._appointments[appointment_id] = updated
        logger.info("Appointment %s status -> %s", appointment_id, status.value)
        return updated

    def get_appointment(self, appointment_id: int) -> Optional[Appointment]:
        return self._appointments.get(appointment_id)

    def reset(self) -> None:
        """Clear all data. Used by test fixtures for isolation."""
        self._hours.clear()
        self._appointments.clear()
        self._blocked.clear()
        self._clients.clear()
        self._next_appointment_id = 1
        self._next_blocked_id = 1
        self.fail_reads = False
        self.fail_writes = False

    # ------------------------------------------------------------------ #
    # SchedulingGateway
    # ------------------------------------------------------------------ #

    def _check_reads(self) -> None:
        if self.fail_reads:
            raise DataUnavailable("Schedule store is unreachable.")

    async def get_working_hours(self, staff_id: int) -> WorkingHours:
        self._check_reads()
        return self._hours.get(staff_id, WorkingHours())

    async def list_appointments(
        self, staff_id: int, range_start: str, range_end: str
    ) -> list[Appointment]:
        self._check_reads()
        start, end = parse_timestamp(range_start), parse_timestamp(range_end)
        found = [
            a for a in self._appointments.values()
            if a.staff_id == staff_id and a.overlaps(start, end)
        ]
        return sorted(found, key=lambda a: a.starts_at)

    async def list_blocked_windows(
        self, staff_id: int, range_start: str, range_end: str
    ) -> list[BlockedWindow]:
        self._check_reads()
        start, end = parse_timestamp(range_start), parse_timestamp(range_end)
        found = [w for w in self._blocked if w.staff_id == staff_id and w.overlaps(start, end)]
        return sorted(found, key=lambda w: w.starts_at)

    async def create_appointment(self, request: AppointmentRequest) -> AppointmentCreated:
        if self.fail_writes:
            raise DataUnavailable("Schedule store is unreachable.")

        missing = [
            field_name
            for field_name, value in [
                ("customer_name", request.customer_name),
                ("customer_phone", request.customer_phone),
            ]
            if not value or not value.strip()
        ]
        if not request.services:
            missing.append("services")
        if missing:
            raise ValidationError(
                f"Cannot create appointment - missing required fields: {', '.join(missing)}."
            )

        starts_at = parse_timestamp(request.starts_at)
        ends_at = parse_timestamp(request.ends_at)
        if starts_at >= ends_at:
            raise ValidationError("Appointment must start before it ends.")

        clash = self._find_clash(request.staff_id, starts_at, ends_at)
        if clash:
            logger.warning(
                "Insert rejected for staff %s at %s: %s",
                request.staff_id, request.starts_at, clash,
            )
            raise ConflictError(f"The selected time is no longer available ({clash}).")

        client_id = self._upsert_client(request.customer_phone)
        appointment = self.add_appointment(
            request.staff_id,
            starts_at,
            ends_at,
            client_name=request.customer_name,
            service_names=[s.name for s in request.services],
        )
        logger.info(
            "Appointment %s created for client %s on %s",
            appointment.id, client_id, request.starts_at,
        )
        return AppointmentCreated(appointment_id=appointment.id, client_id=client_id)

    def _find_clash(self, staff_id: int, start: datetime, end: datetime) -> Optional[str]:
        for appointment in self._appointments.values():
            if (
                appointment.staff_id == staff_id
                and appointment.occupies_time
                and appointment.overlaps(start, end)
            ):
                return f"appointment {appointment.id}"
        for window in self._blocked:
            if window.staff_id == staff_id and window.overlaps(start, end):
                return f"blocked window {window.id}"
        return None

    def _upsert_client(self, phone: str) -> int:
        key = normalize_phone(phone)
        if key not in self._clients:
            self._clients[key] = len(self._clients) + 1
        return self._clients[key]
