from eleganza_booking.schemas.booking import AppointmentCreated, AppointmentRequest, Service
from eleganza_booking.schemas.scheduling import (
    Appointment,
    AppointmentStatus,
    BlockedWindow,
    Conflict,
    DayAvailability,
    DayHours,
    Slot,
    SlotBlock,
    WorkingHours,
)

__all__ = [
    "Appointment",
    "AppointmentCreated",
    "AppointmentRequest",
    "AppointmentStatus",
    "BlockedWindow",
    "Conflict",
    "DayAvailability",
    "DayHours",
    "Service",
    "Slot",
    "SlotBlock",
    "WorkingHours",
]
