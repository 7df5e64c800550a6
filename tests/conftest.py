"""Shared test fixtures and helpers."""

from datetime import date

import pytest

from eleganza_booking.availability.resolver import AvailabilityResolver
from eleganza_booking.gateway import InMemoryScheduleStore
from eleganza_booking.schemas.booking import Service
from eleganza_booking.schemas.scheduling import WorkingHours
from eleganza_booking.workflow.draft import BookingDraft, CustomerDraft, PaymentMethod
from eleganza_booking.workflow.state_machine import BookingFlow

STAFF_ID = 1
# Tuesday; 2025-03-16 is the Sunday of the same week.
TUESDAY = "2025-03-18"
SUNDAY = "2025-03-16"

WEEKLY_SCHEDULE = {
    "monday": {"start": "09:00", "end": "18:00"},
    "tuesday": {"start": "09:00", "end": "18:00"},
    "wednesday": {"start": "09:00", "end": "18:00"},
    "thursday": {"start": "09:00", "end": "18:00"},
    "friday": {"start": "09:00", "end": "18:00"},
    "saturday": {"start": "09:00", "end": "14:00"},
    "sunday": {"start": None, "end": None},
}


@pytest.fixture
def haircut():
    return Service(id=1, name="Corte de cabello", duration=45, price=150.0, category="cabello")


@pytest.fixture
def color():
    return Service(id=2, name="Tinte completo", duration=90, price=351.0, category="cabello")


@pytest.fixture
def manicure():
    return Service(id=3, name="Manicure", duration=30, price=100.0, category="uñas")


@pytest.fixture
def store():
    store = InMemoryScheduleStore()
    store.set_working_hours(STAFF_ID, WorkingHours.from_weekly_schedule(WEEKLY_SCHEDULE))
    yield store
    store.reset()


@pytest.fixture
def resolver(store):
    return AvailabilityResolver(store)


@pytest.fixture
def flow():
    return BookingFlow()


@pytest.fixture
def complete_draft(haircut):
    """A draft that has passed every step guard."""
    return BookingDraft(
        selected_services=(haircut,),
        selected_staff_id=STAFF_ID,
        selected_date=date(2025, 3, 18),
        selected_time_slot="10:00",
        customer=CustomerDraft(name="Ana López", phone="+502 5555-1234", email="ana@example.com"),
        customer_info_completed=True,
        payment_method=PaymentMethod.FULL,
    )
