"""
The in-progress booking a customer assembles across the booking steps.

A ``BookingDraft`` is an immutable value. The reducer produces a new draft
for every action, and derived values (totals, step guards, amount due) are
recomputed from the stored fields on access.
"""

import math
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional

from eleganza_booking.calendar.timeutil import build_end_timestamp, build_timestamp
from eleganza_booking.errors import ValidationError
from eleganza_booking.schemas.booking import AppointmentRequest, Service
from eleganza_booking.utils import normalize_phone


class PaymentMethod(str, Enum):
    """How much the customer pays when booking."""
    FULL = "full"
    DEPOSIT = "deposit"


@dataclass(frozen=True)
class CustomerDraft:
    """Contact details typed into the customer step."""
    name: str = ""
    phone: str = ""
    email: str = ""
    notes: str = ""

    @property
    def has_required_fields(self) -> bool:
        return bool(self.name.strip()) and bool(self.phone.strip())


@dataclass(frozen=True)
class BookingDraft:
    selected_services: tuple[Service, ...] = ()
    selected_staff_id: Optional[int] = None
    selected_date: Optional[date] = None
    selected_time_slot: Optional[str] = None
    customer: CustomerDraft = field(default_factory=CustomerDraft)
    customer_info_completed: bool = False
    payment_method: Optional[PaymentMethod] = None
    is_confirmed: bool = False
    confirmed_appointment_id: Optional[int] = None

    @property
    def total_price(self) -> float:
        return sum(service.price for service in self.selected_services)

    @property
    def total_duration(self) -> int:
        return sum(service.duration for service in self.selected_services)

    @property
    def can_proceed_to_schedule(self) -> bool:
        return len(self.selected_services) > 0

    @property
    def can_proceed_to_confirm(self) -> bool:
        return (
            self.selected_staff_id is not None
            and self.selected_date is not None
            and self.selected_time_slot is not None
        )

    @property
    def can_proceed_to_payment(self) -> bool:
        return self.can_proceed_to_confirm and self.customer_info_completed

    @property
    def amount_due(self) -> float:
        """Full price, or half of it rounded up to the quetzal for a deposit."""
        if self.payment_method == PaymentMethod.DEPOSIT:
            return math.ceil(self.total_price / 2)
        return self.total_price

    def has_service(self, service_id) -> bool:
        return any(service.id == service_id for service in self.selected_services)


def build_appointment_request(draft: BookingDraft) -> AppointmentRequest:
    """Turn a complete draft into the payload for ``create_appointment``.

    Raises:
        ValidationError: the draft has not passed every step guard, or the
            customer's name or phone is blank.
    """
    missing = []
    if not draft.can_proceed_to_schedule:
        missing.append("services")
    if not draft.can_proceed_to_confirm:
        missing.append("staff, date and time")
    if not draft.customer_info_completed or not draft.customer.has_required_fields:
        missing.append("customer info")
    if draft.payment_method is None:
        missing.append("payment method")
    if missing:
        raise ValidationError(f"Booking draft is incomplete: {', '.join(missing)}.")

    return AppointmentRequest(
        staff_id=draft.selected_staff_id,
        starts_at=build_timestamp(draft.selected_date, draft.selected_time_slot),
        ends_at=build_end_timestamp(
            draft.selected_date, draft.selected_time_slot, draft.total_duration
        ),
        services=list(draft.selected_services),
        customer_name=draft.customer.name.strip(),
        customer_phone=normalize_phone(draft.customer.phone),
        customer_email=draft.customer.email.strip() or None,
        notes=draft.customer.notes.strip() or None,
        payment_method=draft.payment_method.value,
        total_price=draft.total_price,
        amount_due=draft.amount_due,
    )
