"""
Pure booking reducer: ``(draft, action) -> draft``.

Actions are small frozen dataclasses. The reducer never mutates the draft it
is given and performs no I/O; ``Confirm`` is dispatched by the session only
after the store has accepted the booking.

Usage:
    draft = booking_reducer(BookingDraft(), AddService(service))
    draft = booking_reducer(draft, SetStaff(3))
"""

from dataclasses import dataclass, replace
from typing import Optional, Union

from eleganza_booking.calendar.timeutil import (
    DateLike,
    TimeLike,
    format_clock,
    parse_clock,
    parse_date,
)
from eleganza_booking.schemas.booking import Service
from eleganza_booking.workflow.draft import BookingDraft, PaymentMethod


@dataclass(frozen=True)
class AddService:
    service: Service


@dataclass(frozen=True)
class RemoveService:
    service_id: Union[int, str]


@dataclass(frozen=True)
class SetStaff:
    staff_id: Optional[int]


@dataclass(frozen=True)
class SetDate:
    date: Optional[DateLike]


@dataclass(frozen=True)
class SetTimeSlot:
    time_slot: Optional[TimeLike]


@dataclass(frozen=True)
class UpdateCustomer:
    """Shallow merge: fields left as None keep their current value."""
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class CompleteCustomerInfo:
    pass


@dataclass(frozen=True)
class SetPaymentMethod:
    method: PaymentMethod


@dataclass(frozen=True)
class Confirm:
    appointment_id: int


@dataclass(frozen=True)
class Reset:
    pass


BookingAction = Union[
    AddService,
    RemoveService,
    SetStaff,
    SetDate,
    SetTimeSlot,
    UpdateCustomer,
    CompleteCustomerInfo,
    SetPaymentMethod,
    Confirm,
    Reset,
]


def booking_reducer(draft: BookingDraft, action: BookingAction) -> BookingDraft:
    """Apply one action and return the resulting draft.

    Raises:
        TypeError: ``action`` is not a booking action.
        InvalidDateError: a date or time value is malformed.
    """
    if isinstance(action, AddService):
        if draft.has_service(action.service.id):
            return draft
        return replace(draft, selected_services=draft.selected_services + (action.service,))

    if isinstance(action, RemoveService):
        return replace(
            draft,
            selected_services=tuple(
                s for s in draft.selected_services if s.id != action.service_id
            ),
        )

    if isinstance(action, SetStaff):
        # A schedule picked for one staff member is not valid for another.
        return replace(
            draft,
            selected_staff_id=action.staff_id,
            selected_date=None,
            selected_time_slot=None,
        )

    if isinstance(action, SetDate):
        selected = parse_date(action.date) if action.date is not None else None
        return replace(draft, selected_date=selected, selected_time_slot=None)

    if isinstance(action, SetTimeSlot):
        label = format_clock(parse_clock(action.time_slot)) if action.time_slot is not None else None
        return replace(draft, selected_time_slot=label)

    if isinstance(action, UpdateCustomer):
        changes = {
            name: value
            for name, value in [
                ("name", action.name),
                ("phone", action.phone),
                ("email", action.email),
                ("notes", action.notes),
            ]
            if value is not None
        }
        return replace(draft, customer=replace(draft.customer, **changes))

    if isinstance(action, CompleteCustomerInfo):
        return replace(draft, customer_info_completed=True)

    if isinstance(action, SetPaymentMethod):
        return replace(draft, payment_method=PaymentMethod(action.method))

    if isinstance(action, Confirm):
        return replace(draft, is_confirmed=True, confirmed_appointment_id=action.appointment_id)

    if isinstance(action, Reset):
        return BookingDraft()

    raise TypeError(f"Unknown booking action: {action!r}")
