from eleganza_booking.workflow.draft import (
    BookingDraft,
    CustomerDraft,
    PaymentMethod,
    build_appointment_request,
)
from eleganza_booking.workflow.reducer import (
    AddService,
    BookingAction,
    CompleteCustomerInfo,
    Confirm,
    RemoveService,
    Reset,
    SetDate,
    SetPaymentMethod,
    SetStaff,
    SetTimeSlot,
    UpdateCustomer,
    booking_reducer,
)
from eleganza_booking.workflow.session import BookingSession
from eleganza_booking.workflow.state_machine import (
    BookingFlow,
    BookingStep,
    InvalidTransitionError,
    StepEntry,
)

__all__ = [
    "AddService",
    "BookingAction",
    "BookingDraft",
    "BookingFlow",
    "BookingSession",
    "BookingStep",
    "CompleteCustomerInfo",
    "Confirm",
    "CustomerDraft",
    "InvalidTransitionError",
    "PaymentMethod",
    "RemoveService",
    "Reset",
    "SetDate",
    "SetPaymentMethod",
    "SetStaff",
    "SetTimeSlot",
    "StepEntry",
    "UpdateCustomer",
    "booking_reducer",
    "build_appointment_request",
]
