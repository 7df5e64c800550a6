"""
Booking session: the single owner of one customer's draft.

The session applies actions through the pure reducer, drives step
navigation, and performs the one piece of I/O in the flow: creating the
appointment. A failed submission never changes the draft. A lost race
(``ConflictError``) sends the customer back to pick another time and
reloads the slot feed so the taken slot shows as unavailable.

Usage:
    session = BookingSession(store, slot_feed=feed)
    session.dispatch(AddService(service))
    session.advance()
    ...
    created = await session.submit()
"""

import uuid
from typing import Optional

from eleganza_booking.availability.refresh import SlotRefreshClient
from eleganza_booking.errors import ConflictError, DataUnavailable, ValidationError
from eleganza_booking.gateway import SchedulingGateway
from eleganza_booking.logging_context import get_session_logger, session_extra, set_session_id
from eleganza_booking.schemas.booking import AppointmentCreated
from eleganza_booking.workflow.draft import BookingDraft, build_appointment_request
from eleganza_booking.workflow.reducer import BookingAction, Confirm, booking_reducer
from eleganza_booking.workflow.state_machine import (
    BookingFlow,
    BookingStep,
    InvalidTransitionError,
)

logger = get_session_logger(__name__)


class BookingSession:
    """Owns a BookingDraft and a BookingFlow for one customer."""

    def __init__(
        self,
        gateway: SchedulingGateway,
        slot_feed: Optional[SlotRefreshClient] = None,
        session_id: Optional[str] = None,
    ) -> None:
        self.session_id = session_id or f"BOOK-{uuid.uuid4().hex[:6].upper()}"
        self._log_extra = session_extra(self.session_id)
        self._gateway = gateway
        self._slot_feed = slot_feed
        self._draft = BookingDraft()
        self._submitting = False
        self.flow = BookingFlow()
        self.last_error: Optional[str] = None

    @property
    def draft(self) -> BookingDraft:
        return self._draft

    @property
    def current_step(self) -> BookingStep:
        return self.flow.current_step

    @property
    def is_submitting(self) -> bool:
        return self._submitting

    def dispatch(self, action: BookingAction) -> BookingDraft:
        """Apply an action to the draft and return the new draft."""
        set_session_id(self.session_id)
        self._draft = booking_reducer(self._draft, action)
        logger.debug("Applied %s", type(action).__name__, extra=self._log_extra)
        return self._draft

    def go_to(self, step: BookingStep) -> BookingStep:
        return self.flow.go_to(step, self._draft)

    def advance(self) -> BookingStep:
        return self.flow.advance(self._draft)

    def back(self) -> BookingStep:
        return self.flow.back()

    async def submit(self) -> AppointmentCreated:
        """
        Create the appointment for the current draft.

        Returns:
            The store's creation result; the draft is now confirmed.

        Raises:
            ValidationError: the draft is incomplete or already confirmed,
                the flow is not on the payment step, or a submission is
                already in flight. The store is not called.
            ConflictError: the time was taken meanwhile. The flow is back on
                the schedule step and the slot feed has been reloaded.
            DataUnavailable: the store could not be reached.
        """
        set_session_id(self.session_id)
        if self._submitting:
            raise ValidationError("A submission for this booking is already in progress.")
        if self._draft.is_confirmed:
            raise ValidationError("This booking has already been confirmed.")
        if self.flow.current_step != BookingStep.SELECTING_PAYMENT:
            raise ValidationError(
                f"Bookings are submitted from the payment step, not "
                f"'{self.flow.current_step.value}'."
            )

        request = build_appointment_request(self._draft)
        self.last_error = None
        self._submitting = True
        logger.info(
            "Submitting booking: staff %s at %s, %d service(s), due %.2f",
            request.staff_id, request.starts_at, len(request.services), request.amount_due,
            extra=self._log_extra,
        )
        try:
            result = await self._gateway.create_appointment(request)
        except ConflictError as exc:
            self.last_error = str(exc)
            logger.warning("Booking conflict at %s: %s", request.starts_at, exc, extra=self._log_extra)
            self.flow.go_to(BookingStep.SELECTING_SCHEDULE, self._draft)
            if self._slot_feed is not None:
                await self._slot_feed.reload(silent=False)
            raise
        except (ValidationError, DataUnavailable) as exc:
            self.last_error = str(exc)
            logger.error("Booking submission failed: %s", exc, extra=self._log_extra)
            raise
        finally:
            self._submitting = False

        self.dispatch(Confirm(result.appointment_id))
        self.flow.mark_confirmed(self._draft)
        if self._slot_feed is not None:
            await self._slot_feed.stop()
        logger.info("Booking confirmed: appointment %s", result.appointment_id, extra=self._log_extra)
        return result

    def acknowledge(self) -> None:
        """Start over after the customer has seen the confirmation."""
        if not self._draft.is_confirmed:
            raise InvalidTransitionError("There is no confirmed booking to acknowledge.")
        self._start_over("acknowledged")

    async def abandon(self) -> None:
        """Drop the draft at any step and stop refreshing slots."""
        if self._slot_feed is not None:
            await self._slot_feed.stop()
        self._start_over("abandoned")

    def _start_over(self, reason: str) -> None:
        set_session_id(self.session_id)
        self._draft = BookingDraft()
        self.flow.reset()
        self.last_error = None
        logger.info("Booking session %s", reason, extra=self._log_extra)
