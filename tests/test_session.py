"""Tests for the booking session: submission, conflicts and start-over."""

import asyncio

import pytest

from eleganza_booking.availability.refresh import SlotRefreshClient
from eleganza_booking.errors import ConflictError, DataUnavailable, ValidationError
from eleganza_booking.gateway import InMemoryScheduleStore
from eleganza_booking.logging_context import get_session_id
from eleganza_booking.workflow.draft import BookingDraft, PaymentMethod
from eleganza_booking.workflow.reducer import (
    AddService,
    CompleteCustomerInfo,
    SetDate,
    SetPaymentMethod,
    SetStaff,
    SetTimeSlot,
    UpdateCustomer,
)
from eleganza_booking.workflow.session import BookingSession
from eleganza_booking.workflow.state_machine import BookingStep, InvalidTransitionError

DAY = "2025-03-18"


def fill_session(session, service, time_slot="10:00"):
    """Walk a session through every step up to payment."""
    session.dispatch(AddService(service))
    session.advance()
    session.dispatch(SetStaff(1))
    session.dispatch(SetDate(DAY))
    session.dispatch(SetTimeSlot(time_slot))
    session.advance()
    session.dispatch(UpdateCustomer(name="Ana López", phone="5555 1234"))
    session.dispatch(CompleteCustomerInfo())
    session.advance()
    session.dispatch(SetPaymentMethod(PaymentMethod.DEPOSIT))
    assert session.current_step == BookingStep.SELECTING_PAYMENT


class TestSubmitSuccess:
    @pytest.mark.asyncio
    async def test_creates_and_confirms(self, store, haircut):
        session = BookingSession(store)
        fill_session(session, haircut)

        created = await session.submit()

        assert session.draft.is_confirmed
        assert session.draft.confirmed_appointment_id == created.appointment_id
        assert session.current_step == BookingStep.CONFIRMED
        stored = store.get_appointment(created.appointment_id)
        assert stored.starts_at.hour == 10
        assert stored.ends_at.minute == 45

    @pytest.mark.asyncio
    async def test_cannot_submit_twice(self, store, haircut):
        session = BookingSession(store)
        fill_session(session, haircut)
        await session.submit()
        with pytest.raises(ValidationError, match="already been confirmed"):
            await session.submit()

    @pytest.mark.asyncio
    async def test_success_stops_slot_feed(self, store, resolver, haircut):
        feed = SlotRefreshClient(resolver, interval=3600)
        await feed.select(1, DAY, haircut.duration)
        session = BookingSession(store, slot_feed=feed)
        fill_session(session, haircut)

        await session.submit()
        assert not feed.is_polling


class TestSubmitGuards:
    @pytest.mark.asyncio
    async def test_incomplete_draft_never_reaches_store(self, store, haircut):
        session = BookingSession(store)
        session.dispatch(AddService(haircut))
        with pytest.raises(ValidationError):
            await session.submit()
        assert store.get_appointment(1) is None
        assert not session.is_submitting

    @pytest.mark.asyncio
    async def test_complete_draft_before_payment_step_rejected(self, store, haircut):
        session = BookingSession(store)
        for action in [
            AddService(haircut),
            SetStaff(1),
            SetDate(DAY),
            SetTimeSlot("10:00"),
            UpdateCustomer(name="Ana López", phone="5555 1234"),
            CompleteCustomerInfo(),
            SetPaymentMethod(PaymentMethod.FULL),
        ]:
            session.dispatch(action)
        assert session.draft.can_proceed_to_payment

        with pytest.raises(ValidationError, match="payment step"):
            await session.submit()
        assert store.get_appointment(1) is None
        assert session.current_step == BookingStep.SELECTING_SERVICES
        assert session.flow.get_step_trace() == ["selecting_services"]

    @pytest.mark.asyncio
    async def test_resubmit_after_conflict_needs_walking_forward(self, store, haircut):
        session = BookingSession(store)
        fill_session(session, haircut)
        store.add_appointment(1, f"{DAY}T10:00:00-06:00", f"{DAY}T11:00:00-06:00")
        with pytest.raises(ConflictError):
            await session.submit()

        with pytest.raises(ValidationError, match="payment step"):
            await session.submit()

        session.dispatch(SetTimeSlot("14:00"))
        session.go_to(BookingStep.SELECTING_PAYMENT)
        created = await session.submit()
        assert store.get_appointment(created.appointment_id).starts_at.hour == 14

    @pytest.mark.asyncio
    async def test_concurrent_submit_rejected(self, haircut):
        release = asyncio.Event()

        class SlowStore(InMemoryScheduleStore):
            async def create_appointment(self, request):
                await release.wait()
                return await super().create_appointment(request)

        session = BookingSession(SlowStore())
        fill_session(session, haircut)

        first = asyncio.create_task(session.submit())
        await asyncio.sleep(0)
        assert session.is_submitting
        with pytest.raises(ValidationError, match="in progress"):
            await session.submit()

        release.set()
        await first
        assert session.draft.is_confirmed


class TestSubmitFailures:
    @pytest.mark.asyncio
    async def test_conflict_returns_to_schedule_and_reloads(self, store, resolver, haircut):
        feed = SlotRefreshClient(resolver, interval=3600)
        await feed.select(1, DAY, haircut.duration)
        assert feed.selection_still_available("10:00")

        session = BookingSession(store, slot_feed=feed)
        fill_session(session, haircut)
        before = session.draft

        # Another customer takes the slot meanwhile.
        store.add_appointment(1, f"{DAY}T10:00:00-06:00", f"{DAY}T11:00:00-06:00")

        with pytest.raises(ConflictError):
            await session.submit()

        assert session.draft == before
        assert session.current_step == BookingStep.SELECTING_SCHEDULE
        assert not feed.selection_still_available("10:00")
        assert session.last_error
        await feed.stop()

    @pytest.mark.asyncio
    async def test_conflict_without_feed(self, store, haircut):
        session = BookingSession(store)
        fill_session(session, haircut)
        store.add_blocked_window(1, f"{DAY}T09:00:00-06:00", f"{DAY}T12:00:00-06:00")
        with pytest.raises(ConflictError):
            await session.submit()
        assert session.current_step == BookingStep.SELECTING_SCHEDULE

    @pytest.mark.asyncio
    async def test_store_outage_keeps_step_and_draft(self, store, haircut):
        session = BookingSession(store)
        fill_session(session, haircut)
        before = session.draft
        store.fail_writes = True

        with pytest.raises(DataUnavailable):
            await session.submit()

        assert session.draft == before
        assert session.current_step == BookingStep.SELECTING_PAYMENT
        assert not session.is_submitting

    @pytest.mark.asyncio
    async def test_retry_after_outage(self, store, haircut):
        session = BookingSession(store)
        fill_session(session, haircut)
        store.fail_writes = True
        with pytest.raises(DataUnavailable):
            await session.submit()

        store.fail_writes = False
        created = await session.submit()
        assert created.appointment_id == 1
        assert session.last_error is None


class TestStartOver:
    @pytest.mark.asyncio
    async def test_acknowledge_after_confirmation(self, store, haircut):
        session = BookingSession(store)
        fill_session(session, haircut)
        await session.submit()

        session.acknowledge()
        assert session.draft == BookingDraft()
        assert session.current_step == BookingStep.SELECTING_SERVICES

    def test_acknowledge_requires_confirmation(self, store):
        session = BookingSession(store)
        with pytest.raises(InvalidTransitionError):
            session.acknowledge()

    @pytest.mark.asyncio
    async def test_abandon_mid_flow(self, store, resolver, haircut):
        feed = SlotRefreshClient(resolver, interval=3600)
        await feed.select(1, DAY, haircut.duration)
        session = BookingSession(store, slot_feed=feed)
        fill_session(session, haircut)

        await session.abandon()
        assert session.draft == BookingDraft()
        assert session.current_step == BookingStep.SELECTING_SERVICES
        assert not feed.is_polling


class TestSessionContext:
    def test_generated_session_id(self, store):
        assert BookingSession(store).session_id.startswith("BOOK-")

    def test_dispatch_sets_log_context(self, store, haircut):
        session = BookingSession(store, session_id="BOOK-TEST01")
        session.dispatch(AddService(haircut))
        assert get_session_id() == "BOOK-TEST01"
