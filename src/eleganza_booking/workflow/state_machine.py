"""
Step navigation for the public booking flow.

Steps are strictly ordered. Moving back is always allowed and clears
nothing from the draft. Moving forward requires the entry guard of every
step up to and including the target to hold, whatever step the flow is
currently on. ``CONFIRMED`` is only entered through ``mark_confirmed``
after the store accepted the booking.

Usage:
    flow = BookingFlow()
    flow.advance(draft)            # -> SELECTING_SCHEDULE if a service is picked
    flow.go_to(BookingStep.SELECTING_SERVICES, draft)   # always allowed
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

from eleganza_booking.workflow.draft import BookingDraft

logger = logging.getLogger(__name__)


class BookingStep(str, Enum):
    """Booking steps in the order the customer walks through them."""
    SELECTING_SERVICES = "selecting_services"
    SELECTING_SCHEDULE = "selecting_schedule"
    ENTERING_CUSTOMER_INFO = "entering_customer_info"
    SELECTING_PAYMENT = "selecting_payment"
    CONFIRMED = "confirmed"

    @property
    def position(self) -> int:
        return STEP_ORDER.index(self)


STEP_ORDER: list[BookingStep] = list(BookingStep)


@dataclass
class StepGuard:
    """Condition that must hold on the draft before a step can be entered."""
    step: BookingStep
    description: str
    check: Callable[[BookingDraft], bool]


@dataclass
class StepEntry:
    """Recorded history entry for a step visit."""
    step: BookingStep
    entered_at: datetime
    reason: Optional[str] = None


class InvalidTransitionError(Exception):
    """Raised when a step cannot be entered from the current one."""


class BookingFlow:
    """
    Tracks which booking step is showing and enforces the entry guards.

    The flow never changes the draft; it only reads it to decide whether a
    forward move is allowed.
    """

    GUARDS: dict[BookingStep, StepGuard] = {
        guard.step: guard
        for guard in [
            StepGuard(BookingStep.SELECTING_SCHEDULE, "at least one service selected",
                      lambda d: d.can_proceed_to_schedule),
            StepGuard(BookingStep.ENTERING_CUSTOMER_INFO, "staff, date and time selected",
                      lambda d: d.can_proceed_to_confirm),
            StepGuard(BookingStep.SELECTING_PAYMENT, "customer info completed",
                      lambda d: d.customer_info_completed),
        ]
    }

    def __init__(self) -> None:
        self._current_step = BookingStep.SELECTING_SERVICES
        self._history: list[StepEntry] = [
            StepEntry(step=BookingStep.SELECTING_SERVICES, entered_at=datetime.now(timezone.utc))
        ]

    @property
    def current_step(self) -> BookingStep:
        return self._current_step

    def _enter(self, step: BookingStep, reason: str) -> BookingStep:
        old_step = self._current_step
        self._current_step = step
        self._history.append(StepEntry(
            step=step,
            entered_at=datetime.now(timezone.utc),
            reason=reason,
        ))
        logger.debug("Booking step: %s -> %s (%s)", old_step.value, step.value, reason)
        return step

    def _failed_guards(self, target: BookingStep, draft: BookingDraft) -> list[StepGuard]:
        return [
            self.GUARDS[step] for step in STEP_ORDER[1:target.position + 1]
            if step in self.GUARDS and not self.GUARDS[step].check(draft)
        ]

    def go_to(self, step: BookingStep, draft: BookingDraft) -> BookingStep:
        """
        Navigate to ``step``.

        Args:
            step: The target step.
            draft: The current draft, used to evaluate forward guards.

        Returns:
            The new current step.

        Raises:
            InvalidTransitionError: the target is CONFIRMED, the booking is
                already confirmed, or a forward guard does not hold.
        """
        if self._current_step == BookingStep.CONFIRMED:
            raise InvalidTransitionError(
                "Booking is already confirmed; reset the flow to start a new one."
            )
        if step == BookingStep.CONFIRMED:
            raise InvalidTransitionError(
                "The confirmed step is only reached by submitting the booking. "
                f"Reachable steps: {[s.value for s in self.reachable_steps(draft)]}"
            )
        if step == self._current_step:
            return step
        if step.position < self._current_step.position:
            return self._enter(step, "back")

        failed = self._failed_guards(step, draft)
        if failed:
            raise InvalidTransitionError(
                f"Cannot move from '{self._current_step.value}' to '{step.value}': "
                f"requires {'; '.join(g.description for g in failed)}. "
                f"Reachable steps: {[s.value for s in self.reachable_steps(draft)]}"
            )
        return self._enter(step, "forward")

    def advance(self, draft: BookingDraft) -> BookingStep:
        """Move to the next step, if its guard holds."""
        next_index = self._current_step.position + 1
        if next_index >= len(STEP_ORDER):
            raise InvalidTransitionError("Booking flow has no step after 'confirmed'.")
        return self.go_to(STEP_ORDER[next_index], draft)

    def back(self) -> BookingStep:
        """Move to the previous step. A no-op on the first step."""
        if self._current_step == BookingStep.CONFIRMED:
            raise InvalidTransitionError("Cannot go back from a confirmed booking.")
        if self._current_step.position == 0:
            return self._current_step
        return self._enter(STEP_ORDER[self._current_step.position - 1], "back")

    def mark_confirmed(self, draft: BookingDraft) -> BookingStep:
        """Enter CONFIRMED once the store has accepted the booking."""
        if self._current_step == BookingStep.CONFIRMED:
            raise InvalidTransitionError("Booking is already confirmed.")
        if not draft.is_confirmed or not draft.can_proceed_to_payment:
            raise InvalidTransitionError(
                "Only a complete draft accepted by the store can be confirmed."
            )
        return self._enter(BookingStep.CONFIRMED, "confirmed")

    def reset(self) -> BookingStep:
        """Return to the first step, e.g. after the booking is acknowledged."""
        return self._enter(BookingStep.SELECTING_SERVICES, "reset")

    def reachable_steps(self, draft: BookingDraft) -> list[BookingStep]:
        """Steps ``go_to`` would currently accept, in order."""
        if self._current_step == BookingStep.CONFIRMED:
            return []
        reachable = STEP_ORDER[:self._current_step.position + 1]
        for step in STEP_ORDER[self._current_step.position + 1:]:
            if step == BookingStep.CONFIRMED or self._failed_guards(step, draft):
                break
            reachable.append(step)
        return reachable

    def get_history(self) -> list[StepEntry]:
        """Return the full step history."""
        return list(self._history)

    def get_step_trace(self) -> list[str]:
        """Return ordered list of step names visited."""
        return [entry.step.value for entry in self._history]

    def is_terminal(self) -> bool:
        return self._current_step == BookingStep.CONFIRMED
