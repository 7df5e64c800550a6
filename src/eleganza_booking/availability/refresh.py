"""
Background slot refresh while a customer is choosing a time.

Every fetch is keyed by the ``(staff_id, date, duration)`` it was issued
for. A response that arrives after the customer switched staff or date no
longer matches the active key and is dropped, never merged.

The initial fetch for a key is "loud": it toggles ``loading`` and surfaces
errors. The periodic refresh is silent: it never touches ``loading`` and a
failure keeps the last good slot list. Neither path touches the customer's
selection, which lives in the booking draft.

Usage:
    async with SlotRefreshClient(resolver, on_update=render) as feed:
        await feed.select(staff_id=3, day="2025-03-18", duration=90)
        ...
        await feed.select(staff_id=5, day="2025-03-18", duration=90)
"""

import asyncio
import contextlib
from datetime import date
from typing import Callable, Optional

from eleganza_booking.availability.resolver import AvailabilityResolver
from eleganza_booking.calendar.timeutil import DateLike, parse_date
from eleganza_booking.config import settings
from eleganza_booking.errors import DataUnavailable
from eleganza_booking.logging_context import get_session_logger
from eleganza_booking.schemas.scheduling import DayAvailability, Slot

logger = get_session_logger(__name__)

SlotKey = tuple[int, date, int]


class SlotRefreshClient:
    """Keeps a slot list fresh for the currently selected staff member and date."""

    def __init__(
        self,
        resolver: AvailabilityResolver,
        interval: Optional[float] = None,
        on_update: Optional[Callable[["SlotRefreshClient"], None]] = None,
    ) -> None:
        self._resolver = resolver
        self._interval = interval if interval is not None else settings.scheduling.refresh_interval_sec
        self._on_update = on_update
        self._key: Optional[SlotKey] = None
        self._task: Optional[asyncio.Task] = None
        self.availability: Optional[DayAvailability] = None
        self.loading = False
        self.error: Optional[str] = None

    @property
    def key(self) -> Optional[SlotKey]:
        return self._key

    @property
    def slots(self) -> list[Slot]:
        return self.availability.slots if self.availability else []

    @property
    def is_polling(self) -> bool:
        return self._task is not None and not self._task.done()

    def selection_still_available(self, label: str) -> bool:
        """Whether a previously chosen start time is still selectable."""
        return self.availability is not None and self.availability.is_selectable(label)

    async def select(
        self, staff_id: Optional[int], day: Optional[DateLike], duration: int = 0
    ) -> None:
        """Switch to a new (staff, date, duration) and start polling it.

        ``None`` for staff or date clears the list and stops polling.
        """
        await self.stop()
        if staff_id is None or day is None:
            self._key = None
            self.availability = None
            self.error = None
            self.loading = False
            self._notify()
            return

        key: SlotKey = (staff_id, parse_date(day), duration)
        self._key = key
        await self._fetch(key, silent=False)
        if self._key != key:
            # Superseded by a later select() while fetching.
            return
        self._task = asyncio.create_task(self._poll(key))

    async def reload(self, silent: bool = False) -> None:
        """Fetch once for the active key, e.g. after a booking conflict."""
        if self._key is None:
            return
        await self._fetch(self._key, silent=silent)

    async def stop(self) -> None:
        """Cancel the polling task, if any."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def __aenter__(self) -> "SlotRefreshClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    async def _poll(self, key: SlotKey) -> None:
        while self._key == key:
            await asyncio.sleep(self._interval)
            if self._key != key:
                return
            await self._fetch(key, silent=True)

    async def _fetch(self, key: SlotKey, silent: bool) -> None:
        if not silent:
            self.loading = True
            self.error = None
            self._notify()

        staff_id, day, duration = key
        try:
            result = await self._resolver.resolve(staff_id, day, duration)
        except DataUnavailable as exc:
            if key != self._key:
                logger.debug("Dropping stale failure for %s", key)
                return
            if silent:
                logger.debug("Silent refresh failed for %s, keeping last slots: %s", key, exc)
                return
            logger.error("Slot fetch failed for %s: %s", key, exc)
            self.availability = None
            self.error = str(exc)
            self.loading = False
            self._notify()
            return

        if key != self._key:
            logger.debug("Dropping stale slots for %s (active %s)", key, self._key)
            return
        self.availability = result
        self.error = None
        if not silent:
            self.loading = False
        self._notify()

    def _notify(self) -> None:
        if self._on_update is not None:
            self._on_update(self)
