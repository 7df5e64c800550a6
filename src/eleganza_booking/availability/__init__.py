from eleganza_booking.availability.refresh import SlotRefreshClient
from eleganza_booking.availability.resolver import AvailabilityResolver, compute_slots

__all__ = [
    "AvailabilityResolver",
    "SlotRefreshClient",
    "compute_slots",
]
