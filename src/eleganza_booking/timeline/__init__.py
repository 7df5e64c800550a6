from eleganza_booking.timeline.layout import (
    PositionedAppointment,
    TimelineLayout,
    layout_timeline,
)

__all__ = ["PositionedAppointment", "TimelineLayout", "layout_timeline"]
