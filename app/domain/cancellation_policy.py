"""Cancellation window rules.

A booking may be cancelled only while the event is more than the configured
number of hours away (24 by default).
"""

from datetime import datetime, timedelta

from app.domain.booking_state import ACTIVE_STATUSES


def hours_until_event(event_start: datetime, now: datetime) -> float:
    """Hours between now and the event start (negative once it has passed)."""
    return (event_start - now) / timedelta(hours=1)


def can_cancel_booking(
    status: str,
    event_start: datetime,
    now: datetime,
    cancellation_hours: int = 24,
) -> bool:
    """Check whether a booking is still inside its cancellation window.

    Args:
        status: Current booking status
        event_start: Combined event date and time
        now: Current time, in the same timezone convention as event_start
        cancellation_hours: Minimum notice required

    Returns:
        bool: True if the booking is active and far enough in the future
    """
    if status not in ACTIVE_STATUSES:
        return False
    return hours_until_event(event_start, now) > cancellation_hours
