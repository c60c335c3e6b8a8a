"""Booking state machine."""

from app.core.exceptions import InvalidRequest

PENDING = "pending"
CONFIRMED = "confirmed"
DECLINED = "declined"
COMPLETED = "completed"
CANCELLED = "cancelled"

# Statuses that hold a chef's slot
ACTIVE_STATUSES = frozenset({PENDING, CONFIRMED})

# Targets accepted by the status-transition operation; pending is creation-only
TRANSITION_TARGETS = frozenset({CONFIRMED, DECLINED, COMPLETED, CANCELLED})

BOOKING_TRANSITIONS = {
    PENDING: {CONFIRMED, DECLINED, CANCELLED},
    CONFIRMED: {COMPLETED, CANCELLED},
    DECLINED: set(),
    COMPLETED: set(),
    CANCELLED: set(),
}


def assert_transition_target(target: str) -> None:
    if target not in TRANSITION_TARGETS:
        raise InvalidRequest(
            f"Invalid target status '{target}'. Allowed: {', '.join(sorted(TRANSITION_TARGETS))}"
        )


def assert_booking_transition(current: str, target: str) -> None:
    allowed = BOOKING_TRANSITIONS.get(current, set())
    if target not in allowed:
        raise InvalidRequest(
            f"Invalid booking transition: {current} → {target}"
        )
