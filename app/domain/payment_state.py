"""Payment state machine."""

from app.core.exceptions import InvalidRequest

PAYMENT_TRANSITIONS = {
    "pending": {"completed", "failed"},
    "failed": {"completed"},  # a retried intent may still succeed
    "completed": set(),
}


def can_transition_payment(current: str, target: str) -> bool:
    return target in PAYMENT_TRANSITIONS.get(current, set())


def assert_payment_transition(current: str, target: str) -> None:
    if not can_transition_payment(current, target):
        raise InvalidRequest(
            f"Invalid payment transition: {current} → {target}"
        )
