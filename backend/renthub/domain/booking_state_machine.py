from __future__ import annotations

from typing import Dict, FrozenSet, Literal, Tuple


BookingStatus = Literal["pending", "accepted", "rejected"]
PaymentStatus = Literal["pending", "success", "failed"]
BookingAction = Literal["accept", "reject"]

BookingState = Tuple[str, str]


# (status, payment_status) pairs a booking may ever be in
VALID_STATES: FrozenSet[BookingState] = frozenset(
    {
        ("pending", "pending"),
        ("accepted", "pending"),
        ("accepted", "success"),
        ("rejected", "failed"),
    }
)

_TARGETS: Dict[str, BookingState] = {
    "accept": ("accepted", "pending"),
    "reject": ("rejected", "failed"),
}

_ALLOWED_SOURCES: Dict[str, FrozenSet[BookingState]] = {
    "accept": frozenset({("pending", "pending")}),
    "reject": frozenset({("pending", "pending")}),
}

# Owner corrections, only with ALLOW_REACCEPTANCE
_CORRECTION_SOURCES: Dict[str, FrozenSet[BookingState]] = {
    "accept": frozenset({("rejected", "failed")}),
    "reject": frozenset({("accepted", "pending")}),
}


class BookingStateTransitionError(ValueError):
    """Raised when an invalid booking state transition is requested."""

    def __init__(self, current: BookingState, action: str) -> None:
        super().__init__(f"Cannot {action} booking in state {current[0]}/{current[1]}")
        self.current = current
        self.action = action


def state_of(booking: dict) -> BookingState:
    return (booking.get("status", "pending"), booking.get("payment_status", "pending"))


def target_state(action: str) -> BookingState:
    return _TARGETS[action]


def is_consistent(status: str, payment_status: str) -> bool:
    return (status, payment_status) in VALID_STATES


def plan_transition(booking: dict, action: str, *, allow_reacceptance: bool = False) -> bool:
    """Validate `action` against the booking's current state.

    Returns False when the booking already sits in the action's target
    state (idempotent no-op), True when the transition must be applied.
    Raises BookingStateTransitionError if the transition is not allowed.
    """

    current = state_of(booking)
    if current == _TARGETS[action]:
        return False

    allowed = _ALLOWED_SOURCES[action]
    if allow_reacceptance:
        allowed = allowed | _CORRECTION_SOURCES[action]
    if current not in allowed:
        raise BookingStateTransitionError(current=current, action=action)
    return True


def apply_transition(booking: dict, action: str) -> None:
    status, payment_status = _TARGETS[action]
    booking["status"] = status
    booking["payment_status"] = payment_status


def can_pay(booking: dict) -> bool:
    return state_of(booking) == ("accepted", "pending")
