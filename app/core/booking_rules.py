# app/core/booking_rules.py
"""
Booking lifecycle rules, kept free of HTTP and database concerns.

TRANSITIONS maps (current status, actor kind) to the statuses that actor may
move a booking to. Anything not listed is rejected. Admins may move a
booking to any status other than the one it already has.
"""
import enum
import math
from datetime import datetime, timedelta
from typing import Dict, FrozenSet, Optional, Tuple

from app.db.models.enums import BookingStatus, ServiceCategory


class ActorKind(str, enum.Enum):
    RENTER = "RENTER"
    PROVIDER = "PROVIDER"
    ADMIN = "ADMIN"


class TransitionError(Exception):
    """Raised when a status change is not allowed.

    `forbidden` is True when the actor may never request the target status
    (HTTP 403); False when the target is reachable for this actor in general
    but not from the booking's current status (HTTP 400).
    """

    def __init__(self, message: str, forbidden: bool = False):
        super().__init__(message)
        self.message = message
        self.forbidden = forbidden


_ALL = frozenset(BookingStatus)
_NONE: FrozenSet[BookingStatus] = frozenset()

TRANSITIONS: Dict[Tuple[BookingStatus, ActorKind], FrozenSet[BookingStatus]] = {
    (BookingStatus.PENDING, ActorKind.RENTER): frozenset({BookingStatus.CANCELLED}),
    (BookingStatus.PENDING, ActorKind.PROVIDER): frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    (BookingStatus.CONFIRMED, ActorKind.RENTER): frozenset({BookingStatus.CANCELLED}),
    (BookingStatus.CONFIRMED, ActorKind.PROVIDER): frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED}),
    (BookingStatus.CANCELLED, ActorKind.RENTER): _NONE,
    (BookingStatus.CANCELLED, ActorKind.PROVIDER): _NONE,
    (BookingStatus.COMPLETED, ActorKind.RENTER): _NONE,
    (BookingStatus.COMPLETED, ActorKind.PROVIDER): _NONE,
}
for _status in BookingStatus:
    TRANSITIONS[(_status, ActorKind.ADMIN)] = _ALL - {_status}

# every status an actor can ever request, from any state
ACTOR_VOCABULARY: Dict[ActorKind, FrozenSet[BookingStatus]] = {
    actor: frozenset().union(*(targets for (_, kind), targets in TRANSITIONS.items() if kind == actor))
    for actor in ActorKind
}


def parse_status(value: str) -> BookingStatus:
    try:
        return BookingStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in BookingStatus)
        raise TransitionError(f"Invalid status '{value}'. Allowed values: {allowed}")


def allowed_targets(current: BookingStatus, actor: ActorKind) -> FrozenSet[BookingStatus]:
    return TRANSITIONS.get((BookingStatus(current), actor), _NONE)


def check_transition(current: str, target: str, actor: ActorKind) -> BookingStatus:
    """Validate `current -> target` for `actor` and return the parsed target."""
    if actor == ActorKind.RENTER and target != BookingStatus.CANCELLED.value:
        raise TransitionError("Users can only cancel bookings", forbidden=True)

    target_status = parse_status(target)
    current_status = BookingStatus(current)

    if target_status not in ACTOR_VOCABULARY[actor]:
        raise TransitionError(f"Providers cannot set bookings to {target_status.value}", forbidden=True)

    if target_status not in allowed_targets(current_status, actor):
        if current_status == target_status:
            raise TransitionError(f"Booking is already {current_status.value}")
        raise TransitionError(
            f"Cannot change booking from {current_status.value} to {target_status.value}"
        )
    return target_status


def holds_seats(status: str) -> bool:
    """Bookings keep their seats reserved unless cancelled."""
    return status != BookingStatus.CANCELLED.value


# Pricing

def count_nights(start: datetime, end: datetime) -> int:
    days = (end - start) / timedelta(days=1)
    return max(1, math.ceil(days))


def compute_total_price(
    category: str,
    base_price: float,
    start_date: datetime,
    end_date: Optional[datetime] = None,
    quantity: int = 1,
) -> float:
    """Price a booking from the listing alone; never from client input.

    Accommodation with an end date is charged per night (minimum one);
    everything else is charged per unit of quantity.
    """
    if category == ServiceCategory.ACCOMMODATION.value and end_date is not None:
        return base_price * count_nights(start_date, end_date)
    return base_price * max(1, quantity)
