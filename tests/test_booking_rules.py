from datetime import datetime

import pytest

from app.core.booking_rules import (
    ActorKind,
    TransitionError,
    allowed_targets,
    check_transition,
    compute_total_price,
    count_nights,
    holds_seats,
)
from app.db.models.enums import BookingStatus


@pytest.mark.parametrize(
    "current,target,actor",
    [
        ("PENDING", "CONFIRMED", ActorKind.PROVIDER),
        ("PENDING", "CANCELLED", ActorKind.PROVIDER),
        ("CONFIRMED", "COMPLETED", ActorKind.PROVIDER),
        ("CONFIRMED", "CANCELLED", ActorKind.PROVIDER),
        ("PENDING", "CANCELLED", ActorKind.RENTER),
        ("CONFIRMED", "CANCELLED", ActorKind.RENTER),
        ("COMPLETED", "PENDING", ActorKind.ADMIN),
        ("CANCELLED", "CONFIRMED", ActorKind.ADMIN),
    ],
)
def test_allowed_transitions(current, target, actor):
    assert check_transition(current, target, actor) == BookingStatus(target)


def test_renter_can_only_cancel():
    for target in ("CONFIRMED", "COMPLETED", "PENDING", "BOGUS"):
        with pytest.raises(TransitionError) as exc:
            check_transition("PENDING", target, ActorKind.RENTER)
        assert exc.value.forbidden


def test_provider_cannot_reset_to_pending():
    with pytest.raises(TransitionError) as exc:
        check_transition("CONFIRMED", "PENDING", ActorKind.PROVIDER)
    assert exc.value.forbidden


def test_provider_cannot_complete_pending_booking():
    with pytest.raises(TransitionError) as exc:
        check_transition("PENDING", "COMPLETED", ActorKind.PROVIDER)
    assert not exc.value.forbidden


@pytest.mark.parametrize("terminal", ["CANCELLED", "COMPLETED"])
def test_terminal_states_are_locked_for_non_admins(terminal):
    assert allowed_targets(BookingStatus(terminal), ActorKind.PROVIDER) == frozenset()
    assert allowed_targets(BookingStatus(terminal), ActorKind.RENTER) == frozenset()
    with pytest.raises(TransitionError):
        check_transition(terminal, "CANCELLED", ActorKind.RENTER)


def test_same_state_is_rejected():
    with pytest.raises(TransitionError) as exc:
        check_transition("CONFIRMED", "CONFIRMED", ActorKind.ADMIN)
    assert "already" in exc.value.message
    assert not exc.value.forbidden


def test_unknown_status_is_a_bad_request_for_providers():
    with pytest.raises(TransitionError) as exc:
        check_transition("PENDING", "ARCHIVED", ActorKind.PROVIDER)
    assert not exc.value.forbidden
    assert "Allowed values" in exc.value.message


def test_holds_seats():
    assert holds_seats("PENDING")
    assert holds_seats("COMPLETED")
    assert not holds_seats("CANCELLED")


def test_accommodation_priced_per_night():
    total = compute_total_price("ACCOMMODATION", 100.0, datetime(2024, 1, 1), datetime(2024, 1, 4))
    assert total == 300.0


def test_accommodation_partial_day_rounds_up_and_minimum_one_night():
    assert count_nights(datetime(2024, 1, 1), datetime(2024, 1, 2, 12)) == 2
    assert count_nights(datetime(2024, 1, 1), datetime(2024, 1, 1)) == 1


def test_accommodation_without_end_date_uses_quantity():
    assert compute_total_price("ACCOMMODATION", 80.0, datetime(2024, 1, 1), None, 2) == 160.0


def test_other_categories_priced_per_unit():
    assert compute_total_price("FOOD", 25.0, datetime(2024, 1, 1), datetime(2024, 1, 9), 3) == 75.0
    assert compute_total_price("TRAVEL", 40.0, datetime(2024, 1, 1)) == 40.0
