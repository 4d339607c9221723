"""
Booking status state machine tests.
"""

import pytest

from driveway_hub.app.core.exceptions import InvalidStatusTransitionError
from driveway_hub.app.domain.booking.state_machine import can_transition, ensure_transition, is_terminal
from driveway_hub.app.models.enums import BookingStatus as S


@pytest.mark.parametrize("current,target", [
    (S.PENDING, S.CONFIRMED),
    (S.PENDING, S.CANCELLED),
    (S.CONFIRMED, S.ACTIVE),
    (S.CONFIRMED, S.CANCELLED),
    (S.CONFIRMED, S.NO_SHOW),
    (S.ACTIVE, S.COMPLETED),
])
def test_allowed_transitions(current, target):
    assert can_transition(current, target)
    ensure_transition(current, target)


@pytest.mark.parametrize("current,target", [
    (S.PENDING, S.ACTIVE),
    (S.PENDING, S.NO_SHOW),
    (S.ACTIVE, S.CANCELLED),
    (S.COMPLETED, S.ACTIVE),
    (S.CANCELLED, S.CONFIRMED),
    (S.NO_SHOW, S.CONFIRMED),
])
def test_rejected_transitions(current, target):
    assert not can_transition(current, target)
    with pytest.raises(InvalidStatusTransitionError) as exc:
        ensure_transition(current, target)
    assert exc.value.status_code == 409
    assert exc.value.details == {"current_status": current.value, "requested_status": target.value}


def test_terminal_states():
    assert {s for s in S if is_terminal(s)} == {S.COMPLETED, S.CANCELLED, S.NO_SHOW}


def test_accepts_plain_string_values():
    assert can_transition("confirmed", "active")
