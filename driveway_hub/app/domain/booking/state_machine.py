"""
Booking status state machine.

    pending   -> confirmed | cancelled
    confirmed -> active | cancelled | no_show
    active    -> completed

completed, cancelled and no_show are terminal.
"""

from driveway_hub.app.core.exceptions import InvalidStatusTransitionError
from driveway_hub.app.models.enums import BookingStatus

ALLOWED_TRANSITIONS = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({
        BookingStatus.ACTIVE,
        BookingStatus.CANCELLED,
        BookingStatus.NO_SHOW,
    }),
    BookingStatus.ACTIVE: frozenset({BookingStatus.COMPLETED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.NO_SHOW: frozenset(),
}


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[BookingStatus(current)]


def ensure_transition(current: BookingStatus, target: BookingStatus) -> None:
    """Raise ``InvalidStatusTransitionError`` unless ``current -> target`` is allowed."""
    if not can_transition(current, target):
        raise InvalidStatusTransitionError(BookingStatus(current).value, BookingStatus(target).value)


def is_terminal(status: BookingStatus) -> bool:
    return not ALLOWED_TRANSITIONS[BookingStatus(status)]
