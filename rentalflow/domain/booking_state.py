"""Booking state machine.

pending -> confirmed -> active -> completed, with cancellation allowed from
pending and confirmed only. cancelled and completed are terminal. Once a
confirmed booking is paid it leaves the lifecycle through the refund path,
never through a bare cancel.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from rentalflow.core.exceptions import Forbidden, IllegalTransition, RefundRequired, TerminalState
from rentalflow.models.booking import Booking, BookingStatus, PaymentStatus

logger = logging.getLogger(__name__)


class Actor(str, Enum):
    """Role of the caller relative to a booking."""

    OWNER = "owner"
    RENTER = "renter"
    SYSTEM = "system"


class Trigger(str, Enum):
    """Lifecycle triggers."""

    CONFIRM = "confirm"
    REJECT = "reject"
    CANCEL = "cancel"
    ACTIVATE = "activate"
    COMPLETE = "complete"


@dataclass(frozen=True)
class Transition:
    source: BookingStatus
    trigger: Trigger
    target: BookingStatus
    actors: frozenset[Actor]


TRANSITIONS: tuple[Transition, ...] = (
    Transition(BookingStatus.PENDING, Trigger.CONFIRM, BookingStatus.CONFIRMED, frozenset({Actor.OWNER})),
    Transition(BookingStatus.PENDING, Trigger.REJECT, BookingStatus.CANCELLED, frozenset({Actor.OWNER})),
    Transition(
        BookingStatus.PENDING, Trigger.CANCEL, BookingStatus.CANCELLED, frozenset({Actor.OWNER, Actor.RENTER})
    ),
    Transition(
        BookingStatus.CONFIRMED, Trigger.CANCEL, BookingStatus.CANCELLED, frozenset({Actor.OWNER, Actor.RENTER})
    ),
    Transition(
        BookingStatus.CONFIRMED, Trigger.ACTIVATE, BookingStatus.ACTIVE, frozenset({Actor.SYSTEM, Actor.OWNER})
    ),
    Transition(
        BookingStatus.ACTIVE, Trigger.COMPLETE, BookingStatus.COMPLETED, frozenset({Actor.SYSTEM, Actor.OWNER})
    ),
)

BOOKING_TRANSITIONS: dict[tuple[BookingStatus, Trigger], Transition] = {
    (t.source, t.trigger): t for t in TRANSITIONS
}

TERMINAL_STATES = frozenset({BookingStatus.CANCELLED, BookingStatus.COMPLETED})


def trigger_target(trigger: Trigger) -> BookingStatus:
    """State a trigger leads to, whatever the source."""
    return next(t.target for t in TRANSITIONS if t.trigger == trigger)


def trigger_actors(trigger: Trigger) -> frozenset[Actor]:
    """Every actor that may fire the trigger from some state."""
    actors: set[Actor] = set()
    for t in TRANSITIONS:
        if t.trigger == trigger:
            actors |= t.actors
    return frozenset(actors)


def resolve_actor(booking: Booking, acting_user_id: str | None) -> Actor:
    """Map a user id onto its role in the booking.

    Raises:
        Forbidden: If the user is neither the owner nor the renter
    """
    if acting_user_id and acting_user_id == booking.owner_id:
        return Actor.OWNER
    if acting_user_id and acting_user_id == booking.renter_id:
        return Actor.RENTER
    raise Forbidden()


def is_noop(booking: Booking, trigger: Trigger, actor: Actor) -> bool:
    """True when a retried trigger finds the booking already in its target state."""
    return booking.status == trigger_target(trigger) and actor in trigger_actors(trigger)


def assert_booking_transition(booking: Booking, trigger: Trigger, actor: Actor) -> BookingStatus:
    """Validate a transition and return the resulting status.

    Returns the current status unchanged for an idempotent retry.

    Raises:
        TerminalState: If the booking is cancelled or completed
        IllegalTransition: If (status, trigger, actor) is not in the table
        RefundRequired: If a paid confirmed booking would be cancelled
    """
    if is_noop(booking, trigger, actor):
        return booking.status

    if booking.status in TERMINAL_STATES:
        raise TerminalState(booking.status.value)

    transition = BOOKING_TRANSITIONS.get((booking.status, trigger))
    if transition is None or actor not in transition.actors:
        raise IllegalTransition(booking.status.value, trigger.value, actor.value)

    if (
        transition.source == BookingStatus.CONFIRMED
        and transition.target == BookingStatus.CANCELLED
        and booking.payment_status == PaymentStatus.SUCCESS
    ):
        raise RefundRequired()

    return transition.target


def apply_transition(
    booking: Booking,
    trigger: Trigger,
    acting_user_id: str | None = None,
    *,
    as_system: bool = False,
    reason: str | None = None,
) -> Booking:
    """Apply a lifecycle trigger and return the updated booking.

    The input booking is never modified. Cancellation records the reason and
    the cancelling user.

    Args:
        booking: Current, freshly fetched booking
        trigger: Lifecycle trigger to fire
        acting_user_id: User performing the action
        as_system: Fire as the scheduler rather than a party
        reason: Cancellation reason

    Raises:
        Forbidden: If the acting user is not a party to the booking
        TerminalState, IllegalTransition, RefundRequired: See assert_booking_transition
    """
    actor = Actor.SYSTEM if as_system else resolve_actor(booking, acting_user_id)
    target = assert_booking_transition(booking, trigger, actor)

    if target == booking.status:
        logger.info("Booking %s already %s; %s treated as retry", booking.id, target.value, trigger.value)
        return booking

    update: dict = {"status": target}
    if target == BookingStatus.CANCELLED:
        update["cancellation_reason"] = reason or (
            "Rejected by owner" if trigger == Trigger.REJECT else "Cancelled by user"
        )
        update["cancelled_by"] = acting_user_id

    logger.info(
        "Booking %s: %s -> %s (%s by %s)",
        booking.id,
        booking.status.value,
        target.value,
        trigger.value,
        actor.value,
    )
    return booking.model_copy(update=update)
