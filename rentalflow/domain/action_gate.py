"""Which booking actions a user may take right now.

Every screen that renders booking buttons asks this module instead of
re-deriving the rules inline. The result depends only on the booking's
status, payment status, party ids, the acting user and whether that user
already reviewed the booking.
"""

from enum import Enum

from rentalflow.core.exceptions import DuplicateReview, Forbidden, IllegalTransition
from rentalflow.models.booking import Booking, BookingStatus, PaymentStatus


class BookingAction(str, Enum):
    """User-facing booking actions."""

    CONFIRM = "confirm"
    REJECT = "reject"
    CANCEL = "cancel"
    PAY = "pay"
    LEAVE_REVIEW = "leave_review"


NO_ACTIONS: frozenset[BookingAction] = frozenset()


def available_actions(
    booking: Booking,
    acting_user_id: str | None,
    is_paid: bool | None = None,
    has_reviewed: bool = False,
) -> frozenset[BookingAction]:
    """Derive the actions the acting user may take on the booking.

    Args:
        booking: The booking being displayed
        acting_user_id: Current user, or None when signed out
        is_paid: Override for the payment flag; defaults to the booking's status
        has_reviewed: Whether this user already reviewed the booking

    Returns:
        frozenset of BookingAction, possibly empty
    """
    if is_paid is None:
        is_paid = booking.payment_status == PaymentStatus.SUCCESS

    is_owner = acting_user_id is not None and acting_user_id == booking.owner_id
    is_renter = acting_user_id is not None and acting_user_id == booking.renter_id

    if not (is_owner or is_renter):
        return NO_ACTIONS

    status = booking.status
    if is_owner and status == BookingStatus.PENDING:
        return frozenset({BookingAction.CONFIRM, BookingAction.REJECT})
    if is_renter and status == BookingStatus.PENDING:
        return frozenset({BookingAction.CANCEL})
    if is_renter and status == BookingStatus.CONFIRMED:
        return NO_ACTIONS if is_paid else frozenset({BookingAction.PAY})
    if is_renter and status == BookingStatus.COMPLETED:
        return NO_ACTIONS if has_reviewed else frozenset({BookingAction.LEAVE_REVIEW})
    return NO_ACTIONS


def require_action(
    booking: Booking,
    acting_user_id: str | None,
    action: BookingAction,
    is_paid: bool | None = None,
    has_reviewed: bool = False,
) -> None:
    """Raise the matching domain error unless the action is available.

    Raises:
        Forbidden: If the user is not a party to the booking
        DuplicateReview: If a review by this user already exists
        IllegalTransition: For any other unavailable action
    """
    if action in available_actions(booking, acting_user_id, is_paid, has_reviewed):
        return

    if acting_user_id not in (booking.owner_id, booking.renter_id):
        raise Forbidden()
    if (
        action == BookingAction.LEAVE_REVIEW
        and has_reviewed
        and acting_user_id == booking.renter_id
        and booking.status == BookingStatus.COMPLETED
    ):
        raise DuplicateReview()
    raise IllegalTransition(detail=f"Action '{action.value}' is not available on a {booking.status.value} booking")
