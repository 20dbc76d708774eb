"""Booking view model: a booking merged with its item and derived flags."""

from dataclasses import dataclass

from rentalflow.core.exceptions import ItemUnavailable
from rentalflow.domain.action_gate import BookingAction, available_actions
from rentalflow.models.booking import Booking, BookingStatus, PaymentStatus
from rentalflow.models.item import Item

PAID_STATUSES = frozenset({PaymentStatus.SUCCESS})


def status_narrative(booking: Booking, is_owner: bool, is_renter: bool, is_paid: bool) -> str:
    """Human-readable one-liner describing where the booking stands."""
    status = booking.status
    if status == BookingStatus.PENDING:
        return "Waiting for your confirmation" if is_owner else "Waiting for owner confirmation"
    if status == BookingStatus.CONFIRMED:
        if is_renter and is_paid:
            return "Booking confirmed. Payment completed."
        if is_renter:
            return "Booking confirmed. Complete payment to proceed."
        return "Booking confirmed."
    if status == BookingStatus.ACTIVE:
        return "Rental is currently active"
    if status == BookingStatus.COMPLETED:
        return "This rental has been completed"
    return "This booking was cancelled"


@dataclass(frozen=True)
class BookingAggregate:
    """Everything a booking screen renders, derived once."""

    booking: Booking
    item: Item | None
    is_owner: bool
    is_renter: bool
    is_paid: bool
    has_reviewed: bool
    narrative: str
    actions: frozenset[BookingAction]

    @property
    def item_available(self) -> bool:
        return self.item is not None


def _derive(booking: Booking, item: Item | None, acting_user_id: str | None, has_reviewed: bool) -> BookingAggregate:
    is_owner = acting_user_id is not None and acting_user_id == booking.owner_id
    is_renter = acting_user_id is not None and acting_user_id == booking.renter_id
    # The upstream "completed" payment status is folded into SUCCESS on ingestion
    is_paid = booking.payment_status in PAID_STATUSES
    return BookingAggregate(
        booking=booking,
        item=item,
        is_owner=is_owner,
        is_renter=is_renter,
        is_paid=is_paid,
        has_reviewed=has_reviewed,
        narrative=status_narrative(booking, is_owner, is_renter, is_paid),
        actions=available_actions(booking, acting_user_id, is_paid, has_reviewed),
    )


def build_booking_aggregate(
    booking: Booking,
    item: Item | None,
    acting_user_id: str | None,
    has_reviewed: bool = False,
) -> BookingAggregate:
    """Merge a booking with its referenced item.

    Raises:
        ItemUnavailable: If the item is missing or is not the booked item
    """
    if item is None or item.id != booking.item_id:
        raise ItemUnavailable(booking.item_id)
    return _derive(booking, item, acting_user_id, has_reviewed)


def booking_only_aggregate(
    booking: Booking,
    acting_user_id: str | None,
    has_reviewed: bool = False,
) -> BookingAggregate:
    """Degraded view for when the item cannot be resolved."""
    return _derive(booking, None, acting_user_id, has_reviewed)
