"""Payment state machine.

Payment status evolves independently of booking status, but payment actions
only make sense once the booking is confirmed.
"""

from rentalflow.core.exceptions import IllegalTransition, PaymentError
from rentalflow.models.booking import Booking, BookingStatus, PaymentStatus

PAYMENT_TRANSITIONS: dict[PaymentStatus, set[PaymentStatus]] = {
    PaymentStatus.NONE: {PaymentStatus.PENDING, PaymentStatus.SUCCESS, PaymentStatus.FAILED},
    PaymentStatus.PENDING: {PaymentStatus.SUCCESS, PaymentStatus.FAILED},
    PaymentStatus.FAILED: {PaymentStatus.PENDING, PaymentStatus.SUCCESS},
    PaymentStatus.SUCCESS: {PaymentStatus.REFUNDED},
    PaymentStatus.REFUNDED: set(),
}

PAYABLE_BOOKING_STATES = frozenset({BookingStatus.CONFIRMED})


def assert_payment_transition(current: PaymentStatus, target: PaymentStatus) -> None:
    allowed = PAYMENT_TRANSITIONS.get(current, set())
    if target not in allowed:
        raise PaymentError(f"Invalid payment transition: {current.value} → {target.value}")


def is_paid(booking: Booking) -> bool:
    return booking.payment_status == PaymentStatus.SUCCESS


def assert_payable(booking: Booking) -> None:
    """Check that a payment may be started for the booking.

    Raises:
        IllegalTransition: If the booking is not confirmed
        PaymentError: If the booking is already paid or refunded
    """
    if booking.status not in PAYABLE_BOOKING_STATES:
        raise IllegalTransition(
            detail=f"Payment is only possible for confirmed bookings (booking is {booking.status.value})"
        )
    if booking.payment_status in (PaymentStatus.SUCCESS, PaymentStatus.REFUNDED):
        raise PaymentError(f"Booking payment is already {booking.payment_status.value}")


def apply_payment_status(booking: Booking, target: PaymentStatus) -> Booking:
    """Return the booking with its payment status moved to target.

    Re-applying the current status is a no-op so repeated verification
    callbacks stay harmless.
    """
    if booking.payment_status == target:
        return booking
    assert_payment_transition(booking.payment_status, target)
    return booking.model_copy(update={"payment_status": target})
