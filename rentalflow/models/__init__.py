"""Canonical domain models, normalized from the marketplace wire format."""

from rentalflow.models.booking import (
    Booking,
    BookingStatus,
    PaymentStatus,
    normalize_payment_status,
)
from rentalflow.models.item import Item, ItemCategory
from rentalflow.models.payment import (
    Payment,
    PaymentCheckout,
    PaymentMethod,
    PaymentVerification,
)
from rentalflow.models.review import Review

__all__ = [
    "Booking",
    "BookingStatus",
    "Item",
    "ItemCategory",
    "Payment",
    "PaymentCheckout",
    "PaymentMethod",
    "PaymentStatus",
    "PaymentVerification",
    "Review",
    "normalize_payment_status",
]
