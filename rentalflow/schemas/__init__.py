"""Pydantic schemas for the HTTP surface."""

from rentalflow.schemas.booking import (
    BookingCancelRequest,
    BookingCreate,
    BookingListResponse,
    BookingPayRequest,
    BookingPriceBreakdown,
    BookingQuoteRequest,
    BookingViewResponse,
)
from rentalflow.schemas.payment import RefundCreate, RefundResponse
from rentalflow.schemas.review import ReviewCreate, ReviewListResponse

__all__ = [
    "BookingCancelRequest",
    "BookingCreate",
    "BookingListResponse",
    "BookingPayRequest",
    "BookingPriceBreakdown",
    "BookingQuoteRequest",
    "BookingViewResponse",
    "RefundCreate",
    "RefundResponse",
    "ReviewCreate",
    "ReviewListResponse",
]
