"""Booking-related Pydantic schemas."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from rentalflow.domain.action_gate import BookingAction
from rentalflow.domain.aggregate import BookingAggregate
from rentalflow.domain.cancellation_policy import get_policy_description
from rentalflow.domain.pricing import PriceQuote
from rentalflow.models import Booking, Item, PaymentMethod


class BookingQuoteRequest(BaseModel):
    """Schema for a live price preview.

    Quote a listed item by id, or an explicit rate card.
    """

    item_id: str | None = None
    daily_rate: Decimal | None = Field(None, gt=0)
    security_deposit: Decimal | None = Field(None, ge=0)
    start_date: date
    end_date: date


class BookingPriceBreakdown(BaseModel):
    """Schema for booking price breakdown."""

    days: int
    daily_rate: Decimal
    subtotal: Decimal
    service_fee: Decimal
    deposit_amount: Decimal
    total: Decimal
    currency: str

    @classmethod
    def from_quote(cls, price: PriceQuote, currency: str) -> "BookingPriceBreakdown":
        return cls(
            days=price.days,
            daily_rate=price.daily_rate,
            subtotal=price.subtotal,
            service_fee=price.service_fee,
            deposit_amount=price.deposit_amount,
            total=price.total,
            currency=currency,
        )


class BookingCreate(BaseModel):
    """Schema for requesting a booking."""

    item_id: str
    start_date: date
    end_date: date

    @field_validator("end_date")
    @classmethod
    def validate_end_date(cls, v: date, info) -> date:
        start_date = info.data.get("start_date")
        if start_date and v <= start_date:
            raise ValueError("end_date must be after start_date")
        return v


class BookingCancelRequest(BaseModel):
    """Schema for cancelling or rejecting a booking."""

    reason: str | None = Field(None, max_length=1000)


class BookingPayRequest(BaseModel):
    """Schema for starting checkout."""

    method: PaymentMethod | None = None


class BookingViewResponse(BaseModel):
    """Schema for the booking detail screen."""

    booking: Booking
    item: Item | None
    item_available: bool
    is_owner: bool
    is_renter: bool
    is_paid: bool
    has_reviewed: bool
    status_narrative: str
    cancellation_policy_description: str
    actions: list[BookingAction]

    @classmethod
    def from_aggregate(cls, view: BookingAggregate) -> "BookingViewResponse":
        return cls(
            cancellation_policy_description=get_policy_description(view.booking.cancellation_policy),
            booking=view.booking,
            item=view.item,
            item_available=view.item_available,
            is_owner=view.is_owner,
            is_renter=view.is_renter,
            is_paid=view.is_paid,
            has_reviewed=view.has_reviewed,
            status_narrative=view.narrative,
            actions=sorted(view.actions, key=lambda a: a.value),
        )


class BookingListResponse(BaseModel):
    """Schema for paginated booking list."""

    bookings: list[Booking]
    total: int
    page: int
    page_size: int
