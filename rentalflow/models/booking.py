"""Canonical booking model."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import ClassVar

from pydantic import Field, field_validator, model_validator

from rentalflow.domain.cancellation_policy import CancellationPolicy
from rentalflow.models.wire import WireModel, coerce_calendar_date


class BookingStatus(str, Enum):
    """Booking lifecycle states."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    """Payment sub-state carried on a booking."""

    NONE = "none"
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"
    REFUNDED = "refunded"


# Upstream payment vocabularies folded onto PaymentStatus
PAYMENT_STATUS_ALIASES: dict[str, PaymentStatus] = {
    "": PaymentStatus.NONE,
    "none": PaymentStatus.NONE,
    "pending": PaymentStatus.PENDING,
    "processing": PaymentStatus.PENDING,
    "success": PaymentStatus.SUCCESS,
    "completed": PaymentStatus.SUCCESS,
    "paid": PaymentStatus.SUCCESS,
    "failed": PaymentStatus.FAILED,
    "refunded": PaymentStatus.REFUNDED,
}


def normalize_payment_status(value: str | PaymentStatus | None) -> PaymentStatus:
    """Map any upstream payment status string onto PaymentStatus."""
    if isinstance(value, PaymentStatus):
        return value
    key = (value or "").strip().lower()
    try:
        return PAYMENT_STATUS_ALIASES[key]
    except KeyError:
        raise ValueError(f"Unknown payment status: {value!r}") from None


def count_rental_days(start_date: date, end_date: date) -> int:
    """Whole calendar days between start and end, at least one."""
    return max(1, (end_date - start_date).days)


class Booking(WireModel):
    """A reservation of one item over a date range.

    Rate and deposit are snapshots taken at creation; later item price changes
    never reach an existing booking.
    """

    wire_aliases: ClassVar[dict[str, str]] = {"rental_item_id": "item_id"}

    id: str
    booking_number: str = ""
    renter_id: str
    owner_id: str
    item_id: str
    status: BookingStatus = BookingStatus.PENDING

    # Dates
    start_date: date
    end_date: date
    total_days: int = Field(default=0, ge=0)

    # Pricing snapshot
    daily_rate: Decimal = Field(..., gt=0)
    security_deposit: Decimal = Field(default=Decimal("0"), ge=0)
    subtotal: Decimal | None = None
    service_fee: Decimal = Field(default=Decimal("0"), ge=0)
    total_amount: Decimal = Field(..., ge=0)

    # Payment
    payment_status: PaymentStatus = PaymentStatus.NONE
    payment_id: str | None = None

    # Cancellation
    cancellation_policy: CancellationPolicy = CancellationPolicy.MODERATE
    cancellation_reason: str | None = None
    cancelled_by: str | None = None

    created_at: datetime | None = None

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _calendar_day(cls, v):
        return coerce_calendar_date(v)

    @field_validator("payment_status", mode="before")
    @classmethod
    def _payment_status(cls, v):
        return normalize_payment_status(v)

    @field_validator("cancellation_policy", mode="before")
    @classmethod
    def _cancellation_policy(cls, v):
        return v or CancellationPolicy.MODERATE

    @field_validator("cancellation_reason", "cancelled_by", "payment_id", mode="before")
    @classmethod
    def _blank_to_none(cls, v):
        return v or None

    @model_validator(mode="after")
    def _derive_totals(self) -> Booking:
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        # Frozen model: derived fields are filled through object.__setattr__
        if not self.total_days:
            object.__setattr__(self, "total_days", count_rental_days(self.start_date, self.end_date))
        if self.subtotal is None:
            object.__setattr__(self, "subtotal", self.daily_rate * self.total_days)
        return self

    @property
    def is_terminal(self) -> bool:
        return self.status in (BookingStatus.CANCELLED, BookingStatus.COMPLETED)
