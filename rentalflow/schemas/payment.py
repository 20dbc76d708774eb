"""Payment-related Pydantic schemas."""

from decimal import Decimal

from pydantic import BaseModel, Field


class RefundCreate(BaseModel):
    """Schema for requesting a refund of a paid booking."""

    reason: str | None = Field(None, max_length=1000)


class RefundResponse(BaseModel):
    """Schema for refund response."""

    booking_id: str
    payment_id: str
    amount: Decimal
    requested_by: str
