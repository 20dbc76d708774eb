"""Canonical review model."""

from datetime import datetime
from typing import ClassVar

from pydantic import Field

from rentalflow.models.wire import WireModel


class Review(WireModel):
    """A renter's review of a completed booking."""

    wire_aliases: ClassVar[dict[str, str]] = {"target_item_id": "item_id"}

    id: str | None = None
    booking_id: str
    item_id: str | None = None
    reviewer_id: str
    review_type: str | None = None
    rating: int = Field(..., ge=1, le=5)
    comment: str = Field(..., min_length=1)
    created_at: datetime | None = None
