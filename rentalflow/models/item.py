"""Canonical rental item model."""

from decimal import Decimal
from enum import Enum

from pydantic import Field, field_validator

from rentalflow.models.wire import WireModel


class ItemCategory(str, Enum):
    """Rental item categories."""

    VEHICLE = "vehicle"
    EQUIPMENT = "equipment"
    PROPERTY = "property"


class Item(WireModel):
    """A listed item, owned by exactly one owner."""

    id: str
    owner_id: str
    title: str = ""
    description: str = ""
    category: ItemCategory
    city: str = ""

    # Rate card
    daily_rate: Decimal = Field(..., gt=0)
    weekly_rate: Decimal | None = Field(None, gt=0)
    monthly_rate: Decimal | None = Field(None, gt=0)
    security_deposit: Decimal = Field(default=Decimal("0"), ge=0)

    is_active: bool = True
    images: list[str] = Field(default_factory=list)

    @field_validator("weekly_rate", "monthly_rate", mode="before")
    @classmethod
    def _zero_rate_is_unset(cls, v):
        # The server sends 0 for rates the owner never filled in
        if v in (None, "", "0", 0):
            return None
        return v

    @field_validator("images", mode="before")
    @classmethod
    def _images(cls, v):
        return v or []

    @property
    def cover_image(self) -> str | None:
        return self.images[0] if self.images else None
