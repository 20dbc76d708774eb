"""Canonical payment model."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import ClassVar

from pydantic import field_validator

from rentalflow.models.booking import PaymentStatus, normalize_payment_status
from rentalflow.models.wire import WireModel


class PaymentMethod(str, Enum):
    """Supported payment methods."""

    CHAPA = "chapa"
    TELEBIRR = "telebirr"
    BANK_TRANSFER = "bank_transfer"
    CASH = "cash"


class Payment(WireModel):
    """A payment recorded against a booking."""

    wire_aliases: ClassVar[dict[str, str]] = {
        "provider_transaction_id": "transaction_ref",
        "tx_ref": "transaction_ref",
    }

    id: str
    booking_id: str
    user_id: str | None = None
    amount: Decimal
    currency: str = "ETB"
    method: PaymentMethod = PaymentMethod.CHAPA
    status: PaymentStatus = PaymentStatus.PENDING
    checkout_url: str | None = None
    transaction_ref: str | None = None
    created_at: datetime | None = None

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, v):
        return normalize_payment_status(v)


class PaymentCheckout(WireModel):
    """Result of initializing a payment with the marketplace server."""

    wire_aliases: ClassVar[dict[str, str]] = {"tx_ref": "transaction_ref"}

    payment_id: str
    checkout_url: str | None = None
    transaction_ref: str | None = None
    status: PaymentStatus = PaymentStatus.PENDING

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, v):
        return normalize_payment_status(v)


class PaymentVerification(WireModel):
    """Result of verifying a transaction reference."""

    wire_aliases: ClassVar[dict[str, str]] = {"tx_ref": "transaction_ref"}

    transaction_ref: str
    booking_id: str
    reference: str | None = None
    amount: Decimal | None = None
    status: PaymentStatus

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, v):
        return normalize_payment_status(v)
