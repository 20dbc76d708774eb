"""HTTP client for the marketplace server.

The server is authoritative for bookings, payments and reviews. This client
only moves data: every payload is normalized into the canonical models on
the way in, and every failure surfaces as a typed exception. Business rules
live in rentalflow.domain.
"""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, TypeVar
from uuid import uuid4

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from rentalflow.core.exceptions import ExternalServiceError, ItemUnavailable, NotFoundError
from rentalflow.core.idempotency import idempotency_headers
from rentalflow.models import (
    Booking,
    Item,
    Payment,
    PaymentCheckout,
    PaymentMethod,
    PaymentVerification,
    Review,
)

logger = logging.getLogger(__name__)

SERVICE_NAME = "marketplace"

ModelT = TypeVar("ModelT", bound=BaseModel)


def _wire(value: Any) -> Any:
    """Encode a value the way the marketplace server expects it."""
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


class MarketplaceClient:
    """Async client for the marketplace REST API."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        access_token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Content-Type": "application/json"}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers=headers,
            transport=transport,
            follow_redirects=True,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "MarketplaceClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        resource: str = "Resource",
        identifier: str | None = None,
    ) -> Any:
        if json is not None:
            json = {k: _wire(v) for k, v in json.items()}
        try:
            response = await self._client.request(method, path, params=params, json=json, headers=headers)
        except httpx.HTTPError as e:
            logger.error("Marketplace %s %s failed: %s", method, path, e)
            raise ExternalServiceError(SERVICE_NAME, str(e) or e.__class__.__name__) from e

        if response.status_code == httpx.codes.NOT_FOUND:
            raise NotFoundError(resource, identifier)
        if response.is_error:
            message = self._error_message(response)
            logger.warning("Marketplace %s %s -> %s: %s", method, path, response.status_code, message)
            raise ExternalServiceError(SERVICE_NAME, message, upstream_status=response.status_code)

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise ExternalServiceError(SERVICE_NAME, "response is not valid JSON") from e

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or f"HTTP {response.status_code}"
        if isinstance(body, dict):
            return str(body.get("error") or body.get("detail") or f"HTTP {response.status_code}")
        return f"HTTP {response.status_code}"

    @staticmethod
    def _parse(model: type[ModelT], payload: Any) -> ModelT:
        try:
            return model.model_validate(payload)
        except PydanticValidationError as e:
            logger.error("Malformed %s payload from marketplace: %s", model.__name__, e)
            raise ExternalServiceError(SERVICE_NAME, f"malformed {model.__name__} payload") from e

    def _parse_list(self, model: type[ModelT], payload: Any, key: str) -> list[ModelT]:
        rows = payload.get(key) if isinstance(payload, dict) else payload
        return [self._parse(model, row) for row in rows or []]

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_booking(self, booking_id: str) -> Booking:
        payload = await self._request(
            "GET", "/api/bookings", params={"id": booking_id}, resource="Booking", identifier=booking_id
        )
        return self._parse(Booking, payload)

    async def get_item(self, item_id: str) -> Item:
        """Fetch a rental item.

        Raises:
            ItemUnavailable: If the item was deleted or is hidden from the caller
        """
        try:
            payload = await self._request(
                "GET", "/api/items", params={"id": item_id}, resource="Item", identifier=item_id
            )
        except NotFoundError as e:
            raise ItemUnavailable(item_id) from e
        except ExternalServiceError as e:
            if e.upstream_status in (httpx.codes.FORBIDDEN, httpx.codes.GONE):
                raise ItemUnavailable(item_id) from e
            raise
        return self._parse(Item, payload)

    async def list_item_reviews(self, item_id: str, page: int = 1, page_size: int = 20) -> tuple[list[Review], int]:
        payload = await self._request(
            "GET",
            "/api/reviews/item",
            params={"item_id": item_id, "page": page, "page_size": page_size},
            resource="Item reviews",
            identifier=item_id,
        )
        reviews = self._parse_list(Review, payload, "reviews")
        return reviews, int(payload.get("total", len(reviews)))

    async def list_renter_bookings(self, renter_id: str, page: int = 1, page_size: int = 20) -> tuple[list[Booking], int]:
        payload = await self._request(
            "GET",
            "/api/bookings/renter",
            params={"renter_id": renter_id, "page": page, "page_size": page_size},
        )
        bookings = self._parse_list(Booking, payload, "bookings")
        return bookings, int(payload.get("total", len(bookings)))

    async def list_owner_bookings(self, owner_id: str, page: int = 1, page_size: int = 20) -> tuple[list[Booking], int]:
        payload = await self._request(
            "GET",
            "/api/bookings/owner",
            params={"owner_id": owner_id, "page": page, "page_size": page_size},
        )
        bookings = self._parse_list(Booking, payload, "bookings")
        return bookings, int(payload.get("total", len(bookings)))

    async def list_booking_payments(self, booking_id: str) -> list[Payment]:
        payload = await self._request(
            "GET", "/api/payments/booking", params={"booking_id": booking_id}, resource="Payments", identifier=booking_id
        )
        return self._parse_list(Payment, payload, "payments")

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create_booking(
        self,
        renter_id: str,
        owner_id: str,
        item_id: str,
        start_date: datetime,
        end_date: datetime,
        daily_rate: Decimal,
        security_deposit: Decimal,
        request_key: str | None = None,
    ) -> str:
        """Create a booking request and return its id.

        `request_key` identifies one booking intent. Resending the same intent
        reuses it; a fresh key is drawn when none is given, so rebooking the
        same dates after a cancellation is a new request upstream.
        """
        body = {
            "renter_id": renter_id,
            "owner_id": owner_id,
            "rental_item_id": item_id,
            "start_date": start_date,
            "end_date": end_date,
            "daily_rate": daily_rate,
            "security_deposit": security_deposit,
        }
        payload = await self._request(
            "POST",
            "/api/bookings",
            json=body,
            headers=idempotency_headers(
                "booking_create",
                item_id,
                {**{k: _wire(v) for k, v in body.items()}, "request_key": request_key or uuid4().hex},
            ),
        )
        booking_id = payload.get("id") or payload.get("ID") or payload.get("booking_id")
        if not booking_id:
            raise ExternalServiceError(SERVICE_NAME, "booking created without an id")
        return str(booking_id)

    async def confirm_booking(self, booking_id: str, owner_id: str) -> None:
        await self._request(
            "POST",
            "/api/bookings/confirm",
            json={"booking_id": booking_id, "owner_id": owner_id},
            headers=idempotency_headers("booking_confirm", booking_id),
            resource="Booking",
            identifier=booking_id,
        )

    async def cancel_booking(self, booking_id: str, user_id: str, reason: str) -> None:
        await self._request(
            "POST",
            "/api/bookings/cancel",
            json={"booking_id": booking_id, "user_id": user_id, "reason": reason},
            headers=idempotency_headers("booking_cancel", booking_id),
            resource="Booking",
            identifier=booking_id,
        )

    async def update_booking_status(self, booking_id: str, status: str, user_id: str | None) -> None:
        """Move a booking to active or completed."""
        await self._request(
            "POST",
            "/api/bookings/status",
            json={"booking_id": booking_id, "status": status, "user_id": user_id},
            headers=idempotency_headers("booking_status", booking_id, {"status": status}),
            resource="Booking",
            identifier=booking_id,
        )

    async def initialize_payment(
        self,
        booking_id: str,
        user_id: str,
        amount: Decimal,
        method: PaymentMethod,
        attempt: int = 1,
    ) -> PaymentCheckout:
        """Start a checkout.

        `attempt` numbers the checkout among the booking's payments, so a new
        attempt after a failed one is not deduplicated into the dead checkout.
        """
        payload = await self._request(
            "POST",
            "/api/payments/initialize",
            json={"booking_id": booking_id, "user_id": user_id, "amount": amount, "method": method.value},
            headers=idempotency_headers("payment_initialize", booking_id, {"amount": str(amount), "attempt": attempt}),
            resource="Booking",
            identifier=booking_id,
        )
        return self._parse(PaymentCheckout, payload)

    async def verify_payment(self, transaction_ref: str) -> PaymentVerification:
        payload = await self._request(
            "GET",
            "/api/payments/verify",
            params={"tx_ref": transaction_ref},
            resource="Transaction",
            identifier=transaction_ref,
        )
        return self._parse(PaymentVerification, payload)

    async def refund_payment(self, payment_id: str, amount: Decimal) -> None:
        await self._request(
            "POST",
            "/api/payments/refund",
            json={"payment_id": payment_id, "amount": amount},
            headers=idempotency_headers("payment_refund", payment_id, {"amount": str(amount)}),
            resource="Payment",
            identifier=payment_id,
        )

    async def create_review(
        self,
        item_id: str,
        booking_id: str,
        reviewer_id: str,
        rating: int,
        comment: str,
    ) -> Review:
        body = {
            "item_id": item_id,
            "booking_id": booking_id,
            "reviewer_id": reviewer_id,
            "rating": rating,
            "comment": comment,
            "review_type": "renter_to_item",
        }
        payload = await self._request(
            "POST",
            "/api/reviews",
            json=body,
            headers=idempotency_headers("review_create", booking_id, {"reviewer_id": reviewer_id}),
        )
        # Older server revisions answer with a bare {"success": true}
        if not isinstance(payload, dict) or not {"rating", "Rating"} & payload.keys():
            payload = body
        return self._parse(Review, payload)
