import json
from datetime import datetime
from decimal import Decimal

import httpx
import pytest

from rentalflow.clients.marketplace import MarketplaceClient
from rentalflow.core.exceptions import ExternalServiceError, ItemUnavailable, NotFoundError
from rentalflow.core.idempotency import IDEMPOTENCY_HEADER, generate_idempotency_key
from rentalflow.models import BookingStatus, PaymentMethod, PaymentStatus


def client_for(handler) -> MarketplaceClient:
    return MarketplaceClient("http://marketplace.test", transport=httpx.MockTransport(handler))


async def test_get_booking_normalizes_payload(marketplace, marketplace_client):
    marketplace.add_booking(status="confirmed", payment_status="completed")

    booking = await marketplace_client.get_booking("bk-1")

    assert booking.status == BookingStatus.CONFIRMED
    assert booking.payment_status == PaymentStatus.SUCCESS
    assert booking.item_id == "item-1"


async def test_missing_booking_is_not_found(marketplace_client):
    with pytest.raises(NotFoundError):
        await marketplace_client.get_booking("nope")


async def test_missing_item_is_unavailable(marketplace_client):
    with pytest.raises(ItemUnavailable):
        await marketplace_client.get_item("nope")


@pytest.mark.parametrize("status_code", [403, 410])
async def test_hidden_item_is_unavailable(status_code):
    client = client_for(lambda request: httpx.Response(status_code, json={"error": "hidden"}))

    with pytest.raises(ItemUnavailable):
        await client.get_item("item-1")


async def test_server_error_carries_upstream_message():
    client = client_for(lambda request: httpx.Response(500, json={"error": "database is down"}))

    with pytest.raises(ExternalServiceError) as exc_info:
        await client.get_booking("bk-1")

    assert exc_info.value.upstream_status == 500
    assert "database is down" in exc_info.value.detail
    assert exc_info.value.status_code == 502


async def test_transport_failure_is_external_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ExternalServiceError, match="connection refused"):
        await client_for(handler).get_booking("bk-1")


async def test_malformed_payload_is_external_error():
    client = client_for(lambda request: httpx.Response(200, json={"id": "bk-1"}))

    with pytest.raises(ExternalServiceError, match="malformed Booking"):
        await client.get_booking("bk-1")


async def test_confirm_sends_idempotency_key(marketplace, marketplace_client):
    marketplace.add_booking()

    await marketplace_client.confirm_booking("bk-1", "owner-1")
    await marketplace_client.confirm_booking("bk-1", "owner-1")

    first, second = marketplace.writes("/api/bookings/confirm")
    assert first.headers[IDEMPOTENCY_HEADER] == generate_idempotency_key("booking_confirm", "bk-1")
    assert first.headers[IDEMPOTENCY_HEADER] == second.headers[IDEMPOTENCY_HEADER]


async def test_create_booking_sends_wire_encoded_body(marketplace, marketplace_client):
    booking_id = await marketplace_client.create_booking(
        renter_id="renter-1",
        owner_id="owner-1",
        item_id="item-1",
        start_date=datetime(2024, 6, 1),
        end_date=datetime(2024, 6, 4, 23, 59, 59),
        daily_rate=Decimal("25"),
        security_deposit=Decimal("50"),
    )

    (request,) = marketplace.writes("/api/bookings")
    body = json.loads(request.content)
    assert body["rental_item_id"] == "item-1"
    assert body["end_date"] == "2024-06-04T23:59:59"
    assert body["daily_rate"] == 25.0
    assert booking_id in marketplace.bookings


async def test_create_booking_without_id_is_an_error():
    client = client_for(lambda request: httpx.Response(201, json={"success": True}))

    with pytest.raises(ExternalServiceError, match="without an id"):
        await client.create_booking("r", "o", "i", datetime(2024, 6, 1), datetime(2024, 6, 2), Decimal("1"), Decimal("0"))


async def create_twice(client, request_key=None) -> None:
    for _ in range(2):
        await client.create_booking(
            "renter-1",
            "owner-1",
            "item-1",
            datetime(2024, 6, 1),
            datetime(2024, 6, 4, 23, 59, 59),
            Decimal("25"),
            Decimal("50"),
            request_key=request_key,
        )


async def test_rebooking_same_dates_gets_a_new_key(marketplace, marketplace_client):
    await create_twice(marketplace_client)

    first, second = marketplace.writes("/api/bookings")
    assert first.headers[IDEMPOTENCY_HEADER] != second.headers[IDEMPOTENCY_HEADER]


async def test_resent_booking_request_reuses_its_key(marketplace, marketplace_client):
    await create_twice(marketplace_client, request_key="req-42")

    first, second = marketplace.writes("/api/bookings")
    assert first.headers[IDEMPOTENCY_HEADER] == second.headers[IDEMPOTENCY_HEADER]


async def test_payment_attempts_get_distinct_keys(marketplace, marketplace_client):
    marketplace.add_booking(status="confirmed")

    for attempt in (1, 2):
        await marketplace_client.initialize_payment(
            "bk-1", "renter-1", Decimal("132.50"), PaymentMethod.CHAPA, attempt=attempt
        )

    first, second = marketplace.writes("/api/payments/initialize")
    assert first.headers[IDEMPOTENCY_HEADER] != second.headers[IDEMPOTENCY_HEADER]


async def test_list_item_reviews_returns_total(marketplace, marketplace_client):
    marketplace.reviews = [
        {"booking_id": f"bk-{n}", "reviewer_id": "renter-1", "target_item_id": "item-1", "rating": 4, "comment": "ok"}
        for n in range(3)
    ]

    reviews, total = await marketplace_client.list_item_reviews("item-1", page=1, page_size=2)

    assert total == 3
    assert len(reviews) == 2
    assert reviews[0].item_id == "item-1"


async def test_initialize_payment_parses_checkout(marketplace, marketplace_client):
    marketplace.add_booking(status="confirmed")

    checkout = await marketplace_client.initialize_payment("bk-1", "renter-1", Decimal("132.50"), PaymentMethod.CHAPA)

    assert checkout.payment_id == "pay-1"
    assert checkout.transaction_ref == "tx-1"
    assert checkout.status == PaymentStatus.PENDING


async def test_create_review_falls_back_to_request_body(marketplace, marketplace_client):
    review = await marketplace_client.create_review("item-1", "bk-1", "renter-1", 5, "Spotless car")

    assert review.rating == 5
    assert review.review_type == "renter_to_item"
    assert len(marketplace.reviews) == 1


async def test_client_as_context_manager(marketplace):
    async with client_for(marketplace.handler) as client:
        marketplace.add_item()
        item = await client.get_item("item-1")

    assert item.weekly_rate is None
