"""Shared fixtures: model factories and an in-memory marketplace server."""

import json
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

import httpx
import pytest

from rentalflow.clients.marketplace import MarketplaceClient
from rentalflow.models import Booking, Item
from rentalflow.services.booking_service import BookingService
from rentalflow.services.booking_store import BookingStore

TODAY = date(2024, 5, 20)


def booking_payload(**overrides: Any) -> dict[str, Any]:
    payload = {
        "id": "bk-1",
        "booking_number": "BK-0001",
        "renter_id": "renter-1",
        "owner_id": "owner-1",
        "rental_item_id": "item-1",
        "status": "pending",
        "start_date": "2024-06-01T00:00:00Z",
        "end_date": "2024-06-04T23:59:59Z",
        "daily_rate": "25",
        "security_deposit": "50",
        "subtotal": "75",
        "service_fee": "7.50",
        "total_amount": "132.50",
        "payment_status": "",
        "cancellation_policy": "moderate",
    }
    payload.update(overrides)
    return payload


def item_payload(**overrides: Any) -> dict[str, Any]:
    payload = {
        "id": "item-1",
        "owner_id": "owner-1",
        "title": "Toyota Vitz",
        "category": "vehicle",
        "city": "Addis Ababa",
        "daily_rate": "25",
        "weekly_rate": 0,
        "security_deposit": "50",
        "is_active": True,
        "images": ["https://cdn.example/vitz.jpg"],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def make_booking():
    def factory(**overrides: Any) -> Booking:
        return Booking.model_validate(booking_payload(**overrides))

    return factory


@pytest.fixture
def make_item():
    def factory(**overrides: Any) -> Item:
        return Item.model_validate(item_payload(**overrides))

    return factory


class FakeMarketplace:
    """Just enough of the marketplace REST API to drive the client."""

    def __init__(self) -> None:
        self.bookings: dict[str, dict[str, Any]] = {}
        self.items: dict[str, dict[str, Any]] = {}
        self.reviews: list[dict[str, Any]] = []
        self.payments: list[dict[str, Any]] = []
        self.refunds: list[dict[str, Any]] = []
        self.calls: list[httpx.Request] = []
        self.transactions: dict[str, dict[str, Any]] = {}
        self.failing: dict[str, int] = {}
        self.verify_status = "success"
        self.fee_rate = Decimal("0.10")
        self._next_id = 100

    def add_booking(self, **overrides: Any) -> dict[str, Any]:
        payload = booking_payload(**overrides)
        self.bookings[payload["id"]] = payload
        return payload

    def add_item(self, **overrides: Any) -> dict[str, Any]:
        payload = item_payload(**overrides)
        self.items[payload["id"]] = payload
        return payload

    def add_transaction(self, tx_ref: str = "tx-1", booking_id: str = "bk-1", amount: str = "132.50") -> None:
        self.transactions[tx_ref] = {"booking_id": booking_id, "amount": amount}

    def fail(self, path: str, status_code: int = 500) -> None:
        self.failing[path] = status_code

    def writes(self, path: str) -> list[httpx.Request]:
        return [r for r in self.calls if r.method == "POST" and r.url.path == path]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        path = request.url.path
        params = request.url.params
        body = json.loads(request.content) if request.content else {}

        if path in self.failing:
            return httpx.Response(self.failing[path], json={"error": "upstream exploded"})

        if request.method == "GET":
            if path == "/api/bookings":
                booking = self.bookings.get(params["id"])
                return httpx.Response(200, json=booking) if booking else httpx.Response(404, json={"error": "not found"})
            if path == "/api/items":
                item = self.items.get(params["id"])
                return httpx.Response(200, json=item) if item else httpx.Response(404, json={"error": "not found"})
            if path == "/api/reviews/item":
                rows = [r for r in self.reviews if r["target_item_id"] == params["item_id"]]
                page, size = int(params["page"]), int(params["page_size"])
                return httpx.Response(
                    200, json={"reviews": rows[(page - 1) * size : page * size], "total": len(rows)}
                )
            if path in ("/api/bookings/renter", "/api/bookings/owner"):
                key, wire_key = ("renter_id", "RenterID") if path.endswith("renter") else ("owner_id", "OwnerID")
                rows = [b for b in self.bookings.values() if b.get(key, b.get(wire_key)) == params[key]]
                return httpx.Response(200, json={"bookings": rows, "total": len(rows)})
            if path == "/api/payments/booking":
                rows = [p for p in self.payments if p["booking_id"] == params["booking_id"]]
                return httpx.Response(200, json={"payments": rows})
            if path == "/api/payments/verify":
                tx = self.transactions.get(params["tx_ref"])
                if tx is None:
                    return httpx.Response(404, json={"error": "transaction not found"})
                return httpx.Response(200, json={"tx_ref": params["tx_ref"], **tx, "status": self.verify_status})

        if request.method == "POST":
            if path == "/api/bookings":
                return httpx.Response(201, json={"id": self._create_booking(body)})
            if path == "/api/bookings/confirm":
                self.bookings[body["booking_id"]]["status"] = "confirmed"
                return httpx.Response(200, json={"success": True})
            if path == "/api/bookings/cancel":
                booking = self.bookings[body["booking_id"]]
                booking.update(status="cancelled", cancellation_reason=body["reason"], cancelled_by=body["user_id"])
                return httpx.Response(200, json={"success": True})
            if path == "/api/bookings/status":
                self.bookings[body["booking_id"]]["status"] = body["status"]
                return httpx.Response(200, json={"success": True})
            if path == "/api/payments/initialize":
                self.bookings[body["booking_id"]]["payment_status"] = "pending"
                n = len(self.payments) + 1
                payment_id, tx_ref = f"pay-{n}", f"tx-{n}"
                self.payments.append(
                    {
                        "id": payment_id,
                        "booking_id": body["booking_id"],
                        "amount": str(body["amount"]),
                        "status": "pending",
                        "tx_ref": tx_ref,
                    }
                )
                self.add_transaction(tx_ref, body["booking_id"], str(body["amount"]))
                return httpx.Response(
                    200,
                    json={
                        "payment_id": payment_id,
                        "checkout_url": f"https://checkout.example/{payment_id}",
                        "tx_ref": tx_ref,
                        "status": "pending",
                    },
                )
            if path == "/api/payments/refund":
                self.refunds.append(body)
                return httpx.Response(200, json={"success": True})
            if path == "/api/reviews":
                self.reviews.append({**body, "id": f"rv-{len(self.reviews) + 1}", "target_item_id": body["item_id"]})
                return httpx.Response(201, json={"success": True})

        return httpx.Response(404, json={"error": f"no route {request.method} {path}"})

    def _create_booking(self, body: dict[str, Any]) -> str:
        start = date.fromisoformat(body["start_date"][:10])
        end = date.fromisoformat(body["end_date"][:10])
        days = max(1, (end - start).days)
        rate = Decimal(str(body["daily_rate"]))
        deposit = Decimal(str(body["security_deposit"]))
        subtotal = rate * days
        fee = (subtotal * self.fee_rate).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        self._next_id += 1
        booking_id = f"bk-{self._next_id}"
        self.bookings[booking_id] = {
            "ID": booking_id,
            "BookingNumber": f"BK-{self._next_id:04d}",
            "RenterID": body["renter_id"],
            "OwnerID": body["owner_id"],
            "RentalItemID": body["rental_item_id"],
            "Status": "pending",
            "StartDate": body["start_date"],
            "EndDate": body["end_date"],
            "TotalDays": days,
            "DailyRate": str(rate),
            "SecurityDeposit": str(deposit),
            "Subtotal": str(subtotal),
            "ServiceFee": str(fee),
            "TotalAmount": str(subtotal + fee + deposit),
            "PaymentStatus": "",
        }
        return booking_id


@pytest.fixture
def marketplace() -> FakeMarketplace:
    return FakeMarketplace()


@pytest.fixture
def marketplace_client(marketplace: FakeMarketplace) -> MarketplaceClient:
    return MarketplaceClient("http://marketplace.test", transport=httpx.MockTransport(marketplace.handler))


@pytest.fixture
def booking_store() -> BookingStore:
    return BookingStore()


@pytest.fixture
def service(marketplace_client: MarketplaceClient, booking_store: BookingStore) -> BookingService:
    return BookingService(marketplace_client, store=booking_store, clock=lambda: TODAY)
