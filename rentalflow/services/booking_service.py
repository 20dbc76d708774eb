"""Booking orchestration.

Glues the pure booking core to the marketplace client. Every mutation is
validated locally against freshly fetched state before the upstream call is
issued, and the local view is rolled back if that call fails.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from rentalflow.clients.marketplace import MarketplaceClient
from rentalflow.config import settings
from rentalflow.core.exceptions import (
    IllegalTransition,
    ItemUnavailable,
    PaymentError,
    ValidationError,
)
from rentalflow.domain.action_gate import BookingAction, require_action
from rentalflow.domain.aggregate import BookingAggregate, booking_only_aggregate, build_booking_aggregate
from rentalflow.domain.booking_state import Actor, Trigger, apply_transition, resolve_actor
from rentalflow.domain.cancellation_policy import calculate_refund_amount
from rentalflow.domain.payment_state import apply_payment_status, assert_payable, is_paid
from rentalflow.domain.pricing import PriceQuote, normalize_rental_window, quote, round2, verify_booking_totals
from rentalflow.models import (
    Booking,
    BookingStatus,
    Item,
    PaymentCheckout,
    PaymentMethod,
    PaymentStatus,
    Review,
)
from rentalflow.services.booking_store import BookingStore

logger = logging.getLogger(__name__)

REVIEW_PAGE_SIZE = 50

TOTALS_MISMATCH_REASON = "Stored totals did not match the quoted price"


@dataclass(frozen=True)
class RefundRequest:
    """A refund issued on behalf of a paid booking."""

    booking_id: str
    payment_id: str
    amount: Decimal
    requested_by: str


class BookingService:
    """Service for booking quotes, lifecycle actions, payments and reviews."""

    def __init__(
        self,
        client: MarketplaceClient,
        store: BookingStore | None = None,
        fee_percent: Decimal | None = None,
        clock: Callable[[], date] = date.today,
    ):
        self.client = client
        self.store = store or BookingStore()
        self.fee_percent = settings.service_fee_percent if fee_percent is None else fee_percent
        self._clock = clock

    # ------------------------------------------------------------------
    # Quotes and creation
    # ------------------------------------------------------------------

    def quote(
        self,
        daily_rate: Decimal,
        start_date: date,
        end_date: date,
        security_deposit: Decimal | None = None,
    ) -> PriceQuote:
        return quote(
            daily_rate,
            start_date,
            end_date,
            security_deposit,
            today=self._clock(),
            fee_percent=self.fee_percent,
        )

    async def quote_item(self, item_id: str, start_date: date, end_date: date) -> tuple[Item, PriceQuote]:
        """Quote a rental of a listed item at its current rate card."""
        item = await self.client.get_item(item_id)
        return item, self.quote(item.daily_rate, start_date, end_date, item.security_deposit)

    async def request_booking(
        self,
        renter_id: str,
        item_id: str,
        start_date: date,
        end_date: date,
        request_key: str | None = None,
    ) -> Booking:
        """Create a pending booking request for an item.

        The item's current rate and deposit are snapshotted into the booking.
        A booking the server stores with totals that disagree with the quote
        is cancelled again before the error is raised.
        """
        item, price = await self.quote_item(item_id, start_date, end_date)
        if not item.is_active:
            raise ItemUnavailable(item_id)
        if item.owner_id == renter_id:
            raise ValidationError("You cannot book your own item")

        start_at, end_at = normalize_rental_window(start_date, end_date)
        booking_id = await self.client.create_booking(
            renter_id=renter_id,
            owner_id=item.owner_id,
            item_id=item.id,
            start_date=start_at,
            end_date=end_at,
            daily_rate=price.daily_rate,
            security_deposit=price.deposit_amount,
            request_key=request_key,
        )
        logger.info("Booking %s requested by %s for item %s (%s days)", booking_id, renter_id, item.id, price.days)

        booking = await self.get_booking(booking_id)
        try:
            verify_booking_totals(booking, self.fee_percent)
        except ValidationError as e:
            logger.error("Booking %s stored with inconsistent totals, cancelling it: %s", booking.id, e.detail)
            cancelled = apply_transition(booking, Trigger.CANCEL, renter_id, reason=TOTALS_MISMATCH_REASON)
            async with self.store.optimistic(booking, cancelled):
                await self.client.cancel_booking(booking.id, renter_id, TOTALS_MISMATCH_REASON)
            raise
        return booking

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_booking(self, booking_id: str) -> Booking:
        """Fetch the latest booking state and remember it."""
        return self.store.put(await self.client.get_booking(booking_id))

    async def list_bookings(
        self, user_id: str, role: str = "renter", page: int = 1, page_size: int = 20
    ) -> tuple[list[Booking], int]:
        if role == "owner":
            bookings, total = await self.client.list_owner_bookings(user_id, page, page_size)
        else:
            bookings, total = await self.client.list_renter_bookings(user_id, page, page_size)
        for booking in bookings:
            self.store.put(booking)
        return bookings, total

    async def list_item_reviews(self, item_id: str, page: int = 1, page_size: int = 20) -> tuple[list[Review], int]:
        return await self.client.list_item_reviews(item_id, page, page_size)

    async def has_reviewed(self, booking: Booking, user_id: str | None) -> bool:
        """Whether the renter already left a review for this booking."""
        if user_id != booking.renter_id or booking.status != BookingStatus.COMPLETED:
            return False
        page = 1
        while True:
            reviews, total = await self.client.list_item_reviews(booking.item_id, page, REVIEW_PAGE_SIZE)
            if any(r.booking_id == booking.id and r.reviewer_id == user_id for r in reviews):
                return True
            if not reviews or page * REVIEW_PAGE_SIZE >= total:
                return False
            page += 1

    async def _item_or_none(self, item_id: str) -> Item | None:
        try:
            return await self.client.get_item(item_id)
        except ItemUnavailable:
            return None

    async def get_booking_view(self, booking_id: str, acting_user_id: str) -> BookingAggregate:
        """Load a booking with its item, flags and available actions.

        Falls back to a booking-only view when the item cannot be resolved.
        """
        booking = await self.get_booking(booking_id)
        resolve_actor(booking, acting_user_id)

        item, reviewed = await asyncio.gather(
            self._item_or_none(booking.item_id),
            self.has_reviewed(booking, acting_user_id),
        )
        try:
            return build_booking_aggregate(booking, item, acting_user_id, reviewed)
        except ItemUnavailable:
            logger.warning("Item %s for booking %s unavailable; showing booking only", booking.item_id, booking.id)
            return booking_only_aggregate(booking, acting_user_id, reviewed)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def _transition(
        self,
        booking_id: str,
        trigger: Trigger,
        acting_user_id: str | None,
        call: Callable[[Booking], Awaitable[None]],
        *,
        as_system: bool = False,
        reason: str | None = None,
    ) -> Booking:
        booking = await self.get_booking(booking_id)
        updated = apply_transition(booking, trigger, acting_user_id, as_system=as_system, reason=reason)
        if updated is booking:
            return booking

        async with self.store.optimistic(booking, updated):
            await call(updated)
        return updated

    async def confirm(self, booking_id: str, owner_id: str) -> Booking:
        return await self._transition(
            booking_id,
            Trigger.CONFIRM,
            owner_id,
            lambda b: self.client.confirm_booking(b.id, owner_id),
        )

    async def reject(self, booking_id: str, owner_id: str, reason: str | None = None) -> Booking:
        return await self._transition(
            booking_id,
            Trigger.REJECT,
            owner_id,
            lambda b: self.client.cancel_booking(b.id, owner_id, b.cancellation_reason or ""),
            reason=reason,
        )

    async def cancel(self, booking_id: str, user_id: str, reason: str | None = None) -> Booking:
        return await self._transition(
            booking_id,
            Trigger.CANCEL,
            user_id,
            lambda b: self.client.cancel_booking(b.id, user_id, b.cancellation_reason or ""),
            reason=reason,
        )

    async def activate(self, booking_id: str, user_id: str | None = None, *, as_system: bool = False) -> Booking:
        return await self._transition(
            booking_id,
            Trigger.ACTIVATE,
            user_id,
            lambda b: self.client.update_booking_status(b.id, b.status.value, user_id),
            as_system=as_system,
        )

    async def complete(self, booking_id: str, user_id: str | None = None, *, as_system: bool = False) -> Booking:
        return await self._transition(
            booking_id,
            Trigger.COMPLETE,
            user_id,
            lambda b: self.client.update_booking_status(b.id, b.status.value, user_id),
            as_system=as_system,
        )

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    async def pay(self, booking_id: str, renter_id: str, method: PaymentMethod | None = None) -> PaymentCheckout:
        """Start checkout for a confirmed, unpaid booking."""
        booking = await self.get_booking(booking_id)
        require_action(booking, renter_id, BookingAction.PAY)
        assert_payable(booking)

        method = method or PaymentMethod(settings.default_payment_method)
        payments = await self.client.list_booking_payments(booking.id)
        updated = apply_payment_status(booking, PaymentStatus.PENDING)
        async with self.store.optimistic(booking, updated):
            checkout = await self.client.initialize_payment(
                booking.id,
                renter_id,
                booking.total_amount,
                method,
                attempt=len(payments) + 1,
            )

        logger.info("Payment %s started for booking %s (%s)", checkout.payment_id, booking.id, booking.total_amount)
        return checkout

    async def verify_payment(
        self, transaction_ref: str, booking_id: str, acting_user_id: str | None = None
    ) -> Booking:
        """Apply the server-verified status of a transaction to its booking.

        Raises:
            PaymentError: If the transaction was made for another booking or
                for a different amount
        """
        booking = await self.get_booking(booking_id)
        if acting_user_id is not None:
            resolve_actor(booking, acting_user_id)
        verification = await self.client.verify_payment(transaction_ref)
        if verification.booking_id != booking.id:
            logger.warning(
                "Transaction %s belongs to booking %s, not %s", transaction_ref, verification.booking_id, booking.id
            )
            raise PaymentError("Transaction does not belong to this booking")
        if verification.amount is not None and round2(verification.amount) != round2(booking.total_amount):
            logger.warning(
                "Transaction %s amount %s does not match booking %s total %s",
                transaction_ref,
                verification.amount,
                booking.id,
                booking.total_amount,
            )
            raise PaymentError("Transaction amount does not match the booking total")
        updated = apply_payment_status(booking, verification.status)
        if updated is not booking:
            logger.info(
                "Booking %s payment %s -> %s",
                booking.id,
                booking.payment_status.value,
                updated.payment_status.value,
            )
        return self.store.put(updated)

    async def request_refund(self, booking_id: str, user_id: str, reason: str | None = None) -> RefundRequest:
        """Refund a paid, confirmed booking.

        Owners refund in full; renters get what the cancellation policy
        allows. The booking status itself is settled by the server.
        """
        booking = await self.get_booking(booking_id)
        actor = resolve_actor(booking, user_id)
        if booking.status != BookingStatus.CONFIRMED:
            raise IllegalTransition(detail=f"Refunds are only requested for confirmed bookings (booking is {booking.status.value})")
        if not is_paid(booking):
            raise PaymentError("Booking has no completed payment to refund")

        payments = await self.client.list_booking_payments(booking.id)
        payment = next((p for p in payments if p.status == PaymentStatus.SUCCESS), None)
        if payment is None:
            raise PaymentError("No successful payment found for this booking")

        if actor == Actor.OWNER:
            amount = booking.total_amount
        else:
            amount = calculate_refund_amount(
                booking.cancellation_policy,
                booking.start_date,
                self._clock(),
                booking.total_amount,
            )

        await self.client.refund_payment(payment.id, amount)
        logger.info(
            "Refund of %s requested for booking %s by %s (%s)",
            amount,
            booking.id,
            actor.value,
            reason or "no reason given",
        )
        return RefundRequest(booking_id=booking.id, payment_id=payment.id, amount=amount, requested_by=user_id)

    # ------------------------------------------------------------------
    # Reviews
    # ------------------------------------------------------------------

    async def leave_review(self, booking_id: str, reviewer_id: str, rating: int, comment: str) -> Review:
        """Review a completed booking, once, as its renter."""
        if not 1 <= rating <= 5:
            raise ValidationError("Rating must be between 1 and 5")
        if not comment or not comment.strip():
            raise ValidationError("Review comment cannot be empty")

        booking = await self.get_booking(booking_id)
        reviewed = await self.has_reviewed(booking, reviewer_id)
        require_action(booking, reviewer_id, BookingAction.LEAVE_REVIEW, has_reviewed=reviewed)

        return await self.client.create_review(
            item_id=booking.item_id,
            booking_id=booking.id,
            reviewer_id=reviewer_id,
            rating=rating,
            comment=comment.strip(),
        )
