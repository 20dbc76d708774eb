"""Booking endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Header, Query, status

from rentalflow.api.deps import get_booking_service, get_current_user_id
from rentalflow.config import settings
from rentalflow.core.exceptions import ValidationError
from rentalflow.core.idempotency import IDEMPOTENCY_HEADER
from rentalflow.models import Booking, PaymentCheckout, Review
from rentalflow.schemas.booking import (
    BookingCancelRequest,
    BookingCreate,
    BookingListResponse,
    BookingPayRequest,
    BookingPriceBreakdown,
    BookingQuoteRequest,
    BookingViewResponse,
)
from rentalflow.schemas.payment import RefundCreate, RefundResponse
from rentalflow.schemas.review import ReviewCreate
from rentalflow.services.booking_service import BookingService

router = APIRouter()

Service = Annotated[BookingService, Depends(get_booking_service)]
CurrentUser = Annotated[str, Depends(get_current_user_id)]


@router.post("/quote", response_model=BookingPriceBreakdown)
async def quote_booking(request: BookingQuoteRequest, service: Service) -> BookingPriceBreakdown:
    """Price preview; recomputed on every date change."""
    if request.item_id:
        _, price = await service.quote_item(request.item_id, request.start_date, request.end_date)
    elif request.daily_rate is not None:
        price = service.quote(request.daily_rate, request.start_date, request.end_date, request.security_deposit)
    else:
        raise ValidationError("Either item_id or daily_rate is required")
    return BookingPriceBreakdown.from_quote(price, settings.currency)


@router.post("/", response_model=Booking, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate,
    current_user: CurrentUser,
    service: Service,
    idempotency_key: Annotated[str | None, Header(alias=IDEMPOTENCY_HEADER)] = None,
) -> Booking:
    """Request a booking as the current user.

    Clients resending the same request should repeat its Idempotency-Key.
    """
    return await service.request_booking(
        renter_id=current_user,
        item_id=booking_data.item_id,
        start_date=booking_data.start_date,
        end_date=booking_data.end_date,
        request_key=idempotency_key,
    )


@router.get("/", response_model=BookingListResponse)
async def get_my_bookings(
    current_user: CurrentUser,
    service: Service,
    role: str = Query(default="renter", pattern="^(renter|owner)$"),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
) -> BookingListResponse:
    """Get bookings for the current user."""
    bookings, total = await service.list_bookings(current_user, role, page, page_size)
    return BookingListResponse(bookings=bookings, total=total, page=page, page_size=page_size)


@router.get("/{booking_id}", response_model=BookingViewResponse)
async def get_booking(booking_id: str, current_user: CurrentUser, service: Service) -> BookingViewResponse:
    """Booking detail with item, flags and the actions the user may take."""
    view = await service.get_booking_view(booking_id, current_user)
    return BookingViewResponse.from_aggregate(view)


@router.post("/{booking_id}/confirm", response_model=Booking)
async def confirm_booking(booking_id: str, current_user: CurrentUser, service: Service) -> Booking:
    """Confirm a pending booking (owner only)."""
    return await service.confirm(booking_id, current_user)


@router.post("/{booking_id}/reject", response_model=Booking)
async def reject_booking(
    booking_id: str,
    current_user: CurrentUser,
    service: Service,
    request: BookingCancelRequest | None = None,
) -> Booking:
    """Reject a pending booking (owner only)."""
    return await service.reject(booking_id, current_user, request.reason if request else None)


@router.post("/{booking_id}/cancel", response_model=Booking)
async def cancel_booking(
    booking_id: str,
    current_user: CurrentUser,
    service: Service,
    request: BookingCancelRequest | None = None,
) -> Booking:
    """Cancel a pending or unpaid confirmed booking."""
    return await service.cancel(booking_id, current_user, request.reason if request else None)


@router.post("/{booking_id}/activate", response_model=Booking)
async def activate_booking(booking_id: str, current_user: CurrentUser, service: Service) -> Booking:
    """Mark the rental as started (owner only)."""
    return await service.activate(booking_id, current_user)


@router.post("/{booking_id}/complete", response_model=Booking)
async def complete_booking(booking_id: str, current_user: CurrentUser, service: Service) -> Booking:
    """Mark the rental as returned (owner only)."""
    return await service.complete(booking_id, current_user)


@router.post("/{booking_id}/pay", response_model=PaymentCheckout)
async def pay_booking(
    booking_id: str,
    current_user: CurrentUser,
    service: Service,
    request: BookingPayRequest | None = None,
) -> PaymentCheckout:
    """Start checkout for a confirmed booking (renter only)."""
    return await service.pay(booking_id, current_user, request.method if request else None)


@router.post("/{booking_id}/refund", response_model=RefundResponse)
async def refund_booking(
    booking_id: str,
    current_user: CurrentUser,
    service: Service,
    request: RefundCreate | None = None,
) -> RefundResponse:
    """Refund path for a paid booking that will not go ahead."""
    refund = await service.request_refund(booking_id, current_user, request.reason if request else None)
    return RefundResponse(
        booking_id=refund.booking_id,
        payment_id=refund.payment_id,
        amount=refund.amount,
        requested_by=refund.requested_by,
    )


@router.post("/{booking_id}/review", response_model=Review, status_code=status.HTTP_201_CREATED)
async def review_booking(
    booking_id: str,
    review: ReviewCreate,
    current_user: CurrentUser,
    service: Service,
) -> Review:
    """Review a completed booking (renter only, once)."""
    return await service.leave_review(booking_id, current_user, review.rating, review.comment)
