"""Payment endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from rentalflow.api.deps import get_booking_service, get_current_user_id
from rentalflow.models import Booking
from rentalflow.services.booking_service import BookingService

router = APIRouter()


@router.get("/verify", response_model=Booking)
async def verify_payment(
    current_user: Annotated[str, Depends(get_current_user_id)],
    service: Annotated[BookingService, Depends(get_booking_service)],
    tx_ref: str = Query(..., min_length=1),
    booking_id: str = Query(..., min_length=1),
) -> Booking:
    """Payment callback: apply the verified transaction status to the booking."""
    return await service.verify_payment(tx_ref, booking_id, current_user)
