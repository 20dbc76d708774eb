"""Review endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from rentalflow.api.deps import get_booking_service
from rentalflow.schemas.review import ReviewListResponse
from rentalflow.services.booking_service import BookingService

router = APIRouter()


@router.get("/item/{item_id}", response_model=ReviewListResponse)
async def get_item_reviews(
    item_id: str,
    service: Annotated[BookingService, Depends(get_booking_service)],
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
) -> ReviewListResponse:
    """Get reviews for an item (public).

    `page_average_rating` averages the reviews on the returned page only.
    """
    reviews, total = await service.list_item_reviews(item_id, page, page_size)
    average = round(sum(r.rating for r in reviews) / len(reviews), 1) if reviews else 0.0
    return ReviewListResponse(
        reviews=reviews,
        total=total,
        page_average_rating=average,
        page=page,
        page_size=page_size,
    )
