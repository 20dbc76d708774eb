"""Review-related Pydantic schemas."""

from pydantic import BaseModel, Field, field_validator

from rentalflow.models import Review


class ReviewCreate(BaseModel):
    """Schema for creating a review."""

    rating: int = Field(..., ge=1, le=5)
    comment: str = Field(..., min_length=1, max_length=2000)

    @field_validator("comment")
    @classmethod
    def validate_comment(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("comment cannot be blank")
        return v.strip()


class ReviewListResponse(BaseModel):
    """Schema for paginated review list."""

    reviews: list[Review]
    total: int
    page_average_rating: float
    page: int
    page_size: int
