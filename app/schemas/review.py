"""Review-related Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.utils.validators import contains_profanity, sanitize_text


class ReviewCreate(BaseModel):
    """Schema for creating a review."""

    chef_id: UUID
    rating: int = Field(..., ge=1, le=5)
    comment: str | None = Field(None, max_length=500)

    @field_validator("comment")
    @classmethod
    def validate_comment(cls, v: str | None) -> str | None:
        if v is None:
            return v
        if contains_profanity(v):
            raise ValueError("comment contains inappropriate language")
        return sanitize_text(v)


class ReviewResponse(BaseModel):
    """Schema for review response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    booking_id: UUID
    chef_id: UUID
    customer_id: UUID
    rating: int
    comment: str | None
    created_at: datetime


class ReviewListResponse(BaseModel):
    """Schema for paginated review list."""

    reviews: list[ReviewResponse]
    total: int
    average_rating: float | None
    page: int
    page_size: int
