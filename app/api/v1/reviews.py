"""Review endpoints."""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_customer, get_db
from app.core.exceptions import Conflict, InvalidRequest
from app.domain.booking_state import COMPLETED
from app.models.booking import Booking
from app.models.review import Review
from app.models.user import User
from app.schemas.review import ReviewCreate, ReviewListResponse, ReviewResponse
from app.services.chef_service import MIN_REVIEWS_FOR_RATING, chef_service
from app.services.notification_service import notification_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
async def create_review(
    review_data: ReviewCreate,
    current_user: Annotated[User, Depends(get_current_customer)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Review:
    """Review a chef after a completed booking. One review per chef."""
    await chef_service.get_public(db, review_data.chef_id)

    # Most recent completed booking with this chef
    result = await db.execute(
        select(Booking)
        .where(
            Booking.customer_id == current_user.id,
            Booking.chef_id == review_data.chef_id,
            Booking.status == COMPLETED,
        )
        .order_by(Booking.event_date.desc())
        .limit(1)
    )
    booking = result.scalar_one_or_none()
    if not booking:
        raise InvalidRequest("You can only review chefs after a completed booking")

    existing = await db.execute(
        select(Review.id).where(
            Review.chef_id == review_data.chef_id,
            Review.customer_id == current_user.id,
        )
    )
    if existing.scalar_one_or_none():
        raise Conflict("You have already reviewed this chef")

    review = Review(
        booking_id=booking.id,
        chef_id=review_data.chef_id,
        customer_id=current_user.id,
        rating=review_data.rating,
        comment=review_data.comment,
    )
    db.add(review)
    await db.flush()
    await db.refresh(review)

    profile = await chef_service.recompute_rating(db, review_data.chef_id)
    logger.info(
        f"Review {review.id} for chef {review.chef_id}: "
        f"avg={profile.average_rating} over {profile.total_reviews}"
    )
    await notification_service.notify_review_received(db, review.chef_id, review.rating)
    return review


@router.get("/chef/{chef_id}", response_model=ReviewListResponse)
async def get_chef_reviews(
    chef_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
) -> ReviewListResponse:
    """Get reviews for a chef, newest first."""
    await chef_service.get_public(db, chef_id)

    query = select(Review).where(Review.chef_id == chef_id)
    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0

    # Hidden until the chef has enough reviews, as on the profile
    average_rating = None
    if total >= MIN_REVIEWS_FOR_RATING:
        avg_result = await db.execute(select(func.avg(Review.rating)).where(Review.chef_id == chef_id))
        average_rating = round(float(avg_result.scalar() or 0), 2)

    offset = (page - 1) * page_size
    result = await db.execute(
        query.order_by(Review.created_at.desc()).offset(offset).limit(page_size)
    )

    return ReviewListResponse(
        reviews=[ReviewResponse.model_validate(r) for r in result.scalars().all()],
        total=total,
        average_rating=average_rating,
        page=page,
        page_size=page_size,
    )
