"""Chef discovery, profile and dashboard statistics."""

import logging
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from sqlalchemy import String, and_, cast, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.domain.actor import CHEF
from app.domain.booking_state import ACTIVE_STATUSES, COMPLETED, PENDING
from app.models.booking import Booking
from app.models.post import ChefPost
from app.models.review import Review
from app.models.user import ChefProfile, User
from app.schemas.user import ChefProfileUpdate, ChefResponse

logger = logging.getLogger(__name__)

# Ratings are hidden until a chef has this many reviews
MIN_REVIEWS_FOR_RATING = 5


def to_chef_response(user: User, profile: ChefProfile) -> ChefResponse:
    show_rating = profile.total_reviews >= MIN_REVIEWS_FOR_RATING
    return ChefResponse(
        id=user.id,
        first_name=user.first_name,
        last_name=user.last_name,
        city=user.city,
        profile_photo_url=user.profile_photo_url,
        is_verified=user.is_verified,
        bio=profile.bio,
        work_history=profile.work_history,
        regions_served=profile.regions_served or [],
        dietary_specialties=profile.dietary_specialties or [],
        max_travel_distance=profile.max_travel_distance,
        base_rate=profile.base_rate,
        holiday_rate_multiplier=profile.holiday_rate_multiplier,
        average_rating=profile.average_rating if show_rating else None,
        total_reviews=profile.total_reviews,
    )


def _json_contains(column, value: str):
    # JSON list rendered as text; portable across Postgres and SQLite
    return func.lower(cast(column, String)).contains(value.lower())


class ChefService:
    """Read and update chef profiles."""

    async def search(
        self,
        db: AsyncSession,
        region: str | None = None,
        specialty: str | None = None,
        city: str | None = None,
        min_rate: Decimal | None = None,
        max_rate: Decimal | None = None,
        sort_by: str = "rating",
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[tuple[User, ChefProfile]], int]:
        """Active, verified chefs matching the filters.

        Args:
            db: Database session
            region: Substring of a served region
            specialty: Substring of a dietary specialty
            city: Chef's home city or a served region
            min_rate: Lowest base rate, inclusive
            max_rate: Highest base rate, inclusive
            sort_by: rating, price_low or price_high
            page: 1-based page number
            page_size: Results per page

        Returns:
            tuple: (page of (user, profile) rows, total matches)
        """
        filters = [
            User.role == CHEF,
            User.is_active.is_(True),
            User.is_verified.is_(True),
        ]
        if region:
            filters.append(_json_contains(ChefProfile.regions_served, region))
        if specialty:
            filters.append(_json_contains(ChefProfile.dietary_specialties, specialty))
        if city:
            filters.append(
                func.lower(User.city).contains(city.lower())
                | _json_contains(ChefProfile.regions_served, city)
            )
        if min_rate is not None:
            filters.append(ChefProfile.base_rate >= min_rate)
        if max_rate is not None:
            filters.append(ChefProfile.base_rate <= max_rate)

        query = (
            select(User, ChefProfile)
            .join(ChefProfile, ChefProfile.user_id == User.id)
            .where(and_(*filters))
        )

        total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0

        if sort_by == "price_low":
            query = query.order_by(ChefProfile.base_rate.asc())
        elif sort_by == "price_high":
            query = query.order_by(ChefProfile.base_rate.desc())
        else:
            query = query.order_by(ChefProfile.average_rating.desc(), ChefProfile.total_reviews.desc())

        offset = (page - 1) * page_size
        result = await db.execute(query.offset(offset).limit(page_size))
        return [(row[0], row[1]) for row in result.all()], total

    async def get_public(self, db: AsyncSession, chef_id: UUID) -> tuple[User, ChefProfile]:
        result = await db.execute(
            select(User, ChefProfile)
            .join(ChefProfile, ChefProfile.user_id == User.id)
            .where(User.id == chef_id, User.role == CHEF, User.is_active.is_(True))
        )
        row = result.one_or_none()
        if row is None:
            raise NotFoundError("Chef", str(chef_id))
        return row[0], row[1]

    async def get_profile(self, db: AsyncSession, user_id: UUID) -> ChefProfile:
        result = await db.execute(select(ChefProfile).where(ChefProfile.user_id == user_id))
        profile = result.scalar_one_or_none()
        if profile is None:
            raise NotFoundError("Chef profile")
        return profile

    async def update_profile(
        self, db: AsyncSession, user_id: UUID, updates: ChefProfileUpdate
    ) -> ChefProfile:
        profile = await self.get_profile(db, user_id)
        for field, value in updates.model_dump(exclude_unset=True).items():
            setattr(profile, field, value)
        await db.flush()
        await db.refresh(profile)
        logger.info(f"Chef {user_id} updated profile fields: {sorted(updates.model_fields_set)}")
        return profile

    async def recompute_rating(self, db: AsyncSession, chef_id: UUID) -> ChefProfile:
        """Refresh average_rating and total_reviews from the reviews table."""
        profile = await self.get_profile(db, chef_id)
        result = await db.execute(
            select(func.count(Review.id), func.avg(Review.rating)).where(Review.chef_id == chef_id)
        )
        count, average = result.one()
        profile.total_reviews = count or 0
        profile.average_rating = Decimal(str(average or 0)).quantize(
            Decimal("0.01"), rounding=ROUND_HALF_UP
        )
        await db.flush()
        return profile

    async def stats(self, db: AsyncSession, chef_id: UUID, today: date) -> dict:
        """Dashboard numbers for a chef. Revenue counts the chef's subtotal on completed bookings."""
        profile = await self.get_profile(db, chef_id)

        counts = dict(
            (await db.execute(
                select(Booking.status, func.count(Booking.id))
                .where(Booking.chef_id == chef_id)
                .group_by(Booking.status)
            )).all()
        )

        upcoming = (await db.execute(
            select(func.count(Booking.id)).where(
                Booking.chef_id == chef_id,
                Booking.status.in_(ACTIVE_STATUSES),
                Booking.event_date >= today,
            )
        )).scalar() or 0

        total_revenue = (await db.execute(
            select(func.coalesce(func.sum(Booking.subtotal), 0)).where(
                Booking.chef_id == chef_id, Booking.status == COMPLETED
            )
        )).scalar()

        month_start = today.replace(day=1)
        revenue_this_month = (await db.execute(
            select(func.coalesce(func.sum(Booking.subtotal), 0)).where(
                Booking.chef_id == chef_id,
                Booking.status == COMPLETED,
                Booking.event_date >= month_start,
                Booking.event_date <= today,
            )
        )).scalar()

        total_posts = (await db.execute(
            select(func.count(ChefPost.id)).where(ChefPost.chef_id == chef_id)
        )).scalar() or 0

        return {
            "total_bookings": sum(counts.values()),
            "upcoming_bookings": upcoming,
            "completed_bookings": counts.get(COMPLETED, 0),
            "pending_requests": counts.get(PENDING, 0),
            "total_revenue": Decimal(str(total_revenue)),
            "revenue_this_month": Decimal(str(revenue_this_month)),
            "average_rating": profile.average_rating,
            "total_reviews": profile.total_reviews,
            "total_posts": total_posts,
        }


chef_service = ChefService()
