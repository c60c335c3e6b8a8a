"""Booking lifecycle service.

The only writer of Booking rows. Creation validates fail-fast in a fixed
order (first violation wins):

1. caller is a customer                     -> PermissionDenied
2. chef exists, is active and verified      -> NotFound
3. event starts strictly in the future      -> InvalidRequest("event in past")
4. holiday policy (block rejects holidays)  -> InvalidRequest("holiday blocked")
5. no pending/confirmed booking in the slot -> Conflict

Pricing is computed once at creation: rate x party size x duration hours,
then fees.
"""

import logging
from collections.abc import Callable
from datetime import UTC, date, datetime, time
from decimal import Decimal
from uuid import UUID
from zoneinfo import ZoneInfo

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, settings
from app.core.exceptions import (
    Conflict,
    DependencyFailure,
    InvalidRequest,
    NotFoundError,
    PermissionDenied,
)
from app.domain.actor import CHEF, Actor
from app.domain.booking_state import (
    ACTIVE_STATUSES,
    CANCELLED,
    COMPLETED,
    CONFIRMED,
    DECLINED,
    PENDING,
    assert_booking_transition,
    assert_transition_target,
)
from app.domain.cancellation_policy import can_cancel_booking
from app.models.booking import Booking
from app.models.user import ChefProfile, User
from app.schemas.booking import BookingCreate
from app.services.fee_service import FeeBreakdown, FeeCalculator, FeeConfig, round_money
from app.services.notification_service import NotificationService, notification_service

logger = logging.getLogger(__name__)

# Timestamp column stamped when a booking enters each status
STATUS_TIMESTAMPS = {
    CONFIRMED: "confirmed_at",
    DECLINED: "declined_at",
    COMPLETED: "completed_at",
    CANCELLED: "cancelled_at",
}


def candidate_slots(start_hour: int = 10, end_hour: int = 22, interval_hours: int = 2) -> list[time]:
    """Bookable times of day, inclusive of both ends."""
    return [time(hour, 0) for hour in range(start_hour, end_hour + 1, interval_hours)]


def local_clock(tz_name: str) -> Callable[[], datetime]:
    """Clock returning naive wall-clock time in the marketplace timezone."""
    zone = ZoneInfo(tz_name)

    def now() -> datetime:
        return datetime.now(zone).replace(tzinfo=None)

    return now


class BookingService:
    """Creates bookings, computes availability and guards status changes."""

    def __init__(
        self,
        fee_calculator: FeeCalculator,
        holiday_policy: str = "premium",
        slots: list[time] | None = None,
        cancellation_hours: int = 24,
        currency: str = "zar",
        clock: Callable[[], datetime] | None = None,
        notifier: NotificationService | None = None,
    ) -> None:
        if holiday_policy not in ("premium", "block"):
            raise ValueError(f"Unknown holiday policy: {holiday_policy}")
        self.fees = fee_calculator
        self.holiday_policy = holiday_policy
        self.slots = slots or candidate_slots()
        self.cancellation_hours = cancellation_hours
        self.currency = currency
        self.now = clock or local_clock(settings.timezone)
        self.notifier = notifier or notification_service

    @classmethod
    def from_settings(cls, config: Settings) -> "BookingService":
        return cls(
            fee_calculator=FeeCalculator(FeeConfig.from_settings(config)),
            holiday_policy=config.holiday_policy,
            slots=candidate_slots(
                config.slot_start_hour, config.slot_end_hour, config.slot_interval_hours
            ),
            cancellation_hours=config.cancellation_hours,
            currency=config.currency,
            clock=local_clock(config.timezone),
        )

    # ==================== LOOKUPS ====================

    async def _get_chef(self, db: AsyncSession, chef_id: UUID) -> tuple[User, ChefProfile]:
        result = await db.execute(
            select(User, ChefProfile)
            .join(ChefProfile, ChefProfile.user_id == User.id)
            .where(User.id == chef_id, User.role == CHEF)
        )
        row = result.one_or_none()
        if row is None:
            raise NotFoundError("Chef", str(chef_id))
        return row[0], row[1]

    async def _get_bookable_chef(self, db: AsyncSession, chef_id: UUID) -> tuple[User, ChefProfile]:
        chef, profile = await self._get_chef(db, chef_id)
        if not chef.is_active or not chef.is_verified:
            raise NotFoundError("Chef", str(chef_id))
        return chef, profile

    async def get_booking(self, db: AsyncSession, booking_id: UUID) -> Booking:
        result = await db.execute(select(Booking).where(Booking.id == booking_id))
        booking = result.scalar_one_or_none()
        if not booking:
            raise NotFoundError("Booking", str(booking_id))
        return booking

    async def get_booking_for(self, db: AsyncSession, booking_id: UUID, actor: Actor) -> Booking:
        booking = await self.get_booking(db, booking_id)
        self._assert_party(booking, actor)
        return booking

    async def _slot_taken(
        self, db: AsyncSession, chef_id: UUID, event_date: date, event_time: time
    ) -> bool:
        result = await db.execute(
            select(Booking.id).where(
                Booking.chef_id == chef_id,
                Booking.event_date == event_date,
                Booking.event_time == event_time,
                Booking.status.in_(ACTIVE_STATUSES),
            ).limit(1)
        )
        return result.scalar_one_or_none() is not None

    # ==================== PRICING ====================

    def _rate_for(self, profile: ChefProfile, event_date: date) -> tuple[Decimal, bool]:
        is_holiday = self.fees.is_holiday(event_date)
        rate = profile.base_rate
        if self.holiday_policy == "premium":
            rate = self.fees.holiday_adjusted_rate(
                profile.base_rate, event_date, profile.holiday_rate_multiplier
            )
        return round_money(rate), is_holiday

    def price(
        self, profile: ChefProfile, event_date: date, party_size: int, duration_hours: int = 1
    ) -> tuple[Decimal, bool, FeeBreakdown]:
        """Rate per guest-hour, holiday flag and fee breakdown for a prospective booking."""
        rate, is_holiday = self._rate_for(profile, event_date)
        breakdown = self.fees.breakdown(rate * party_size * duration_hours)
        return rate, is_holiday, breakdown

    async def quote(
        self,
        db: AsyncSession,
        chef_id: UUID,
        event_date: date,
        party_size: int,
        duration_hours: int = 1,
    ) -> dict:
        """Price a booking without writing anything."""
        _, profile = await self._get_bookable_chef(db, chef_id)
        rate, is_holiday, breakdown = self.price(profile, event_date, party_size, duration_hours)
        return {
            "chef_id": chef_id,
            "event_date": event_date,
            "party_size": party_size,
            "duration_hours": duration_hours,
            "rate_per_guest": rate,
            "is_holiday": is_holiday,
            **breakdown.as_dict(),
            "currency": self.currency,
        }

    # ==================== LIFECYCLE ====================

    async def create(self, db: AsyncSession, request: BookingCreate, actor: Actor) -> Booking:
        """Validate, price and insert a new pending booking."""
        if not actor.is_customer:
            raise PermissionDenied("Only customers can create bookings")

        _, profile = await self._get_bookable_chef(db, request.chef_id)

        event_start = datetime.combine(request.event_date, request.event_time)
        if event_start <= self.now():
            raise InvalidRequest("event in past")

        if self.holiday_policy == "block" and self.fees.is_holiday(request.event_date):
            raise InvalidRequest("holiday blocked")

        if await self._slot_taken(db, request.chef_id, request.event_date, request.event_time):
            raise Conflict("This time slot is already booked")

        rate, is_holiday, breakdown = self.price(
            profile, request.event_date, request.party_size, request.duration_hours
        )

        booking = Booking(
            customer_id=actor.id,
            chef_id=request.chef_id,
            event_date=request.event_date,
            event_time=request.event_time,
            duration_hours=request.duration_hours,
            party_size=request.party_size,
            event_address=request.event_address,
            special_requests=request.special_requests,
            dietary_requirements=request.dietary_requirements,
            menu_preferences=request.menu_preferences,
            rate_per_guest=rate,
            is_holiday=is_holiday,
            subtotal=breakdown.subtotal,
            service_fee=breakdown.service_fee,
            processing_fee=breakdown.processing_fee,
            total_amount=breakdown.total,
            currency=self.currency,
            status=PENDING,
        )
        db.add(booking)
        try:
            await db.flush()
        except IntegrityError:
            # Lost the race for the slot to a concurrent request
            await db.rollback()
            raise Conflict("This time slot is already booked")
        except SQLAlchemyError:
            await db.rollback()
            logger.exception("Booking insert failed")
            raise DependencyFailure("Could not save the booking")

        logger.info(
            f"Booking {booking.id} created: chef={booking.chef_id} "
            f"{booking.event_date} {booking.event_time:%H:%M} total={booking.total_amount}"
        )

        await self.notifier.notify_booking_requested(db, booking)
        await db.refresh(booking)
        return booking

    async def get_availability(self, db: AsyncSession, chef_id: UUID, on_date: date) -> list[str]:
        """Candidate slots minus the chef's pending/confirmed bookings that day."""
        await self._get_chef(db, chef_id)

        result = await db.execute(
            select(Booking.event_time).where(
                Booking.chef_id == chef_id,
                Booking.event_date == on_date,
                Booking.status.in_(ACTIVE_STATUSES),
            )
        )
        taken = {t.strftime("%H:%M") for t in result.scalars().all()}
        return [slot.strftime("%H:%M") for slot in self.slots if slot.strftime("%H:%M") not in taken]

    def _assert_party(self, booking: Booking, actor: Actor) -> None:
        if actor.id not in (booking.customer_id, booking.chef_id):
            raise PermissionDenied("Only the booking's customer or chef can act on it")

    async def transition_status(
        self, db: AsyncSession, booking_id: UUID, new_status: str, actor: Actor
    ) -> Booking:
        """Move a booking to a new status on behalf of one of its parties."""
        booking = await self.get_booking(db, booking_id)
        self._assert_party(booking, actor)
        assert_transition_target(new_status)
        assert_booking_transition(booking.status, new_status)

        previous = booking.status
        booking.status = new_status
        setattr(booking, STATUS_TIMESTAMPS[new_status], datetime.now(UTC))
        await db.flush()
        await db.refresh(booking)

        logger.info(f"Booking {booking.id}: {previous} -> {new_status} by {actor.id}")
        if new_status == CONFIRMED:
            await self.notifier.notify_booking_confirmed(db, booking)
        return booking

    async def confirm_payment(self, db: AsyncSession, booking_id: UUID) -> Booking:
        """Mark a booking paid, confirming it if still pending. Idempotent."""
        booking = await self.get_booking(db, booking_id)
        booking.payment_status = "paid"
        if booking.status == PENDING:
            booking.status = CONFIRMED
            booking.confirmed_at = datetime.now(UTC)
            logger.info(f"Booking {booking.id} confirmed by payment")
        elif booking.status != CONFIRMED:
            logger.warning(
                f"Payment received for booking {booking.id} in status {booking.status}; status unchanged"
            )
        await db.flush()
        await db.refresh(booking)
        return booking

    def can_cancel(self, booking: Booking) -> bool:
        return can_cancel_booking(
            booking.status, booking.event_start, self.now(), self.cancellation_hours
        )

    # ==================== QUERIES ====================

    async def list_for_actor(
        self,
        db: AsyncSession,
        actor: Actor,
        status: str | None,
        page: int,
        page_size: int,
    ) -> tuple[list[Booking], int]:
        query = select(Booking).where(
            or_(Booking.customer_id == actor.id, Booking.chef_id == actor.id)
        )
        if status:
            query = query.where(Booking.status == status)

        total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0

        offset = (page - 1) * page_size
        result = await db.execute(
            query.order_by(Booking.event_date.desc(), Booking.event_time.desc())
            .offset(offset)
            .limit(page_size)
        )
        return list(result.scalars().all()), total


booking_service = BookingService.from_settings(settings)
