from datetime import date, datetime, time
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from app.core.exceptions import Conflict, InvalidRequest, NotFoundError, PermissionDenied
from app.domain.actor import Actor
from app.models.booking import Booking
from app.models.message import Conversation, Message, Notification
from app.schemas.booking import BookingCreate
from app.services.booking_service import BookingService
from app.services.chat_service import chat_service
from app.services.fee_service import FeeCalculator, FeeConfig
from app.services.notification_service import NotificationService

EVENT_DATE = date(2025, 6, 1)
CHRISTMAS = date(2025, 12, 25)


def make_service(now: datetime, holiday_policy: str = "premium") -> BookingService:
    return BookingService(
        fee_calculator=FeeCalculator(FeeConfig(public_holidays=frozenset({CHRISTMAS}))),
        holiday_policy=holiday_policy,
        clock=lambda: now,
        notifier=NotificationService(),
    )


def request_for(chef, event_date=EVENT_DATE, event_time="14:00", party_size=4, duration_hours=1) -> BookingCreate:
    return BookingCreate(
        chef_id=chef.id,
        event_date=event_date,
        event_time=event_time,
        party_size=party_size,
        duration_hours=duration_hours,
        event_address="12 Long Street, Cape Town",
    )


def actor(user) -> Actor:
    return Actor(id=user.id, role=user.role)


async def test_create_prices_and_stores_pending_booking(db_session, make_customer, make_chef, frozen_now):
    customer = await make_customer()
    chef = await make_chef(base_rate=Decimal("500.00"))
    service = make_service(frozen_now)

    booking = await service.create(db_session, request_for(chef), actor(customer))

    assert booking.status == "pending"
    assert booking.payment_status == "unpaid"
    assert booking.event_time == time(14, 0)
    assert booking.rate_per_guest == Decimal("500.00")
    assert booking.subtotal == Decimal("2000.00")
    assert booking.service_fee == Decimal("100.00")
    assert booking.processing_fee == Decimal("60.00")
    assert booking.total_amount == Decimal("2160.00")
    assert booking.is_holiday is False
    assert booking.created_at is not None


async def test_create_opens_chat_thread_and_notifies_chef(db_session, make_customer, make_chef, frozen_now):
    customer = await make_customer()
    chef = await make_chef()

    booking = await make_service(frozen_now).create(db_session, request_for(chef), actor(customer))

    conversation = (await db_session.execute(
        select(Conversation).where(Conversation.booking_id == booking.id)
    )).scalar_one()
    assert conversation.chef_id == chef.id
    messages = (await db_session.execute(
        select(Message).where(Message.conversation_id == conversation.id)
    )).scalars().all()
    assert [m.message_type for m in messages] == ["booking_request"]
    notification = (await db_session.execute(
        select(Notification).where(Notification.user_id == chef.id)
    )).scalar_one()
    assert notification.notification_type == "booking_request"


async def test_notification_failure_does_not_fail_create(
    db_session, make_customer, make_chef, frozen_now, monkeypatch
):
    async def broken(*args, **kwargs):
        raise RuntimeError("chat store down")

    monkeypatch.setattr(chat_service, "get_or_create_conversation", broken)
    customer = await make_customer()
    chef = await make_chef()

    booking = await make_service(frozen_now).create(db_session, request_for(chef), actor(customer))
    await db_session.commit()

    stored = (await db_session.execute(select(Booking).where(Booking.id == booking.id))).scalar_one()
    assert stored.status == "pending"
    assert (await db_session.execute(select(Conversation))).scalars().all() == []


async def test_create_prices_each_hour_of_the_event(db_session, make_customer, make_chef, frozen_now):
    customer = await make_customer()
    chef = await make_chef(base_rate=Decimal("500.00"))

    booking = await make_service(frozen_now).create(
        db_session, request_for(chef, duration_hours=6), actor(customer)
    )

    assert booking.duration_hours == 6
    assert booking.subtotal == Decimal("12000.00")
    assert booking.service_fee == Decimal("600.00")
    assert booking.processing_fee == Decimal("360.00")
    assert booking.total_amount == Decimal("12960.00")


async def test_create_on_holiday_applies_chef_multiplier(db_session, make_customer, make_chef):
    customer = await make_customer()
    chef = await make_chef(base_rate=Decimal("500.00"), holiday_rate_multiplier=Decimal("1.50"))
    service = make_service(datetime(2025, 12, 1, 9, 0))

    booking = await service.create(db_session, request_for(chef, event_date=CHRISTMAS), actor(customer))

    assert booking.is_holiday is True
    assert booking.rate_per_guest == Decimal("750.00")
    assert booking.subtotal == Decimal("3000.00")
    assert booking.total_amount == Decimal("3240.00")


async def test_block_policy_rejects_holiday(db_session, make_customer, make_chef):
    customer = await make_customer()
    chef = await make_chef()
    service = make_service(datetime(2025, 12, 1, 9, 0), holiday_policy="block")

    with pytest.raises(InvalidRequest, match="holiday blocked"):
        await service.create(db_session, request_for(chef, event_date=CHRISTMAS), actor(customer))


async def test_chef_cannot_create_booking(db_session, make_chef, frozen_now):
    chef = await make_chef()
    other_chef = await make_chef()

    with pytest.raises(PermissionDenied):
        await make_service(frozen_now).create(db_session, request_for(other_chef), actor(chef))


async def test_unknown_or_unverified_chef_is_not_found(db_session, make_customer, make_chef, frozen_now):
    customer = await make_customer()
    unverified = await make_chef(is_verified=False)
    service = make_service(frozen_now)

    with pytest.raises(NotFoundError):
        await service.create(db_session, request_for(customer), actor(customer))
    with pytest.raises(NotFoundError):
        await service.create(db_session, request_for(unverified), actor(customer))


async def test_event_in_past_is_rejected(db_session, make_customer, make_chef):
    customer = await make_customer()
    chef = await make_chef()
    service = make_service(datetime(2025, 6, 1, 14, 0))

    with pytest.raises(InvalidRequest, match="event in past"):
        await service.create(db_session, request_for(chef), actor(customer))


async def test_validation_order_role_before_chef_lookup(db_session, make_chef, frozen_now):
    chef = await make_chef()
    # A chef booking an unknown chef in the past still gets PermissionDenied
    request = request_for(chef, event_date=date(2020, 1, 1))
    request.chef_id = uuid4()

    with pytest.raises(PermissionDenied):
        await make_service(frozen_now).create(db_session, request, actor(chef))


async def test_taken_slot_conflicts(db_session, make_customer, make_chef, make_booking, frozen_now):
    customer = await make_customer()
    chef = await make_chef()
    await make_booking(customer, chef, event_date=EVENT_DATE, event_time=time(14, 0), status="confirmed")

    with pytest.raises(Conflict):
        await make_service(frozen_now).create(db_session, request_for(chef), actor(customer))


async def test_cancelled_booking_frees_the_slot(db_session, make_customer, make_chef, make_booking, frozen_now):
    customer = await make_customer()
    chef = await make_chef()
    await make_booking(customer, chef, event_date=EVENT_DATE, event_time=time(14, 0), status="cancelled")

    booking = await make_service(frozen_now).create(db_session, request_for(chef), actor(customer))
    assert booking.status == "pending"


async def test_database_rejects_second_active_booking_for_slot(db_session, make_customer, make_chef, make_booking):
    customer = await make_customer()
    chef = await make_chef()
    await make_booking(customer, chef, event_date=EVENT_DATE, event_time=time(14, 0))

    with pytest.raises(IntegrityError):
        await make_booking(customer, chef, event_date=EVENT_DATE, event_time=time(14, 0))


async def test_lost_slot_race_is_conflict(db_session, make_customer, make_chef, make_booking, frozen_now, monkeypatch):
    customer = await make_customer()
    chef = await make_chef()
    await make_booking(customer, chef, event_date=EVENT_DATE, event_time=time(14, 0))
    service = make_service(frozen_now)

    async def slot_free(*args, **kwargs):
        return False

    # Pre-insert check passes; the partial unique index still rejects the row
    monkeypatch.setattr(service, "_slot_taken", slot_free)

    with pytest.raises(Conflict):
        await service.create(db_session, request_for(chef), actor(customer))


async def test_availability_excludes_active_bookings(db_session, make_customer, make_chef, make_booking, frozen_now):
    customer = await make_customer()
    chef = await make_chef()
    await make_booking(customer, chef, event_date=EVENT_DATE, event_time=time(14, 0), status="confirmed")
    await make_booking(customer, chef, event_date=EVENT_DATE, event_time=time(18, 0), status="declined")
    service = make_service(frozen_now)

    first = await service.get_availability(db_session, chef.id, EVENT_DATE)
    second = await service.get_availability(db_session, chef.id, EVENT_DATE)

    assert first == ["10:00", "12:00", "16:00", "18:00", "20:00", "22:00"]
    assert second == first


async def test_availability_for_unknown_chef(db_session, frozen_now):
    with pytest.raises(NotFoundError):
        await make_service(frozen_now).get_availability(db_session, uuid4(), EVENT_DATE)


async def test_chef_confirms_then_completes(db_session, make_customer, make_chef, make_booking, frozen_now):
    customer = await make_customer()
    chef = await make_chef()
    booking = await make_booking(customer, chef)
    service = make_service(frozen_now)

    confirmed = await service.transition_status(db_session, booking.id, "confirmed", actor(chef))
    assert confirmed.status == "confirmed"
    assert confirmed.confirmed_at is not None

    completed = await service.transition_status(db_session, booking.id, "completed", actor(chef))
    assert completed.status == "completed"
    assert completed.completed_at is not None
    # Amounts are never recomputed
    assert completed.total_amount == Decimal("2160.00")


async def test_customer_can_cancel(db_session, make_customer, make_chef, make_booking, frozen_now):
    customer = await make_customer()
    chef = await make_chef()
    booking = await make_booking(customer, chef)

    cancelled = await make_service(frozen_now).transition_status(
        db_session, booking.id, "cancelled", actor(customer)
    )
    assert cancelled.status == "cancelled"
    assert cancelled.cancelled_at is not None


@pytest.mark.parametrize("target", ["pending", "confirmed", "declined", "completed", "cancelled"])
async def test_third_party_cannot_transition(
    db_session, make_customer, make_chef, make_booking, frozen_now, target
):
    customer = await make_customer()
    stranger = await make_customer()
    chef = await make_chef()
    booking = await make_booking(customer, chef)

    with pytest.raises(PermissionDenied):
        await make_service(frozen_now).transition_status(
            db_session, booking.id, target, actor(stranger)
        )


async def test_transition_to_pending_is_rejected(db_session, make_customer, make_chef, make_booking, frozen_now):
    customer = await make_customer()
    chef = await make_chef()
    booking = await make_booking(customer, chef, status="confirmed")

    with pytest.raises(InvalidRequest):
        await make_service(frozen_now).transition_status(db_session, booking.id, "pending", actor(chef))


@pytest.mark.parametrize("terminal", ["declined", "completed", "cancelled"])
async def test_terminal_bookings_cannot_move(
    db_session, make_customer, make_chef, make_booking, frozen_now, terminal
):
    customer = await make_customer()
    chef = await make_chef()
    booking = await make_booking(customer, chef, status=terminal)

    with pytest.raises(InvalidRequest):
        await make_service(frozen_now).transition_status(db_session, booking.id, "confirmed", actor(chef))


async def test_transition_missing_booking(db_session, make_chef, frozen_now):
    chef = await make_chef()
    with pytest.raises(NotFoundError):
        await make_service(frozen_now).transition_status(db_session, uuid4(), "confirmed", actor(chef))


async def test_confirm_payment_is_idempotent(db_session, make_customer, make_chef, make_booking, frozen_now):
    customer = await make_customer()
    chef = await make_chef()
    booking = await make_booking(customer, chef)
    service = make_service(frozen_now)

    first = await service.confirm_payment(db_session, booking.id)
    confirmed_at = first.confirmed_at
    second = await service.confirm_payment(db_session, booking.id)

    assert second.status == "confirmed"
    assert second.payment_status == "paid"
    assert second.confirmed_at == confirmed_at


async def test_can_cancel_uses_service_clock(db_session, make_customer, make_chef, make_booking):
    customer = await make_customer()
    chef = await make_chef()
    booking = await make_booking(customer, chef, event_date=EVENT_DATE, event_time=time(14, 0))

    assert make_service(datetime(2025, 5, 30, 14, 0)).can_cancel(booking)
    assert not make_service(datetime(2025, 5, 31, 15, 0)).can_cancel(booking)


async def test_list_for_actor_returns_both_sides(db_session, make_customer, make_chef, make_booking, frozen_now):
    customer = await make_customer()
    other_customer = await make_customer()
    chef = await make_chef()
    await make_booking(customer, chef, event_time=time(10, 0))
    await make_booking(other_customer, chef, event_time=time(12, 0), status="confirmed")
    service = make_service(frozen_now)

    chef_bookings, chef_total = await service.list_for_actor(db_session, actor(chef), None, 1, 20)
    customer_bookings, customer_total = await service.list_for_actor(db_session, actor(customer), None, 1, 20)
    confirmed, confirmed_total = await service.list_for_actor(db_session, actor(chef), "confirmed", 1, 20)

    assert chef_total == 2 and len(chef_bookings) == 2
    assert customer_total == 1 and customer_bookings[0].customer_id == customer.id
    assert confirmed_total == 1 and confirmed[0].status == "confirmed"


async def test_quote_does_not_write(db_session, make_chef, frozen_now):
    chef = await make_chef(base_rate=Decimal("450.00"))

    quote = await make_service(frozen_now).quote(db_session, chef.id, EVENT_DATE, 3)

    assert quote["subtotal"] == Decimal("1350.00")
    assert quote["total"] == Decimal("1458.00")
    assert (await db_session.execute(select(Booking))).scalars().all() == []
