"""Payment orchestration.

Creates Stripe PaymentIntents for pending bookings and applies webhook
events. A succeeded intent confirms its booking through the booking
service; the fee amounts on the booking are never recomputed here.
"""

import logging
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import InvalidRequest, PaymentError, PermissionDenied
from app.domain.actor import Actor
from app.domain.booking_state import PENDING
from app.domain.payment_state import can_transition_payment
from app.gateways.base import PaymentGateway
from app.gateways.stripe_gateway import StripeGateway
from app.models.booking import Booking
from app.models.payment import Payment
from app.services.booking_service import BookingService, booking_service
from app.services.notification_service import notification_service

logger = logging.getLogger(__name__)


def to_minor_units(amount: Decimal) -> int:
    """Rand amount to cents, rounded half-up."""
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class PaymentService:
    """Service for booking payments."""

    def __init__(self, gateway: PaymentGateway, bookings: BookingService) -> None:
        self.gateway = gateway
        self.bookings = bookings

    async def create_intent(self, db: AsyncSession, booking_id: UUID, actor: Actor) -> dict:
        """Create a payment intent for the booking's total.

        Args:
            db: Database session
            booking_id: Booking to pay for
            actor: Caller; must be the booking's customer

        Returns:
            dict: client_secret, payment_intent_id, amount (cents) and currency
        """
        booking = await self.bookings.get_booking(db, booking_id)
        if actor.id != booking.customer_id:
            raise PermissionDenied("Only the booking's customer can pay for it")
        if booking.status != PENDING or booking.payment_status == "paid":
            raise InvalidRequest("Only unpaid pending bookings can be paid")

        amount = to_minor_units(booking.total_amount)
        result = await self.gateway.create_payment(
            amount=amount,
            currency=booking.currency,
            reference_id=str(booking.id),
            description=f"Private chef booking on {booking.event_date.isoformat()}",
            metadata={
                "customer_id": str(booking.customer_id),
                "chef_id": str(booking.chef_id),
                "subtotal": str(booking.subtotal),
                "service_fee": str(booking.service_fee),
                "processing_fee": str(booking.processing_fee),
            },
        )
        if not result.success:
            raise PaymentError(result.error_message or "Payment processing failed")

        payment = Payment(
            booking_id=booking.id,
            user_id=actor.id,
            amount=amount,
            currency=booking.currency,
            gateway=self.gateway.gateway_type.value,
            gateway_transaction_id=result.transaction_id,
            gateway_response=result.raw_response,
            status="pending",
        )
        db.add(payment)
        await db.flush()

        logger.info(f"Payment intent {result.transaction_id} created for booking {booking.id}")
        return {
            "payment_id": payment.id,
            "client_secret": result.client_secret,
            "payment_intent_id": result.transaction_id,
            "amount": amount,
            "currency": booking.currency,
        }

    def verify_webhook(self, payload: bytes, signature: str) -> dict | None:
        return self.gateway.verify_webhook(payload, signature)

    async def handle_event(self, db: AsyncSession, event: dict) -> None:
        """Apply a verified gateway event."""
        event_type = event["type"]
        data = event["data"]["object"]

        if event_type == "payment_intent.succeeded":
            await self._handle_payment_succeeded(db, data)
        elif event_type == "payment_intent.payment_failed":
            await self._handle_payment_failed(db, data)
        else:
            logger.debug(f"Ignoring webhook event {event_type}")

    async def _find_payment(self, db: AsyncSession, payment_intent_id: str) -> Payment | None:
        result = await db.execute(
            select(Payment).where(Payment.gateway_transaction_id == payment_intent_id)
        )
        return result.scalar_one_or_none()

    async def _handle_payment_succeeded(self, db: AsyncSession, data: dict) -> None:
        payment = await self._find_payment(db, data["id"])
        if payment is None:
            logger.warning(f"No payment recorded for intent {data['id']}")
            return
        if not can_transition_payment(payment.status, "completed"):
            return  # Already completed

        payment.status = "completed"
        payment.completed_at = datetime.now(UTC)
        payment.gateway_response = {"id": data["id"], "status": data.get("status")}

        booking = await self.bookings.confirm_payment(db, payment.booking_id)
        await notification_service.notify_payment_received(db, booking)

    async def _handle_payment_failed(self, db: AsyncSession, data: dict) -> None:
        payment = await self._find_payment(db, data["id"])
        if payment is None or not can_transition_payment(payment.status, "failed"):
            return

        payment.status = "failed"
        error = data.get("last_payment_error") or {}
        payment.gateway_response = {"id": data["id"], "error": error.get("message")}
        result = await db.execute(select(Booking).where(Booking.id == payment.booking_id))
        booking = result.scalar_one_or_none()
        if booking and booking.payment_status != "paid":
            booking.payment_status = "failed"
        await db.flush()


payment_service = PaymentService(StripeGateway(), booking_service)
