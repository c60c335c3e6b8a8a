"""Notification Service for in-app notifications and email.

Handles:
- In-app notifications (database)
- Email (SendGrid)
- Booking side-channel: chat thread + system message for a new request

Every public notify_* method is best-effort: failures are logged and never
propagate to the caller.
"""

import logging
from typing import Any
from uuid import UUID

import httpx
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.booking import Booking
from app.models.message import Notification
from app.models.user import User
from app.services.chat_service import chat_service

logger = logging.getLogger(__name__)


class NotificationService:
    """Service for sending notifications."""

    # Notification types
    BOOKING_REQUEST = "booking_request"
    BOOKING_CONFIRMED = "booking_confirmed"
    PAYMENT_RECEIVED = "payment_received"
    MESSAGE_RECEIVED = "message_received"
    REVIEW_RECEIVED = "review_received"

    def __init__(self) -> None:
        self._http_client: httpx.AsyncClient | None = None

    @property
    def http_client(self) -> httpx.AsyncClient:
        """Lazy-load HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=30.0)
        return self._http_client

    async def close(self) -> None:
        if self._http_client:
            await self._http_client.aclose()

    # ==================== IN-APP NOTIFICATIONS ====================

    async def create_notification(
        self,
        db: AsyncSession,
        user_id: UUID,
        title: str,
        body: str,
        notification_type: str,
        booking_id: UUID | None = None,
    ) -> Notification:
        notification = Notification(
            user_id=user_id,
            title=title,
            body=body,
            notification_type=notification_type,
            booking_id=booking_id,
        )
        db.add(notification)
        await db.flush()
        return notification

    # ==================== EMAIL (SENDGRID) ====================

    async def send_email(self, to_email: str, subject: str, text_content: str) -> bool:
        """Send a plain-text email via SendGrid.

        Args:
            to_email: Recipient email address
            subject: Email subject
            text_content: Plain text body

        Returns:
            bool: True if SendGrid accepted the message
        """
        if not settings.sendgrid_api_key:
            return False

        payload: dict[str, Any] = {
            "personalizations": [{"to": [{"email": to_email}]}],
            "from": {
                "email": settings.email_from_address,
                "name": settings.email_from_name,
            },
            "subject": subject,
            "content": [{"type": "text/plain", "value": text_content}],
        }
        try:
            response = await self.http_client.post(
                "https://api.sendgrid.com/v3/mail/send",
                headers={"Authorization": f"Bearer {settings.sendgrid_api_key}"},
                json=payload,
            )
        except httpx.HTTPError as e:
            logger.warning(f"SendGrid request failed for {to_email}: {e}")
            return False
        return response.status_code in (200, 202)

    # ==================== HIGH-LEVEL NOTIFICATION METHODS ====================

    async def notify_user(
        self,
        db: AsyncSession,
        user_id: UUID,
        title: str,
        body: str,
        notification_type: str,
        booking_id: UUID | None = None,
        send_email: bool = True,
    ) -> None:
        """Create an in-app notification and optionally email the user."""
        result = await db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()
        if not user:
            return

        notification = await self.create_notification(
            db=db,
            user_id=user_id,
            title=title,
            body=body,
            notification_type=notification_type,
            booking_id=booking_id,
        )
        if send_email and user.email:
            notification.email_sent = await self.send_email(user.email, title, body)

    async def notify_booking_requested(self, db: AsyncSession, booking: Booking) -> None:
        """Open the booking's chat thread and tell the chef about the request.

        Runs inside a savepoint so a failure leaves the booking insert intact.
        """
        when = f"{booking.event_date.isoformat()} at {booking.event_time.strftime('%H:%M')}"
        try:
            async with db.begin_nested():
                conversation = await chat_service.get_or_create_conversation(
                    db,
                    customer_id=booking.customer_id,
                    chef_id=booking.chef_id,
                    booking_id=booking.id,
                )
                await chat_service.post_message(
                    db,
                    conversation,
                    sender_id=booking.customer_id,
                    content=(
                        f"New booking request for {when}, {booking.party_size} guests. "
                        f"Total R{booking.total_amount}"
                    ),
                    message_type="booking_request",
                )
                await self.notify_user(
                    db,
                    user_id=booking.chef_id,
                    title="New booking request",
                    body=f"You have a new booking request for {when}.",
                    notification_type=self.BOOKING_REQUEST,
                    booking_id=booking.id,
                )
        except Exception:
            logger.exception(f"Booking request notification failed for booking {booking.id}")

    async def notify_payment_received(self, db: AsyncSession, booking: Booking) -> None:
        try:
            async with db.begin_nested():
                for user_id in (booking.customer_id, booking.chef_id):
                    await self.notify_user(
                        db,
                        user_id=user_id,
                        title="Booking confirmed",
                        body=f"Payment received. Booking for {booking.event_date.isoformat()} is confirmed.",
                        notification_type=self.PAYMENT_RECEIVED,
                        booking_id=booking.id,
                    )
        except Exception:
            logger.exception(f"Payment notification failed for booking {booking.id}")

    async def notify_booking_confirmed(self, db: AsyncSession, booking: Booking) -> None:
        try:
            async with db.begin_nested():
                await self.notify_user(
                    db,
                    user_id=booking.customer_id,
                    title="Booking confirmed",
                    body=f"Your chef confirmed the booking for {booking.event_date.isoformat()}.",
                    notification_type=self.BOOKING_CONFIRMED,
                    booking_id=booking.id,
                )
        except Exception:
            logger.exception(f"Confirmation notification failed for booking {booking.id}")

    async def notify_review_received(self, db: AsyncSession, chef_id: UUID, rating: int) -> None:
        try:
            async with db.begin_nested():
                await self.notify_user(
                    db,
                    user_id=chef_id,
                    title="New review",
                    body=f"A customer left you a {rating}-star review.",
                    notification_type=self.REVIEW_RECEIVED,
                )
        except Exception:
            logger.exception(f"Review notification failed for chef {chef_id}")

    async def notify_message_received(self, db: AsyncSession, recipient_id: UUID) -> None:
        """In-app only; chat traffic is too frequent for email."""
        try:
            async with db.begin_nested():
                await self.notify_user(
                    db,
                    user_id=recipient_id,
                    title="New message",
                    body="You have a new message.",
                    notification_type=self.MESSAGE_RECEIVED,
                    send_email=False,
                )
        except Exception:
            logger.exception(f"Message notification failed for user {recipient_id}")


notification_service = NotificationService()
