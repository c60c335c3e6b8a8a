"""Webhook endpoints for payment gateways."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Header, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db
from app.config import settings
from app.core.exceptions import ExternalServiceError, InvalidRequest
from app.services.payment_service import payment_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/stripe", status_code=status.HTTP_200_OK)
async def stripe_webhook(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    stripe_signature: str | None = Header(None, alias="Stripe-Signature"),
) -> dict:
    """Handle Stripe webhook events."""
    if not settings.stripe_webhook_secret:
        raise ExternalServiceError("stripe", "webhook secret is not configured")
    if not stripe_signature:
        raise InvalidRequest("Missing Stripe-Signature header")

    # Raw body is required for signature verification
    payload = await request.body()
    event = payment_service.verify_webhook(payload, stripe_signature)
    if event is None:
        raise InvalidRequest("Invalid signature")

    logger.info(f"Stripe event {event.get('id')} ({event['type']})")
    await payment_service.handle_event(db, event)
    return {"received": True}
