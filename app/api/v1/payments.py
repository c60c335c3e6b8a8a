"""Payment endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_actor, get_db
from app.domain.actor import Actor
from app.schemas.payment import PaymentIntentCreate, PaymentIntentResponse
from app.services.payment_service import payment_service

router = APIRouter()


@router.post("/intent", response_model=PaymentIntentResponse, status_code=status.HTTP_201_CREATED)
async def create_payment_intent(
    payment_data: PaymentIntentCreate,
    actor: Annotated[Actor, Depends(get_actor)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> PaymentIntentResponse:
    """Start card payment for a pending booking."""
    intent = await payment_service.create_intent(db, payment_data.booking_id, actor)
    return PaymentIntentResponse(**intent)
