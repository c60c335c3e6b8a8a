"""Payment-related Pydantic schemas."""

from uuid import UUID

from pydantic import BaseModel


class PaymentIntentCreate(BaseModel):
    """Schema for starting payment of a booking."""

    booking_id: UUID


class PaymentIntentResponse(BaseModel):
    """Client secret the frontend hands to Stripe.js."""

    payment_id: UUID
    client_secret: str | None
    payment_intent_id: str
    amount: int  # cents
    currency: str
