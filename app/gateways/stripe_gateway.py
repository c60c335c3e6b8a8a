"""Stripe payment gateway adapter."""

import json
import logging

import stripe

from app.config import settings
from app.gateways.base import GatewayType, PaymentGateway, PaymentResult

logger = logging.getLogger(__name__)


class StripeGateway(PaymentGateway):
    """Stripe PaymentIntents implementation."""

    def __init__(self, secret_key: str | None = None, webhook_secret: str | None = None):
        self.secret_key = secret_key or settings.stripe_secret_key
        self.webhook_secret = webhook_secret or settings.stripe_webhook_secret

    @property
    def gateway_type(self) -> GatewayType:
        return GatewayType.STRIPE

    async def create_payment(
        self,
        amount: int,
        currency: str,
        reference_id: str,
        description: str,
        metadata: dict | None = None,
    ) -> PaymentResult:
        """Create Stripe PaymentIntent."""
        if not self.secret_key:
            return PaymentResult(success=False, error_message="Stripe not configured")

        try:
            intent = stripe.PaymentIntent.create(
                api_key=self.secret_key,
                amount=amount,
                currency=currency.lower(),
                description=description,
                metadata={"booking_id": reference_id, **(metadata or {})},
            )
        except stripe.StripeError as e:
            logger.warning(f"Stripe PaymentIntent.create failed for {reference_id}: {e}")
            return PaymentResult(success=False, error_message=str(e))

        return PaymentResult(
            success=True,
            transaction_id=intent.id,
            client_secret=intent.client_secret,
            status=intent.status,
            raw_response={"id": intent.id, "status": intent.status},
        )

    def verify_webhook(self, payload: bytes, signature: str) -> dict | None:
        """Verify Stripe webhook signature and return the event as a plain dict."""
        if not self.webhook_secret:
            return None

        try:
            stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except (ValueError, stripe.SignatureVerificationError) as e:
            logger.warning(f"Stripe webhook rejected: {e}")
            return None
        return json.loads(payload)
