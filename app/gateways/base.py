"""Base payment gateway interface.

Adapters only talk to the processor. Booking rules live in the services.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


class GatewayType(str, Enum):
    """Supported payment gateways."""

    STRIPE = "stripe"


@dataclass
class PaymentResult:
    """Result of a payment operation."""

    success: bool
    transaction_id: str | None = None
    client_secret: str | None = None
    status: str | None = None
    error_message: str | None = None
    raw_response: dict | None = None


class PaymentGateway(ABC):
    """Abstract base class for payment gateways."""

    @property
    @abstractmethod
    def gateway_type(self) -> GatewayType:
        """Return the gateway type."""

    @abstractmethod
    async def create_payment(
        self,
        amount: int,
        currency: str,
        reference_id: str,
        description: str,
        metadata: dict | None = None,
    ) -> PaymentResult:
        """Create a payment intent.

        Args:
            amount: Amount in smallest currency unit (cents)
            currency: Lower-case ISO currency code (zar)
            reference_id: Internal reference (booking id)
            description: Payment description
            metadata: Additional metadata stored with the intent

        Returns:
            PaymentResult with transaction details
        """

    @abstractmethod
    def verify_webhook(self, payload: bytes, signature: str) -> dict | None:
        """Verify webhook signature and parse payload.

        Returns:
            Parsed event dict if valid, None if invalid
        """
