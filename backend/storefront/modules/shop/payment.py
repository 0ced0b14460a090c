"""
Payment Service - Stripe integration.

Handles:
- Payment intent creation
- Payment intent status lookups
"""

import asyncio
from dataclasses import dataclass
from typing import Any

import stripe
from loguru import logger

from storefront.core.config import settings
from storefront.core.exceptions import GatewayUnavailable

SUCCEEDED = "succeeded"


@dataclass
class PaymentIntent:
    """Provider-side payment intent as seen by the checkout flow."""

    id: str
    status: str
    client_secret: str | None = None
    amount: int | None = None
    currency: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == SUCCEEDED

    @classmethod
    def from_stripe(cls, intent: Any) -> "PaymentIntent":
        return cls(
            id=intent.id,
            status=intent.status,
            client_secret=intent.client_secret,
            amount=intent.amount,
            currency=intent.currency,
        )


class PaymentService:
    """
    Stripe payment service.

    Stripe calls are blocking, so they run in a worker thread to keep
    the event loop free. Provider errors are never retried.

    Usage:
        payment = PaymentService()
        intent = await payment.create_intent(2000, "usd")
    """

    def __init__(self, api_key: str | None = None) -> None:
        """Initialize Stripe with API key."""
        stripe.api_key = api_key or settings.stripe_secret_key

    async def create_intent(
        self,
        amount: int,
        currency: str,
        metadata: dict[str, Any] | None = None,
    ) -> PaymentIntent:
        """
        Create Stripe payment intent.

        Args:
            amount: Amount in minor units (cents)
            currency: Currency code
            metadata: Additional data to attach

        Returns:
            Payment intent including client_secret
        """
        try:
            intent = await asyncio.to_thread(
                stripe.PaymentIntent.create,
                amount=amount,
                currency=currency.lower(),
                payment_method_types=["card"],
                metadata=metadata or {},
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe error creating payment intent: {e}")
            raise GatewayUnavailable("Failed to create payment intent") from e

        return PaymentIntent.from_stripe(intent)

    async def retrieve_intent(self, intent_id: str) -> PaymentIntent:
        """Get payment intent with its current status."""
        try:
            intent = await asyncio.to_thread(stripe.PaymentIntent.retrieve, intent_id)
        except stripe.StripeError as e:
            logger.error(f"Stripe error retrieving payment {intent_id}: {e}")
            raise GatewayUnavailable("Failed to retrieve payment intent") from e

        return PaymentIntent.from_stripe(intent)


_payment_service: PaymentService | None = None


def get_payment_service() -> PaymentService:
    """Get or create payment service singleton."""
    global _payment_service
    if _payment_service is None:
        _payment_service = PaymentService()
    return _payment_service
