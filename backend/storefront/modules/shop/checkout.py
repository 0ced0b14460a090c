"""
Checkout Service - two-phase single-product purchase.

Phase one checks stock and opens a payment intent; phase two, after the
client has paid, verifies the intent with the provider and takes the
units out of stock. No database transaction spans the two phases.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from loguru import logger

from storefront.core.database import Collection, MongoDocumentStore
from storefront.core.exceptions import (
    InsufficientStock,
    InvalidArgument,
    NotFound,
    PaymentNotCompleted,
    StoreError,
    UpdateConflict,
)
from storefront.models.shop import PurchaseIntentRecord
from storefront.modules.shop.intents import PurchaseIntentStore
from storefront.modules.shop.payment import PaymentIntent, PaymentService


def to_minor_units(price: Any, quantity: int) -> int:
    """Total for quantity units of price, in cents, rounded half up."""
    total = Decimal(str(price)) * quantity * 100
    return int(total.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class CheckoutService:
    """
    Orchestrates stock checks, payment intents and stock reconciliation.

    Usage:
        checkout = CheckoutService(store, payments, intents, currency="usd")
        intent = await checkout.initiate_purchase(product_id, quantity=2)
        product = await checkout.confirm_purchase(product_id, intent.id)
    """

    def __init__(
        self,
        store: MongoDocumentStore,
        payments: PaymentService,
        intents: PurchaseIntentStore,
        currency: str = "usd",
    ) -> None:
        self.store = store
        self.payments = payments
        self.intents = intents
        self.currency = currency

    async def _load_product(self, product_id: str) -> dict[str, Any]:
        try:
            return await self.store.find_by_id(Collection.PRODUCTS, product_id)
        except NotFound:
            raise NotFound("Product not found") from None

    async def initiate_purchase(self, product_id: str, quantity: int) -> PaymentIntent:
        """
        Check stock and open a payment intent for quantity units.

        Stock is not reserved here; it is only taken on confirmation.

        Returns:
            Payment intent carrying the client secret

        Raises:
            NotFound: product does not exist
            InsufficientStock: fewer than quantity units in stock
            GatewayUnavailable: payment provider call failed
        """
        if quantity <= 0:
            raise InvalidArgument("Quantity must be a positive integer")

        product = await self._load_product(product_id)

        if product.get("stock", 0) < quantity:
            logger.info(
                f"Purchase of {quantity} x {product_id} rejected: "
                f"only {product.get('stock', 0)} in stock"
            )
            raise InsufficientStock()

        amount = to_minor_units(product["price"], quantity)
        intent = await self.payments.create_intent(
            amount,
            self.currency,
            metadata={"product_id": product_id, "quantity": str(quantity)},
        )

        await self.intents.save(
            PurchaseIntentRecord(
                intent_id=intent.id,
                product_id=product_id,
                quantity=quantity,
                amount=amount,
                currency=self.currency,
            )
        )

        logger.info(
            f"Purchase initiated: intent {intent.id} for {quantity} x {product_id} "
            f"({amount} {self.currency})"
        )
        return intent

    async def confirm_purchase(
        self,
        product_id: str,
        payment_intent_id: str,
        quantity: int | None = None,
    ) -> dict[str, Any]:
        """
        Verify payment and take the purchased units out of stock.

        The quantity bound to the intent at initiation is authoritative;
        a client-supplied quantity must match it.

        Returns:
            Product document after the stock update

        Raises:
            InvalidArgument: intent unknown, expired or bound to another purchase
            NotFound: product does not exist
            PaymentNotCompleted: intent has not succeeded
            UpdateConflict: intent already confirmed, or the write did not apply
            InsufficientStock: stock fell below quantity after initiation
        """
        await self._load_product(product_id)

        record = await self.intents.get(payment_intent_id)
        if record is None:
            raise InvalidArgument("Unknown or expired payment intent")
        if record.product_id != product_id:
            raise InvalidArgument("Payment intent does not belong to this product")
        if quantity is not None and quantity != record.quantity:
            raise InvalidArgument("Quantity does not match the purchase")

        intent = await self.payments.retrieve_intent(payment_intent_id)
        if intent.amount is not None and intent.amount != record.amount:
            raise InvalidArgument("Payment amount does not match the purchase")

        if not intent.succeeded:
            logger.info(f"Payment {payment_intent_id} not completed: {intent.status}")
            raise PaymentNotCompleted()

        if not await self.intents.claim(payment_intent_id):
            raise UpdateConflict("Payment already confirmed")

        try:
            updated = await self.store.decrement_stock(product_id, record.quantity)
        except StoreError:
            # paid but not reconciled; keep the binding so a retry can finish
            logger.error(
                f"Stock update failed for paid intent {payment_intent_id}; "
                "restoring its binding"
            )
            await self.intents.save(record)
            raise

        if updated is None:
            logger.error(
                f"Payment {payment_intent_id} succeeded but stock for "
                f"{product_id} could not be decremented by {record.quantity}"
            )
            product = await self._load_product(product_id)
            if product.get("stock", 0) < record.quantity:
                raise InsufficientStock()
            raise UpdateConflict()

        logger.info(
            f"Purchase confirmed: intent {payment_intent_id}, "
            f"{product_id} stock now {updated['stock']}"
        )
        return updated
