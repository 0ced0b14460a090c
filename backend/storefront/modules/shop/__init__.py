"""
Shop Module - catalog and checkout.

Features:
- Product catalog CRUD
- Two-phase checkout with Stripe payment intents
- Payment intent bindings in Redis
"""

from storefront.modules.shop.checkout import CheckoutService
from storefront.modules.shop.intents import PurchaseIntentStore
from storefront.modules.shop.payment import PaymentService
from storefront.modules.shop.service import ProductService

__all__ = [
    "CheckoutService",
    "PaymentService",
    "ProductService",
    "PurchaseIntentStore",
]
