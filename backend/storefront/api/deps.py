"""
Service providers for endpoint dependencies.

Services are assembled per request from the process-wide clients, so
tests can swap any client through ``app.dependency_overrides``.
"""

from fastapi import Depends

from storefront.core.config import settings
from storefront.core.database import MongoDocumentStore, get_store
from storefront.core.security import TokenService, get_token_service
from storefront.modules.shop import (
    CheckoutService,
    PaymentService,
    ProductService,
    PurchaseIntentStore,
)
from storefront.modules.shop.intents import get_intent_store
from storefront.modules.shop.payment import get_payment_service
from storefront.modules.users import UserService


def get_product_service(
    store: MongoDocumentStore = Depends(get_store),
) -> ProductService:
    return ProductService(store)


def get_user_service(
    store: MongoDocumentStore = Depends(get_store),
    tokens: TokenService = Depends(get_token_service),
) -> UserService:
    return UserService(store, tokens)


def get_checkout_service(
    store: MongoDocumentStore = Depends(get_store),
    payments: PaymentService = Depends(get_payment_service),
    intents: PurchaseIntentStore = Depends(get_intent_store),
) -> CheckoutService:
    return CheckoutService(store, payments, intents, currency=settings.shop_currency)
