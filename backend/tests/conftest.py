import copy
from typing import Any

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from storefront.core.database import Collection, get_store, parse_object_id
from storefront.core.exceptions import GatewayUnavailable, NotFound
from storefront.core.security import TokenService, get_token_service
from storefront.main import app
from storefront.models.shop import stock_status
from storefront.modules.shop.checkout import CheckoutService
from storefront.modules.shop.intents import PurchaseIntentStore, get_intent_store
from storefront.modules.shop.payment import PaymentIntent, get_payment_service

# ----------------------------
# Fakes
# ----------------------------


class InMemoryDocumentStore:
    """Dict-backed stand-in for MongoDocumentStore."""

    def __init__(self) -> None:
        self.collections: dict[Collection, dict[str, dict[str, Any]]] = {
            Collection.USERS: {},
            Collection.PRODUCTS: {},
        }
        self.decrements: list[tuple[str, int]] = []

    def _docs(self, collection: Collection) -> dict[str, dict[str, Any]]:
        return self.collections[collection]

    async def find_by_id(self, collection, doc_id):
        oid = str(parse_object_id(doc_id))
        doc = self._docs(collection).get(oid)
        if doc is None:
            raise NotFound()
        return copy.deepcopy(doc)

    async def find_one(self, collection, filter):
        for doc in self._docs(collection).values():
            if all(doc.get(k) == v for k, v in filter.items()):
                return copy.deepcopy(doc)
        return None

    async def find_all(self, collection, filter=None):
        filter = filter or {}
        return [
            copy.deepcopy(doc)
            for doc in self._docs(collection).values()
            if all(doc.get(k) == v for k, v in filter.items())
        ]

    async def insert(self, collection, doc):
        doc = copy.deepcopy(doc)
        doc["_id"] = str(ObjectId())
        self._docs(collection)[doc["_id"]] = doc
        return copy.deepcopy(doc)

    async def update(self, collection, doc_id, patch):
        oid = str(parse_object_id(doc_id))
        doc = self._docs(collection).get(oid)
        if doc is None:
            raise NotFound()
        doc.update(copy.deepcopy(patch))
        return copy.deepcopy(doc)

    async def delete(self, collection, doc_id):
        oid = str(parse_object_id(doc_id))
        if self._docs(collection).pop(oid, None) is None:
            raise NotFound()

    async def decrement_stock(self, product_id, quantity):
        self.decrements.append((product_id, quantity))
        oid = str(parse_object_id(product_id))
        doc = self._docs(Collection.PRODUCTS).get(oid)
        if doc is None or doc["stock"] < quantity:
            return None
        doc["stock"] -= quantity
        doc["status"] = stock_status(doc["stock"]).value
        return copy.deepcopy(doc)


class FakePaymentService:
    """Records intents locally instead of calling Stripe."""

    def __init__(self) -> None:
        self.intents: dict[str, PaymentIntent] = {}
        self.created: list[tuple[int, str, dict[str, Any]]] = []
        self.fail = False

    async def create_intent(self, amount, currency, metadata=None):
        if self.fail:
            raise GatewayUnavailable("Failed to create payment intent")
        self.created.append((amount, currency, metadata or {}))
        intent_id = f"pi_test_{len(self.created)}"
        intent = PaymentIntent(
            id=intent_id,
            status="requires_payment_method",
            client_secret=f"{intent_id}_secret_abc",
            amount=amount,
            currency=currency,
        )
        self.intents[intent_id] = intent
        return copy.copy(intent)

    async def retrieve_intent(self, intent_id):
        if self.fail:
            raise GatewayUnavailable("Failed to retrieve payment intent")
        return copy.copy(self.intents[intent_id])

    def set_status(self, intent_id: str, status: str) -> None:
        self.intents[intent_id].status = status


class FakeRedis:
    """Just enough of redis.asyncio.Redis for PurchaseIntentStore."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    async def setex(self, key, ttl, value):
        self.data[key] = value
        self.ttls[key] = ttl
        return True

    async def get(self, key):
        return self.data.get(key)

    async def delete(self, key):
        return 1 if self.data.pop(key, None) is not None else 0

    async def aclose(self):
        pass


# ----------------------------
# Fixtures
# ----------------------------


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def payments() -> FakePaymentService:
    return FakePaymentService()


@pytest.fixture
def redis_client() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def intents(redis_client) -> PurchaseIntentStore:
    return PurchaseIntentStore(redis_client, ttl=900)


@pytest.fixture
def checkout(store, payments, intents) -> CheckoutService:
    return CheckoutService(store, payments, intents, currency="usd")


@pytest.fixture
def tokens() -> TokenService:
    return TokenService(secret="test-secret", algorithm="HS256", expire_days=7)


@pytest.fixture
def auth_headers(tokens) -> dict[str, str]:
    return {"Authorization": f"Bearer {tokens.issue('admin@example.com')}"}


@pytest.fixture
def client(store, payments, intents, tokens):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_payment_service] = lambda: payments
    app.dependency_overrides[get_intent_store] = lambda: intents
    app.dependency_overrides[get_token_service] = lambda: tokens
    yield TestClient(app)
    app.dependency_overrides.clear()
