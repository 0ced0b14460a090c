"""
Purchase Intent Store - payment intent bindings in Redis.
"""

import json

import redis.asyncio as redis
from loguru import logger
from redis.exceptions import RedisError

from storefront.core.config import settings
from storefront.core.exceptions import StoreError
from storefront.models.shop import PurchaseIntentRecord


class PurchaseIntentStore:
    """
    Short-lived records tying a payment intent to a product and quantity.

    Records expire after ``purchase_intent_ttl`` seconds. A record is
    claimed (deleted) exactly once when its purchase is confirmed.

    Usage:
        intents = PurchaseIntentStore(redis.from_url(url))
        await intents.save(record)
        record = await intents.get(intent_id)
    """

    def __init__(self, client: redis.Redis, ttl: int | None = None) -> None:
        self._redis = client
        self.ttl = ttl or settings.purchase_intent_ttl

    def _key(self, intent_id: str) -> str:
        """Generate Redis key for a payment intent."""
        return f"purchase:{intent_id}"

    async def save(self, record: PurchaseIntentRecord) -> None:
        try:
            await self._redis.setex(
                self._key(record.intent_id),
                self.ttl,
                json.dumps(record.to_dict()),
            )
        except RedisError as e:
            logger.error(f"Failed to save purchase intent {record.intent_id}: {e}")
            raise StoreError() from e

    async def get(self, intent_id: str) -> PurchaseIntentRecord | None:
        """Load the binding for intent_id, or None if unknown or expired."""
        try:
            data = await self._redis.get(self._key(intent_id))
        except RedisError as e:
            logger.error(f"Failed to load purchase intent {intent_id}: {e}")
            raise StoreError() from e

        if not data:
            return None

        try:
            return PurchaseIntentRecord(**json.loads(data))
        except (json.JSONDecodeError, TypeError):
            logger.warning(f"Invalid purchase intent data for {intent_id}")
            return None

    async def claim(self, intent_id: str) -> bool:
        """Delete the binding; True only for the caller that removed it."""
        try:
            removed = await self._redis.delete(self._key(intent_id))
        except RedisError as e:
            logger.error(f"Failed to claim purchase intent {intent_id}: {e}")
            raise StoreError() from e
        return removed == 1

    async def close(self) -> None:
        await self._redis.aclose()


_intent_store: PurchaseIntentStore | None = None


async def init_intent_store() -> PurchaseIntentStore:
    """Create the shared intent store."""
    global _intent_store
    if _intent_store is None:
        client = redis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
        )
        _intent_store = PurchaseIntentStore(client)
    return _intent_store


async def close_intent_store() -> None:
    global _intent_store
    if _intent_store is not None:
        await _intent_store.close()
        _intent_store = None


def get_intent_store() -> PurchaseIntentStore:
    """FastAPI dependency returning the shared intent store."""
    if _intent_store is None:
        raise StoreError("Purchase intent store not initialized")
    return _intent_store
