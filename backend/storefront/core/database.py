"""
Document store gateway.

Thin async accessor over the MongoDB collections backing the API:
- Users
- Products

All operations address a single document. The client is created once
at startup by ``init_db`` and shared by every request.
"""

from enum import Enum
from typing import Any

from bson import ObjectId
from bson.errors import InvalidDocument
from loguru import logger
from pymongo import AsyncMongoClient, ReturnDocument
from pymongo.errors import PyMongoError
from pymongo.server_api import ServerApi

from storefront.core.config import settings
from storefront.core.exceptions import InvalidArgument, NotFound, StoreError
from storefront.models.shop import ProductStatus

# Driver failures plus documents BSON cannot encode
DRIVER_ERRORS = (PyMongoError, InvalidDocument, OverflowError)


class Collection(str, Enum):
    """Logical collections exposed by the gateway."""

    USERS = "users"
    PRODUCTS = "products"


def parse_object_id(value: str) -> ObjectId:
    """Convert a path/body id into an ObjectId, rejecting malformed input."""
    if isinstance(value, ObjectId):
        return value
    if not isinstance(value, str) or not ObjectId.is_valid(value):
        raise InvalidArgument(f"Invalid id: {value!r}")
    return ObjectId(value)


def serialize_document(doc: dict[str, Any] | None) -> dict[str, Any] | None:
    """Render ObjectId values as hex strings so documents are JSON-safe."""
    if doc is None:
        return None
    return {k: str(v) if isinstance(v, ObjectId) else v for k, v in doc.items()}


class MongoDocumentStore:
    """
    MongoDB-backed document store.

    Usage:
        store = MongoDocumentStore(AsyncMongoClient(url))
        product = await store.find_by_id(Collection.PRODUCTS, product_id)
    """

    def __init__(self, client: AsyncMongoClient) -> None:
        self.client = client
        self._locations = {
            Collection.USERS: (settings.users_database, settings.users_collection),
            Collection.PRODUCTS: (
                settings.products_database,
                settings.products_collection,
            ),
        }

    def _collection(self, collection: Collection):
        database, name = self._locations[collection]
        return self.client[database][name]

    async def ensure_indexes(self) -> None:
        """Create indexes the API relies on (unique user email)."""
        try:
            await self._collection(Collection.USERS).create_index("email", unique=True)
        except DRIVER_ERRORS as e:
            logger.error(f"Failed to create user email index: {e}")
            raise StoreError() from e

    # ==================== Reads ====================

    async def find_by_id(self, collection: Collection, doc_id: str) -> dict[str, Any]:
        """Get a document by id, raising NotFound when absent."""
        oid = parse_object_id(doc_id)
        try:
            doc = await self._collection(collection).find_one({"_id": oid})
        except DRIVER_ERRORS as e:
            logger.error(f"find_by_id failed on {collection.value}: {e}")
            raise StoreError() from e

        if doc is None:
            raise NotFound()
        return serialize_document(doc)

    async def find_one(
        self,
        collection: Collection,
        filter: dict[str, Any],
    ) -> dict[str, Any] | None:
        """Get the first document matching filter, or None."""
        try:
            doc = await self._collection(collection).find_one(filter)
        except DRIVER_ERRORS as e:
            logger.error(f"find_one failed on {collection.value}: {e}")
            raise StoreError() from e
        return serialize_document(doc)

    async def find_all(
        self,
        collection: Collection,
        filter: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """Get every document matching filter."""
        try:
            cursor = self._collection(collection).find(filter or {})
            return [serialize_document(doc) async for doc in cursor]
        except DRIVER_ERRORS as e:
            logger.error(f"find_all failed on {collection.value}: {e}")
            raise StoreError() from e

    # ==================== Writes ====================

    async def insert(self, collection: Collection, doc: dict[str, Any]) -> dict[str, Any]:
        """Insert a document and return it with its generated id."""
        doc = dict(doc)
        try:
            result = await self._collection(collection).insert_one(doc)
        except DRIVER_ERRORS as e:
            logger.error(f"insert failed on {collection.value}: {e}")
            raise StoreError() from e

        doc["_id"] = result.inserted_id
        return serialize_document(doc)

    async def update(
        self,
        collection: Collection,
        doc_id: str,
        patch: dict[str, Any],
    ) -> dict[str, Any]:
        """Apply patch with $set and return the updated document."""
        oid = parse_object_id(doc_id)
        try:
            doc = await self._collection(collection).find_one_and_update(
                {"_id": oid},
                {"$set": patch},
                return_document=ReturnDocument.AFTER,
            )
        except DRIVER_ERRORS as e:
            logger.error(f"update failed on {collection.value}: {e}")
            raise StoreError() from e

        if doc is None:
            raise NotFound()
        return serialize_document(doc)

    async def delete(self, collection: Collection, doc_id: str) -> None:
        """Delete a document, raising NotFound when nothing was removed."""
        oid = parse_object_id(doc_id)
        try:
            result = await self._collection(collection).delete_one({"_id": oid})
        except DRIVER_ERRORS as e:
            logger.error(f"delete failed on {collection.value}: {e}")
            raise StoreError() from e

        if result.deleted_count == 0:
            raise NotFound()

    async def decrement_stock(
        self,
        product_id: str,
        quantity: int,
    ) -> dict[str, Any] | None:
        """
        Atomically take quantity units from a product's stock.

        The update only matches while ``stock >= quantity`` and re-derives the
        status label in the same write, so concurrent confirmations can neither
        lose updates nor drive stock negative.

        Returns:
            Updated product, or None when the product is missing or short
        """
        oid = parse_object_id(product_id)
        pipeline = [
            {"$set": {"stock": {"$subtract": ["$stock", quantity]}}},
            {
                "$set": {
                    "status": {
                        "$cond": [
                            {"$lte": ["$stock", 0]},
                            ProductStatus.OUT_OF_STOCK.value,
                            ProductStatus.IN_STOCK.value,
                        ]
                    }
                }
            },
        ]
        try:
            doc = await self._collection(Collection.PRODUCTS).find_one_and_update(
                {"_id": oid, "stock": {"$gte": quantity}},
                pipeline,
                return_document=ReturnDocument.AFTER,
            )
        except DRIVER_ERRORS as e:
            logger.error(f"Stock decrement failed for product {product_id}: {e}")
            raise StoreError() from e
        return serialize_document(doc)

    async def close(self) -> None:
        await self.client.close()


# Process-wide store, created on startup
_store: MongoDocumentStore | None = None


async def init_db() -> MongoDocumentStore:
    """Connect to MongoDB and prepare indexes."""
    global _store
    if _store is None:
        client = AsyncMongoClient(
            settings.database_url,
            server_api=ServerApi("1", strict=True, deprecation_errors=True),
        )
        _store = MongoDocumentStore(client)
        await _store.ensure_indexes()
        logger.info("Connected to MongoDB")
    return _store


async def close_db() -> None:
    """Close the MongoDB client."""
    global _store
    if _store is not None:
        await _store.close()
        _store = None
        logger.info("MongoDB connection closed")


def get_store() -> MongoDocumentStore:
    """FastAPI dependency returning the shared document store."""
    if _store is None:
        raise StoreError("Database not initialized")
    return _store
