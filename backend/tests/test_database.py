from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from storefront.core.database import (
    Collection,
    MongoDocumentStore,
    parse_object_id,
    serialize_document,
)
from storefront.core.exceptions import InvalidArgument, NotFound, StoreError

# ----------------------------
# Helpers
# ----------------------------


def make_store():
    collection = MagicMock()
    client = MagicMock()
    client.__getitem__.return_value.__getitem__.return_value = collection
    return MongoDocumentStore(client), collection


# ----------------------------
# Ids and serialization
# ----------------------------


def test_parse_object_id_accepts_hex_ids():
    oid = ObjectId()
    assert parse_object_id(str(oid)) == oid
    assert parse_object_id(oid) is oid


@pytest.mark.parametrize("value", ["", "123", "zzzzzzzzzzzzzzzzzzzzzzzz", None, 42])
def test_parse_object_id_rejects_malformed(value):
    with pytest.raises(InvalidArgument):
        parse_object_id(value)


def test_serialize_document_stringifies_ids():
    oid = ObjectId()
    assert serialize_document({"_id": oid, "name": "x"}) == {"_id": str(oid), "name": "x"}
    assert serialize_document(None) is None


# ----------------------------
# MongoDocumentStore
# ----------------------------


@pytest.mark.asyncio
async def test_find_by_id_missing_is_not_found():
    store, collection = make_store()
    collection.find_one = AsyncMock(return_value=None)

    with pytest.raises(NotFound):
        await store.find_by_id(Collection.PRODUCTS, str(ObjectId()))


@pytest.mark.asyncio
async def test_find_by_id_returns_serialized_document():
    store, collection = make_store()
    oid = ObjectId()
    collection.find_one = AsyncMock(return_value={"_id": oid, "stock": 3})

    doc = await store.find_by_id(Collection.PRODUCTS, str(oid))

    assert doc == {"_id": str(oid), "stock": 3}
    collection.find_one.assert_awaited_once_with({"_id": oid})


@pytest.mark.asyncio
async def test_driver_errors_become_store_errors():
    store, collection = make_store()
    collection.find_one = AsyncMock(side_effect=PyMongoError("boom"))

    with pytest.raises(StoreError):
        await store.find_one(Collection.USERS, {"email": "a@example.com"})


@pytest.mark.asyncio
async def test_insert_returns_generated_id():
    store, collection = make_store()
    oid = ObjectId()
    collection.insert_one = AsyncMock(return_value=MagicMock(inserted_id=oid))

    doc = await store.insert(Collection.USERS, {"email": "a@example.com"})

    assert doc == {"email": "a@example.com", "_id": str(oid)}


@pytest.mark.asyncio
async def test_update_missing_is_not_found():
    store, collection = make_store()
    collection.find_one_and_update = AsyncMock(return_value=None)

    with pytest.raises(NotFound):
        await store.update(Collection.PRODUCTS, str(ObjectId()), {"name": "x"})


@pytest.mark.asyncio
async def test_delete_missing_is_not_found():
    store, collection = make_store()
    collection.delete_one = AsyncMock(return_value=MagicMock(deleted_count=0))

    with pytest.raises(NotFound):
        await store.delete(Collection.PRODUCTS, str(ObjectId()))


@pytest.mark.asyncio
async def test_decrement_stock_is_one_conditional_update():
    store, collection = make_store()
    oid = ObjectId()
    collection.find_one_and_update = AsyncMock(
        return_value={"_id": oid, "stock": 3, "status": "In Stock"}
    )

    doc = await store.decrement_stock(str(oid), 2)

    assert doc == {"_id": str(oid), "stock": 3, "status": "In Stock"}
    filter, pipeline = collection.find_one_and_update.await_args.args
    assert filter == {"_id": oid, "stock": {"$gte": 2}}
    assert pipeline[0] == {"$set": {"stock": {"$subtract": ["$stock", 2]}}}
    assert "status" in pipeline[1]["$set"]
    assert (
        collection.find_one_and_update.await_args.kwargs["return_document"]
        == ReturnDocument.AFTER
    )


@pytest.mark.asyncio
async def test_decrement_stock_without_match_returns_none():
    store, collection = make_store()
    collection.find_one_and_update = AsyncMock(return_value=None)

    assert await store.decrement_stock(str(ObjectId()), 5) is None


@pytest.mark.asyncio
async def test_unencodable_documents_become_store_errors():
    store, collection = make_store()
    collection.insert_one = AsyncMock(
        side_effect=OverflowError("MongoDB can only handle up to 8-byte ints")
    )

    with pytest.raises(StoreError):
        await store.insert(Collection.PRODUCTS, {"stock": 10**20})
