"""
Product Service - catalog management.
"""

from typing import Any

from loguru import logger

from storefront.core.database import Collection, MongoDocumentStore
from storefront.core.exceptions import NotFound
from storefront.models.shop import ProductIn


class ProductService:
    """
    Service for creating, reading, updating and deleting products.

    Usage:
        products = ProductService(store)
        items = await products.list_products()
    """

    def __init__(self, store: MongoDocumentStore) -> None:
        """Initialize product service with the document store."""
        self.store = store

    async def create_product(self, product: ProductIn) -> dict[str, Any]:
        """Insert a product and return the stored document."""
        created = await self.store.insert(Collection.PRODUCTS, product.to_document())
        logger.info(f"Product created: {created['_id']} ({product.name})")
        return created

    async def list_products(self) -> list[dict[str, Any]]:
        """Get all products."""
        return await self.store.find_all(Collection.PRODUCTS)

    async def get_product(self, product_id: str) -> dict[str, Any]:
        """Get product by id."""
        try:
            return await self.store.find_by_id(Collection.PRODUCTS, product_id)
        except NotFound:
            raise NotFound("Product not found") from None

    async def update_product(self, product_id: str, product: ProductIn) -> dict[str, Any]:
        """Replace the editable fields of a product; status follows stock."""
        try:
            updated = await self.store.update(
                Collection.PRODUCTS, product_id, product.to_document()
            )
        except NotFound:
            raise NotFound("Product not found") from None

        logger.info(f"Product updated: {product_id}")
        return updated

    async def delete_product(self, product_id: str) -> None:
        try:
            await self.store.delete(Collection.PRODUCTS, product_id)
        except NotFound:
            raise NotFound("Product not found") from None

        logger.info(f"Product deleted: {product_id}")
