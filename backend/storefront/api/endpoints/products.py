"""
Product API Endpoints.

Catalog CRUD and the two-phase purchase flow.
"""

from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import ORJSONResponse
from loguru import logger

from storefront.api.deps import get_checkout_service, get_product_service
from storefront.core.exceptions import StorefrontError
from storefront.core.security import require_user
from storefront.models.shop import ConfirmPaymentRequest, ProductIn, PurchaseRequest
from storefront.modules.shop import CheckoutService, ProductService

router = APIRouter()


# ==================== Catalog ====================


@router.post("", status_code=201)
async def create_product(
    request: ProductIn,
    products: ProductService = Depends(get_product_service),
) -> dict[str, Any]:
    """Add new product."""
    return await products.create_product(request)


@router.get("")
async def list_products(
    products: ProductService = Depends(get_product_service),
) -> list[dict[str, Any]]:
    """Get all products."""
    return await products.list_products()


@router.get("/{product_id}")
async def get_product(
    product_id: str,
    products: ProductService = Depends(get_product_service),
) -> dict[str, Any]:
    """Get product by id."""
    return await products.get_product(product_id)


@router.patch("/{product_id}")
async def update_product(
    product_id: str,
    request: ProductIn,
    email: str = Depends(require_user),
    products: ProductService = Depends(get_product_service),
) -> dict[str, Any]:
    """Update product (requires bearer token)."""
    logger.info(f"{email} updating product {product_id}")
    return await products.update_product(product_id, request)


@router.delete("/{product_id}")
async def delete_product(
    product_id: str,
    email: str = Depends(require_user),
    products: ProductService = Depends(get_product_service),
) -> dict[str, str]:
    """Delete product (requires bearer token)."""
    logger.info(f"{email} deleting product {product_id}")
    await products.delete_product(product_id)
    return {"message": "Product deleted"}


# ==================== Checkout ====================


@router.post("/{product_id}/purchase")
async def purchase_product(
    product_id: str,
    request: PurchaseRequest,
    checkout: CheckoutService = Depends(get_checkout_service),
) -> dict[str, Any]:
    """
    Start a purchase.

    Returns the client secret used by the frontend to complete payment.
    """
    intent = await checkout.initiate_purchase(product_id, request.quantity)
    return {"clientSecret": intent.client_secret, "paymentIntentId": intent.id}


@router.post("/{product_id}/confirm-payment", response_model=None)
async def confirm_payment(
    product_id: str,
    request: ConfirmPaymentRequest,
    checkout: CheckoutService = Depends(get_checkout_service),
) -> dict[str, Any] | ORJSONResponse:
    """Confirm a paid purchase and update product stock."""
    try:
        product = await checkout.confirm_purchase(
            product_id,
            request.payment_intent_id,
            request.quantity,
        )
    except StorefrontError as e:
        if e.status_code < 500:
            raise
        logger.error(f"Error confirming payment {request.payment_intent_id}: {e}")
        return ORJSONResponse(
            status_code=500,
            content={"error": "Failed to confirm payment"},
        )

    return {"message": "Payment succeeded", "product": product}
