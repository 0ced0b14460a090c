"""
API Router.

Combines the user and product endpoints at the application root.
"""

from fastapi import APIRouter

from storefront.api.endpoints import products, users

router = APIRouter()

# Include endpoint routers
router.include_router(users.router, prefix="/user", tags=["Users"])
router.include_router(products.router, prefix="/products", tags=["Products"])
