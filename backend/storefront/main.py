"""
Storefront Backend Application.

FastAPI application exposing users, products and a
Stripe-backed checkout flow over MongoDB.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse, PlainTextResponse
from loguru import logger

from storefront.api import router as api_router
from storefront.core.config import settings
from storefront.core.database import close_db, init_db
from storefront.core.exceptions import StorefrontError
from storefront.modules.shop.intents import close_intent_store, init_intent_store
from storefront.modules.shop.payment import get_payment_service


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    logger.info("Starting Storefront Backend...")

    await init_db()
    logger.info("Database initialized")

    await init_intent_store()
    logger.info("Purchase intent store initialized")

    get_payment_service()
    if not settings.stripe_secret_key:
        logger.warning("STRIPE_SECRET_KEY not set - checkout will fail")

    logger.info(f"Storefront Backend listening on port {settings.port}")

    yield

    # Shutdown
    logger.info("Shutting down Storefront Backend...")
    await close_intent_store()
    await close_db()
    logger.info("Shutdown complete")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    Storefront Backend

    ## Features

    - **Users**: Email registration with signed tokens
    - **Products**: Catalog CRUD, protected updates and deletes
    - **Checkout**: Stripe payment intents with stock reconciliation
    """,
    default_response_class=ORJSONResponse,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StorefrontError)
async def storefront_error_handler(request: Request, exc: StorefrontError) -> ORJSONResponse:
    """Render service errors as {"message": ...} with their HTTP status."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return ORJSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(
    request: Request,
    exc: RequestValidationError,
) -> ORJSONResponse:
    # rejected input is not echoed back; it may not be JSON-encodable (e.g. >64-bit ints)
    errors = [{k: v for k, v in err.items() if k != "input"} for err in exc.errors()]
    return ORJSONResponse(
        status_code=400,
        content={"message": "Invalid request", "errors": jsonable_encoder(errors)},
    )


# Include API router
app.include_router(api_router)


@app.get("/health", tags=["System"])
async def health_check() -> dict:
    """Health check endpoint for monitoring."""
    return {
        "status": "healthy",
        "version": settings.app_version,
    }


@app.get("/", tags=["System"], response_class=PlainTextResponse)
async def root() -> str:
    """Liveness check."""
    return "Route is working"


def run() -> None:
    """Serve the application with uvicorn."""
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
