"""
Shop models for products and checkout.

Includes:
- Product input schema and derived stock status
- Purchase / confirmation request bodies
- Purchase intent binding record
"""

from dataclasses import asdict, dataclass
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Largest integer BSON can store
MAX_INT64 = 2**63 - 1


class ProductStatus(str, Enum):
    """Product availability label stored alongside stock."""

    IN_STOCK = "In Stock"
    OUT_OF_STOCK = "Out of Stock"


def stock_status(stock: int) -> ProductStatus:
    """Derive the availability label from a stock count."""
    return ProductStatus.OUT_OF_STOCK if stock <= 0 else ProductStatus.IN_STOCK


class ProductIn(BaseModel):
    """Product fields accepted on create and update."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: str | None = None
    price: Decimal = Field(..., ge=0)
    image_url: str | None = Field(None, alias="imageURL")  # wire name
    stock: int = Field(..., ge=0, le=MAX_INT64)

    def to_document(self) -> dict[str, Any]:
        """Build the stored document, including the derived status."""
        return {
            "name": self.name,
            "description": self.description,
            "price": float(self.price),
            "imageURL": self.image_url,
            "stock": self.stock,
            "status": stock_status(self.stock).value,
        }


class PurchaseRequest(BaseModel):
    """Start a purchase of a single product."""

    quantity: int = Field(..., gt=0, le=MAX_INT64)


class ConfirmPaymentRequest(BaseModel):
    """Confirm a purchase after the client completed payment."""

    model_config = ConfigDict(populate_by_name=True)

    payment_intent_id: str = Field(..., min_length=1, alias="paymentIntentId")
    quantity: int | None = Field(None, gt=0, le=MAX_INT64)


@dataclass
class PurchaseIntentRecord:
    """Binds a payment intent to the product and quantity it was created for."""

    intent_id: str
    product_id: str
    quantity: int
    amount: int
    currency: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
