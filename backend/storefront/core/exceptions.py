"""
Application error taxonomy.

Every error raised by services carries the HTTP status it maps to,
so the API layer can render it as a JSON ``{"message": ...}`` body.
"""


class StorefrontError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthorized(StorefrontError):
    status_code = 401
    default_message = "You are not authorized"


class NotFound(StorefrontError):
    status_code = 404
    default_message = "Not found"


class InvalidArgument(StorefrontError):
    status_code = 400
    default_message = "Invalid argument"


class InsufficientStock(StorefrontError):
    status_code = 400
    default_message = "Not enough stock available"


class PaymentNotCompleted(StorefrontError):
    status_code = 400
    default_message = "Payment not successful"


class UpdateConflict(StorefrontError):
    status_code = 400
    default_message = "Failed to update product stock"


class GatewayUnavailable(StorefrontError):
    """Payment provider could not be reached or rejected the call."""

    status_code = 500
    default_message = "Payment provider unavailable"


class StoreError(StorefrontError):
    """Unclassified document store failure."""

    status_code = 500
    default_message = "Database operation failed"
