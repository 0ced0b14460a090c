"""
Storefront Backend Configuration.

Environment-based configuration using Pydantic Settings.
All sensitive values should be set via environment variables.
"""

from functools import lru_cache
from typing import Any

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_JWT_SECRET = "default_secret"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Storefront API"
    app_version: str = "1.0.0"
    environment: str = "development"
    host: str = "0.0.0.0"
    port: int = 3000

    # JWT Authentication
    jwt_secret: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    jwt_expire_days: int = 7

    # Database (MongoDB)
    database_url: str = "mongodb://localhost:27017"
    users_database: str = "userDB"
    users_collection: str = "userCollection"
    products_database: str = "productDB"
    products_collection: str = "products"

    # Redis (purchase intent bindings)
    redis_url: str = "redis://localhost:6379/0"
    purchase_intent_ttl: int = 60 * 60 * 24

    # Payments (Stripe)
    stripe_secret_key: str = ""
    shop_currency: str = "usd"

    # CORS
    cors_origins: list[str] = ["*"]

    @field_validator("database_url", mode="before")
    @classmethod
    def validate_database_url(cls, v: Any) -> Any:
        """Ensure database URL points at MongoDB."""
        if isinstance(v, str) and not v.startswith(("mongodb://", "mongodb+srv://")):
            raise ValueError("DATABASE_URL must be a mongodb:// or mongodb+srv:// URI")
        return v

    @field_validator("shop_currency")
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        return v.lower()

    @model_validator(mode="after")
    def require_secret_in_production(self) -> "Settings":
        """Refuse to start in production with the development JWT secret."""
        if self.is_production and (
            not self.jwt_secret or self.jwt_secret == DEFAULT_JWT_SECRET
        ):
            raise ValueError("JWT_SECRET must be set in production")
        return self

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
