"""
User Service - registration and lookup.
"""

from typing import Any

from loguru import logger
from pydantic import EmailStr, TypeAdapter, ValidationError

from storefront.core.database import Collection, MongoDocumentStore
from storefront.core.exceptions import NotFound, StoreError
from storefront.core.security import TokenService
from storefront.models.user import UserIn

_email_adapter = TypeAdapter(EmailStr)


class UserService:
    """
    Registers users by email and issues their identity tokens.

    A returning email gets a fresh token and its stored record back;
    the stored profile is never overwritten.

    Usage:
        users = UserService(store, tokens)
        user, created, token = await users.register(UserIn(email="a@b.io"))
    """

    def __init__(self, store: MongoDocumentStore, tokens: TokenService) -> None:
        self.store = store
        self.tokens = tokens

    async def register(self, payload: UserIn) -> tuple[dict[str, Any], bool, str]:
        """
        Register a new user or log in an existing one.

        Returns:
            (stored user, whether it was created, token)
        """
        email = payload.email
        token = self.tokens.issue(email)

        existing = await self.get_by_email(email)
        if existing is not None:
            logger.info(f"Login for existing user {email}")
            return existing, False, token

        try:
            user = await self.store.insert(Collection.USERS, payload.to_document())
        except StoreError:
            # Lost a race with a concurrent registration (unique email index)
            existing = await self.get_by_email(email)
            if existing is None:
                raise
            return existing, False, token

        logger.info(f"Registered user {email}")
        return user, True, token

    async def get_by_id(self, user_id: str) -> dict[str, Any] | None:
        """Get user by id; None when no such user exists."""
        try:
            return await self.store.find_by_id(Collection.USERS, user_id)
        except NotFound:
            return None

    async def get_by_email(self, email: str) -> dict[str, Any] | None:
        """Get user by email, normalized the way registration stores it."""
        try:
            email = _email_adapter.validate_python(email)
        except ValidationError:
            return None
        return await self.store.find_one(Collection.USERS, {"email": email})
