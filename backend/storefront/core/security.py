"""
Token service and authorization gate.

Issues signed, expiring identity tokens keyed on user email and
verifies them on mutating product endpoints.
"""

from datetime import datetime, timedelta, timezone

import jwt
from fastapi import Depends, Header
from loguru import logger

from storefront.core.config import settings
from storefront.core.exceptions import Unauthorized


class TokenService:
    """
    Signed identity tokens (JWT).

    Usage:
        tokens = TokenService(secret="...")
        token = tokens.issue("alice@example.com")
        email = tokens.verify(token)
    """

    def __init__(
        self,
        secret: str | None = None,
        algorithm: str | None = None,
        expire_days: int | None = None,
    ) -> None:
        self.secret = secret or settings.jwt_secret
        self.algorithm = algorithm or settings.jwt_algorithm
        self.expires_in = timedelta(days=expire_days or settings.jwt_expire_days)

    def issue(self, email: str) -> str:
        """Create a token embedding email that expires after the configured period."""
        payload = {
            "email": email,
            "exp": datetime.now(timezone.utc) + self.expires_in,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str | None) -> str:
        """
        Validate token and return the embedded email.

        Raises:
            Unauthorized: token missing, malformed, expired or badly signed
        """
        if not token:
            raise Unauthorized()

        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["exp"]},
            )
        except jwt.ExpiredSignatureError:
            logger.info("Rejected expired token")
            raise Unauthorized()
        except jwt.PyJWTError as e:
            logger.warning(f"Rejected invalid token: {e}")
            raise Unauthorized()

        email = payload.get("email")
        if not email:
            raise Unauthorized()
        return email


_token_service: TokenService | None = None


def get_token_service() -> TokenService:
    """Get or create token service singleton."""
    global _token_service
    if _token_service is None:
        _token_service = TokenService()
    return _token_service


def bearer_token(authorization: str | None) -> str | None:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


async def require_user(
    authorization: str | None = Header(None),
    tokens: TokenService = Depends(get_token_service),
) -> str:
    """Dependency guarding mutating endpoints; returns the caller's email."""
    return tokens.verify(bearer_token(authorization))
