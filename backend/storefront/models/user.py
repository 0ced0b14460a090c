"""
User schemas for registration.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr


class UserIn(BaseModel):
    """Registration payload: an email plus arbitrary profile fields."""

    model_config = ConfigDict(extra="allow")

    email: EmailStr

    def to_document(self) -> dict[str, Any]:
        return self.model_dump()


class RegistrationResponse(BaseModel):
    """Result of POST /user for both new and returning users."""

    status: str = "success"
    message: str
    token: str
    user: dict[str, Any]
