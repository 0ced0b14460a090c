"""
User API Endpoints.

Registration/login by email and user lookups.
"""

from typing import Any

from fastapi import APIRouter, Depends

from storefront.api.deps import get_user_service
from storefront.models.user import RegistrationResponse, UserIn
from storefront.modules.users import UserService

router = APIRouter()


@router.post("", response_model=RegistrationResponse)
async def register_user(
    request: UserIn,
    users: UserService = Depends(get_user_service),
) -> dict[str, Any]:
    """
    Register a user, or log in when the email is already known.

    Either way a fresh token is issued.
    """
    user, created, token = await users.register(request)

    return {
        "status": "success",
        "message": "Registration successful" if created else "Login success",
        "token": token,
        "user": user,
    }


@router.get("/get/{user_id}")
async def get_user_by_id(
    user_id: str,
    users: UserService = Depends(get_user_service),
) -> dict[str, Any] | None:
    """Get user by id (null when absent)."""
    return await users.get_by_id(user_id)


@router.get("/{email}")
async def get_user_by_email(
    email: str,
    users: UserService = Depends(get_user_service),
) -> dict[str, Any] | None:
    """Get user by email (null when absent)."""
    return await users.get_by_email(email)
