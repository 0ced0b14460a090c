"""
Users Module - registration by email and token issuance.
"""

from storefront.modules.users.service import UserService

__all__ = [
    "UserService",
]
