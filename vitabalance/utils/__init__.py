"""VitaBalance API - Utilities Package."""

from vitabalance.utils.errors import (
    VitaBalanceException,
    AuthenticationError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)

__all__ = [
    "VitaBalanceException",
    "AuthenticationError",
    "ForbiddenError",
    "NotFoundError",
    "ValidationError",
]
