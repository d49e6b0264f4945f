"""
VitaBalance API - Token Verification.

User access tokens are issued by the external auth provider (HS256 JWT,
``sub`` = user id, ``email`` claim). This service only verifies them.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional
import logging

from jose import jwt, JWTError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenIdentity:
    """Authenticated caller."""

    user_id: str
    email: Optional[str] = None


def verify_token(
    token: str,
    secret: str,
    algorithm: str = "HS256",
    audience: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    """
    Verify and decode a JWT access token.

    Args:
        token: JWT access token to verify.
        secret: Shared signing secret.
        algorithm: Expected signing algorithm.
        audience: Expected ``aud`` claim; not checked when None.

    Returns:
        Optional[Dict[str, Any]]: Token payload if valid, None otherwise.
    """
    options = {"verify_aud": audience is not None}
    try:
        return jwt.decode(
            token,
            secret,
            algorithms=[algorithm],
            audience=audience,
            options=options,
        )
    except JWTError as e:
        logger.debug(f"Token rejected: {e}")
        return None


def identity_from_token(
    token: str,
    secret: str,
    algorithm: str = "HS256",
    audience: Optional[str] = None,
) -> Optional[TokenIdentity]:
    """
    Extract the caller identity from a token.

    Returns:
        Optional[TokenIdentity]: None when the token is invalid or has no ``sub``.
    """
    payload = verify_token(token, secret, algorithm, audience)
    if not payload or not payload.get("sub"):
        return None
    return TokenIdentity(user_id=str(payload["sub"]), email=payload.get("email"))
