"""
VitaBalance API - Authentication Middleware.

JWT verification for protected routes.
"""

from typing import Optional

from fastapi import Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from vitabalance.services.auth import TokenIdentity, identity_from_token
from vitabalance.utils.errors import AuthenticationError


class JWTBearer(HTTPBearer):
    """
    JWT Bearer token authentication.

    Custom HTTPBearer that validates the auth provider's tokens against the
    settings stored on ``app.state.config``.
    """

    def __init__(self, auto_error: bool = True):
        super().__init__(auto_error=False)
        self.require = auto_error

    async def __call__(self, request: Request) -> Optional[TokenIdentity]:
        """
        Verify the JWT token from the Authorization header.

        Args:
            request: FastAPI request object.

        Returns:
            Optional[TokenIdentity]: Caller identity, or None when optional
                and absent/invalid.

        Raises:
            AuthenticationError: 401 if the token is missing or invalid.
        """
        credentials: Optional[HTTPAuthorizationCredentials] = await super().__call__(request)

        if not credentials or credentials.scheme.lower() != "bearer":
            if self.require:
                raise AuthenticationError("Not authenticated", detail="Missing bearer token")
            return None

        config = request.app.state.config
        identity = identity_from_token(
            credentials.credentials,
            config.AUTH_JWT_SECRET,
            config.AUTH_JWT_ALGORITHM,
            config.AUTH_JWT_AUDIENCE,
        )
        if identity is None and self.require:
            raise AuthenticationError("Invalid or expired token")
        return identity


# Global JWT bearer instance for dependency injection
jwt_bearer = JWTBearer()
