"""Bearer token verification.

Tokens are issued by the identity provider and signed with the shared
secret from settings. This module only verifies them.
"""

from typing import Any

import jwt

from ..config import get_settings


SERVICE_ROLE = "service"


class AuthServiceError(Exception):
    """Base exception for auth service errors."""

    pass


class TokenExpiredError(AuthServiceError):
    """Raised when a token has expired."""

    pass


class InvalidTokenError(AuthServiceError):
    """Raised when a token is invalid."""

    pass


class AuthService:
    """Service for validating JWT access tokens."""

    def __init__(self, secret_key: str | None = None, algorithm: str | None = None) -> None:
        """Initialize auth service with settings."""
        settings = get_settings()
        self._secret_key = secret_key or settings.jwt_secret_key
        self._algorithm = algorithm or settings.jwt_algorithm

    def verify_access_token(self, token: str) -> dict[str, Any]:
        """Verify and decode an access token.

        Args:
            token: The JWT token string to verify.

        Returns:
            Decoded token payload as a dictionary.

        Raises:
            TokenExpiredError: If the token has expired.
            InvalidTokenError: If the token is invalid, is a refresh token
                or has no subject.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError("Token has expired")
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(f"Invalid token: {e}")

        if payload.get("type", "access") != "access":
            raise InvalidTokenError(f"Expected token type 'access', got '{payload.get('type')}'")
        if not payload.get("sub"):
            raise InvalidTokenError("Token has no subject")

        return payload


_auth_service: AuthService | None = None


def get_auth_service() -> AuthService:
    """Get or create the auth service singleton."""
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService()
    return _auth_service
