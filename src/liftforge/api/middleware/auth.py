"""Authentication dependencies for FastAPI.

Resolves the Bearer token into a CurrentUser and enforces that callers
only act on their own gamification state. Service tokens (issued to
backend jobs) may act for any user.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ...exceptions import ForbiddenError
from ...services.auth_service import (
    SERVICE_ROLE,
    AuthService,
    InvalidTokenError,
    TokenExpiredError,
    get_auth_service,
)


# Security scheme for Bearer token authentication
security = HTTPBearer(auto_error=False)


@dataclass
class CurrentUser:
    """Represents the currently authenticated caller.

    Attributes:
        user_id: Token subject.
        email: Email claim, when present.
        role: "service" for backend jobs, otherwise "authenticated".
    """

    user_id: str
    email: Optional[str] = None
    role: str = "authenticated"

    @property
    def is_service(self) -> bool:
        return self.role == SERVICE_ROLE

    def ensure_can_act_for(self, user_id: str) -> None:
        """Raise ForbiddenError unless the caller may act for ``user_id``.

        Empty ids are left to the handlers, which reject them with 400.
        """
        if not user_id or self.is_service or user_id == self.user_id:
            return
        raise ForbiddenError(
            "Cannot act on another user's gamification data",
            details={"user_id": user_id},
        )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    auth_service: AuthService = Depends(get_auth_service),
) -> CurrentUser:
    """FastAPI dependency to get the current authenticated user.

    Raises:
        HTTPException (401): If no token is provided or token is invalid.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = auth_service.verify_access_token(credentials.credentials)
    except TokenExpiredError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )

    return CurrentUser(
        user_id=payload["sub"],
        email=payload.get("email"),
        role=payload.get("role", "authenticated"),
    )
