"""
Custom exceptions for the LiftForge gamification engine.

Each exception carries:
- A descriptive message
- An error code for API responses
- HTTP status code mapping
- Optional details for debugging

Cap saturation (daily/workout XP cap reached, nothing new to unlock, no
rust change) is a normal outcome and never raises.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Error codes for consistent API error responses."""

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    UNAUTHORIZED = "UNAUTHORIZED"

    # Workout data errors
    WORKOUT_NOT_FOUND = "WORKOUT_NOT_FOUND"
    SET_NOT_FOUND = "SET_NOT_FOUND"
    WORKOUT_NOT_FINISHED = "WORKOUT_NOT_FINISHED"

    # Badge errors
    BADGE_NOT_FOUND = "BADGE_NOT_FOUND"

    # Data/Database errors
    DATABASE_ERROR = "DATABASE_ERROR"


class LiftForgeError(Exception):
    """
    Base exception for all LiftForge errors.

    Attributes:
        message: Human-readable error message
        code: Error code from ErrorCode enum
        status_code: HTTP status code for API responses
        details: Optional dictionary with additional error details
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API response."""
        result: Dict[str, Any] = {
            "error": {
                "code": self.code.value,
                "message": self.message,
            }
        }
        if self.details:
            result["error"]["details"] = self.details
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value}, message={self.message!r})"


# ============================================================================
# Validation Errors (400)
# ============================================================================

class ValidationError(LiftForgeError):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if field:
            error_details["field"] = field
        super().__init__(
            message=message,
            code=ErrorCode.VALIDATION_ERROR,
            status_code=400,
            details=error_details,
        )


class WorkoutNotFinishedError(ValidationError):
    """Raised when a handler needs a finished workout and gets an open one."""

    def __init__(self, workout_id: str) -> None:
        super().__init__(
            message=f"Workout '{workout_id}' has not been finished",
            field="workoutId",
            details={"workout_id": workout_id},
        )
        self.code = ErrorCode.WORKOUT_NOT_FINISHED


# ============================================================================
# Authorization Errors (403)
# ============================================================================

class ForbiddenError(LiftForgeError):
    """Raised when the caller may not act on the targeted user."""

    def __init__(
        self,
        message: str = "Forbidden",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCode.FORBIDDEN,
            status_code=403,
            details=details,
        )


# ============================================================================
# Not Found Errors (404)
# ============================================================================

class NotFoundError(LiftForgeError):
    """Raised when a requested resource is not found."""

    def __init__(
        self,
        resource_type: str,
        resource_id: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        message = f"{resource_type} with ID '{resource_id}' not found"
        error_details = details or {}
        error_details["resource_type"] = resource_type
        error_details["resource_id"] = resource_id
        super().__init__(
            message=message,
            code=ErrorCode.NOT_FOUND,
            status_code=404,
            details=error_details,
        )


class WorkoutNotFoundError(NotFoundError):
    """Raised when a workout is not found."""

    def __init__(self, workout_id: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            resource_type="Workout",
            resource_id=workout_id,
            details=details,
        )
        self.code = ErrorCode.WORKOUT_NOT_FOUND


class SetNotFoundError(NotFoundError):
    """Raised when none of the referenced workout sets exist."""

    def __init__(self, set_ids: list[str]) -> None:
        super().__init__(
            resource_type="Workout set",
            resource_id=", ".join(set_ids),
            details={"set_ids": set_ids},
        )
        self.code = ErrorCode.SET_NOT_FOUND


class BadgeNotFoundError(NotFoundError):
    """Raised when a user does not hold the referenced badge."""

    def __init__(self, user_id: str, achievement_code: str) -> None:
        super().__init__(
            resource_type="Badge",
            resource_id=achievement_code,
            details={"user_id": user_id},
        )
        self.code = ErrorCode.BADGE_NOT_FOUND


# ============================================================================
# Database Errors
# ============================================================================

class DatabaseError(LiftForgeError):
    """Raised when a database operation fails."""

    def __init__(
        self,
        message: str = "Database operation failed",
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if operation:
            error_details["operation"] = operation
        super().__init__(
            message=message,
            code=ErrorCode.DATABASE_ERROR,
            status_code=500,
            details=error_details,
        )
