"""API middleware."""

from .auth import CurrentUser, get_current_user

__all__ = ["CurrentUser", "get_current_user"]
