"""API route modules."""

from .gamification import router as gamification_router

__all__ = ["gamification_router"]
