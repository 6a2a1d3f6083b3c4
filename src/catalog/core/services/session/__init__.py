"""Login session management."""

from .user_session import UserSessionService

__all__ = ["UserSessionService"]
