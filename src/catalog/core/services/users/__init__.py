"""User accounts and sign-in."""

from .user_service import UserService

__all__ = ["UserService"]
