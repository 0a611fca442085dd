"""Domain models for the authentication service."""

from .user import User, UserSummary

__all__ = [
    "User",
    "UserSummary",
]
