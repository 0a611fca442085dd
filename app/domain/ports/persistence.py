from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional, Protocol

from ..models import User


class UserRepository(Protocol):
    """Persistence functions related to user accounts.

    ``create`` raises ``DuplicateEmailError`` when the unique email constraint
    rejects the insert; ``update`` raises ``UserNotFoundError`` for an unknown id.
    When ``expected`` is given the write only happens if every listed column
    still holds that value, checked in the same step as the write; otherwise
    ``StaleUserError`` is raised and nothing changes.
    """

    def get_by_email(self, email: str) -> Optional[User]:
        ...

    def get_by_id(self, user_id: int) -> Optional[User]:
        ...

    def get_by_verification_token(self, token: str) -> Optional[User]:
        ...

    def get_by_reset_token(self, token: str) -> Optional[User]:
        ...

    def create(
        self,
        email: str,
        password_hash: str,
        verification_token: Optional[str] = None,
        verification_expires_at: Optional[datetime] = None,
    ) -> User:
        ...

    def update(self, user_id: int, expected: Optional[Mapping[str, Any]] = None, **fields: Any) -> User:
        ...


UPDATABLE_USER_FIELDS = frozenset(
    {
        "password_hash",
        "is_verified",
        "verification_token",
        "verification_expires_at",
        "reset_token",
        "reset_expires_at",
        "refresh_token_id",
    }
)


def check_update_fields(fields: dict) -> None:
    unknown = set(fields) - UPDATABLE_USER_FIELDS
    if unknown:
        raise ValueError(f"Unsupported user fields: {', '.join(sorted(unknown))}")
