"""User domain model for authentication and account lifecycle."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional


class User:
    """
    User entity owned by the user record store.

    Attributes:
        id: Unique identifier, assigned at creation
        email: User email address (unique, stored as given)
        password_hash: bcrypt hash of the password
        is_verified: Whether email has been verified
        verification_token: Pending email verification token
        verification_expires_at: Expiration timestamp for verification token
        reset_token: Pending password reset token
        reset_expires_at: Expiration timestamp for reset token
        refresh_token_id: Identifier (jti) of the current refresh token
        created_at: Account creation timestamp
        updated_at: Last update timestamp
    """

    def __init__(
        self,
        id: int,
        email: str,
        password_hash: str,
        is_verified: bool = False,
        verification_token: Optional[str] = None,
        verification_expires_at: Optional[datetime] = None,
        reset_token: Optional[str] = None,
        reset_expires_at: Optional[datetime] = None,
        refresh_token_id: Optional[str] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ):
        self.id = id
        self.email = email
        self.password_hash = password_hash
        self.is_verified = is_verified
        self.verification_token = verification_token
        self.verification_expires_at = verification_expires_at
        self.reset_token = reset_token
        self.reset_expires_at = reset_expires_at
        self.refresh_token_id = refresh_token_id
        self.created_at = created_at or datetime.now(tz=timezone.utc)
        self.updated_at = updated_at or datetime.now(tz=timezone.utc)

    def summary(self) -> "UserSummary":
        return UserSummary(id=self.id, email=self.email)

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email} verified={self.is_verified}>"


@dataclass(frozen=True, slots=True)
class UserSummary:
    """Public view of a user; never carries the hash or any token."""

    id: int
    email: str
