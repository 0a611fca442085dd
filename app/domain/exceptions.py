"""Exceptions raised by the persistence and token layers.

The auth service translates these into tagged results; they never reach the
HTTP layer directly.
"""


class RepositoryError(Exception):
    """Base error for the user record store."""


class UserNotFoundError(RepositoryError):
    """Raised when an update targets a user id that does not exist."""

    def __init__(self, user_id: object) -> None:
        super().__init__(f"User {user_id} not found")
        self.user_id = user_id


class StaleUserError(RepositoryError):
    """Raised when a conditional update finds the row no longer holds the expected values."""

    def __init__(self, user_id: object) -> None:
        super().__init__(f"User {user_id} was modified concurrently")
        self.user_id = user_id


class DuplicateEmailError(RepositoryError):
    """Raised when the unique email constraint rejects an insert."""

    def __init__(self, email: str) -> None:
        super().__init__("Email already registered")
        self.email = email


class TokenError(Exception):
    """Base error for signed access/refresh token verification."""

    code = "TOKEN_INVALID"


class InvalidTokenError(TokenError):
    code = "TOKEN_INVALID"


class TokenExpiredError(TokenError):
    code = "TOKEN_EXPIRED"


class WrongTokenClassError(TokenError):
    code = "TOKEN_WRONG_CLASS"
