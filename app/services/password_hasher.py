"""Password hashing with bcrypt."""

import bcrypt

DEFAULT_ROUNDS = 10


class PasswordHasher:
    """Salted one-way hashing of plaintext passwords."""

    def __init__(self, rounds: int = DEFAULT_ROUNDS):
        self.rounds = rounds

    def hash(self, password: str) -> str:
        """
        Hash a plaintext password.

        Args:
            password: Plain text password

        Returns:
            bcrypt hash string (a new salt is drawn on every call)
        """
        return bcrypt.hashpw(
            password.encode("utf-8"), bcrypt.gensalt(rounds=self.rounds)
        ).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        """
        Check a plaintext password against a stored hash.

        Args:
            password: Plain text password
            password_hash: Stored bcrypt hash

        Returns:
            True if the password matches; False on mismatch or malformed hash
        """
        try:
            return bcrypt.checkpw(
                password.encode("utf-8"), password_hash.encode("utf-8")
            )
        except (ValueError, TypeError):
            return False
