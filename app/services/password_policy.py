"""Password strength rules applied on registration and reset."""

from typing import Optional

# bcrypt only reads the first 72 bytes of its input
MAX_PASSWORD_BYTES = 72
SPECIAL_CHARACTERS = "@$!%*?&#^()-_=+[]{};:'\",.<>/\\|`~"


class PasswordPolicy:
    def __init__(self, min_length: int = 8, require_complexity: bool = True):
        self.min_length = min_length
        self.require_complexity = require_complexity

    def validate(self, password: str) -> Optional[str]:
        """Return the first violated rule as a message, or None if acceptable."""
        if len(password) < self.min_length:
            return f"Password must be at least {self.min_length} characters long"
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            return f"Password must be at most {MAX_PASSWORD_BYTES} bytes long"
        if not self.require_complexity:
            return None
        if not any(ch.islower() for ch in password):
            return "Password must contain at least one lowercase letter"
        if not any(ch.isupper() for ch in password):
            return "Password must contain at least one uppercase letter"
        if not any(ch.isdigit() for ch in password):
            return "Password must contain at least one number"
        if not any(ch in SPECIAL_CHARACTERS for ch in password):
            return "Password must contain at least one special character"
        return None
