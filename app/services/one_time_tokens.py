"""Random single-use tokens for email verification and password reset."""

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


def is_expired(expires_at: Optional[datetime], now: datetime) -> bool:
    """A token without an expiry is treated as expired."""
    if expires_at is None:
        return True
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return expires_at <= now


@dataclass(frozen=True, slots=True)
class OneTimeToken:
    token: str
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return is_expired(self.expires_at, now)


class OneTimeTokenGenerator:
    """Produces opaque bearer secrets compared by exact match plus expiry."""

    def __init__(self, lifetime: timedelta, nbytes: int = 32, clock: Optional[Clock] = None):
        if nbytes < 32:
            raise ValueError("One-time tokens need at least 32 bytes of entropy")
        self.lifetime = lifetime
        self.nbytes = nbytes
        self._clock = clock or utc_now

    def generate(self) -> OneTimeToken:
        return OneTimeToken(
            token=secrets.token_hex(self.nbytes),
            expires_at=self._clock() + self.lifetime,
        )
