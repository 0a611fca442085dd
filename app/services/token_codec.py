"""Signed access and refresh tokens.

Both classes are JWTs signed with class-specific secrets, so a refresh token
never verifies as an access token and vice versa.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

import jwt

from app.domain.exceptions import InvalidTokenError, TokenExpiredError, WrongTokenClassError

logger = logging.getLogger(__name__)


class TokenClass(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"


@dataclass(frozen=True, slots=True)
class TokenClaims:
    subject_id: str
    subject_email: str
    token_class: TokenClass
    token_id: Optional[str]
    expires_at: datetime


class TokenCodec:
    """Issues and verifies signed, expiring access/refresh tokens."""

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        access_ttl: timedelta = timedelta(minutes=15),
        refresh_ttl: timedelta = timedelta(days=7),
        algorithm: str = "HS256",
    ) -> None:
        if not access_secret or not refresh_secret:
            raise RuntimeError("JWT secrets are not configured.")
        if access_secret == refresh_secret:
            logger.warning(
                "Access and refresh tokens share a signing secret; class separation relies on the type claim only."
            )
        self._secrets = {TokenClass.ACCESS: access_secret, TokenClass.REFRESH: refresh_secret}
        self._ttls = {TokenClass.ACCESS: access_ttl, TokenClass.REFRESH: refresh_ttl}
        self._algorithm = algorithm

    def issue(
        self,
        subject_id: object,
        subject_email: str,
        token_class: TokenClass,
        token_id: Optional[str] = None,
    ) -> str:
        """
        Create a signed token.

        Args:
            subject_id: User id (stored as the ``sub`` claim)
            subject_email: User email
            token_class: ACCESS or REFRESH
            token_id: Optional ``jti``; refresh tokens get a random one if omitted

        Returns:
            Encoded JWT string
        """
        now = datetime.now(tz=timezone.utc)
        payload = {
            "sub": str(subject_id),
            "email": subject_email,
            "type": token_class.value,
            "iat": now,
            "exp": now + self._ttls[token_class],
        }
        if token_id is None and token_class is TokenClass.REFRESH:
            token_id = uuid.uuid4().hex
        if token_id is not None:
            payload["jti"] = token_id
        return jwt.encode(payload, self._secrets[token_class], algorithm=self._algorithm)

    def verify(self, token: str, expected_class: TokenClass) -> TokenClaims:
        """
        Verify signature, expiry and class of a token.

        Raises:
            TokenExpiredError: The token is past its ``exp``
            WrongTokenClassError: The token belongs to the other class
            InvalidTokenError: Signature or format failure
        """
        try:
            payload = jwt.decode(
                token,
                self._secrets[expected_class],
                algorithms=[self._algorithm],
                options={"require": ["sub", "exp", "type"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpiredError("Token has expired") from exc
        except jwt.InvalidSignatureError as exc:
            if self._signed_as_other_class(token, expected_class):
                raise WrongTokenClassError(f"Expected a {expected_class.value} token") from exc
            raise InvalidTokenError("Invalid token") from exc
        except jwt.InvalidTokenError as exc:
            raise InvalidTokenError("Invalid token") from exc

        if payload.get("type") != expected_class.value:
            raise WrongTokenClassError(f"Expected a {expected_class.value} token")
        email = payload.get("email")
        if not isinstance(email, str):
            raise InvalidTokenError("Invalid token")

        return TokenClaims(
            subject_id=payload["sub"],
            subject_email=email,
            token_class=expected_class,
            token_id=payload.get("jti"),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )

    def _signed_as_other_class(self, token: str, expected_class: TokenClass) -> bool:
        other = TokenClass.REFRESH if expected_class is TokenClass.ACCESS else TokenClass.ACCESS
        try:
            jwt.decode(
                token,
                self._secrets[other],
                algorithms=[self._algorithm],
                options={"verify_exp": False},
            )
        except jwt.InvalidTokenError:
            return False
        return True
