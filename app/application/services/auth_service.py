from __future__ import annotations

import hmac
import logging
import secrets
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from email_validator import EmailNotValidError, validate_email

from ...domain.exceptions import DuplicateEmailError, StaleUserError, TokenError, UserNotFoundError
from ...domain.models import User, UserSummary
from ...domain.ports.email import EmailDispatcher, EmailSendResult
from ...domain.ports.persistence import UserRepository
from ...domain.results import Err, ErrorCode, Ok, Result
from ...services import email_messages
from ...services.email_messages import EmailMessage
from ...services.one_time_tokens import Clock, OneTimeTokenGenerator, is_expired, utc_now
from ...services.password_hasher import PasswordHasher
from ...services.password_policy import PasswordPolicy
from ...services.token_codec import TokenClaims, TokenClass, TokenCodec

logger = logging.getLogger(__name__)

REGISTERED_MESSAGE = "Registration successful. Please check your email to verify your account."
VERIFIED_MESSAGE = "Email verified successfully."
RESENT_MESSAGE = "Verification email sent."
FORGOT_PASSWORD_MESSAGE = "If an account exists for this email, a password reset link has been sent."
PASSWORD_RESET_MESSAGE = "Password has been reset successfully."
LOGGED_OUT_MESSAGE = "Logged out successfully."

_INVALID_CREDENTIALS = Err(ErrorCode.INVALID_CREDENTIALS, "Invalid credentials")
_INVALID_REFRESH = Err(ErrorCode.INVALID_REFRESH_TOKEN, "Invalid or expired refresh token")


@dataclass(frozen=True, slots=True)
class LoginResult:
    access_token: str
    refresh_token: str
    user: UserSummary


@dataclass(frozen=True, slots=True)
class RefreshResult:
    access_token: str
    refresh_token: Optional[str] = None


class AuthService:
    """Coordinates registration, verification, login and token lifecycle flows.

    Every operation returns ``Ok`` or ``Err``; exceptions from the store and
    the token codec are translated here.
    """

    def __init__(
        self,
        user_repository: UserRepository,
        email_dispatcher: EmailDispatcher,
        token_codec: TokenCodec,
        password_hasher: Optional[PasswordHasher] = None,
        password_policy: Optional[PasswordPolicy] = None,
        verification_tokens: Optional[OneTimeTokenGenerator] = None,
        reset_tokens: Optional[OneTimeTokenGenerator] = None,
        frontend_base_url: str = "http://localhost:3001",
        skip_verification: bool = False,
        rotate_refresh_tokens: bool = True,
        clock: Optional[Clock] = None,
    ) -> None:
        self._users = user_repository
        self._email = email_dispatcher
        self._tokens = token_codec
        self._hasher = password_hasher or PasswordHasher()
        self._policy = password_policy or PasswordPolicy()
        self._clock = clock or utc_now
        self._verification_tokens = verification_tokens or OneTimeTokenGenerator(
            timedelta(hours=24), clock=self._clock
        )
        self._reset_tokens = reset_tokens or OneTimeTokenGenerator(
            timedelta(hours=1), clock=self._clock
        )
        self._frontend_base_url = frontend_base_url
        self._skip_verification = skip_verification
        self._rotate_refresh_tokens = rotate_refresh_tokens
        if skip_verification:
            logger.warning("Email verification is disabled for login (SKIP_EMAIL_VERIFICATION).")
        # Compared against on unknown emails so both login failures cost one hash check
        self._dummy_hash = self._hasher.hash(secrets.token_hex(16))

    # ------------------------------------------------------------------
    def register(self, email: str, password: str) -> Result[str]:
        email = email.strip()
        problem = self._validate_email(email) or self._policy.validate(password)
        if problem:
            return Err(ErrorCode.VALIDATION_ERROR, problem)

        if self._users.get_by_email(email):
            return Err(ErrorCode.EMAIL_EXISTS, "Email already registered")

        verification = self._verification_tokens.generate()
        try:
            user = self._users.create(
                email=email,
                password_hash=self._hasher.hash(password),
                verification_token=verification.token,
                verification_expires_at=verification.expires_at,
            )
        except DuplicateEmailError:
            # Lost a race with a concurrent registration for the same email
            return Err(ErrorCode.EMAIL_EXISTS, "Email already registered")

        logger.info("Registered user %s", user.id)
        sent = self._dispatch(user.email, self._verification_message(user.email, verification.token))
        if not sent.success:
            logger.error("Verification email for user %s could not be sent; a resend is required", user.id)
        return Ok(REGISTERED_MESSAGE)

    def login(self, email: str, password: str) -> Result[LoginResult]:
        user = self._users.get_by_email(email.strip())
        if user is None:
            self._hasher.verify(password, self._dummy_hash)
            return _INVALID_CREDENTIALS
        if not self._hasher.verify(password, user.password_hash):
            logger.info("Failed login for user %s", user.id)
            return _INVALID_CREDENTIALS

        if not user.is_verified:
            if not self._skip_verification:
                return Err(
                    ErrorCode.ACCOUNT_NOT_VERIFIED,
                    "Account not verified. Please check your email for the verification link.",
                )
            logger.info("Login for unverified user %s allowed by policy", user.id)

        access_token = self._tokens.issue(user.id, user.email, TokenClass.ACCESS)
        refresh_token, token_id = self._issue_refresh(user)
        try:
            self._users.update(user.id, refresh_token_id=token_id)
        except UserNotFoundError:
            return _INVALID_CREDENTIALS

        logger.info("User %s logged in", user.id)
        return Ok(LoginResult(access_token=access_token, refresh_token=refresh_token, user=user.summary()))

    def verify_email(self, token: str, email: Optional[str] = None) -> Result[str]:
        invalid = Err(ErrorCode.INVALID_TOKEN, "Invalid or expired verification token")
        if not token:
            return invalid
        user = self._users.get_by_verification_token(token)
        if user is None or user.is_verified:
            return invalid
        if is_expired(user.verification_expires_at, self._clock()):
            return invalid
        if email is not None and email.strip() != user.email:
            return invalid

        try:
            self._users.update(
                user.id,
                expected={"verification_token": token, "is_verified": False},
                is_verified=True,
                verification_token=None,
                verification_expires_at=None,
            )
        except (StaleUserError, UserNotFoundError):
            return invalid
        logger.info("User %s verified their email", user.id)
        return Ok(VERIFIED_MESSAGE)

    def resend_verification(self, email: str) -> Result[str]:
        user = self._users.get_by_email(email.strip())
        if user is None:
            return Err(ErrorCode.USER_NOT_FOUND, "User not found")
        if user.is_verified:
            return Err(ErrorCode.ALREADY_VERIFIED, "Email already verified")

        previous_token = user.verification_token
        previous_expires_at = user.verification_expires_at
        verification = self._verification_tokens.generate()
        try:
            self._users.update(
                user.id,
                expected={"is_verified": False},
                verification_token=verification.token,
                verification_expires_at=verification.expires_at,
            )
        except StaleUserError:
            return Err(ErrorCode.ALREADY_VERIFIED, "Email already verified")
        except UserNotFoundError:
            return Err(ErrorCode.USER_NOT_FOUND, "User not found")

        sent = self._dispatch(user.email, self._verification_message(user.email, verification.token))
        if not sent.success:
            self._restore(
                user.id,
                {"verification_token": verification.token},
                verification_token=previous_token,
                verification_expires_at=previous_expires_at,
            )
            return Err(ErrorCode.EMAIL_SEND_FAILED, "Failed to send verification email")
        return Ok(RESENT_MESSAGE)

    def forgot_password(self, email: str) -> Result[str]:
        user = self._users.get_by_email(email.strip())
        if user is None:
            logger.info("Password reset requested for an unknown email")
            return Ok(FORGOT_PASSWORD_MESSAGE)

        previous_token = user.reset_token
        previous_expires_at = user.reset_expires_at
        reset = self._reset_tokens.generate()
        self._users.update(user.id, reset_token=reset.token, reset_expires_at=reset.expires_at)

        message = email_messages.password_reset_email(
            self._frontend_base_url,
            reset.token,
            int(self._reset_tokens.lifetime.total_seconds() // 60),
        )
        sent = self._dispatch(user.email, message)
        if not sent.success:
            self._restore(
                user.id,
                {"reset_token": reset.token},
                reset_token=previous_token,
                reset_expires_at=previous_expires_at,
            )
            logger.error("Password reset email for user %s could not be sent", user.id)
        return Ok(FORGOT_PASSWORD_MESSAGE)

    def reset_password(self, token: str, new_password: str) -> Result[str]:
        invalid = Err(ErrorCode.INVALID_OR_EXPIRED_TOKEN, "Invalid or expired reset token")
        user = self._users.get_by_reset_token(token) if token else None
        if user is None or is_expired(user.reset_expires_at, self._clock()):
            return invalid

        problem = self._policy.validate(new_password)
        if problem:
            return Err(ErrorCode.VALIDATION_ERROR, problem)

        try:
            self._users.update(
                user.id,
                expected={"reset_token": token},
                password_hash=self._hasher.hash(new_password),
                reset_token=None,
                reset_expires_at=None,
                refresh_token_id=None,
            )
        except (StaleUserError, UserNotFoundError):
            return invalid
        logger.info("User %s reset their password", user.id)
        return Ok(PASSWORD_RESET_MESSAGE)

    def refresh(self, refresh_token: Optional[str]) -> Result[RefreshResult]:
        if not refresh_token:
            return _INVALID_REFRESH
        try:
            claims = self._tokens.verify(refresh_token, TokenClass.REFRESH)
        except TokenError as exc:
            logger.info("Refresh token rejected (%s)", exc.code)
            return _INVALID_REFRESH

        user = self._user_from_claims(claims)
        if user is None or not self._is_current_refresh(user, claims):
            return _INVALID_REFRESH

        access_token = self._tokens.issue(user.id, user.email, TokenClass.ACCESS)
        if not self._rotate_refresh_tokens:
            return Ok(RefreshResult(access_token=access_token))

        new_refresh_token, token_id = self._issue_refresh(user)
        try:
            self._users.update(user.id, expected={"refresh_token_id": claims.token_id}, refresh_token_id=token_id)
        except (StaleUserError, UserNotFoundError):
            return _INVALID_REFRESH
        return Ok(RefreshResult(access_token=access_token, refresh_token=new_refresh_token))

    def logout(self, refresh_token: Optional[str] = None) -> Result[str]:
        """Always succeeds; a valid refresh token is also revoked server-side."""
        if refresh_token:
            try:
                claims = self._tokens.verify(refresh_token, TokenClass.REFRESH)
            except TokenError:
                claims = None
            user = self._user_from_claims(claims) if claims else None
            if user is not None and self._is_current_refresh(user, claims):
                try:
                    self._users.update(user.id, expected={"refresh_token_id": claims.token_id}, refresh_token_id=None)
                except (StaleUserError, UserNotFoundError):
                    logger.info("Refresh session of user %s already replaced or removed", user.id)
        return Ok(LOGGED_OUT_MESSAGE)

    def get_current_user(self, subject_id: object) -> Result[UserSummary]:
        user = self._find_user(subject_id)
        if user is None:
            return Err(ErrorCode.USER_NOT_FOUND, "User not found")
        return Ok(user.summary())

    def authenticate(self, access_token: Optional[str]) -> Result[UserSummary]:
        """Resolve an access token to the live user it was issued for."""
        if not access_token:
            return Err(ErrorCode.INVALID_ACCESS_TOKEN, "Authentication token is required")
        try:
            claims = self._tokens.verify(access_token, TokenClass.ACCESS)
        except TokenError as exc:
            logger.info("Access token rejected (%s)", exc.code)
            return Err(ErrorCode.INVALID_ACCESS_TOKEN, "Invalid or expired token")
        user = self._user_from_claims(claims)
        if user is None:
            return Err(ErrorCode.INVALID_ACCESS_TOKEN, "Invalid or expired token")
        return Ok(user.summary())

    def admin_verify_email(self, email: str) -> Result[str]:
        """Mark an account verified without a token; callers must hold the admin capability."""
        user = self._users.get_by_email(email.strip())
        if user is None:
            return Err(ErrorCode.USER_NOT_FOUND, "User not found")
        if user.is_verified:
            return Err(ErrorCode.ALREADY_VERIFIED, "Email already verified")
        try:
            self._users.update(
                user.id,
                expected={"is_verified": False},
                is_verified=True,
                verification_token=None,
                verification_expires_at=None,
            )
        except StaleUserError:
            return Err(ErrorCode.ALREADY_VERIFIED, "Email already verified")
        except UserNotFoundError:
            return Err(ErrorCode.USER_NOT_FOUND, "User not found")
        logger.warning("User %s verified by administrator", user.id)
        return Ok(VERIFIED_MESSAGE)

    # ------------------------------------------------------------------
    def _issue_refresh(self, user: User) -> tuple[str, str]:
        token_id = secrets.token_hex(16)
        return self._tokens.issue(user.id, user.email, TokenClass.REFRESH, token_id=token_id), token_id

    @staticmethod
    def _is_current_refresh(user: User, claims: TokenClaims) -> bool:
        if not user.refresh_token_id or not claims.token_id:
            return False
        return hmac.compare_digest(user.refresh_token_id, claims.token_id)

    def _user_from_claims(self, claims: TokenClaims) -> Optional[User]:
        user = self._find_user(claims.subject_id)
        if user is None or user.email != claims.subject_email:
            return None
        return user

    def _find_user(self, subject_id: object) -> Optional[User]:
        try:
            user_id = int(subject_id)
        except (TypeError, ValueError):
            return None
        return self._users.get_by_id(user_id)

    def _restore(self, user_id: int, expected: dict, **fields: object) -> None:
        """Put back token fields after a failed email unless another request already replaced them."""
        try:
            self._users.update(user_id, expected=expected, **fields)
        except (StaleUserError, UserNotFoundError):
            logger.info("Skipped token rollback for user %s; the record changed meanwhile", user_id)

    def _verification_message(self, email: str, token: str) -> EmailMessage:
        return email_messages.verification_email(
            self._frontend_base_url,
            token,
            email,
            int(self._verification_tokens.lifetime.total_seconds() // 3600),
        )

    def _dispatch(self, to: str, message: EmailMessage) -> EmailSendResult:
        try:
            return self._email.send(to, message.subject, message.body, html_body=message.html_body)
        except Exception as exc:  # dispatcher implementations may raise instead of reporting
            logger.exception("Email dispatch to %s raised", to)
            return EmailSendResult(success=False, error=str(exc))

    @staticmethod
    def _validate_email(email: str) -> Optional[str]:
        try:
            validate_email(email, check_deliverability=False)
        except EmailNotValidError as exc:
            return str(exc)
        return None
