"""Pytest configuration for all tests."""

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import pytest
from fastapi.testclient import TestClient

from app.application.services.auth_service import AuthService
from app.core.app_factory import build_container, create_application
from app.core.config import Settings
from app.core.dependencies import get_container
from app.domain.ports.email import EmailSendResult
from app.infrastructure.repositories.memory_user_repository import InMemoryUserRepository
from app.services.one_time_tokens import OneTimeTokenGenerator
from app.services.password_hasher import PasswordHasher
from app.services.password_policy import PasswordPolicy
from app.services.token_codec import TokenCodec

ACCESS_SECRET = "test-access-secret"
REFRESH_SECRET = "test-refresh-secret"
ADMIN_SECRET = "test-admin-secret"

_TOKEN_IN_LINK = re.compile(r"token=([0-9a-f]+)")


@dataclass
class SentEmail:
    to: str
    subject: str
    body: str
    html_body: Optional[str]

    @property
    def token(self) -> str:
        match = _TOKEN_IN_LINK.search(self.body)
        assert match, f"no token link in email body: {self.body!r}"
        return match.group(1)


class RecordingEmailDispatcher:
    """Email dispatcher double that keeps sent messages and can be told to fail."""

    def __init__(self) -> None:
        self.sent: List[SentEmail] = []
        self.fail = False

    def send(self, to, subject, body, html_body=None) -> EmailSendResult:
        if self.fail:
            return EmailSendResult(success=False, error="SMTP unavailable")
        self.sent.append(SentEmail(to, subject, body, html_body))
        return EmailSendResult(success=True, message_id=f"<{len(self.sent)}@test>")

    def last_to(self, email: str) -> SentEmail:
        for message in reversed(self.sent):
            if message.to == email:
                return message
        raise AssertionError(f"no email sent to {email}")


class FakeClock:
    def __init__(self) -> None:
        self.now = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta) -> None:
        self.now += timedelta(**delta)


@pytest.fixture
def user_repository():
    return InMemoryUserRepository()


@pytest.fixture
def email_dispatcher():
    return RecordingEmailDispatcher()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def password_hasher():
    # Minimum bcrypt cost keeps the suite fast
    return PasswordHasher(rounds=4)


@pytest.fixture
def token_codec():
    return TokenCodec(access_secret=ACCESS_SECRET, refresh_secret=REFRESH_SECRET)


@pytest.fixture
def make_auth_service(user_repository, email_dispatcher, token_codec, password_hasher, clock):
    def _make(**overrides) -> AuthService:
        options = dict(
            user_repository=user_repository,
            email_dispatcher=email_dispatcher,
            token_codec=token_codec,
            password_hasher=password_hasher,
            password_policy=PasswordPolicy(),
            verification_tokens=OneTimeTokenGenerator(timedelta(hours=24), clock=clock),
            reset_tokens=OneTimeTokenGenerator(timedelta(hours=1), clock=clock),
            frontend_base_url="http://frontend.test",
            clock=clock,
        )
        options.update(overrides)
        return AuthService(**options)

    return _make


@pytest.fixture
def auth_service(make_auth_service):
    return make_auth_service()


@pytest.fixture
def settings(monkeypatch, tmp_path):
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "app.db"))
    monkeypatch.setenv("JWT_ACCESS_SECRET", ACCESS_SECRET)
    monkeypatch.setenv("JWT_REFRESH_SECRET", REFRESH_SECRET)
    monkeypatch.setenv("BCRYPT_ROUNDS", "4")
    monkeypatch.setenv("ADMIN_SECRET", ADMIN_SECRET)
    monkeypatch.setenv("FRONTEND_BASE_URL", "http://frontend.test")
    for key in ("SMTP_HOST", "SKIP_EMAIL_VERIFICATION", "REFRESH_TOKEN_ROTATION", "COOKIE_SECURE"):
        monkeypatch.delenv(key, raising=False)
    return Settings()


@pytest.fixture
def container(settings, user_repository, email_dispatcher):
    return build_container(settings, user_repository, email_dispatcher)


@pytest.fixture
def client(settings, container):
    app = create_application(settings)
    app.dependency_overrides[get_container] = lambda: container
    return TestClient(app)
