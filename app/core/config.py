import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


class Settings:
    """Centralised application configuration sourced from environment variables."""

    def __init__(self) -> None:
        load_dotenv()
        self.database_path = Path(os.getenv("DATABASE_PATH", "data/app.db")).resolve()
        self.jwt_access_secret = os.getenv("JWT_ACCESS_SECRET", "change-me-access")
        self.jwt_refresh_secret = os.getenv("JWT_REFRESH_SECRET", "change-me-refresh")
        self.jwt_algorithm = os.getenv("JWT_ALGORITHM", "HS256")
        self.access_token_exp_minutes = self._get_int("ACCESS_TOKEN_EXP_MINUTES", default=15)
        self.refresh_token_exp_days = self._get_int("REFRESH_TOKEN_EXP_DAYS", default=7)
        self.refresh_token_rotation = self._get_bool("REFRESH_TOKEN_ROTATION", default=True)
        self.verification_token_exp_hours = self._get_int("VERIFICATION_TOKEN_EXP_HOURS", default=24)
        self.reset_token_exp_minutes = self._get_int("RESET_TOKEN_EXP_MINUTES", default=60)
        self.bcrypt_rounds = self._get_int("BCRYPT_ROUNDS", default=10)
        self.password_min_length = self._get_int("PASSWORD_MIN_LENGTH", default=8)
        self.password_require_complexity = self._get_bool("PASSWORD_REQUIRE_COMPLEXITY", default=True)
        self.skip_email_verification = self._get_bool("SKIP_EMAIL_VERIFICATION", default=False)
        self.admin_secret = os.getenv("ADMIN_SECRET") or None
        self.frontend_base_url = os.getenv("FRONTEND_BASE_URL", "http://localhost:3001")
        self.smtp_host = os.getenv("SMTP_HOST")
        self.smtp_port = self._get_int("SMTP_PORT", default=587)
        self.smtp_username = os.getenv("SMTP_USERNAME")
        self.smtp_password = os.getenv("SMTP_PASSWORD")
        self.smtp_from_email = os.getenv("SMTP_FROM_EMAIL")
        self.smtp_from_name = os.getenv("SMTP_FROM_NAME", "CRM Portal")
        self.cookie_secure = self._get_bool("COOKIE_SECURE", default=False)
        origins = os.getenv("CORS_ALLOW_ORIGINS")
        if origins:
            self.cors_allow_origins = [item.strip() for item in origins.split(",") if item.strip()]
        else:
            self.cors_allow_origins = ["*"]

    @property
    def uses_default_secrets(self) -> bool:
        return self.jwt_access_secret.startswith("change-me") or self.jwt_refresh_secret.startswith("change-me")

    @staticmethod
    def _get_int(key: str, default: Optional[int] = None) -> int:
        value = os.getenv(key)
        if value is None:
            if default is None:
                raise RuntimeError(f"Missing required environment variable: {key}")
            return default
        try:
            return int(value)
        except ValueError as exc:
            raise RuntimeError(f"Environment variable {key} must be an integer") from exc

    @staticmethod
    def _get_bool(key: str, default: bool = False) -> bool:
        value = os.getenv(key)
        if value is None or value.strip() == "":
            return default
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "on"}:
            return True
        if normalized in {"0", "false", "no", "off"}:
            return False
        raise RuntimeError(f"Environment variable {key} must be a boolean")
