import hmac
import logging
from typing import Optional

from fastapi import Depends, Header, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ...application.services.auth_service import AuthService
from ...core.config import Settings
from ...core.dependencies import get_auth_service, get_settings
from ...domain.models import UserSummary
from .errors import ApiError, unwrap

logger = logging.getLogger(__name__)

ACCESS_TOKEN_COOKIE = "accessToken"

_bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> UserSummary:
    """Resolve the access token (bearer header or cookie) to the live user, or 401."""
    if credentials is not None and credentials.scheme.lower() == "bearer":
        token = credentials.credentials
    else:
        token = request.cookies.get(ACCESS_TOKEN_COOKIE)
    return unwrap(auth_service.authenticate(token))


def require_admin(
    request: Request,
    x_admin_token: Optional[str] = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> None:
    if not settings.admin_secret:
        logger.warning("Admin route %s called but ADMIN_SECRET is not configured", request.url.path)
        raise ApiError("ADMIN_DISABLED", "Admin functionality is disabled", 403)
    if not x_admin_token or not hmac.compare_digest(
        x_admin_token.encode("utf-8"), settings.admin_secret.encode("utf-8")
    ):
        logger.warning("Invalid admin token used on %s", request.url.path)
        raise ApiError("ADMIN_FORBIDDEN", "Invalid admin credentials", 403)
