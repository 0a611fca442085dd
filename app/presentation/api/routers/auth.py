"""API router for account registration, verification and session tokens."""

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response, status

from ....application.services.auth_service import AuthService
from ....core.config import Settings
from ....core.dependencies import get_auth_service, get_settings
from ....domain.models import UserSummary
from ..dependencies import ACCESS_TOKEN_COOKIE, get_current_user
from ..errors import unwrap
from ..schemas.auth import (
    EmailRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RefreshTokenRequest,
    RefreshTokenResponse,
    RegisterRequest,
    ResetPasswordRequest,
    UserResponse,
    VerifyEmailRequest,
)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])

REFRESH_TOKEN_COOKIE = "refreshToken"
_COOKIE_PATH = "/"


@router.post("/register", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    message = unwrap(auth_service.register(payload.email, payload.password))
    return MessageResponse(message=message)


@router.post("/login", response_model=LoginResponse)
def login(
    payload: LoginRequest,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
) -> LoginResponse:
    result = unwrap(auth_service.login(payload.email, payload.password))
    _set_token_cookie(
        response, ACCESS_TOKEN_COOKIE, result.access_token, settings.access_token_exp_minutes * 60, settings
    )
    _set_token_cookie(
        response, REFRESH_TOKEN_COOKIE, result.refresh_token, settings.refresh_token_exp_days * 24 * 3600, settings
    )
    return LoginResponse(access_token=result.access_token, user=_user_response(result.user))


@router.post("/verify-email", response_model=MessageResponse)
def verify_email(
    payload: VerifyEmailRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    message = unwrap(auth_service.verify_email(payload.token, payload.email))
    return MessageResponse(message=message)


@router.get("/verify-email/{token}", response_model=MessageResponse)
def verify_email_link(
    token: str,
    email: Optional[str] = None,
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    message = unwrap(auth_service.verify_email(token, email))
    return MessageResponse(message=message)


@router.post("/resend-verification", response_model=MessageResponse)
def resend_verification(
    payload: EmailRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    message = unwrap(auth_service.resend_verification(payload.email))
    return MessageResponse(message=message)


@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(
    payload: EmailRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    message = unwrap(auth_service.forgot_password(payload.email))
    return MessageResponse(message=message)


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(
    payload: ResetPasswordRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    message = unwrap(auth_service.reset_password(payload.token, payload.new_password))
    return MessageResponse(message=message)


@router.post("/refresh", response_model=RefreshTokenResponse, response_model_exclude_none=True)
def refresh_token(
    request: Request,
    response: Response,
    payload: Optional[RefreshTokenRequest] = None,
    auth_service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
) -> RefreshTokenResponse:
    body_token = payload.refresh_token if payload else None
    token = body_token or request.cookies.get(REFRESH_TOKEN_COOKIE)
    result = unwrap(auth_service.refresh(token))

    _set_token_cookie(
        response, ACCESS_TOKEN_COOKIE, result.access_token, settings.access_token_exp_minutes * 60, settings
    )
    if result.refresh_token:
        _set_token_cookie(
            response,
            REFRESH_TOKEN_COOKIE,
            result.refresh_token,
            settings.refresh_token_exp_days * 24 * 3600,
            settings,
        )
    # Body clients get the rotated token back; cookie clients keep it HTTP-only
    return RefreshTokenResponse(
        access_token=result.access_token,
        refresh_token=result.refresh_token if body_token else None,
    )


@router.post("/logout", response_model=MessageResponse)
def logout(
    request: Request,
    response: Response,
    payload: Optional[RefreshTokenRequest] = None,
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    token = (payload.refresh_token if payload else None) or request.cookies.get(REFRESH_TOKEN_COOKIE)
    message = unwrap(auth_service.logout(token))
    response.delete_cookie(ACCESS_TOKEN_COOKIE, path=_COOKIE_PATH)
    response.delete_cookie(REFRESH_TOKEN_COOKIE, path=_COOKIE_PATH)
    return MessageResponse(message=message)


@router.get("/me", response_model=UserResponse)
def me(
    current_user: UserSummary = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
) -> UserResponse:
    return _user_response(unwrap(auth_service.get_current_user(current_user.id)))


def _set_token_cookie(response: Response, name: str, value: str, max_age: int, settings: Settings) -> None:
    response.set_cookie(
        name,
        value,
        max_age=max_age,
        path=_COOKIE_PATH,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
    )


def _user_response(user: UserSummary) -> UserResponse:
    return UserResponse(id=user.id, email=user.email)
