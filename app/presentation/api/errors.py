"""Translate service results into HTTP responses."""

from typing import Any, Dict, Optional, TypeVar, Union

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ...domain.results import Err, ErrorCode, Ok, Result

T = TypeVar("T")

STATUS_BY_CODE: Dict[ErrorCode, int] = {
    ErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.EMAIL_EXISTS: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.ACCOUNT_NOT_VERIFIED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.INVALID_TOKEN: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_OR_EXPIRED_TOKEN: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_REFRESH_TOKEN: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.INVALID_ACCESS_TOKEN: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.USER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.ALREADY_VERIFIED: status.HTTP_400_BAD_REQUEST,
    ErrorCode.EMAIL_SEND_FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class ApiError(Exception):
    """Error rendered as ``{"code": ..., "message": ...}`` with the given status."""

    def __init__(self, code: Union[ErrorCode, str], message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.code = code.value if isinstance(code, ErrorCode) else code
        self.message = message
        if status_code is None:
            status_code = STATUS_BY_CODE.get(code, status.HTTP_500_INTERNAL_SERVER_ERROR)  # type: ignore[arg-type]
        self.status_code = status_code

    @classmethod
    def from_err(cls, err: Err) -> "ApiError":
        return cls(err.code, err.message)


def unwrap(result: Result[T]) -> T:
    """Return the value of an ``Ok`` or raise the matching ``ApiError``."""
    if isinstance(result, Ok):
        return result.value
    raise ApiError.from_err(result)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiError)
    async def _api_error_handler(_: Request, exc: ApiError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"code": exc.code, "message": exc.message},
        )

    @app.exception_handler(RequestValidationError)
    async def _validation_error_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
        content: Dict[str, Any] = {
            "code": ErrorCode.VALIDATION_ERROR.value,
            "message": "Validation Error",
            "details": jsonable_encoder(exc.errors(), custom_encoder={Exception: str}),
        }
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=content)
