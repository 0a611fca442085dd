"""Tagged results returned by application services.

Routes map ``Err.code`` to an HTTP status in one place instead of catching
service exceptions one by one.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    CONFLICT = "conflict"
    AUTH_FAILURE = "auth_failure"
    NOT_FOUND = "not_found"
    DEPENDENCY_FAILURE = "dependency_failure"


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    EMAIL_EXISTS = "EMAIL_EXISTS"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    ACCOUNT_NOT_VERIFIED = "ACCOUNT_NOT_VERIFIED"
    INVALID_TOKEN = "INVALID_TOKEN"
    INVALID_OR_EXPIRED_TOKEN = "INVALID_OR_EXPIRED_TOKEN"
    INVALID_REFRESH_TOKEN = "INVALID_REFRESH_TOKEN"
    INVALID_ACCESS_TOKEN = "INVALID_ACCESS_TOKEN"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    ALREADY_VERIFIED = "ALREADY_VERIFIED"
    EMAIL_SEND_FAILED = "EMAIL_SEND_FAILED"

    @property
    def kind(self) -> ErrorKind:
        return _KINDS[self]


_KINDS = {
    ErrorCode.VALIDATION_ERROR: ErrorKind.VALIDATION,
    ErrorCode.EMAIL_EXISTS: ErrorKind.CONFLICT,
    ErrorCode.INVALID_CREDENTIALS: ErrorKind.AUTH_FAILURE,
    ErrorCode.ACCOUNT_NOT_VERIFIED: ErrorKind.AUTH_FAILURE,
    ErrorCode.INVALID_TOKEN: ErrorKind.AUTH_FAILURE,
    ErrorCode.INVALID_OR_EXPIRED_TOKEN: ErrorKind.AUTH_FAILURE,
    ErrorCode.INVALID_REFRESH_TOKEN: ErrorKind.AUTH_FAILURE,
    ErrorCode.INVALID_ACCESS_TOKEN: ErrorKind.AUTH_FAILURE,
    ErrorCode.USER_NOT_FOUND: ErrorKind.NOT_FOUND,
    ErrorCode.ALREADY_VERIFIED: ErrorKind.VALIDATION,
    ErrorCode.EMAIL_SEND_FAILED: ErrorKind.DEPENDENCY_FAILURE,
}


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class Err:
    code: ErrorCode
    message: str

    @property
    def ok(self) -> bool:
        return False

    @property
    def kind(self) -> ErrorKind:
        return self.code.kind


Result = Union[Ok[T], Err]
