"""Error taxonomy for the auth core and its translation to HTTP responses.

Services raise :class:`AppError` with an :class:`ErrorKind`; the handlers
registered by :func:`register_error_handlers` turn it into the JSON envelope
``{"success": false, "error": <kind>, "message": <user-safe message>}``.
Invalid request bodies become a 400 ``ValidationError`` listing the
offending fields (never their values). Anything else becomes a generic 500.
"""

from enum import Enum

from config.config import settings
from core.logging import logger
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class ErrorKind(str, Enum):
    INVALID_CREDENTIALS = "InvalidCredentials"
    REFRESH_INVALID = "RefreshInvalid"
    REFRESH_EXPIRED = "RefreshExpired"
    ACCESS_TOKEN_REQUIRED = "AccessTokenRequired"
    ACCESS_TOKEN_EXPIRED = "AccessTokenExpired"
    INVALID_ACCESS_TOKEN = "InvalidAccessToken"
    INVALID_VERIFICATION_TOKEN = "InvalidOrExpiredVerificationToken"
    INVALID_RESET_TOKEN = "InvalidOrExpiredResetToken"
    USER_ALREADY_EXISTS = "UserAlreadyExists"
    USER_NOT_FOUND = "UserNotFound"


_STATUS_CODES = {
    ErrorKind.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.REFRESH_INVALID: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.REFRESH_EXPIRED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.ACCESS_TOKEN_REQUIRED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.ACCESS_TOKEN_EXPIRED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.INVALID_ACCESS_TOKEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.INVALID_VERIFICATION_TOKEN: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_RESET_TOKEN: status.HTTP_400_BAD_REQUEST,
    ErrorKind.USER_ALREADY_EXISTS: status.HTTP_409_CONFLICT,
    ErrorKind.USER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
}

_MESSAGES = {
    ErrorKind.INVALID_CREDENTIALS: "Invalid email or password",
    ErrorKind.REFRESH_INVALID: "Invalid or revoked refresh token",
    ErrorKind.REFRESH_EXPIRED: "Refresh token expired",
    ErrorKind.ACCESS_TOKEN_REQUIRED: "Access token required",
    ErrorKind.ACCESS_TOKEN_EXPIRED: "Access token expired",
    ErrorKind.INVALID_ACCESS_TOKEN: "Invalid access token",
    ErrorKind.INVALID_VERIFICATION_TOKEN: "Invalid or expired verification token",
    ErrorKind.INVALID_RESET_TOKEN: "Invalid or expired reset token",
    ErrorKind.USER_ALREADY_EXISTS: "User already exists with this email",
    ErrorKind.USER_NOT_FOUND: "User not found",
}


class AppError(Exception):
    """An expected, user-facing failure of an auth operation.

    Attributes:
        kind: The error kind.
        status_code: HTTP status the kind maps to.
        message: User-safe message.
    """

    def __init__(self, kind: ErrorKind, message: str | None = None):
        self.kind = kind
        self.status_code = _STATUS_CODES[kind]
        self.message = message or _MESSAGES[kind]
        super().__init__(self.message)


def error_response(
    error: str, message: str, status_code: int, details: dict | None = None
) -> JSONResponse:
    payload = {"success": False, "error": error, "message": message}
    if details:
        payload["details"] = details
    headers = None
    if status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(status_code=status_code, content=payload, headers=headers)


def register_error_handlers(app: FastAPI) -> None:
    """Install the AppError, validation and catch-all exception handlers on `app`."""

    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, err: AppError):
        logger.debug(
            "{} {} -> {} ({})", request.method, request.url.path, err.kind.value, err.status_code
        )
        return error_response(err.kind.value, err.message, err.status_code)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, err: RequestValidationError):
        # NOTE: `input` is dropped, it may hold the submitted password.
        fields = [
            {"loc": list(error.get("loc", ())), "msg": error.get("msg", "")}
            for error in err.errors()
        ]
        logger.debug("{} {} -> ValidationError {}", request.method, request.url.path, fields)
        return error_response(
            "ValidationError",
            "Request validation failed",
            status.HTTP_400_BAD_REQUEST,
            details={"fields": fields},
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, err: Exception):
        # NOTE: Internal details are only exposed in development.
        logger.opt(exception=err).error(
            "Unhandled error on {} {}", request.method, request.url.path
        )
        details = None
        if settings.is_development:
            details = {"type": err.__class__.__name__, "message": str(err)}
        return error_response(
            "InternalError",
            "An unexpected error occurred",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            details=details,
        )
