"""Translate domain errors into HTTP responses.

STATUS_BY_ERROR is the only place HTTP status codes are assigned to domain
errors. Lookup walks the exception's MRO, so a subclass may override its
parent's status (InvalidInviteCodeError is a 404, InvalidCodeError a 401).
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from oyakatsu.errors import (
    AlreadyMemberError,
    AppError,
    CannotLeaveError,
    FamilyFullError,
    ForbiddenError,
    InvalidCodeError,
    InvalidCredentialsError,
    InvalidInviteCodeError,
    InvalidTokenError,
    InvalidVerificationError,
    MissingTokenError,
    NotFoundError,
    NotImplementedFeatureError,
    NotMemberError,
    RoleAlreadySetError,
    RoleRequiredError,
    TokenExpiredError,
    UnauthorizedError,
    UserExistsError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: dict[type[AppError], int] = {
    UnauthorizedError: status.HTTP_401_UNAUTHORIZED,
    TokenExpiredError: status.HTTP_401_UNAUTHORIZED,
    InvalidTokenError: status.HTTP_401_UNAUTHORIZED,
    InvalidCredentialsError: status.HTTP_401_UNAUTHORIZED,
    InvalidCodeError: status.HTTP_401_UNAUTHORIZED,
    InvalidInviteCodeError: status.HTTP_404_NOT_FOUND,
    MissingTokenError: status.HTTP_400_BAD_REQUEST,
    InvalidVerificationError: status.HTTP_400_BAD_REQUEST,
    UserExistsError: status.HTTP_409_CONFLICT,
    RoleRequiredError: status.HTTP_403_FORBIDDEN,
    ForbiddenError: status.HTTP_403_FORBIDDEN,
    RoleAlreadySetError: status.HTTP_409_CONFLICT,
    AlreadyMemberError: status.HTTP_409_CONFLICT,
    FamilyFullError: status.HTTP_400_BAD_REQUEST,
    NotMemberError: status.HTTP_404_NOT_FOUND,
    CannotLeaveError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    NotImplementedFeatureError: status.HTTP_501_NOT_IMPLEMENTED,
}


def status_for(exc: AppError) -> int:
    for cls in type(exc).__mro__:
        if cls in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[cls]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_body(code: str, message: str, **extra) -> dict:
    return {"error": {"code": code, "message": message, **extra}}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    status_code = status_for(exc)
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(
        status_code=status_code,
        content=error_body(exc.code, exc.message),
        headers=headers,
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("VALIDATION_ERROR", "Invalid input", details=details),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled exception on %s %s: %s", request.method, request.url.path, exc, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("INTERNAL_ERROR", "An unexpected error occurred"),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
