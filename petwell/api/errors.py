"""
Error translation

Maps the auth core's error kinds to HTTP status codes and renders the
structured error body. Middleware that short-circuits a request calls
these helpers directly because exceptions raised inside
BaseHTTPMiddleware never reach the app's exception handlers.
"""

import math
from typing import Dict

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..auth.errors import AuthError, ErrorKind, RateLimitExceededError
from ..core.logging import get_logger
from .responses import envelope

logger = get_logger(__name__)

STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.BAD_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.TOKEN_INVALID: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.ENTITY_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.ENTITY_ALREADY_EXISTS: status.HTTP_409_CONFLICT,
    ErrorKind.ACCESS_DENIED: status.HTTP_403_FORBIDDEN,
    ErrorKind.RATE_LIMIT_EXCEEDED: status.HTTP_429_TOO_MANY_REQUESTS,
}


def auth_error_response(request: Request, exc: AuthError) -> JSONResponse:
    """Render an AuthError with its mapped status"""
    status_code = STATUS_BY_KIND[exc.kind]
    headers = {}

    if status_code == status.HTTP_401_UNAUTHORIZED:
        headers["WWW-Authenticate"] = "Bearer"
    if isinstance(exc, RateLimitExceededError) and exc.retry_after is not None:
        headers["Retry-After"] = str(max(1, math.ceil(exc.retry_after)))

    return envelope(request, status_code, exc.message, headers=headers or None)


def internal_error_response(request: Request) -> JSONResponse:
    return envelope(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "An unexpected error occurred"
    )


async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    return auth_error_response(request, exc)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Field-level validation failures as 400"""
    errors = {}
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        errors[".".join(loc) or "body"] = error.get("msg", "Invalid value")

    return envelope(
        request,
        status.HTTP_400_BAD_REQUEST,
        "Validation failed",
        errors=errors
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler: log with traceback, answer 500"""
    logger.exception("Unhandled exception", path=request.url.path, error=str(exc))
    return internal_error_response(request)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AuthError, auth_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
