"""
Authentication Middleware

FastAPI middleware for authentication, rate limiting, security headers
and request logging.
"""

import time
from typing import Callable, List, Optional
from uuid import uuid4

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from ..api.errors import auth_error_response, internal_error_response
from ..core.logging import get_logger, request_id_context
from ..core.metrics import RATE_LIMITED_REQUESTS
from ..core.rate_limiter import RateLimiter
from .authenticator import RequestAuthenticator
from .errors import AuthError, RateLimitExceededError

logger = get_logger(__name__)


def path_matches(path: str, prefix: str) -> bool:
    """Prefix match on path segment boundaries"""
    prefix = prefix.rstrip("/")
    return path == prefix or path.startswith(prefix + "/")


class AuthenticationMiddleware(BaseHTTPMiddleware):
    """
    Authentication middleware that validates bearer tokens

    This middleware:
    - Authenticates requests under the protected prefixes only
    - Attaches the AuthContext to request.state.auth
    - Answers 401 itself when authentication fails
    """

    def __init__(
        self,
        app: ASGIApp,
        authenticator: RequestAuthenticator,
        protected_prefixes: List[str]
    ):
        super().__init__(app)
        self.authenticator = authenticator
        self.protected_prefixes = protected_prefixes

    def is_protected(self, path: str) -> bool:
        return any(path_matches(path, prefix) for prefix in self.protected_prefixes)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not self.is_protected(request.url.path):
            return await call_next(request)

        try:
            request.state.auth = await self.authenticator.authenticate(
                request.headers.get("Authorization"),
                existing=getattr(request.state, "auth", None)
            )
        except AuthError as e:
            return auth_error_response(request, e)
        except Exception as e:
            logger.exception("Authentication failed unexpectedly", path=request.url.path, error=str(e))
            return internal_error_response(request)

        return await call_next(request)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Rate limiting middleware

    One bucket per authenticated principal, or per client IP otherwise.
    """

    def __init__(
        self,
        app: ASGIApp,
        limiter: RateLimiter,
        exclude_paths: Optional[List[str]] = None
    ):
        super().__init__(app)
        self.limiter = limiter
        self.exclude_paths = exclude_paths or ["/health", "/metrics"]

    @staticmethod
    def client_key(request: Request) -> str:
        context = getattr(request.state, "auth", None)
        if context is not None:
            return f"user:{context.principal.id}"
        host = request.client.host if request.client else "unknown"
        return f"ip:{host}"

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if any(path_matches(request.url.path, path) for path in self.exclude_paths):
            return await call_next(request)

        result = await self.limiter.check_rate_limit(self.client_key(request))
        if not result.allowed:
            RATE_LIMITED_REQUESTS.inc()
            return auth_error_response(
                request,
                RateLimitExceededError(
                    "Rate limit exceeded. Try again later.",
                    retry_after=result.retry_after
                )
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(result.rate_limit.limit)
        response.headers["X-RateLimit-Remaining"] = str(result.rate_limit.remaining)
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Security headers middleware

    Adds security headers to all responses.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Cache-Control"] = "no-store"

        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Request logging middleware

    Assigns a request id, logs each request with timing information.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid4())
        token = request_id_context.set(request_id)
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
            duration = time.perf_counter() - start_time

            logger.info(
                "Request completed",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round(duration * 1000, 2),
                client=request.client.host if request.client else None
            )

            response.headers["X-Request-ID"] = request_id
            response.headers["X-Process-Time"] = f"{duration:.3f}"
            return response
        finally:
            request_id_context.reset(token)
