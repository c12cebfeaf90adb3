"""
Authentication Errors

Closed error taxonomy raised by the auth core. The API layer maps each
ErrorKind to an HTTP status; nothing here formats HTTP responses.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Every failure the auth core can report to a caller"""
    BAD_CREDENTIALS = "bad_credentials"
    TOKEN_INVALID = "token_invalid"
    ENTITY_NOT_FOUND = "entity_not_found"
    ENTITY_ALREADY_EXISTS = "entity_already_exists"
    ACCESS_DENIED = "access_denied"
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"


class AuthError(Exception):
    """Base class for auth core errors"""

    kind: ErrorKind
    default_message: str = "Request failed"

    def __init__(self, message: Optional[str] = None, **details: Any):
        self.message = message or self.default_message
        self.details: Dict[str, Any] = details
        super().__init__(self.message)


class BadCredentialsError(AuthError):
    """Login failed. Never says whether the email exists."""
    kind = ErrorKind.BAD_CREDENTIALS
    default_message = "Invalid email or password"


class TokenInvalidError(AuthError):
    """Missing, malformed, expired, forged or revoked bearer token"""
    kind = ErrorKind.TOKEN_INVALID
    default_message = "Not authorized"


class EntityNotFoundError(AuthError):
    kind = ErrorKind.ENTITY_NOT_FOUND
    default_message = "Entity not found"


class EntityAlreadyExistsError(AuthError):
    kind = ErrorKind.ENTITY_ALREADY_EXISTS
    default_message = "Entity already exists"


class AccessDeniedError(AuthError):
    """Authenticated, but lacking the required permission"""
    kind = ErrorKind.ACCESS_DENIED
    default_message = "Access denied"


class RateLimitExceededError(AuthError):
    kind = ErrorKind.RATE_LIMIT_EXCEEDED
    default_message = "Rate limit exceeded."

    def __init__(self, message: Optional[str] = None, retry_after: Optional[float] = None, **details: Any):
        super().__init__(message, **details)
        self.retry_after = retry_after
