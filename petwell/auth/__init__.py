"""
Authentication and Authorization Module

This module provides:
- Principal authentication with JWT bearer tokens
- Token revocation at logout
- Role-based access control with fixed permission bundles
"""

from .authenticator import RequestAuthenticator, extract_bearer_token
from .errors import (
    AccessDeniedError, AuthError, BadCredentialsError,
    EntityAlreadyExistsError, EntityNotFoundError, ErrorKind,
    RateLimitExceededError, TokenInvalidError
)
from .jwt_handler import JWTHandler
from .models import (
    AuthContext, EmployeeCreate, JobTitle, LoginRequest,
    Permission, Principal, PrincipalDTO, RegisterRequest,
    Role, Token, TokenData
)
from .repository import (
    InMemoryPrincipalRepository, PostgresPrincipalRepository, PrincipalRepository
)
from .revocation import RevocationCache
from .service import AuthService

__all__ = [
    # Models
    'AuthContext',
    'EmployeeCreate',
    'JobTitle',
    'LoginRequest',
    'Permission',
    'Principal',
    'PrincipalDTO',
    'RegisterRequest',
    'Role',
    'Token',
    'TokenData',

    # Errors
    'AuthError',
    'ErrorKind',
    'AccessDeniedError',
    'BadCredentialsError',
    'EntityAlreadyExistsError',
    'EntityNotFoundError',
    'RateLimitExceededError',
    'TokenInvalidError',

    # Token handling
    'JWTHandler',
    'RevocationCache',
    'RequestAuthenticator',
    'extract_bearer_token',

    # Service & Repositories
    'AuthService',
    'PrincipalRepository',
    'InMemoryPrincipalRepository',
    'PostgresPrincipalRepository',
]
