"""
Request Authenticator

Turns an Authorization header into a request-scoped AuthContext.
"""

from typing import Optional

from ..core.logging import get_logger
from ..core.metrics import TOKEN_REJECTIONS
from .errors import TokenInvalidError
from .jwt_handler import JWTHandler
from .models import AuthContext, Principal
from .repository import PrincipalRepository
from .revocation import RevocationCache

logger = get_logger(__name__)

BEARER_PREFIX = "Bearer "


def extract_bearer_token(authorization_header: Optional[str]) -> str:
    """
    Extract the token from a "Bearer <token>" header

    Raises:
        TokenInvalidError: if the header is missing or not a bearer header
    """
    if not authorization_header or not authorization_header.startswith(BEARER_PREFIX):
        raise TokenInvalidError("Missing or malformed authorization header")

    token = authorization_header[len(BEARER_PREFIX):].strip()
    if not token or " " in token:
        raise TokenInvalidError("Missing or malformed authorization header")

    return token


class RequestAuthenticator:
    """Validates bearer tokens against the codec, the store and the revocation cache"""

    def __init__(
        self,
        jwt_handler: JWTHandler,
        repository: PrincipalRepository,
        revocation_cache: RevocationCache
    ):
        self.jwt_handler = jwt_handler
        self.repository = repository
        self.revocation_cache = revocation_cache

    def _reject(self, reason: str, **log_fields) -> TokenInvalidError:
        TOKEN_REJECTIONS.labels(reason=reason).inc()
        logger.warning("Bearer token rejected", reason=reason, **log_fields)
        return TokenInvalidError()

    async def authenticate(
        self,
        authorization_header: Optional[str],
        existing: Optional[AuthContext] = None
    ) -> AuthContext:
        """
        Authenticate a request

        Args:
            authorization_header: Raw Authorization header value
            existing: Identity already established for this request, if any

        Returns:
            AuthContext for the request

        Raises:
            TokenInvalidError: on any authentication failure
        """
        try:
            token = extract_bearer_token(authorization_header)
        except TokenInvalidError:
            raise self._reject("missing_header")

        try:
            email = self.jwt_handler.extract_subject(token)
        except TokenInvalidError:
            raise self._reject("undecodable")

        principal = await self.repository.get_by_email(email)
        if principal is None:
            raise self._reject("unknown_principal", subject=email)

        if existing is not None:
            return existing

        if not principal.is_active:
            raise self._reject("inactive", principal_id=str(principal.id))

        if not self.jwt_handler.is_token_valid(token, principal):
            raise self._reject("invalid", principal_id=str(principal.id))

        if await self.revocation_cache.is_revoked(str(principal.id), token):
            raise self._reject("revoked", principal_id=str(principal.id))

        logger.debug("Request authenticated", principal_id=str(principal.id))
        return AuthContext(
            principal=principal,
            authorities=principal.get_authorities(),
            token=token
        )

    async def is_token_valid(self, token: str, principal: Principal) -> bool:
        """Codec validation plus revocation check"""
        if not self.jwt_handler.is_token_valid(token, principal):
            return False
        return not await self.revocation_cache.is_revoked(str(principal.id), token)
