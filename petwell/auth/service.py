"""
Authentication Service

High-level authentication operations: login, registration and logout.
"""

from typing import Optional, Tuple

from ..core.logging import get_logger
from ..core.metrics import LOGIN_ATTEMPTS, TOKENS_REVOKED
from .authenticator import extract_bearer_token
from .errors import BadCredentialsError, EntityAlreadyExistsError, TokenInvalidError
from .jwt_handler import JWTHandler
from .models import (
    EmployeeCreate, Principal, RegisterRequest, Role, Token,
    normalize_email, pwd_context
)
from .repository import PrincipalRepository
from .revocation import RevocationCache

logger = get_logger(__name__)


class AuthService:
    """Service for authentication operations"""

    def __init__(
        self,
        repository: PrincipalRepository,
        jwt_handler: JWTHandler,
        revocation_cache: RevocationCache
    ):
        self.repository = repository
        self.jwt_handler = jwt_handler
        self.revocation_cache = revocation_cache

    def _issue_token(self, principal: Principal) -> Token:
        return Token(
            access_token=self.jwt_handler.create_access_token(principal),
            token_type="bearer",
            expires_in=self.jwt_handler.expires_in
        )

    async def authenticate(self, email: str, password: str) -> Tuple[Principal, Token]:
        """
        Authenticate a principal and issue an access token

        Args:
            email: Login email, any case
            password: Raw password

        Returns:
            Tuple of (Principal, Token)

        Raises:
            BadCredentialsError: for an unknown email, a wrong password or an
                inactive account, always with the same message
        """
        email = normalize_email(email)
        principal = await self.repository.get_by_email(email)

        if principal is None:
            # Burn the same hashing time as a real check
            pwd_context.dummy_verify()
            LOGIN_ATTEMPTS.labels(outcome="unknown_email").inc()
            logger.warning("Login attempt with unknown email")
            raise BadCredentialsError()

        if not principal.verify_password(password):
            LOGIN_ATTEMPTS.labels(outcome="bad_password").inc()
            logger.warning("Login attempt with invalid password", principal_id=str(principal.id))
            raise BadCredentialsError()

        if not principal.is_active:
            LOGIN_ATTEMPTS.labels(outcome="inactive").inc()
            logger.warning("Login attempt for inactive account", principal_id=str(principal.id))
            raise BadCredentialsError()

        LOGIN_ATTEMPTS.labels(outcome="success").inc()
        logger.info("Principal logged in", principal_id=str(principal.id))
        return principal, self._issue_token(principal)

    async def _create_principal(
        self,
        request: RegisterRequest,
        role: Role
    ) -> Principal:
        email = normalize_email(request.email)
        if await self.repository.exists_by_email(email):
            raise EntityAlreadyExistsError(f"Principal with email {email} already exists")

        principal = Principal(
            email=email,
            first_name=request.first_name,
            last_name=request.last_name,
            role=role,
            job_title=request.job_title
        )
        principal.set_password(request.password)

        # The store re-checks uniqueness atomically; a concurrent duplicate fails there
        return await self.repository.create(principal)

    async def register(self, request: RegisterRequest) -> Tuple[Principal, Token]:
        """
        Self-register a client principal and issue a token

        Raises:
            EntityAlreadyExistsError: if the email is taken; nothing is created
        """
        principal = await self._create_principal(request, Role.CLIENT)
        logger.info("Principal registered", principal_id=str(principal.id))
        return principal, self._issue_token(principal)

    async def create_employee(self, request: EmployeeCreate) -> Principal:
        """Register a staff member with an explicit role and job title"""
        principal = await self._create_principal(request, request.role)
        logger.info(
            "Employee registered",
            principal_id=str(principal.id),
            role=principal.role.value,
            job_title=principal.job_title.value if principal.job_title else None
        )
        return principal

    async def logout(self, authorization_header: Optional[str]) -> bool:
        """
        Revoke the presented token

        A missing or malformed header, an undecodable token or an unknown
        principal is a no-op; logout never fails for the client.

        Returns:
            True if a token was revoked
        """
        try:
            token = extract_bearer_token(authorization_header)
            email = self.jwt_handler.extract_subject(token)
        except TokenInvalidError:
            logger.info("Logout without a usable bearer token")
            return False

        principal = await self.repository.get_by_email(email)
        if principal is None:
            logger.info("Logout for unknown principal")
            return False

        await self.revocation_cache.put(str(principal.id), token)
        TOKENS_REVOKED.inc()
        logger.info("Principal logged out", principal_id=str(principal.id))
        return True

    async def is_email_registered(self, email: str) -> bool:
        """Check whether an email is already taken"""
        return await self.repository.exists_by_email(normalize_email(email))
