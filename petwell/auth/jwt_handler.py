"""
JWT Token Handler

Manages JWT token creation, validation, and decoding for authentication.
"""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional
from uuid import uuid4

from jose import JWTError, jwt

from ..core.logging import get_logger
from .errors import TokenInvalidError
from .models import Principal, TokenData, utcnow

logger = get_logger(__name__)

MIN_SECRET_LENGTH = 32
ACCESS_TOKEN_TYPE = "access"


class JWTHandler:
    """Handle JWT token operations"""

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        access_token_expire_minutes: int = 120,
        clock: Optional[Callable[[], datetime]] = None
    ):
        if not secret_key:
            raise ValueError("A signing secret is required")

        self.secret_key = secret_key
        self.algorithm = algorithm
        self.access_token_expire_minutes = access_token_expire_minutes
        self._clock = clock or utcnow

        if len(secret_key) < MIN_SECRET_LENGTH:
            logger.warning("Signing secret is shorter than 32 characters - CHANGE THIS IN PRODUCTION!")

    @property
    def expires_in(self) -> int:
        """Access token lifetime in seconds"""
        return self.access_token_expire_minutes * 60

    def create_access_token(self, principal: Principal) -> str:
        """
        Create JWT access token for a principal

        Args:
            principal: Principal the token is issued to

        Returns:
            Encoded JWT token string
        """
        issued_at = int(self._clock().timestamp())

        token_data = {
            "sub": principal.email,
            "jti": str(uuid4()),  # Two tokens issued in the same second still differ
            "role": sorted(principal.get_authorities()),
            "iat": issued_at,
            "exp": issued_at + self.expires_in,
            "type": ACCESS_TOKEN_TYPE
        }

        encoded_jwt = jwt.encode(
            token_data,
            self.secret_key,
            algorithm=self.algorithm
        )

        logger.info("Access token created", subject=principal.email)
        return encoded_jwt

    def _decode_claims(self, token: str) -> Dict[str, Any]:
        """Verify signature and structure; expiry is checked by the caller"""
        if not token or not isinstance(token, str):
            raise TokenInvalidError("Token is missing")

        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={
                    "verify_exp": False,
                    "require_exp": True,
                    "require_iat": True,
                    "require_sub": True,
                }
            )
        except JWTError as e:
            logger.warning("Token failed verification", error=str(e))
            raise TokenInvalidError() from e

        if payload.get("type") != ACCESS_TOKEN_TYPE:
            logger.warning("Invalid token type", token_type=payload.get("type"))
            raise TokenInvalidError()

        if not isinstance(payload.get("exp"), (int, float)):
            raise TokenInvalidError()

        return payload

    def decode_token(self, token: str) -> TokenData:
        """
        Decode and fully verify JWT token

        Args:
            token: JWT token string

        Returns:
            TokenData with the verified claims

        Raises:
            TokenInvalidError: if the token is malformed, forged or expired
        """
        payload = self._decode_claims(token)

        # A token is already expired at the exact second it expires
        if self._clock().timestamp() >= payload["exp"]:
            logger.warning("Token has expired", subject=payload.get("sub"))
            raise TokenInvalidError()

        return TokenData(
            subject=payload["sub"],
            token_id=payload.get("jti"),
            authorities=payload.get("role", []),
            issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
        )

    def extract_subject(self, token: str) -> str:
        """
        Extract the subject (email) from a signed token

        The signature is always verified; an unverified payload is never trusted.

        Raises:
            TokenInvalidError: if the token cannot be verified
        """
        return self._decode_claims(token)["sub"]

    def is_token_valid(self, token: str, principal: Principal) -> bool:
        """
        Check that a token is authentic, unexpired and bound to the principal

        Fails closed: any verification problem yields False.
        """
        try:
            token_data = self.decode_token(token)
        except TokenInvalidError:
            return False

        if token_data.subject != principal.email:
            logger.warning("Token subject does not match principal", subject=token_data.subject)
            return False

        return True
