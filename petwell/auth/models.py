"""
Authentication Models

Defines principals, roles, permissions and token payloads for the
authentication system.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Union
from uuid import UUID, uuid4

from passlib.context import CryptContext
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_email(email: str) -> str:
    """Emails are unique case-insensitively; store and look them up lower-cased"""
    return email.strip().lower()


def authority_value(authority: Union[str, "Permission"]) -> str:
    """Enum members hash by name, so compare authorities by their string value"""
    return authority.value if isinstance(authority, Enum) else authority


class Permission(str, Enum):
    """Permission strings checked at authorization time"""
    ADMIN_READ = "admin:read"
    ADMIN_CREATE = "admin:create"
    ADMIN_UPDATE = "admin:update"
    ADMIN_DELETE = "admin:delete"
    MANAGER_READ = "manager:read"
    MANAGER_CREATE = "manager:create"
    MANAGER_UPDATE = "manager:update"
    MANAGER_DELETE = "manager:delete"


class Role(str, Enum):
    """Closed set of roles; each owns a fixed bundle of permissions"""
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    CLIENT = "CLIENT"

    @property
    def authority(self) -> str:
        """Implicit authority every role carries"""
        return f"ROLE_{self.value}"

    @property
    def permissions(self) -> FrozenSet[Permission]:
        return ROLE_PERMISSIONS[self]

    def get_authorities(self) -> FrozenSet[str]:
        """Permission strings plus ROLE_<name>"""
        return frozenset(p.value for p in self.permissions) | {self.authority}


ROLE_PERMISSIONS: Dict[Role, FrozenSet[Permission]] = {
    Role.ADMIN: frozenset(Permission),
    Role.MANAGER: frozenset({
        Permission.MANAGER_READ,
        Permission.MANAGER_CREATE,
        Permission.MANAGER_UPDATE,
        Permission.MANAGER_DELETE,
    }),
    Role.CLIENT: frozenset(),
}


class JobTitle(str, Enum):
    """Clinic job titles"""
    VETERINARIAN = "veterinarian"
    VETERINARIAN_TECHNICIAN = "veterinarian_technician"
    VETERINARY_ASSISTANT = "veterinary_assistant"
    MANAGER = "manager"
    RECEPTIONIST = "receptionist"


class Principal(BaseModel):
    """
    Persisted identity record.

    Employees carry a job title; client users do not. Both share one
    credential store keyed by email.
    """
    id: UUID = Field(default_factory=uuid4)
    email: EmailStr
    password_hash: Optional[str] = Field(None, exclude=True)  # Exclude from API responses
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    role: Role = Role.CLIENT
    job_title: Optional[JobTitle] = None

    # Account status
    enabled: bool = True
    account_non_expired: bool = True
    account_non_locked: bool = True
    credentials_non_expired: bool = True

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("email")
    @classmethod
    def lower_case_email(cls, v: str) -> str:
        return normalize_email(v)

    @property
    def is_active(self) -> bool:
        """Every account-status flag must hold for the principal to authenticate"""
        return (
            self.enabled
            and self.account_non_expired
            and self.account_non_locked
            and self.credentials_non_expired
        )

    def set_password(self, password: str):
        """Hash and set password"""
        self.password_hash = pwd_context.hash(password)

    def verify_password(self, password: str) -> bool:
        """Verify password against hash"""
        if not self.password_hash:
            return False
        return pwd_context.verify(password, self.password_hash)

    def get_authorities(self) -> FrozenSet[str]:
        return self.role.get_authorities()

    def has_authority(self, authority: Union[str, Permission]) -> bool:
        return authority_value(authority) in self.get_authorities()


class PrincipalDTO(BaseModel):
    """Public view of a principal"""
    id: UUID
    email: EmailStr
    first_name: str
    last_name: str
    role: Role
    job_title: Optional[JobTitle] = None
    enabled: bool

    @classmethod
    def from_principal(cls, principal: Principal) -> "PrincipalDTO":
        return cls(
            id=principal.id,
            email=principal.email,
            first_name=principal.first_name,
            last_name=principal.last_name,
            role=principal.role,
            job_title=principal.job_title,
            enabled=principal.enabled,
        )


class RegisterRequest(BaseModel):
    """Self-registration payload"""
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=8, description="Password must be at least 8 characters long")
    job_title: Optional[JobTitle] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "first_name": "Jane",
                "last_name": "Doe",
                "email": "jane.doe@petwell.com",
                "password": "password1",
            }
        }
    )


class EmployeeCreate(RegisterRequest):
    """Admin-side staff registration with an explicit role and job title"""
    role: Role = Role.MANAGER
    job_title: JobTitle


class LoginRequest(BaseModel):
    """Login payload"""
    email: str
    password: str


class Token(BaseModel):
    """JWT token response"""
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class TokenData(BaseModel):
    """Verified token claims"""
    subject: str
    token_id: Optional[str] = None
    authorities: List[str] = []
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class AuthContext:
    """
    Identity established for a single request.

    Attached to the request object by the authentication middleware and
    passed down explicitly; there is no process-wide current user.
    """
    principal: Principal
    authorities: FrozenSet[str]
    token: str

    def has_authority(self, authority: Union[str, Permission]) -> bool:
        return authority_value(authority) in self.authorities
