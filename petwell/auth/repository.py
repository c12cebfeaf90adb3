"""
Principal Repository

Credential store adapters. Email uniqueness is enforced by the store
itself, atomically with the insert.
"""

import threading
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional
from uuid import UUID

import asyncpg
from asyncpg import Pool

from ..core.database import get_db_pool
from ..core.logging import get_logger
from .errors import EntityAlreadyExistsError, EntityNotFoundError
from .models import Principal, Role, normalize_email, utcnow

logger = get_logger(__name__)

PRINCIPAL_COLUMNS = (
    "id, email, password_hash, first_name, last_name, role, job_title, "
    "enabled, account_non_expired, account_non_locked, credentials_non_expired, "
    "created_at, updated_at"
)


def _sort_key(principal: Principal):
    return (principal.last_name.lower(), principal.first_name.lower(), principal.email)


class PrincipalRepository(ABC):
    """Storage interface for principals"""

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[Principal]:
        """Get principal by (case-insensitive) email"""

    @abstractmethod
    async def get_by_id(self, principal_id: UUID) -> Optional[Principal]:
        """Get principal by id"""

    @abstractmethod
    async def create(self, principal: Principal) -> Principal:
        """Insert principal; raises EntityAlreadyExistsError on a taken email"""

    @abstractmethod
    async def update(self, principal: Principal) -> Principal:
        """Persist mutable fields; raises EntityNotFoundError if absent"""

    @abstractmethod
    async def delete(self, principal_id: UUID) -> bool:
        """Delete principal, returning whether a record was removed"""

    @abstractmethod
    async def list(self, roles: Optional[Iterable[Role]] = None) -> List[Principal]:
        """List principals ordered by last name, optionally filtered by role"""

    async def exists_by_email(self, email: str) -> bool:
        return await self.get_by_email(email) is not None

    async def close(self) -> None:
        """Release store resources"""


class InMemoryPrincipalRepository(PrincipalRepository):
    """Dict-backed store for single-process deployments and tests"""

    def __init__(self):
        self._by_id: Dict[UUID, Principal] = {}
        self._id_by_email: Dict[str, UUID] = {}
        self._lock = threading.RLock()

    async def get_by_email(self, email: str) -> Optional[Principal]:
        with self._lock:
            principal_id = self._id_by_email.get(normalize_email(email))
            if principal_id is None:
                return None
            return self._by_id[principal_id].model_copy()

    async def get_by_id(self, principal_id: UUID) -> Optional[Principal]:
        with self._lock:
            principal = self._by_id.get(principal_id)
            return principal.model_copy() if principal else None

    async def create(self, principal: Principal) -> Principal:
        with self._lock:
            if principal.email in self._id_by_email:
                raise EntityAlreadyExistsError(
                    f"Principal with email {principal.email} already exists"
                )
            stored = principal.model_copy()
            self._by_id[stored.id] = stored
            self._id_by_email[stored.email] = stored.id

        logger.info("Principal created", principal_id=str(principal.id), role=principal.role.value)
        return stored.model_copy()

    async def update(self, principal: Principal) -> Principal:
        with self._lock:
            if principal.id not in self._by_id:
                raise EntityNotFoundError(f"Principal {principal.id} not found")
            stored = principal.model_copy(update={"updated_at": utcnow()})
            self._by_id[stored.id] = stored
        return stored.model_copy()

    async def delete(self, principal_id: UUID) -> bool:
        with self._lock:
            principal = self._by_id.pop(principal_id, None)
            if principal is None:
                return False
            self._id_by_email.pop(principal.email, None)

        logger.info("Principal deleted", principal_id=str(principal_id))
        return True

    async def list(self, roles: Optional[Iterable[Role]] = None) -> List[Principal]:
        role_filter = set(roles) if roles is not None else None
        with self._lock:
            principals = [
                p.model_copy() for p in self._by_id.values()
                if role_filter is None or p.role in role_filter
            ]
        return sorted(principals, key=_sort_key)

    def __len__(self) -> int:
        with self._lock:
            return len(self._by_id)


class PostgresPrincipalRepository(PrincipalRepository):
    """asyncpg-backed store; schema in migrations/001_principals.sql"""

    def __init__(self, db_pool: Optional[Pool] = None, table: str = "principals"):
        self._db_pool = db_pool
        self.table = table

    @property
    def db_pool(self) -> Pool:
        """Explicit pool, else the application pool opened at startup"""
        if self._db_pool is not None:
            return self._db_pool
        return get_db_pool()

    @staticmethod
    def _to_principal(row) -> Principal:
        return Principal(**dict(row))

    async def get_by_email(self, email: str) -> Optional[Principal]:
        async with self.db_pool.acquire() as conn:
            row = await conn.fetchrow(
                f"SELECT {PRINCIPAL_COLUMNS} FROM {self.table} WHERE email = $1",
                normalize_email(email)
            )
        return self._to_principal(row) if row else None

    async def get_by_id(self, principal_id: UUID) -> Optional[Principal]:
        async with self.db_pool.acquire() as conn:
            row = await conn.fetchrow(
                f"SELECT {PRINCIPAL_COLUMNS} FROM {self.table} WHERE id = $1",
                principal_id
            )
        return self._to_principal(row) if row else None

    async def create(self, principal: Principal) -> Principal:
        async with self.db_pool.acquire() as conn:
            try:
                row = await conn.fetchrow(f"""
                    INSERT INTO {self.table} ({PRINCIPAL_COLUMNS})
                    VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13)
                    RETURNING {PRINCIPAL_COLUMNS}
                """, principal.id, principal.email, principal.password_hash,
                    principal.first_name, principal.last_name, principal.role.value,
                    principal.job_title.value if principal.job_title else None,
                    principal.enabled, principal.account_non_expired,
                    principal.account_non_locked, principal.credentials_non_expired,
                    principal.created_at, principal.updated_at)
            except asyncpg.UniqueViolationError as e:
                raise EntityAlreadyExistsError(
                    f"Principal with email {principal.email} already exists"
                ) from e

        logger.info("Principal created", principal_id=str(principal.id), role=principal.role.value)
        return self._to_principal(row)

    async def update(self, principal: Principal) -> Principal:
        async with self.db_pool.acquire() as conn:
            row = await conn.fetchrow(f"""
                UPDATE {self.table}
                SET password_hash = $2, first_name = $3, last_name = $4, role = $5,
                    job_title = $6, enabled = $7, account_non_expired = $8,
                    account_non_locked = $9, credentials_non_expired = $10,
                    updated_at = $11
                WHERE id = $1
                RETURNING {PRINCIPAL_COLUMNS}
            """, principal.id, principal.password_hash, principal.first_name,
                principal.last_name, principal.role.value,
                principal.job_title.value if principal.job_title else None,
                principal.enabled, principal.account_non_expired,
                principal.account_non_locked, principal.credentials_non_expired,
                utcnow())

        if row is None:
            raise EntityNotFoundError(f"Principal {principal.id} not found")
        return self._to_principal(row)

    async def delete(self, principal_id: UUID) -> bool:
        async with self.db_pool.acquire() as conn:
            result = await conn.execute(
                f"DELETE FROM {self.table} WHERE id = $1", principal_id
            )

        if result.split()[-1] == "1":
            logger.info("Principal deleted", principal_id=str(principal_id))
            return True
        return False

    async def list(self, roles: Optional[Iterable[Role]] = None) -> List[Principal]:
        async with self.db_pool.acquire() as conn:
            if roles is None:
                rows = await conn.fetch(
                    f"SELECT {PRINCIPAL_COLUMNS} FROM {self.table} "
                    "ORDER BY lower(last_name), lower(first_name), email"
                )
            else:
                rows = await conn.fetch(
                    f"SELECT {PRINCIPAL_COLUMNS} FROM {self.table} WHERE role = ANY($1::text[]) "
                    "ORDER BY lower(last_name), lower(first_name), email",
                    [role.value for role in roles]
                )
        return [self._to_principal(row) for row in rows]
