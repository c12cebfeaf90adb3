"""
Directory Service

Employee and client user management over the shared credential store.
Employees are principals holding a staff role; users are CLIENT principals.
"""

from typing import FrozenSet, List
from uuid import UUID

from ..auth.errors import EntityNotFoundError
from ..auth.models import EmployeeCreate, Principal, Role
from ..auth.repository import PrincipalRepository
from ..auth.service import AuthService
from ..core.logging import get_logger
from .models import EmployeeUpdate, UserUpdate

logger = get_logger(__name__)

EMPLOYEE_ROLES: FrozenSet[Role] = frozenset({Role.ADMIN, Role.MANAGER})
USER_ROLES: FrozenSet[Role] = frozenset({Role.CLIENT})


class DirectoryService:
    """Service for employee and user records"""

    def __init__(self, repository: PrincipalRepository, auth_service: AuthService):
        self.repository = repository
        self.auth_service = auth_service

    async def _list(self, roles: FrozenSet[Role], label: str) -> List[Principal]:
        principals = await self.repository.list(roles=roles)
        if not principals:
            raise EntityNotFoundError(f"No {label}s found")
        return principals

    async def _get(self, principal_id: UUID, roles: FrozenSet[Role], label: str) -> Principal:
        principal = await self.repository.get_by_id(principal_id)
        if principal is None or principal.role not in roles:
            raise EntityNotFoundError(f"{label.capitalize()} with id {principal_id} not found")
        return principal

    async def _update(self, principal: Principal, changes: UserUpdate) -> Principal:
        fields = changes.model_dump(exclude_unset=True, exclude_none=True)
        if not fields:
            return principal
        updated = await self.repository.update(principal.model_copy(update=fields))
        logger.info("Principal updated", principal_id=str(principal.id), fields=sorted(fields))
        return updated

    async def _delete(self, principal: Principal) -> None:
        if not await self.repository.delete(principal.id):
            raise EntityNotFoundError(f"Principal with id {principal.id} not found")

    # Employees

    async def list_employees(self) -> List[Principal]:
        """Employees ordered by last name; none at all is a 404"""
        return await self._list(EMPLOYEE_ROLES, "employee")

    async def get_employee(self, employee_id: UUID) -> Principal:
        return await self._get(employee_id, EMPLOYEE_ROLES, "employee")

    async def create_employee(self, request: EmployeeCreate) -> Principal:
        return await self.auth_service.create_employee(request)

    async def update_employee(self, employee_id: UUID, changes: EmployeeUpdate) -> Principal:
        employee = await self.get_employee(employee_id)
        return await self._update(employee, changes)

    async def delete_employee(self, employee_id: UUID) -> None:
        await self._delete(await self.get_employee(employee_id))

    # Client users

    async def list_users(self) -> List[Principal]:
        return await self._list(USER_ROLES, "user")

    async def get_user(self, user_id: UUID) -> Principal:
        return await self._get(user_id, USER_ROLES, "user")

    async def update_user(self, user_id: UUID, changes: UserUpdate) -> Principal:
        user = await self.get_user(user_id)
        return await self._update(user, changes)

    async def delete_user(self, user_id: UUID) -> None:
        await self._delete(await self.get_user(user_id))
