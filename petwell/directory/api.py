"""
Directory API Endpoints

Routers for /employees and /users. Both sit under protected prefixes, so
the authentication middleware has already established request.state.auth;
the permission dependencies decide between 200 and 403.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from ..api.responses import envelope
from ..auth.dependencies import (
    get_auth_context, require_admin_create, require_admin_delete,
    require_admin_read, require_admin_update
)
from ..auth.models import AuthContext, EmployeeCreate, PrincipalDTO
from .models import EmployeeUpdate, UserUpdate
from .service import DirectoryService

employees_router = APIRouter(tags=["employees"])
users_router = APIRouter(tags=["users"])


def get_directory_service(request: Request) -> DirectoryService:
    return request.app.state.directory_service


def _dto(principal) -> dict:
    return PrincipalDTO.from_principal(principal).model_dump(mode="json")


# Employees

@employees_router.get("", dependencies=[Depends(require_admin_read)])
async def list_employees(
    request: Request,
    directory: DirectoryService = Depends(get_directory_service)
):
    """List employees sorted by last name"""
    employees = await directory.list_employees()
    return envelope(
        request, status.HTTP_200_OK, "Employees retrieved",
        data=[_dto(e) for e in employees]
    )


@employees_router.get("/{employee_id}", dependencies=[Depends(require_admin_read)])
async def get_employee(
    employee_id: UUID,
    request: Request,
    directory: DirectoryService = Depends(get_directory_service)
):
    employee = await directory.get_employee(employee_id)
    return envelope(request, status.HTTP_200_OK, "Employee retrieved", data=_dto(employee))


@employees_router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin_create)]
)
async def create_employee(
    payload: EmployeeCreate,
    request: Request,
    directory: DirectoryService = Depends(get_directory_service)
):
    """Register a staff member with role and job title"""
    employee = await directory.create_employee(payload)
    return envelope(request, status.HTTP_201_CREATED, "Employee registered", data=_dto(employee))


@employees_router.patch("/{employee_id}", dependencies=[Depends(require_admin_update)])
async def update_employee(
    employee_id: UUID,
    payload: EmployeeUpdate,
    request: Request,
    directory: DirectoryService = Depends(get_directory_service)
):
    employee = await directory.update_employee(employee_id, payload)
    return envelope(request, status.HTTP_200_OK, "Employee updated", data=_dto(employee))


@employees_router.delete("/{employee_id}", dependencies=[Depends(require_admin_delete)])
async def delete_employee(
    employee_id: UUID,
    request: Request,
    directory: DirectoryService = Depends(get_directory_service)
):
    await directory.delete_employee(employee_id)
    return envelope(request, status.HTTP_200_OK, "Employee deleted")


# Users

@users_router.get("/me")
async def get_me(
    request: Request,
    context: AuthContext = Depends(get_auth_context)
):
    """Current principal, for any authenticated caller"""
    data = _dto(context.principal)
    data["authorities"] = sorted(context.authorities)
    return envelope(request, status.HTTP_200_OK, "Current user", data=data)


@users_router.get("", dependencies=[Depends(require_admin_read)])
async def list_users(
    request: Request,
    directory: DirectoryService = Depends(get_directory_service)
):
    users = await directory.list_users()
    return envelope(
        request, status.HTTP_200_OK, "Users retrieved",
        data=[_dto(u) for u in users]
    )


@users_router.get("/{user_id}", dependencies=[Depends(require_admin_read)])
async def get_user(
    user_id: UUID,
    request: Request,
    directory: DirectoryService = Depends(get_directory_service)
):
    user = await directory.get_user(user_id)
    return envelope(request, status.HTTP_200_OK, "User retrieved", data=_dto(user))


@users_router.patch("/{user_id}", dependencies=[Depends(require_admin_update)])
async def update_user(
    user_id: UUID,
    payload: UserUpdate,
    request: Request,
    directory: DirectoryService = Depends(get_directory_service)
):
    user = await directory.update_user(user_id, payload)
    return envelope(request, status.HTTP_200_OK, "User updated", data=_dto(user))


@users_router.delete("/{user_id}", dependencies=[Depends(require_admin_delete)])
async def delete_user(
    user_id: UUID,
    request: Request,
    directory: DirectoryService = Depends(get_directory_service)
):
    await directory.delete_user(user_id)
    return envelope(request, status.HTTP_200_OK, "User deleted")
