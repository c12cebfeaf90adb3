"""
Authentication Dependencies

FastAPI dependency functions for authentication and authorization.
"""

from typing import List, Optional, Union

from fastapi import Depends, Request

from ..core.logging import get_logger
from .errors import AccessDeniedError, TokenInvalidError
from .models import AuthContext, Permission, authority_value
from .service import AuthService

logger = get_logger(__name__)


def get_auth_service(request: Request) -> AuthService:
    """Get the application's authentication service"""
    return request.app.state.auth_service


def get_optional_auth_context(request: Request) -> Optional[AuthContext]:
    return getattr(request.state, "auth", None)


def get_auth_context(
    context: Optional[AuthContext] = Depends(get_optional_auth_context)
) -> AuthContext:
    """
    Get the identity established by the authentication middleware

    Raises 401 when the route is reached without one.
    """
    if context is None:
        raise TokenInvalidError()
    return context


class PermissionChecker:
    """
    Permission checker dependency

    Usage:
        @router.get("/employees")
        async def list_employees(
            context: AuthContext = Depends(PermissionChecker(Permission.ADMIN_READ))
        ):
            ...
    """

    def __init__(self, required_permission: Union[str, Permission]):
        self.required_permission = authority_value(required_permission)

    async def __call__(
        self,
        context: AuthContext = Depends(get_auth_context)
    ) -> AuthContext:
        """
        Check the principal holds the required permission

        Returns the context if the check passes, raises 403 otherwise.
        """
        if not context.has_authority(self.required_permission):
            logger.warning(
                "Permission denied",
                principal_id=str(context.principal.id),
                required=self.required_permission
            )
            raise AccessDeniedError(required=self.required_permission)
        return context


class MultiPermissionChecker:
    """
    Multiple permission checker dependency

    Checks if the principal holds ANY of the required permissions.
    """

    def __init__(self, required_permissions: List[Union[str, Permission]]):
        self.required_permissions = [authority_value(p) for p in required_permissions]

    async def __call__(
        self,
        context: AuthContext = Depends(get_auth_context)
    ) -> AuthContext:
        for permission in self.required_permissions:
            if context.has_authority(permission):
                return context

        logger.warning(
            "Permission denied",
            principal_id=str(context.principal.id),
            required_any=self.required_permissions
        )
        raise AccessDeniedError(required_any=self.required_permissions)


# Convenience dependency instances for the admin permissions
require_admin_read = PermissionChecker(Permission.ADMIN_READ)
require_admin_create = PermissionChecker(Permission.ADMIN_CREATE)
require_admin_update = PermissionChecker(Permission.ADMIN_UPDATE)
require_admin_delete = PermissionChecker(Permission.ADMIN_DELETE)
