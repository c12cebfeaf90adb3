"""
Unit tests for the authorization dependencies
"""

import pytest

from petwell.auth.dependencies import (
    MultiPermissionChecker,
    PermissionChecker,
    get_auth_context,
)
from petwell.auth.errors import AccessDeniedError, TokenInvalidError
from petwell.auth.models import AuthContext, Permission, Role


@pytest.fixture
def context_for(make_principal):
    def _context(role: Role) -> AuthContext:
        principal = make_principal(role=role)
        return AuthContext(principal=principal, authorities=role.get_authorities(), token="token")

    return _context


@pytest.mark.unit
class TestMultiPermissionChecker:
    """Any-of permission checks"""

    @pytest.mark.asyncio
    async def test_manager_passes_with_one_matching_permission(self, context_for):
        checker = MultiPermissionChecker([Permission.ADMIN_READ, Permission.MANAGER_READ])
        context = context_for(Role.MANAGER)

        assert await checker(context) is context

    @pytest.mark.asyncio
    async def test_client_is_denied(self, context_for):
        checker = MultiPermissionChecker([Permission.ADMIN_READ, Permission.MANAGER_READ])

        with pytest.raises(AccessDeniedError) as exc_info:
            await checker(context_for(Role.CLIENT))
        assert exc_info.value.details["required_any"] == ["admin:read", "manager:read"]

    @pytest.mark.asyncio
    async def test_accepts_plain_strings(self, context_for):
        checker = MultiPermissionChecker(["manager:delete"])

        assert await checker(context_for(Role.ADMIN))


@pytest.mark.unit
class TestPermissionChecker:

    @pytest.mark.asyncio
    async def test_manager_lacks_admin_permission(self, context_for):
        with pytest.raises(AccessDeniedError):
            await PermissionChecker(Permission.ADMIN_READ)(context_for(Role.MANAGER))

    @pytest.mark.asyncio
    async def test_admin_passes(self, context_for):
        context = context_for(Role.ADMIN)
        assert await PermissionChecker(Permission.ADMIN_DELETE)(context) is context

    def test_missing_context_is_unauthenticated(self):
        with pytest.raises(TokenInvalidError):
            get_auth_context(None)
