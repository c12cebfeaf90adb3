"""
Unit tests for the authorization policy and principal model
"""

import pytest
from pydantic import ValidationError

from petwell.auth.models import (
    AuthContext, EmployeeCreate, JobTitle, Permission, Principal,
    PrincipalDTO, RegisterRequest, Role
)

ADMIN_PERMISSIONS = {
    "admin:read", "admin:create", "admin:update", "admin:delete",
    "manager:read", "manager:create", "manager:update", "manager:delete",
}
MANAGER_PERMISSIONS = {"manager:read", "manager:create", "manager:update", "manager:delete"}


@pytest.mark.unit
class TestRolePolicy:
    """Test the fixed role -> permission mapping"""

    def test_admin_authorities(self):
        assert Role.ADMIN.get_authorities() == ADMIN_PERMISSIONS | {"ROLE_ADMIN"}

    def test_manager_authorities(self):
        assert Role.MANAGER.get_authorities() == MANAGER_PERMISSIONS | {"ROLE_MANAGER"}

    def test_client_authorities(self):
        assert Role.CLIENT.get_authorities() == {"ROLE_CLIENT"}

    def test_permission_values(self):
        assert {p.value for p in Permission} == ADMIN_PERMISSIONS

    def test_authorities_are_immutable(self):
        with pytest.raises(AttributeError):
            Role.ADMIN.get_authorities().add("manager:fly")


@pytest.mark.unit
class TestPrincipal:
    """Test principal capabilities"""

    def test_email_is_lower_cased(self):
        principal = Principal(email="Jane.Doe@PetWell.com", first_name="Jane", last_name="Doe")
        assert principal.email == "jane.doe@petwell.com"

    def test_has_authority_accepts_enum_and_string(self):
        principal = Principal(email="a@x.com", first_name="A", last_name="B", role=Role.ADMIN)

        assert principal.has_authority(Permission.ADMIN_DELETE)
        assert principal.has_authority("admin:delete")
        assert principal.has_authority("ROLE_ADMIN")
        assert not principal.has_authority("ROLE_CLIENT")

    def test_password_hashing(self):
        principal = Principal(email="a@x.com", first_name="A", last_name="B")
        principal.set_password("password1")

        assert principal.password_hash != "password1"
        assert principal.verify_password("password1")
        assert not principal.verify_password("password2")

    def test_no_password_never_verifies(self):
        principal = Principal(email="a@x.com", first_name="A", last_name="B")
        assert not principal.verify_password("")

    def test_password_hash_not_serialised(self):
        principal = Principal(email="a@x.com", first_name="A", last_name="B")
        principal.set_password("password1")

        assert "password_hash" not in principal.model_dump()
        assert "password_hash" not in PrincipalDTO.from_principal(principal).model_dump()

    @pytest.mark.parametrize("flag", [
        "enabled", "account_non_expired", "account_non_locked", "credentials_non_expired"
    ])
    def test_is_active_requires_every_flag(self, flag):
        principal = Principal(email="a@x.com", first_name="A", last_name="B", **{flag: False})
        assert not principal.is_active

    def test_auth_context(self):
        principal = Principal(email="a@x.com", first_name="A", last_name="B", role=Role.MANAGER)
        context = AuthContext(principal, principal.get_authorities(), "token")

        assert context.has_authority(Permission.MANAGER_READ)
        assert not context.has_authority(Permission.ADMIN_READ)


@pytest.mark.unit
class TestRequests:
    """Test request payload validation"""

    def test_short_password_rejected(self):
        with pytest.raises(ValidationError):
            RegisterRequest(first_name="A", last_name="B", email="a@x.com", password="short")

    def test_invalid_email_rejected(self):
        with pytest.raises(ValidationError):
            RegisterRequest(first_name="A", last_name="B", email="not-an-email", password="password1")

    def test_employee_requires_job_title(self):
        with pytest.raises(ValidationError):
            EmployeeCreate(first_name="A", last_name="B", email="a@x.com", password="password1")

        employee = EmployeeCreate(
            first_name="A", last_name="B", email="a@x.com",
            password="password1", job_title="receptionist"
        )
        assert employee.job_title == JobTitle.RECEPTIONIST
        assert employee.role == Role.MANAGER
