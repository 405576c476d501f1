"""Tests for employee management."""

import pytest

from tablekeeper.errors import (
    ConflictError,
    InputValidationError,
    NotFoundError,
    PermissionDeniedError,
)
from tablekeeper.models import EmployeeCreate, EmployeeRole, EmployeeStatus, EmployeeUpdate


class TestEmployeeService:
    """Tests for EmployeeService."""

    @pytest.fixture
    def waiter(self, employee_service):
        return employee_service.create_employee(
            EmployeeCreate(name="Walter White", email="walter@madot.test")
        ).employee

    def test_create_sends_invite(self, employee_service, email_service):
        """Test that a new employee is pending and receives an invite link."""
        result = employee_service.create_employee(
            EmployeeCreate(name="Mia Manager", email="Mia@Madot.test", role=EmployeeRole.MANAGER)
        )

        assert result.invite_sent is True
        assert result.employee.status == EmployeeStatus.PENDING
        assert result.employee.role == EmployeeRole.MANAGER
        assert result.employee.email == "mia@madot.test"

        assert len(email_service.sent) == 1
        invite = email_service.sent[0]
        assert invite.to == "mia@madot.test"
        assert "invited" in invite.subject
        assert "https://staff.madot.test/auth/callback?token=" in invite.text

    def test_invite_failure_keeps_employee(self, employee_service, email_service):
        email_service.fail = True

        result = employee_service.create_employee(
            EmployeeCreate(name="Walter White", email="walter@madot.test")
        )

        assert result.invite_sent is False
        assert result.message == "Employee added but magic link not sent"
        assert [e.email for e in employee_service.list_employees()] == ["walter@madot.test"]

    def test_admin_role_not_assignable(self, employee_service):
        with pytest.raises(InputValidationError):
            employee_service.create_employee(
                EmployeeCreate(name="Eve Admin", email="eve@madot.test", role=EmployeeRole.ADMIN)
            )

    def test_duplicate_email(self, employee_service, waiter):
        with pytest.raises(ConflictError):
            employee_service.create_employee(
                EmployeeCreate(name="Walter Two", email="WALTER@madot.test")
            )

    def test_list_excludes_admins(self, employee_service, config, waiter):
        employee_service.bootstrap_admin(config.admin_email, "Ada Admin")

        emails = [e.email for e in employee_service.list_employees()]

        assert emails == ["walter@madot.test"]

    def test_list_filters(self, employee_service, waiter):
        employee_service.create_employee(
            EmployeeCreate(name="Mia Manager", email="mia@madot.test", role=EmployeeRole.MANAGER)
        )

        managers = employee_service.list_employees(role=EmployeeRole.MANAGER)
        found = employee_service.list_employees(search="walt")

        assert [e.name for e in managers] == ["Mia Manager"]
        assert [e.name for e in found] == ["Walter White"]
        assert employee_service.list_employees(status=EmployeeStatus.ACTIVE) == []

    def test_status_of_pending_employee_is_locked(self, employee_service, waiter):
        """Test that pending employees only become active by logging in."""
        updated = employee_service.update_employee(
            waiter.id, EmployeeUpdate(status=EmployeeStatus.INACTIVE)
        )

        assert updated.status == EmployeeStatus.PENDING

    def test_deactivate_active_employee(self, employee_service, auth_service, waiter):
        auth_service.exchange_token(auth_service.create_magic_link_token(waiter.email))

        updated = employee_service.update_employee(
            waiter.id, EmployeeUpdate(status=EmployeeStatus.INACTIVE)
        )

        assert updated.status == EmployeeStatus.INACTIVE

    def test_reset_to_pending_ignored(self, employee_service, auth_service, waiter):
        auth_service.exchange_token(auth_service.create_magic_link_token(waiter.email))

        updated = employee_service.update_employee(
            waiter.id, EmployeeUpdate(status=EmployeeStatus.PENDING)
        )

        assert updated.status == EmployeeStatus.ACTIVE

    def test_update_name_and_role(self, employee_service, waiter):
        updated = employee_service.update_employee(
            waiter.id, EmployeeUpdate(name="Walter H. White", role=EmployeeRole.MANAGER)
        )

        assert updated.name == "Walter H. White"
        assert updated.role == EmployeeRole.MANAGER

    def test_admin_cannot_be_edited(self, employee_service, config):
        admin = employee_service.bootstrap_admin(config.admin_email, "Ada Admin")

        with pytest.raises(PermissionDeniedError):
            employee_service.update_employee(admin.id, EmployeeUpdate(name="Someone Else"))

    def test_delete(self, employee_service, waiter):
        employee_service.delete_employee(waiter.id)

        assert employee_service.list_employees() == []
        with pytest.raises(NotFoundError):
            employee_service.delete_employee(waiter.id)


class TestBootstrapAdmin:
    """Tests for the configured admin account."""

    def test_creates_active_admin(self, employee_service, config):
        admin = employee_service.bootstrap_admin(config.admin_email, "Ada Admin")

        assert admin.role == EmployeeRole.ADMIN
        assert admin.status == EmployeeStatus.ACTIVE

    def test_is_idempotent(self, employee_service, config):
        first = employee_service.bootstrap_admin(config.admin_email, "Ada Admin")
        second = employee_service.bootstrap_admin(config.admin_email, "Ada Admin")

        assert first.id == second.id

    def test_no_email_configured(self, employee_service):
        assert employee_service.bootstrap_admin(None) is None
