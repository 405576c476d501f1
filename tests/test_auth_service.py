"""Tests for magic-link authentication and session resolution."""

import jwt
import pytest

from tablekeeper.errors import AuthenticationError, NotFoundError, PermissionDeniedError
from tablekeeper.models import EmployeeCreate, EmployeeRole, EmployeeStatus, EmployeeUpdate
from tablekeeper.services.auth_service import AuthService


class TestMagicLinks:
    """Tests for requesting and exchanging login links."""

    @pytest.fixture
    def waiter(self, employee_service):
        return employee_service.create_employee(
            EmployeeCreate(name="Walter White", email="walter@madot.test")
        ).employee

    def test_login_link_format(self, auth_service):
        link = auth_service.build_login_link("abc.def")

        assert link == "https://staff.madot.test/auth/callback?token=abc.def"

    def test_unknown_email(self, auth_service):
        with pytest.raises(NotFoundError, match="No employee found"):
            auth_service.request_login("ghost@madot.test")

    def test_pending_employee_cannot_request_link(self, auth_service, waiter):
        """Test that only active employees can ask for a login link."""
        with pytest.raises(PermissionDeniedError, match="not active yet"):
            auth_service.request_login(waiter.email)

    def test_active_employee_receives_link(self, auth_service, employee_service, email_service, config):
        employee_service.bootstrap_admin(config.admin_email, "Ada Admin")

        auth_service.request_login("Admin@Madot.test")

        assert email_service.sent[-1].to == "Admin@Madot.test"
        assert "sign-in link" in email_service.sent[-1].subject

    def test_first_login_activates_pending_employee(self, auth_service, waiter):
        """Test that exchanging the invite token activates the account."""
        session = auth_service.exchange_token(auth_service.create_magic_link_token(waiter.email))

        assert session.token_type == "bearer"
        assert session.employee.status == EmployeeStatus.ACTIVE
        assert session.employee.role == EmployeeRole.WAITER

    def test_link_works_only_once(self, auth_service, waiter):
        token = auth_service.create_magic_link_token(waiter.email)
        auth_service.exchange_token(token)

        with pytest.raises(AuthenticationError, match="already been used"):
            auth_service.exchange_token(token)

    def test_fresh_link_after_use(self, auth_service, waiter):
        """Test that each new link carries its own id."""
        auth_service.exchange_token(auth_service.create_magic_link_token(waiter.email))

        session = auth_service.exchange_token(auth_service.create_magic_link_token(waiter.email))

        assert session.employee.email == waiter.email

    def test_link_without_id_refused(self, auth_service, config, waiter):
        token = jwt.encode(
            {"purpose": "magic-link", "email": waiter.email}, config.secret_key, algorithm="HS256"
        )

        with pytest.raises(AuthenticationError, match="Invalid token"):
            auth_service.exchange_token(token)

    def test_inactive_employee_refused(self, auth_service, employee_service, waiter):
        auth_service.exchange_token(auth_service.create_magic_link_token(waiter.email))
        employee_service.update_employee(waiter.id, EmployeeUpdate(status=EmployeeStatus.INACTIVE))

        with pytest.raises(AuthenticationError):
            auth_service.exchange_token(auth_service.create_magic_link_token(waiter.email))

    def test_expired_link(self, database, email_service, config, waiter):
        expired = AuthService(
            database, email_service, config.model_copy(update={"magic_link_ttl_minutes": -1})
        )

        with pytest.raises(AuthenticationError, match="expired"):
            expired.exchange_token(expired.create_magic_link_token(waiter.email))

    def test_tampered_token(self, auth_service, waiter):
        token = jwt.encode(
            {"purpose": "magic-link", "email": waiter.email}, "wrong-secret", algorithm="HS256"
        )

        with pytest.raises(AuthenticationError, match="Invalid token"):
            auth_service.exchange_token(token)


class TestSessions:
    """Tests for resolving session tokens into a request context."""

    @pytest.fixture
    def session(self, auth_service, employee_service):
        waiter = employee_service.create_employee(
            EmployeeCreate(name="Walter White", email="walter@madot.test")
        ).employee
        return auth_service.exchange_token(auth_service.create_magic_link_token(waiter.email))

    def test_resolve_context(self, auth_service, session):
        context = auth_service.resolve_context(session.access_token)

        assert context.email == "walter@madot.test"
        assert context.name == "Walter White"
        assert context.role == EmployeeRole.WAITER
        assert context.has_role(EmployeeRole.WAITER, EmployeeRole.MANAGER)
        assert not context.has_role(EmployeeRole.ADMIN)

    def test_magic_link_token_is_not_a_session(self, auth_service, session):
        """Test that a login link cannot be used as a bearer token."""
        with pytest.raises(AuthenticationError):
            auth_service.resolve_context(
                auth_service.create_magic_link_token(session.employee.email)
            )

    def test_session_token_is_not_a_magic_link(self, auth_service, session):
        with pytest.raises(AuthenticationError):
            auth_service.exchange_token(session.access_token)

    def test_role_change_applies_to_existing_session(self, auth_service, employee_service, session):
        """Test that the role is read from the database on every request."""
        employee_service.update_employee(session.employee.id, EmployeeUpdate(role=EmployeeRole.MANAGER))

        context = auth_service.resolve_context(session.access_token)

        assert context.role == EmployeeRole.MANAGER

    def test_deactivated_employee_loses_session(self, auth_service, employee_service, session):
        employee_service.update_employee(
            session.employee.id, EmployeeUpdate(status=EmployeeStatus.INACTIVE)
        )

        with pytest.raises(AuthenticationError):
            auth_service.resolve_context(session.access_token)

    def test_deleted_employee_loses_session(self, auth_service, employee_service, session):
        employee_service.delete_employee(session.employee.id)

        with pytest.raises(AuthenticationError):
            auth_service.resolve_context(session.access_token)
