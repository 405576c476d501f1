"""Employee management: staff records, invites and the bootstrap admin."""

import logging

from sqlalchemy import or_, select

from tablekeeper.database import Database, EmployeeRecord, get_database
from tablekeeper.errors import (
    ConflictError,
    InputValidationError,
    NotFoundError,
    NotificationError,
    PermissionDeniedError,
)
from tablekeeper.guardrails.input_validator import InputValidator
from tablekeeper.models.employee import (
    EmployeeCreate,
    EmployeeCreateResult,
    EmployeeRead,
    EmployeeRole,
    EmployeeStatus,
    EmployeeUpdate,
)
from tablekeeper.services.auth_service import AuthService, find_employee_by_email

logger = logging.getLogger(__name__)

ASSIGNABLE_ROLES = (EmployeeRole.WAITER, EmployeeRole.MANAGER)


class EmployeeService:
    """Admin-facing CRUD over employees.

    Admin accounts are never listed, created or edited through this service;
    the single admin comes from configuration via ``bootstrap_admin``.
    """

    def __init__(
        self,
        database: Database | None = None,
        auth_service: AuthService | None = None,
    ) -> None:
        self.database = database or get_database()
        self.auth_service = auth_service or AuthService(self.database)

    @staticmethod
    def _load(session, employee_id: int) -> EmployeeRecord:
        employee = session.get(EmployeeRecord, employee_id)
        if employee is None:
            msg = f"Employee {employee_id} not found"
            raise NotFoundError(msg)
        if employee.role is EmployeeRole.ADMIN:
            msg = "Admin accounts cannot be managed here"
            raise PermissionDeniedError(msg)
        return employee

    @staticmethod
    def _check_role(role: EmployeeRole) -> None:
        if role not in ASSIGNABLE_ROLES:
            msg = "Role must be waiter or manager"
            raise InputValidationError(msg)

    @staticmethod
    def _check_identity(name: str, email: str) -> None:
        for is_valid, error in (
            InputValidator.validate_name(name),
            InputValidator.validate_email(email),
        ):
            if not is_valid:
                raise InputValidationError(error)

    def list_employees(
        self,
        search: str | None = None,
        role: EmployeeRole | None = None,
        status: EmployeeStatus | None = None,
    ) -> list[EmployeeRead]:
        query = select(EmployeeRecord).where(EmployeeRecord.role != EmployeeRole.ADMIN)
        if role is not None:
            query = query.where(EmployeeRecord.role == role)
        if status is not None:
            query = query.where(EmployeeRecord.status == status)
        if search and search.strip():
            pattern = f"%{search.strip()}%"
            query = query.where(
                or_(EmployeeRecord.name.ilike(pattern), EmployeeRecord.email.ilike(pattern))
            )
        query = query.order_by(EmployeeRecord.created_at.desc(), EmployeeRecord.id.desc())

        with self.database.session() as session:
            return [EmployeeRead.model_validate(e) for e in session.scalars(query)]

    def create_employee(self, data: EmployeeCreate) -> EmployeeCreateResult:
        """Insert a pending employee and email them an invite link.

        A failed invite does not undo the insert.

        Raises:
            InputValidationError: On a bad name, email or role
            ConflictError: If the email is already used
        """
        name = data.name.strip()
        email = data.email.strip().lower()
        self._check_identity(name, email)
        self._check_role(data.role)

        with self.database.session() as session:
            if find_employee_by_email(session, email) is not None:
                msg = "An employee with this email already exists"
                raise ConflictError(msg)

            employee = EmployeeRecord(
                name=name, email=email, role=data.role, status=EmployeeStatus.PENDING
            )
            session.add(employee)
            session.flush()
            employee_read = EmployeeRead.model_validate(employee)

        logger.info(f"Employee {email} added as {data.role.value}")

        try:
            self.auth_service.send_magic_link(email, name, invite=True)
        except NotificationError as e:
            logger.warning(f"Invite for {email} not sent: {e.message}")
            return EmployeeCreateResult(
                employee=employee_read,
                invite_sent=False,
                message="Employee added but magic link not sent",
            )

        return EmployeeCreateResult(
            employee=employee_read,
            invite_sent=True,
            message="Employee added and magic link sent",
        )

    def update_employee(self, employee_id: int, data: EmployeeUpdate) -> EmployeeRead:
        with self.database.session() as session:
            employee = self._load(session, employee_id)

            name = data.name.strip() if data.name is not None else employee.name
            email = data.email.strip().lower() if data.email is not None else employee.email
            self._check_identity(name, email)

            if email != employee.email:
                other = find_employee_by_email(session, email)
                if other is not None and other.id != employee.id:
                    msg = "An employee with this email already exists"
                    raise ConflictError(msg)

            if data.role is not None:
                self._check_role(data.role)
                employee.role = data.role

            if data.status is not None and data.status is not employee.status:
                if data.status is EmployeeStatus.PENDING:
                    logger.warning(f"Ignoring reset of employee {employee.email} to pending")
                elif employee.status is EmployeeStatus.PENDING:
                    logger.warning(
                        f"Employee {employee.email} is still pending; status change ignored"
                    )
                else:
                    employee.status = data.status

            employee.name = name
            employee.email = email
            session.flush()
            logger.info(f"Employee {employee.id} updated")
            return EmployeeRead.model_validate(employee)

    def delete_employee(self, employee_id: int) -> None:
        with self.database.session() as session:
            employee = self._load(session, employee_id)
            session.delete(employee)
            logger.info(f"Employee {employee.email} deleted")

    def bootstrap_admin(self, email: str | None, name: str = "Admin") -> EmployeeRead | None:
        """Make sure the configured admin exists and is active."""
        if not email:
            return None

        with self.database.session() as session:
            admin = find_employee_by_email(session, email)
            if admin is None:
                admin = EmployeeRecord(
                    name=name,
                    email=email.strip().lower(),
                    role=EmployeeRole.ADMIN,
                    status=EmployeeStatus.ACTIVE,
                )
                session.add(admin)
                logger.info(f"Admin account created for {email}")
            else:
                admin.role = EmployeeRole.ADMIN
                admin.status = EmployeeStatus.ACTIVE
            session.flush()
            return EmployeeRead.model_validate(admin)
