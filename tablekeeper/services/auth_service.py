"""Passwordless staff authentication and request-scoped identity."""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from urllib.parse import urlencode

import jwt
from sqlalchemy import func, select

from tablekeeper.config import Config, get_config
from tablekeeper.database import (
    Database,
    EmployeeRecord,
    UsedLoginTokenRecord,
    get_database,
)
from tablekeeper.errors import AuthenticationError, NotFoundError, PermissionDeniedError
from tablekeeper.models.employee import EmployeeRead, EmployeeRole, EmployeeStatus
from tablekeeper.models.notification import SessionResponse
from tablekeeper.services.email_service import EmailService

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
MAGIC_LINK_PURPOSE = "magic-link"
SESSION_PURPOSE = "session"


@dataclass(frozen=True)
class RequestContext:
    """Authenticated identity for the duration of one request."""

    employee_id: int
    email: str
    name: str
    role: EmployeeRole

    def has_role(self, *roles: EmployeeRole) -> bool:
        return self.role in roles


def find_employee_by_email(session, email: str) -> EmployeeRecord | None:
    return session.scalar(
        select(EmployeeRecord).where(
            func.lower(EmployeeRecord.email) == email.strip().lower()
        )
    )


class AuthService:
    """Issues magic links and session tokens for employees.

    Flow:
    - ``request_login`` emails a short-lived magic link to an active employee
    - ``exchange_token`` trades a magic link token, once, for a session token
      and activates pending employees on their first login
    - ``resolve_context`` turns a session token into a RequestContext,
      re-reading the employee row on every call
    """

    def __init__(
        self,
        database: Database | None = None,
        email_service: EmailService | None = None,
        cfg: Config | None = None,
    ) -> None:
        self.config = cfg or get_config()
        self.database = database or get_database()
        self.email_service = email_service or EmailService(self.config)

    # ---------- Tokens ----------

    def _encode(self, claims: dict, lifetime: timedelta) -> str:
        now = datetime.now(timezone.utc)
        payload = {**claims, "iat": now, "exp": now + lifetime}
        return jwt.encode(payload, self.config.secret_key, algorithm=ALGORITHM)

    def _decode(self, token: str, purpose: str) -> dict:
        try:
            payload = jwt.decode(token, self.config.secret_key, algorithms=[ALGORITHM])
        except jwt.ExpiredSignatureError as e:
            msg = "Token expired"
            raise AuthenticationError(msg) from e
        except jwt.InvalidTokenError as e:
            msg = "Invalid token"
            raise AuthenticationError(msg) from e

        if payload.get("purpose") != purpose or not payload.get("email"):
            msg = "Invalid token"
            raise AuthenticationError(msg)
        return payload

    def create_magic_link_token(self, email: str) -> str:
        return self._encode(
            {
                "purpose": MAGIC_LINK_PURPOSE,
                "email": email.lower(),
                "jti": uuid.uuid4().hex,
            },
            timedelta(minutes=self.config.magic_link_ttl_minutes),
        )

    def create_session_token(self, employee: EmployeeRead) -> str:
        return self._encode(
            {
                "purpose": SESSION_PURPOSE,
                "sub": str(employee.id),
                "email": employee.email.lower(),
            },
            timedelta(hours=self.config.session_ttl_hours),
        )

    def build_login_link(self, token: str) -> str:
        base = self.config.public_app_url.rstrip("/")
        return f"{base}/auth/callback?{urlencode({'token': token})}"

    # ---------- Magic links ----------

    def send_magic_link(self, email: str, name: str, invite: bool = False) -> None:
        """Email a sign-in link.

        Raises:
            NotificationError: If the email could not be sent
        """
        link = self.build_login_link(self.create_magic_link_token(email))
        self.email_service.send_magic_link(email, name, link, invite=invite)
        logger.info(f"Magic link sent to {email} (invite={invite})")

    def request_login(self, email: str) -> None:
        """Send a login link to an active employee.

        Raises:
            NotFoundError: If no employee has this email
            PermissionDeniedError: If the account is not active
            NotificationError: If the email could not be sent
        """
        with self.database.session() as session:
            employee = find_employee_by_email(session, email)
            if employee is None:
                msg = "No employee found with this email."
                raise NotFoundError(msg)
            if employee.status is not EmployeeStatus.ACTIVE:
                msg = "Your account is not active yet. Contact admin."
                raise PermissionDeniedError(msg)
            name = employee.name

        self.send_magic_link(email, name)

    def exchange_token(self, token: str) -> SessionResponse:
        """Trade a magic link token for a session token.

        Raises:
            AuthenticationError: On bad or already used tokens, unknown or
                inactive employees
        """
        payload = self._decode(token, MAGIC_LINK_PURPOSE)

        with self.database.session() as session:
            jti = payload.get("jti")
            if not jti:
                msg = "Invalid token"
                raise AuthenticationError(msg)
            if session.get(UsedLoginTokenRecord, jti) is not None:
                msg = "This login link has already been used"
                raise AuthenticationError(msg)

            employee = find_employee_by_email(session, payload["email"])
            if employee is None:
                msg = "Employee not found"
                raise AuthenticationError(msg)
            if employee.status is EmployeeStatus.INACTIVE:
                msg = "Your account is not active. Contact admin."
                raise AuthenticationError(msg)
            if employee.status is EmployeeStatus.PENDING:
                employee.status = EmployeeStatus.ACTIVE
                logger.info(f"Employee {employee.email} activated on first login")

            session.add(UsedLoginTokenRecord(jti=jti, email=employee.email))
            session.flush()
            employee_read = EmployeeRead.model_validate(employee)

        logger.info(f"Session issued for {employee_read.email} ({employee_read.role.value})")
        return SessionResponse(
            access_token=self.create_session_token(employee_read),
            employee=employee_read,
        )

    # ---------- Sessions ----------

    def resolve_context(self, token: str) -> RequestContext:
        """Build the request context for a session token.

        Raises:
            AuthenticationError: If the token is invalid or the employee is
                missing or no longer active
        """
        payload = self._decode(token, SESSION_PURPOSE)

        with self.database.session() as session:
            employee = find_employee_by_email(session, payload["email"])
            if employee is None or employee.status is not EmployeeStatus.ACTIVE:
                msg = "Session is no longer valid"
                raise AuthenticationError(msg)

            return RequestContext(
                employee_id=employee.id,
                email=employee.email,
                name=employee.name,
                role=employee.role,
            )
