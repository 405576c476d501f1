"""Shared fixtures: in-memory database, recording email service and services."""

from datetime import date

import pytest

from tablekeeper.config import Config
from tablekeeper.database import Database
from tablekeeper.errors import NotificationError
from tablekeeper.models import ReservationCreate, TableCreate
from tablekeeper.services.auth_service import AuthService
from tablekeeper.services.email_service import EmailService, OutgoingEmail
from tablekeeper.services.employee_service import EmployeeService
from tablekeeper.services.reservation_service import ReservationService
from tablekeeper.services.settings_service import SettingsService
from tablekeeper.services.stats_service import StatsService
from tablekeeper.services.table_service import TableService


class RecordingEmailService(EmailService):
    """Email service that keeps rendered emails instead of delivering them."""

    def __init__(self, cfg: Config) -> None:
        super().__init__(cfg)
        self.sent: list[OutgoingEmail] = []
        self.fail = False

    def send(self, email: OutgoingEmail) -> None:
        if self.fail:
            raise NotificationError("SMTP relay unavailable")
        self.sent.append(email)


@pytest.fixture
def config():
    """Configuration isolated from the developer's .env file."""
    return Config(
        _env_file=None,
        database_url="sqlite://",
        secret_key="test-secret-key-with-enough-length-for-hs256",
        email_transport="smtp",
        email_user="reservations@madot.test",
        email_pass="app-password",
        public_app_url="https://staff.madot.test",
        admin_email="admin@madot.test",
        admin_name="Ada Admin",
    )


@pytest.fixture
def database():
    """Fresh in-memory database per test."""
    db = Database("sqlite://")
    db.init_db()
    yield db
    db.dispose()


@pytest.fixture
def email_service(config):
    return RecordingEmailService(config)


@pytest.fixture
def settings_service(database):
    return SettingsService(database)


@pytest.fixture
def table_service(database):
    return TableService(database)


@pytest.fixture
def today():
    """Booking day the reservation tests are written against."""
    return date(2025, 5, 25)


@pytest.fixture
def reservation_service(database, email_service, settings_service, today):
    return ReservationService(database, email_service, settings_service, clock=lambda: today)


@pytest.fixture
def auth_service(database, email_service, config):
    return AuthService(database, email_service, config)


@pytest.fixture
def employee_service(database, auth_service):
    return EmployeeService(database, auth_service)


@pytest.fixture
def stats_service(database):
    return StatsService(database)


@pytest.fixture
def jane_booking():
    return ReservationCreate(
        name="Jane Doe",
        email="jane@x.com",
        date="2025-06-01",
        time="19:00",
        guests=2,
    )


@pytest.fixture
def table_four(table_service):
    """Table #4 with four seats."""
    return table_service.create_table(TableCreate(number=4, capacity=4))
