"""FastAPI server for public booking, staff auth and the dashboard API."""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass

import uvicorn
from fastapi import Depends, FastAPI, Header, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tablekeeper.config import Config, get_config, setup_logging
from tablekeeper.database import Database
from tablekeeper.errors import AuthenticationError, PermissionDeniedError, TablekeeperError
from tablekeeper.models import (
    AssignTableRequest,
    BookingOptions,
    ClosedDateRequest,
    ConfirmationEmailRequest,
    DashboardOverview,
    EmployeeCreate,
    EmployeeCreateResult,
    EmployeeRead,
    EmployeeRole,
    EmployeeStatus,
    EmployeeUpdate,
    LifecycleResult,
    MagicLinkRequest,
    RejectionEmailRequest,
    ReservationCreate,
    ReservationRead,
    ReservationStatus,
    ReservationUpdate,
    SessionResponse,
    SettingsRead,
    SettingsUpdate,
    StatsReport,
    TableCreate,
    TableRead,
    TableUpdate,
    TokenExchangeRequest,
)
from tablekeeper.services.auth_service import AuthService, RequestContext
from tablekeeper.services.email_service import EmailService
from tablekeeper.services.employee_service import EmployeeService
from tablekeeper.services.reservation_service import ReservationService
from tablekeeper.services.settings_service import SettingsService
from tablekeeper.services.stats_service import StatsService
from tablekeeper.services.table_service import TableService

logger = logging.getLogger(__name__)

ALL_STAFF = (EmployeeRole.WAITER, EmployeeRole.MANAGER, EmployeeRole.ADMIN)
MANAGERS = (EmployeeRole.MANAGER, EmployeeRole.ADMIN)
ADMINS = (EmployeeRole.ADMIN,)


@dataclass
class Services:
    """Service instances shared by all requests of one app."""

    config: Config
    database: Database
    email: EmailService
    auth: AuthService
    reservations: ReservationService
    tables: TableService
    employees: EmployeeService
    settings: SettingsService
    stats: StatsService


def build_services(
    cfg: Config | None = None,
    database: Database | None = None,
    email_service: EmailService | None = None,
) -> Services:
    cfg = cfg or get_config()
    database = database or Database(cfg.database_url)
    email_service = email_service or EmailService(cfg)
    settings_service = SettingsService(database)
    auth_service = AuthService(database, email_service, cfg)

    return Services(
        config=cfg,
        database=database,
        email=email_service,
        auth=auth_service,
        reservations=ReservationService(database, email_service, settings_service),
        tables=TableService(database),
        employees=EmployeeService(database, auth_service),
        settings=settings_service,
        stats=StatsService(database),
    )


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Application lifespan manager."""
    services: Services = _app.state.services
    cfg = services.config
    logger.info(f"Starting {cfg.restaurant_name} server on {cfg.server_host}:{cfg.server_port}")

    services.database.init_db()
    services.settings.ensure_settings()
    services.employees.bootstrap_admin(cfg.admin_email, cfg.admin_name)
    logger.info("✓ Database ready")

    yield

    logger.info("Shutting down Tablekeeper server")


# ---------- Dependencies ----------


def get_services(request: Request) -> Services:
    """Dependency to get the service registry from app state."""
    return request.app.state.services


def get_request_context(
    authorization: str | None = Header(None),
    services: Services = Depends(get_services),
) -> RequestContext:
    """Resolve the bearer session token into the current employee.

    Raises:
        AuthenticationError: If the header is missing or the session is invalid
    """
    if not authorization or not authorization.lower().startswith("bearer "):
        msg = "Not signed in"
        raise AuthenticationError(msg)
    token = authorization.split(" ", 1)[1].strip()
    return services.auth.resolve_context(token)


def require_roles(*roles: EmployeeRole):
    """Build a dependency that only lets the given roles through."""

    def dependency(context: RequestContext = Depends(get_request_context)) -> RequestContext:
        if not context.has_role(*roles):
            logger.warning(f"{context.email} ({context.role.value}) denied access")
            msg = "You do not have permission to access this page"
            raise PermissionDeniedError(msg)
        return context

    return dependency


# ---------- Exception handlers ----------


async def handle_service_error(_request: Request, exc: TablekeeperError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def handle_validation_error(_request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content={"error": message})


async def handle_unknown_error(_request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Unknown error"})


# ---------- App factory ----------


def create_app(
    cfg: Config | None = None,
    database: Database | None = None,
    email_service: EmailService | None = None,
) -> FastAPI:
    """Create the FastAPI application.

    Args:
        cfg: Configuration (defaults to the global config)
        database: Database to use instead of one built from ``database_url``
        email_service: Email service to use instead of the configured one

    Returns:
        The configured FastAPI app
    """
    app = FastAPI(
        title="Tablekeeper API",
        description="Restaurant reservations and staff dashboard",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.services = build_services(cfg, database, email_service)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(TablekeeperError, handle_service_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unknown_error)

    _register_public_routes(app)
    _register_auth_routes(app)
    _register_dashboard_routes(app)
    return app


def _register_public_routes(app: FastAPI) -> None:
    @app.get("/health")
    def health_check():
        """Health check endpoint for monitoring."""
        return {"status": "healthy", "service": "tablekeeper-api"}

    @app.get("/api/booking-options", response_model=BookingOptions)
    def booking_options(services: Services = Depends(get_services)):
        return services.settings.booking_options(services.reservations.clock())

    @app.post("/api/reservations")
    def create_reservation(data: ReservationCreate, services: Services = Depends(get_services)):
        """Submit a guest booking.

        Returns:
            {"success": true, "data": <reservation>}
        """
        try:
            reservation = services.reservations.create_reservation(data)
        except TablekeeperError:
            raise
        except Exception:
            logger.exception("Error creating reservation")
            return JSONResponse(status_code=500, content={"error": "Unknown error"})

        return {"success": True, "data": reservation.model_dump(mode="json")}

    @app.post("/api/send-confirmation-email")
    def send_confirmation_email(
        data: ConfirmationEmailRequest,
        _context: RequestContext = Depends(require_roles(*ALL_STAFF)),
        services: Services = Depends(get_services),
    ):
        try:
            services.email.send_confirmation(
                data.to, data.first_name, data.last_name, data.date, data.time, data.table
            )
        except TablekeeperError as e:
            return JSONResponse(status_code=500, content={"success": False, "error": e.message})
        return {"success": True, "message": "Confirmation email sent successfully"}

    @app.post("/api/send-rejection-email")
    def send_rejection_email(
        data: RejectionEmailRequest,
        _context: RequestContext = Depends(require_roles(*ALL_STAFF)),
        services: Services = Depends(get_services),
    ):
        try:
            services.email.send_rejection(data.to, data.display_name, data.date, data.time)
        except TablekeeperError as e:
            return JSONResponse(status_code=500, content={"success": False, "error": e.message})
        return {"success": True, "message": "Rejection email sent successfully"}


def _register_auth_routes(app: FastAPI) -> None:
    @app.post("/api/auth/magic-link")
    def request_magic_link(data: MagicLinkRequest, services: Services = Depends(get_services)):
        services.auth.request_login(data.email)
        return {"success": True, "message": "Check your email for the login link."}

    @app.post("/api/auth/callback", response_model=SessionResponse)
    def auth_callback(data: TokenExchangeRequest, services: Services = Depends(get_services)):
        return services.auth.exchange_token(data.token)

    @app.get("/api/auth/me")
    def current_employee(context: RequestContext = Depends(get_request_context)):
        return {
            "id": context.employee_id,
            "email": context.email,
            "name": context.name,
            "role": context.role.value,
        }


def _register_dashboard_routes(app: FastAPI) -> None:
    staff = require_roles(*ALL_STAFF)
    managers = require_roles(*MANAGERS)
    admins = require_roles(*ADMINS)

    # Reservations

    @app.get("/api/dashboard/reservations", response_model=list[ReservationRead])
    def list_reservations(
        search: str | None = Query(None, description="Name or email contains"),
        status: ReservationStatus | None = Query(None),
        _context: RequestContext = Depends(staff),
        services: Services = Depends(get_services),
    ):
        return services.reservations.list_reservations(search=search, status=status)

    @app.get("/api/dashboard/reservations/{reservation_id}", response_model=ReservationRead)
    def get_reservation(
        reservation_id: str,
        _context: RequestContext = Depends(staff),
        services: Services = Depends(get_services),
    ):
        return services.reservations.get_reservation(reservation_id)

    @app.post(
        "/api/dashboard/reservations/{reservation_id}/assign-table",
        response_model=ReservationRead,
    )
    def assign_table(
        reservation_id: str,
        data: AssignTableRequest,
        _context: RequestContext = Depends(staff),
        services: Services = Depends(get_services),
    ):
        return services.reservations.assign_table(reservation_id, data.table_id)

    @app.post(
        "/api/dashboard/reservations/{reservation_id}/confirm",
        response_model=LifecycleResult,
    )
    def confirm_reservation(
        reservation_id: str,
        _context: RequestContext = Depends(staff),
        services: Services = Depends(get_services),
    ):
        return services.reservations.confirm(reservation_id)

    @app.post(
        "/api/dashboard/reservations/{reservation_id}/cancel",
        response_model=LifecycleResult,
    )
    def cancel_reservation(
        reservation_id: str,
        _context: RequestContext = Depends(staff),
        services: Services = Depends(get_services),
    ):
        return services.reservations.cancel(reservation_id)

    @app.post(
        "/api/dashboard/reservations/{reservation_id}/arrive",
        response_model=LifecycleResult,
    )
    def mark_arrived(
        reservation_id: str,
        _context: RequestContext = Depends(staff),
        services: Services = Depends(get_services),
    ):
        return services.reservations.mark_arrived(reservation_id)

    @app.patch("/api/dashboard/reservations/{reservation_id}", response_model=ReservationRead)
    def update_reservation(
        reservation_id: str,
        data: ReservationUpdate,
        _context: RequestContext = Depends(staff),
        services: Services = Depends(get_services),
    ):
        return services.reservations.update_reservation(reservation_id, data)

    @app.delete("/api/dashboard/reservations/{reservation_id}")
    def delete_reservation(
        reservation_id: str,
        _context: RequestContext = Depends(managers),
        services: Services = Depends(get_services),
    ):
        services.reservations.delete_reservation(reservation_id)
        return {"success": True}

    # Tables

    @app.get("/api/dashboard/tables", response_model=list[TableRead])
    def list_tables(
        _context: RequestContext = Depends(staff),
        services: Services = Depends(get_services),
    ):
        return services.tables.list_tables()

    @app.post("/api/dashboard/tables", response_model=TableRead)
    def create_table(
        data: TableCreate,
        _context: RequestContext = Depends(managers),
        services: Services = Depends(get_services),
    ):
        return services.tables.create_table(data)

    @app.patch("/api/dashboard/tables/{table_id}", response_model=TableRead)
    def update_table(
        table_id: int,
        data: TableUpdate,
        _context: RequestContext = Depends(managers),
        services: Services = Depends(get_services),
    ):
        return services.tables.update_table(table_id, data)

    @app.delete("/api/dashboard/tables/{table_id}")
    def delete_table(
        table_id: int,
        _context: RequestContext = Depends(managers),
        services: Services = Depends(get_services),
    ):
        services.tables.delete_table(table_id)
        return {"success": True}

    # Statistics

    @app.get("/api/dashboard/stats", response_model=StatsReport)
    def stats(
        range_days: int = Query(30, description="7, 30, 90 or 365"),
        _context: RequestContext = Depends(managers),
        services: Services = Depends(get_services),
    ):
        return services.stats.compute(range_days)

    # Employees

    @app.get("/api/dashboard/employees", response_model=list[EmployeeRead])
    def list_employees(
        search: str | None = Query(None),
        role: EmployeeRole | None = Query(None),
        status: EmployeeStatus | None = Query(None),
        _context: RequestContext = Depends(admins),
        services: Services = Depends(get_services),
    ):
        return services.employees.list_employees(search=search, role=role, status=status)

    @app.post("/api/dashboard/employees", response_model=EmployeeCreateResult)
    def create_employee(
        data: EmployeeCreate,
        _context: RequestContext = Depends(admins),
        services: Services = Depends(get_services),
    ):
        return services.employees.create_employee(data)

    @app.patch("/api/dashboard/employees/{employee_id}", response_model=EmployeeRead)
    def update_employee(
        employee_id: int,
        data: EmployeeUpdate,
        _context: RequestContext = Depends(admins),
        services: Services = Depends(get_services),
    ):
        return services.employees.update_employee(employee_id, data)

    @app.delete("/api/dashboard/employees/{employee_id}")
    def delete_employee(
        employee_id: int,
        _context: RequestContext = Depends(admins),
        services: Services = Depends(get_services),
    ):
        services.employees.delete_employee(employee_id)
        return {"success": True}

    # Settings

    @app.get("/api/dashboard/settings", response_model=SettingsRead)
    def get_settings(
        _context: RequestContext = Depends(admins),
        services: Services = Depends(get_services),
    ):
        return services.settings.get_settings()

    @app.put("/api/dashboard/settings", response_model=SettingsRead)
    def update_settings(
        data: SettingsUpdate,
        _context: RequestContext = Depends(admins),
        services: Services = Depends(get_services),
    ):
        return services.settings.update_settings(data)

    @app.post("/api/dashboard/settings/closed-dates", response_model=SettingsRead)
    def add_closed_date(
        data: ClosedDateRequest,
        _context: RequestContext = Depends(admins),
        services: Services = Depends(get_services),
    ):
        return services.settings.add_closed_date(data.date)

    @app.delete("/api/dashboard/settings/closed-dates/{closed_date}", response_model=SettingsRead)
    def remove_closed_date(
        closed_date: str,
        _context: RequestContext = Depends(admins),
        services: Services = Depends(get_services),
    ):
        return services.settings.remove_closed_date(closed_date)

    # Overview

    @app.get("/api/dashboard/overview", response_model=DashboardOverview)
    def overview(
        context: RequestContext = Depends(staff),
        services: Services = Depends(get_services),
    ):
        return services.stats.overview(context)


def run_server():
    """Run the FastAPI server using uvicorn.

    This is the main entry point for the server.
    """
    setup_logging()
    config = get_config()

    uvicorn.run(
        "tablekeeper.server:create_app",
        factory=True,
        host=config.server_host,
        port=config.server_port,
        log_level=config.log_level.lower(),
        reload=False,
    )


if __name__ == "__main__":
    run_server()
