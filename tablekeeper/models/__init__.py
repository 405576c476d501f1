"""Data models for the Tablekeeper system."""

from tablekeeper.models.employee import (
    EmployeeCreate,
    EmployeeCreateResult,
    EmployeeRead,
    EmployeeRole,
    EmployeeStatus,
    EmployeeUpdate,
)
from tablekeeper.models.notification import (
    ConfirmationEmailRequest,
    MagicLinkRequest,
    RejectionEmailRequest,
    SessionResponse,
    TokenExchangeRequest,
)
from tablekeeper.models.reservation import (
    AssignTableRequest,
    LifecycleResult,
    ReservationCreate,
    ReservationRead,
    ReservationStatus,
    ReservationUpdate,
)
from tablekeeper.models.settings import (
    BookingOptions,
    ClosedDateRequest,
    GuestOption,
    SettingsRead,
    SettingsUpdate,
    TimeSlot,
)
from tablekeeper.models.stats import (
    DailyStat,
    DashboardOverview,
    StatsReport,
    StatusStat,
    WeeklyStat,
)
from tablekeeper.models.table import TableCreate, TableRead, TableStatus, TableUpdate

__all__ = [
    "AssignTableRequest",
    "BookingOptions",
    "ClosedDateRequest",
    "ConfirmationEmailRequest",
    "DailyStat",
    "DashboardOverview",
    "EmployeeCreate",
    "EmployeeCreateResult",
    "EmployeeRead",
    "EmployeeRole",
    "EmployeeStatus",
    "EmployeeUpdate",
    "GuestOption",
    "LifecycleResult",
    "MagicLinkRequest",
    "RejectionEmailRequest",
    "ReservationCreate",
    "ReservationRead",
    "ReservationStatus",
    "ReservationUpdate",
    "SessionResponse",
    "SettingsRead",
    "SettingsUpdate",
    "StatsReport",
    "StatusStat",
    "TableCreate",
    "TableRead",
    "TableStatus",
    "TableUpdate",
    "TimeSlot",
    "TokenExchangeRequest",
    "WeeklyStat",
]
